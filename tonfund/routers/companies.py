"""Company endpoints."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from pydantic import ValidationError

from tonfund.dependencies import get_current_wallet, get_db_client
from tonfund.schemas.company import CompanyCreate, CompanyListResponse, CompanyResponse
from tonfund.services.company_service import CompanyService
from tonfund.utils.errors import InvalidInputError
from supabase import Client

router = APIRouter()


@router.post("/company", response_model=CompanyResponse, status_code=201)
def create_company(
    title: str = Form(...),
    description: str = Form(...),
    expired_at: datetime = Form(...),
    total_amount: Decimal = Form(...),
    image: UploadFile | None = File(None),
    file: UploadFile | None = File(None),
    wallet: str = Depends(get_current_wallet),
    client: Client = Depends(get_db_client),
) -> dict:
    """Publish a company for one point."""
    try:
        data = CompanyCreate(
            title=title,
            description=description,
            expired_at=expired_at,
            total_amount=total_amount,
        )
    except ValidationError as exc:
        errors = exc.errors()
        raise InvalidInputError(errors[0].get("msg", "Invalid request")) from exc

    upload = image if image is not None else file
    raw_image = upload.file.read() if upload is not None else None
    return CompanyService(client).create(wallet, data, raw_image)


@router.get("/companies", response_model=CompanyListResponse)
def list_companies(
    limit: int = Query(default=10, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    client: Client = Depends(get_db_client),
) -> dict:
    """List companies, newest first."""
    return {"companies": CompanyService(client).list(limit=limit, offset=offset)}
