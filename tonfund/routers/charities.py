"""Charity submission, browsing, voting and deletion endpoints."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from pydantic import ValidationError

from tonfund.dependencies import get_current_wallet, get_db_client
from tonfund.schemas.charity import (
    CharityCreate,
    CharityDetailResponse,
    CharityItemResponse,
    CharityListResponse,
    VoteRequest,
    VoteResponse,
)
from tonfund.services.charity_service import CharityService
from tonfund.services.vote_service import VoteService
from tonfund.utils.errors import InvalidInputError
from supabase import Client

router = APIRouter()


def _validation_message(exc: ValidationError) -> str:
    errors = exc.errors()
    return errors[0].get("msg", "Invalid request") if errors else "Invalid request"


@router.post("/charity", response_model=CharityItemResponse, status_code=201)
def create_charity(
    title: str = Form(...),
    description: str = Form(...),
    contact: str = Form(...),
    deadline: datetime = Form(...),
    amount: int = Form(...),
    image1: UploadFile | None = File(None),
    image2: UploadFile | None = File(None),
    image3: UploadFile | None = File(None),
    image4: UploadFile | None = File(None),
    images: list[UploadFile] | None = File(None),
    wallet: str = Depends(get_current_wallet),
    client: Client = Depends(get_db_client),
) -> dict:
    """Submit a charity for review, reserving ``amount`` of the spending limit."""
    try:
        data = CharityCreate(
            title=title,
            description=description,
            contact=contact,
            deadline=deadline,
            amount=amount,
        )
    except ValidationError as exc:
        raise InvalidInputError(_validation_message(exc)) from exc

    uploads = [image1, image2, image3, image4, *(images or [])]
    raw_images = [upload.file.read() for upload in uploads if upload is not None]
    charity = CharityService(client).create(wallet, data, raw_images)
    return {"message": "Charity created", "charity": charity}


@router.get("/charities", response_model=CharityListResponse)
def list_charities(
    search: str | None = Query(default=None, max_length=200),
    limit: int = Query(default=10, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    client: Client = Depends(get_db_client),
) -> dict:
    """List accepted charities, newest first."""
    charities = CharityService(client).list_accepted(search=search, limit=limit, offset=offset)
    return {"charities": charities}


@router.get("/charities/in-review", response_model=CharityListResponse)
def list_in_review(
    search: str | None = Query(default=None, max_length=200),
    limit: int = Query(default=10, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    _: str = Depends(get_current_wallet),
    client: Client = Depends(get_db_client),
) -> dict:
    """List charities still open for voting."""
    charities = CharityService(client).list_in_review(search=search, limit=limit, offset=offset)
    return {"charities": charities}


@router.get("/charity/in-review/{charity_id}", response_model=CharityItemResponse)
def get_in_review(
    charity_id: int,
    wallet: str = Depends(get_current_wallet),
    client: Client = Depends(get_db_client),
) -> dict:
    """Return one charity still open for voting and the caller's vote on it."""
    charity = CharityService(client).get_in_review(charity_id)
    vote = VoteService(client).get_vote(charity_id, wallet)
    return {"charity": charity, "vote": vote["choice"] if vote else None}


@router.get("/charity/{charity_id}", response_model=CharityDetailResponse)
def get_charity(charity_id: int, client: Client = Depends(get_db_client)) -> dict:
    """Return an accepted charity with its donation history."""
    return {"charity": CharityService(client).get_accepted(charity_id)}


@router.post("/charity/{charity_id}/vote", response_model=VoteResponse)
def vote(
    charity_id: int,
    payload: VoteRequest,
    wallet: str = Depends(get_current_wallet),
    client: Client = Depends(get_db_client),
) -> dict:
    """Cast, keep or switch the caller's vote."""
    result = VoteService(client).cast(charity_id, wallet, payload.choice)
    message = "Vote processed" if result["changed"] else "Vote unchanged"
    return {"message": message, **result}


@router.delete("/charity/{charity_id}")
def delete_charity(
    charity_id: int,
    wallet: str = Depends(get_current_wallet),
    client: Client = Depends(get_db_client),
) -> dict:
    """Delete the caller's own unaccepted charity and refund its reservation."""
    return CharityService(client).delete(charity_id, wallet)
