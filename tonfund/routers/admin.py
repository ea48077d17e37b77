"""Moderator endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from tonfund.dependencies import get_db_client, require_admin
from tonfund.schemas.charity import CharityItemResponse, CharityListResponse, ReviewRequest
from tonfund.services.charity_service import CharityService
from supabase import Client

router = APIRouter()


@router.get("/charities", response_model=CharityListResponse)
def list_awaiting_decision(
    limit: int = Query(default=8, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    _: str = Depends(require_admin),
    client: Client = Depends(get_db_client),
) -> dict:
    """List in-review charities whose voting window has closed."""
    charities = CharityService(client).list_awaiting_decision(limit=limit, offset=offset)
    return {"charities": charities}


@router.patch("/charity/{charity_id}", response_model=CharityItemResponse)
def review_charity(
    charity_id: int,
    payload: ReviewRequest,
    _: str = Depends(require_admin),
    client: Client = Depends(get_db_client),
) -> dict:
    """Accept a charity with its payout address, or reject it."""
    charity = CharityService(client).review(charity_id, payload.status, payload.address)
    return {"message": f"Charity {payload.status}", "charity": charity}
