"""Endpoints about the signed-in wallet."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from tonfund.dependencies import get_current_wallet, get_db_client, get_tonapi
from tonfund.schemas.charity import CharityListResponse
from tonfund.schemas.user import (
    CheckBurnRequest,
    CheckBurnResponse,
    DonationListResponse,
    InventoryResponse,
    UserResponse,
)
from tonfund.services.burn_service import BurnService
from tonfund.services.charity_service import CharityService
from tonfund.services.user_service import UserService
from tonfund.utils.tonapi_client import TonApiClient
from supabase import Client

router = APIRouter()


@router.get("", response_model=UserResponse)
def get_user(
    wallet: str = Depends(get_current_wallet),
    client: Client = Depends(get_db_client),
) -> dict:
    """Return the caller's profile and counters."""
    return UserService(client).get(wallet)


@router.get("/charities", response_model=CharityListResponse)
def get_user_charities(
    limit: int = Query(default=10, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    wallet: str = Depends(get_current_wallet),
    client: Client = Depends(get_db_client),
) -> dict:
    """List charities the caller submitted."""
    charities = CharityService(client).list_for_author(wallet, limit=limit, offset=offset)
    return {"charities": charities}


@router.get("/inventory", response_model=InventoryResponse)
def get_inventory(
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    wallet: str = Depends(get_current_wallet),
    client: Client = Depends(get_db_client),
    tonapi: TonApiClient = Depends(get_tonapi),
) -> dict:
    """Return NFTs held by the caller and their jetton balance."""
    return UserService(client).inventory(wallet, tonapi, limit=limit, offset=offset)


@router.get("/donatations", response_model=DonationListResponse)
def get_donations(
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    wallet: str = Depends(get_current_wallet),
    client: Client = Depends(get_db_client),
) -> dict:
    """List the caller's donations, newest first."""
    return {"donations": UserService(client).donations(wallet, limit=limit, offset=offset)}


@router.post("/checkBurn", response_model=CheckBurnResponse)
def check_burn(
    payload: CheckBurnRequest,
    wallet: str = Depends(get_current_wallet),
    client: Client = Depends(get_db_client),
    tonapi: TonApiClient = Depends(get_tonapi),
) -> dict:
    """Credit points for an NFT the caller sent to the burn address."""
    return BurnService(client, tonapi).check_burn(wallet, payload.nft_address)
