"""User-related schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class UserResponse(BaseModel):
    """Public user representation."""

    wallet: str
    spending_limit: int
    points: int = 0
    initiatives_created: int = 0
    initiatives_supported: int = 0
    votes_participated: int = 0
    total_donated: int = 0
    created_at: datetime


class CheckBurnRequest(BaseModel):
    """Request body for crediting a burned NFT."""

    nft_address: str = Field(..., min_length=1)


class CheckBurnResponse(BaseModel):
    """Outcome of a verified burn."""

    nft_address: str
    points_added: int
    points: int


class DonationResponse(BaseModel):
    """One recorded donation."""

    id: int
    tx_hash: str
    charity_id: int
    user_wallet: str
    amount: int
    created_at: datetime


class DonationListResponse(BaseModel):
    """Page of the caller's donations."""

    donations: list[DonationResponse]


class InventoryResponse(BaseModel):
    """Chain holdings; the jetton balance is a string of base units."""

    nfts: list[dict]
    jetton_balance: str
