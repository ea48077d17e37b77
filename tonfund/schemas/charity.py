"""Charity, vote and moderation schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from tonfund.schemas.user import DonationResponse

VoteChoice = Literal["yes", "no"]
CharityStatus = Literal["in_review", "accepted", "rejected"]


class ProcessedImage(BaseModel):
    """Uploaded image variants and their pixel sizes."""

    original_url: str
    thumb_url: str
    original_size: tuple[int, int]
    thumb_size: tuple[int, int]


class CharityCreate(BaseModel):
    """Validated text fields of a charity submission."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    contact: str = Field(..., min_length=1, max_length=200)
    deadline: datetime
    amount: int = Field(..., ge=1)


class CharityResponse(BaseModel):
    """Charity representation."""

    id: int
    title: str
    description: str
    images: list[ProcessedImage] = Field(default_factory=list)
    donation_needed: int
    donation_received: int = 0
    contact: str
    deadline: datetime
    created_at: datetime
    status: CharityStatus
    votes_yes: int = 0
    votes_no: int = 0
    rejected_at: datetime | None = None
    refunded_at: datetime | None = None
    address: str | None = None
    author_wallet: str


class VoteRequest(BaseModel):
    """Request body for casting a vote."""

    choice: VoteChoice


class VoteResponse(BaseModel):
    """Result of a vote with the charity's current tallies."""

    message: str = "Vote processed"
    changed: bool
    action: Literal["created", "unchanged", "switched"]
    choice: VoteChoice
    votes_yes: int
    votes_no: int


class ReviewRequest(BaseModel):
    """Moderator decision on a charity in review."""

    status: Literal["accepted", "rejected"]
    address: str | None = None


class CharityWithHistory(CharityResponse):
    """Accepted charity together with the donations it received."""

    history: list[DonationResponse] = Field(default_factory=list)


class CharityItemResponse(BaseModel):
    """One charity, with the caller's vote where it applies."""

    message: str | None = None
    charity: CharityResponse
    vote: VoteChoice | None = None


class CharityDetailResponse(BaseModel):
    """Accepted charity page."""

    charity: CharityWithHistory


class CharityListResponse(BaseModel):
    """Page of charities."""

    charities: list[CharityResponse]
