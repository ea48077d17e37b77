"""Company schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from tonfund.schemas.charity import ProcessedImage


class CompanyCreate(BaseModel):
    """Validated text fields of a company submission."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    expired_at: datetime
    total_amount: Decimal = Field(..., ge=0, decimal_places=0)


class CompanyResponse(BaseModel):
    """Company representation; amounts are strings to survive JSON."""

    id: int
    title: str
    description: str
    image: ProcessedImage | None = None
    expired_at: datetime
    total_amount: str
    author_wallet: str | None = None
    created_at: datetime


class CompanyListResponse(BaseModel):
    """Page of companies."""

    companies: list[CompanyResponse]
