"""Points-funded company listings."""

from __future__ import annotations

import logging
from typing import Any

from tonfund.schemas.company import CompanyCreate
from tonfund.services.common import SupabaseService, page
from tonfund.services.media_service import MediaService
from tonfund.utils.errors import BadRequestError, InvalidInputError, NotFoundError
from supabase import Client

logger = logging.getLogger(__name__)

COMPANY_COST_POINTS = 1


def _serialize(company: dict[str, Any]) -> dict[str, Any]:
    return {**company, "total_amount": str(company.get("total_amount") or 0)}


class CompanyService:
    """Create and list companies."""

    def __init__(self, client: Client, media: MediaService | None = None) -> None:
        self.db = SupabaseService(client)
        self.media = media or MediaService(client)

    def create(
        self,
        author_wallet: str,
        data: CompanyCreate,
        image: bytes | None = None,
    ) -> dict[str, Any]:
        """Spend one point of the author's and publish a company."""
        user = self.db.select_one(
            "users", {"wallet": author_wallet}, columns="points", not_found_label="User"
        )
        if int(user.get("points") or 0) < COMPANY_COST_POINTS:
            raise BadRequestError("Not enough points", code="NOT_ENOUGH_POINTS")

        processed = self.media.process(image, "companies") if image else None
        result = self.db.transaction(
            "create_company",
            {
                "p_author": author_wallet,
                "p_title": data.title,
                "p_description": data.description,
                "p_image": processed,
                "p_expired_at": data.expired_at.isoformat(),
                "p_total_amount": str(data.total_amount),
                "p_cost": COMPANY_COST_POINTS,
            },
        )
        if not result.get("success"):
            reason = str(result.get("reason") or "")
            if reason == "user_not_found":
                raise NotFoundError("User")
            if reason == "not_enough_points":
                raise BadRequestError("Not enough points", code="NOT_ENOUGH_POINTS")
            raise InvalidInputError("Company creation failed")

        company = result["company"]
        logger.info("Company %s created by %s", company["id"], author_wallet)
        return _serialize(company)

    def list(self, limit: int = 10, offset: int = 0) -> list[dict[str, Any]]:
        """Return companies, newest first."""
        query = self.db.client.table("companies").select("*")
        rows = self.db.execute(page(query, limit, offset), default=[])
        return [_serialize(row) for row in rows]
