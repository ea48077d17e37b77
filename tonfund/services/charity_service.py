"""Charity submission, moderation and deletion.

Status moves ``in_review -> accepted | rejected``. Every transition that
touches the ledger runs as one database function so the charity row and the
author's spending limit change together or not at all.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any

from tonfund.config import settings
from tonfund.schemas.charity import CharityCreate
from tonfund.services.common import SupabaseService, page
from tonfund.services.ledger_service import LedgerService
from tonfund.services.media_service import MediaService
from tonfund.utils.errors import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    InsufficientLimitError,
    InvalidInputError,
    NotFoundError,
)
from tonfund.utils.time import minutes_before, now_utc, parse_timestamp
from tonfund.utils.ton_address import Address, AddressError
from supabase import Client

logger = logging.getLogger(__name__)

IN_REVIEW = "in_review"
ACCEPTED = "accepted"
REJECTED = "rejected"

ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    IN_REVIEW: frozenset({ACCEPTED, REJECTED}),
    ACCEPTED: frozenset(),
    REJECTED: frozenset(),
}


def ensure_transition(current: str, target: str) -> None:
    """Raise unless a moderator may move a charity from ``current`` to ``target``."""
    if current not in ALLOWED_TRANSITIONS:
        raise InvalidInputError(f"Unknown charity status: {current}")
    if target not in ALLOWED_TRANSITIONS[current]:
        raise ConflictError("Charity is already processed", code="ALREADY_PROCESSED")


def ensure_deletable(charity: dict[str, Any], author_wallet: str) -> None:
    """Only the author may delete, and only before acceptance."""
    if str(charity["author_wallet"]) != author_wallet:
        raise ForbiddenError("You are not the author of this charity")
    if charity["status"] == ACCEPTED:
        raise ConflictError("Accepted charities cannot be deleted", code="ALREADY_ACCEPTED")


def voting_deadline(created_at: str | datetime, window_minutes: int) -> datetime:
    """Return the moment voting on a charity closes."""
    return parse_timestamp(created_at) + timedelta(minutes=window_minutes)


def ensure_voting_open(charity: dict[str, Any], now: datetime, window_minutes: int) -> None:
    """Raise unless votes are accepted for ``charity`` at ``now``."""
    if charity["status"] != IN_REVIEW:
        raise ConflictError(
            "Voting is allowed only while charity is in_review",
            code="NOT_IN_REVIEW",
        )
    if now > voting_deadline(charity["created_at"], window_minutes):
        raise ConflictError("Voting period has expired", code="VOTING_CLOSED")


class CharityService:
    """Create, list, moderate and delete charities."""

    def __init__(
        self,
        client: Client,
        voting_window_minutes: int | None = None,
        media: MediaService | None = None,
    ) -> None:
        self.db = SupabaseService(client)
        self.ledger = LedgerService(client)
        self.media = media or MediaService(client)
        self.voting_window_minutes = (
            settings.voting_window_minutes
            if voting_window_minutes is None
            else voting_window_minutes
        )

    def _voting_cutoff(self, now: datetime | None) -> str:
        return minutes_before(now or now_utc(), self.voting_window_minutes).isoformat()

    def get(self, charity_id: int) -> dict[str, Any]:
        """Return any charity by id."""
        return self.db.select_one("charities", {"id": charity_id}, not_found_label="Charity")

    def create(
        self,
        author_wallet: str,
        data: CharityCreate,
        images: list[bytes] | None = None,
    ) -> dict[str, Any]:
        """Reserve the requested amount and submit a charity for review."""
        images = images or []
        if len(images) > settings.max_charity_images:
            raise InvalidInputError(f"At most {settings.max_charity_images} images are allowed")

        # Checked again under lock inside create_charity; this only avoids
        # uploading pictures for a request that cannot succeed.
        self.ledger.ensure_can_reserve(author_wallet, data.amount)
        processed = [self.media.process(raw, "charities") for raw in images]

        result = self.db.transaction(
            "create_charity",
            {
                "p_author": author_wallet,
                "p_title": data.title,
                "p_description": data.description,
                "p_images": processed,
                "p_contact": data.contact,
                "p_deadline": data.deadline.isoformat(),
                "p_amount": data.amount,
            },
        )
        if not result.get("success"):
            self._raise_for_reason(str(result.get("reason") or ""), result, data.amount)

        charity = result["charity"]
        logger.info("Charity %s created by %s for %s", charity["id"], author_wallet, data.amount)
        return charity

    def get_accepted(self, charity_id: int) -> dict[str, Any]:
        """Return an accepted charity with its donation history."""
        charity = self.db.select_one(
            "charities",
            {"id": charity_id, "status": ACCEPTED},
            not_found_label="Charity",
        )
        history = self.db.select_many(
            "donations",
            filters={"charity_id": charity_id},
            order_by="created_at",
            descending=True,
        )
        return {**charity, "history": history}

    def list_accepted(
        self, search: str | None = None, limit: int = 10, offset: int = 0
    ) -> list[dict[str, Any]]:
        """Return accepted charities, newest first, optionally searched by title."""
        query = self.db.client.table("charities").select("*").eq("status", ACCEPTED)
        if search:
            query = query.ilike("title", f"%{search}%")
        return self.db.execute(page(query, limit, offset), default=[])

    def list_in_review(
        self,
        search: str | None = None,
        limit: int = 10,
        offset: int = 0,
        now: datetime | None = None,
    ) -> list[dict[str, Any]]:
        """Return charities whose voting window is still open."""
        query = (
            self.db.client.table("charities")
            .select("*")
            .eq("status", IN_REVIEW)
            .gte("created_at", self._voting_cutoff(now))
        )
        if search:
            query = query.ilike("title", f"%{search}%")
        return self.db.execute(page(query, limit, offset), default=[])

    def get_in_review(self, charity_id: int, now: datetime | None = None) -> dict[str, Any]:
        """Return one charity that can still be voted on."""
        rows = self.db.execute(
            self.db.client.table("charities")
            .select("*")
            .eq("id", charity_id)
            .eq("status", IN_REVIEW)
            .gte("created_at", self._voting_cutoff(now))
            .limit(1),
            default=[],
        )
        if not rows:
            raise NotFoundError("Charity")
        return rows[0]

    def list_awaiting_decision(
        self, limit: int = 8, offset: int = 0, now: datetime | None = None
    ) -> list[dict[str, Any]]:
        """Return in-review charities whose voting has closed."""
        query = (
            self.db.client.table("charities")
            .select("*")
            .eq("status", IN_REVIEW)
            .lte("created_at", self._voting_cutoff(now))
        )
        return self.db.execute(page(query, limit, offset), default=[])

    def list_for_author(
        self, author_wallet: str, limit: int = 10, offset: int = 0
    ) -> list[dict[str, Any]]:
        """Return every charity submitted by a wallet."""
        return self.db.select_many(
            "charities",
            filters={"author_wallet": author_wallet},
            order_by="created_at",
            descending=True,
            limit=limit,
            offset=offset,
        )

    def review(
        self, charity_id: int, status: str, address: str | None = None
    ) -> dict[str, Any]:
        """Accept (with a payout address) or reject a charity in review."""
        normalized_address = None
        if status == ACCEPTED:
            if not address:
                raise BadRequestError(
                    "Address is required for accepted charities",
                    code="ADDRESS_REQUIRED",
                )
            try:
                normalized_address = Address.parse(address).raw
            except AddressError as exc:
                raise BadRequestError(str(exc), code="INVALID_ADDRESS") from exc

        charity = self.get(charity_id)
        ensure_transition(str(charity["status"]), status)

        result = self.db.transaction(
            "review_charity",
            {"p_charity_id": charity_id, "p_status": status, "p_address": normalized_address},
        )
        if not result.get("success"):
            self._raise_for_reason(str(result.get("reason") or ""), result)

        logger.info("Charity %s %s", charity_id, status)
        return result["charity"]

    def delete(self, charity_id: int, author_wallet: str) -> dict[str, Any]:
        """Remove an unaccepted charity and return its reservation to the author."""
        charity = self.get(charity_id)
        ensure_deletable(charity, author_wallet)

        result = self.db.transaction(
            "delete_charity",
            {"p_charity_id": charity_id, "p_author": author_wallet},
        )
        if not result.get("success"):
            self._raise_for_reason(str(result.get("reason") or ""), result)

        refunded = int(result.get("refunded") or 0)
        logger.info("Charity %s deleted by author, refunded %s", charity_id, refunded)
        return {"message": "Charity deleted and funds returned to user", "refunded": refunded}

    @staticmethod
    def _raise_for_reason(reason: str, result: dict[str, Any], amount: int = 0) -> None:
        if reason == "user_not_found":
            raise NotFoundError("User")
        if reason == "charity_not_found":
            raise NotFoundError("Charity")
        if reason == "insufficient_limit":
            raise InsufficientLimitError(required=amount, available=result.get("available"))
        if reason == "not_author":
            raise ForbiddenError("You are not the author of this charity")
        if reason == "already_accepted":
            raise ConflictError("Accepted charities cannot be deleted", code="ALREADY_ACCEPTED")
        if reason == "already_processed":
            raise ConflictError("Charity is already processed", code="ALREADY_PROCESSED")
        if reason == "address_required":
            raise BadRequestError(
                "Address is required for accepted charities", code="ADDRESS_REQUIRED"
            )
        raise InvalidInputError("Charity update failed")
