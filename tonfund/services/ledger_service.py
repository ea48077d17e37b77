"""Spending-limit ledger operations."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from tonfund.services.common import SupabaseService
from tonfund.utils.errors import InsufficientLimitError, InvalidInputError
from supabase import Client

logger = logging.getLogger(__name__)


def check_reserve(available: int, amount: int) -> int:
    """Return the limit left after reserving ``amount``; never negative."""
    if amount < 1:
        raise InvalidInputError("Amount must be at least 1")
    if available < amount:
        raise InsufficientLimitError(required=amount, available=available)
    return available - amount


class LedgerService:
    """Read the spending limit and apply deferred refunds.

    Reservations and author-deletion refunds happen inside the charity
    functions themselves so they commit together with the charity row.
    """

    def __init__(self, client: Client) -> None:
        self.db = SupabaseService(client)

    def available(self, wallet: str) -> int:
        """Return the current spending limit of a user."""
        user = self.db.select_one(
            "users",
            {"wallet": wallet},
            columns="wallet,spending_limit",
            not_found_label="User",
        )
        return int(user["spending_limit"])

    def ensure_can_reserve(self, wallet: str, amount: int) -> int:
        """Fail early when ``wallet`` cannot cover ``amount``."""
        return check_reserve(self.available(wallet), amount)

    def refund_rejection(self, charity_id: int, cutoff: datetime) -> dict[str, Any] | None:
        """Credit a rejected charity's reservation back to its author once.

        Returns the refund details, or None when the charity is no longer
        eligible (already refunded, deleted, or rejected after ``cutoff``).
        """
        result = self.db.transaction(
            "refund_rejected_charity",
            {"p_charity_id": charity_id, "p_cutoff": cutoff.isoformat()},
        )
        if not result.get("success"):
            return None

        logger.info(
            "Refunded %s to %s for rejected charity %s",
            result.get("amount"),
            result.get("author_wallet"),
            charity_id,
        )
        return result
