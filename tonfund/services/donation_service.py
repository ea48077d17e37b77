"""Donation recording from chain transfer notifications."""

from __future__ import annotations

import logging
from typing import Any

from tonfund.config import settings
from tonfund.services.charity_service import ACCEPTED
from tonfund.services.common import SupabaseService
from tonfund.utils.errors import NotFoundError
from tonfund.utils.ton_address import Address, AddressError
from tonfund.utils.tonapi_client import TonApiClient
from supabase import Client

logger = logging.getLogger(__name__)


def inbound_transfer(transaction: dict[str, Any]) -> dict[str, Any] | None:
    """Extract sender, recipient and value of a successful incoming transfer."""
    if not transaction.get("success", False):
        return None
    in_msg = transaction.get("in_msg") or {}
    source = (in_msg.get("source") or {}).get("address")
    destination = (in_msg.get("destination") or {}).get("address")
    value = int(in_msg.get("value") or 0)
    if not source or not destination or value <= 0:
        return None
    try:
        return {
            "sender": Address.parse(source).raw,
            "recipient": Address.parse(destination).raw,
            "amount": value,
        }
    except AddressError:
        return None


class DonationService:
    """Record transfers to accepted charities exactly once per transaction."""

    def __init__(self, client: Client, tonapi: TonApiClient) -> None:
        self.db = SupabaseService(client)
        self.tonapi = tonapi

    def record_transaction(self, tx_hash: str) -> dict[str, Any] | None:
        """Fetch a transaction and record it if it funds an accepted charity.

        Returns the donation row, or None when the transaction is not a
        donation or was already recorded.
        """
        transaction = self.tonapi.get_transaction(tx_hash)
        if not transaction:
            raise NotFoundError("Transaction")

        transfer = inbound_transfer(transaction)
        if transfer is None:
            return None

        charities = self.db.select_many(
            "charities",
            filters={"address": transfer["recipient"], "status": ACCEPTED},
            columns="id",
            limit=1,
        )
        if not charities:
            return None

        result = self.db.transaction(
            "record_donation",
            {
                "p_tx_hash": tx_hash,
                "p_charity_id": charities[0]["id"],
                "p_wallet": transfer["sender"],
                "p_amount": transfer["amount"],
                "p_initial_limit": settings.initial_user_limit,
            },
        )
        if not result.get("success"):
            logger.info("Donation %s not recorded: %s", tx_hash, result.get("reason"))
            return None

        donation = result["donation"]
        logger.info(
            "Recorded donation %s of %s to charity %s",
            tx_hash,
            donation["amount"],
            donation["charity_id"],
        )
        return donation
