"""Points for burned NFTs.

An NFT item counts as burned when its latest transfer went to the burn
address. Its content file name (``"<points>.json"``) says how many points the
sender earns. Each item is credited at most once.
"""

from __future__ import annotations

import logging
import re
import time
from datetime import datetime
from typing import Any

from tonfund.config import settings
from tonfund.services.common import SupabaseService
from tonfund.utils.errors import BadRequestError, ForbiddenError, NotFoundError, UpstreamError
from tonfund.utils.time import now_utc
from tonfund.utils.ton_address import Address, AddressError, same_address
from tonfund.utils.tonapi_client import TonApiClient
from supabase import Client

logger = logging.getLogger(__name__)

CONTENT_PATTERN = re.compile(r"^(\d+)\.json$")


def points_for_content(content: str | None) -> int:
    """Return the points encoded in an item's content name, or 0."""
    match = CONTENT_PATTERN.match(content or "")
    return int(match.group(1)) if match else 0


def latest_transfer(tonapi: TonApiClient, nft_address: str) -> dict[str, str | None] | None:
    """Return sender/recipient of the NFT's most recent transfer, if any."""
    events = tonapi.get_nft_history(nft_address, limit=10)
    event_id = events[0].get("event_id") if events else None
    if not event_id:
        return None

    event = tonapi.get_event(str(event_id))
    actions = event.get("actions") or []
    transfer = actions[0].get("NftItemTransfer") if actions else None
    if not transfer:
        return None

    sender = (transfer.get("sender") or {}).get("address")
    recipient = (transfer.get("recipient") or {}).get("address")
    return {"sender": sender, "recipient": recipient}


class BurnService:
    """Verify burns and credit points, interactively or from the job."""

    def __init__(
        self,
        client: Client,
        tonapi: TonApiClient,
        burn_address: str | None = None,
    ) -> None:
        self.db = SupabaseService(client)
        self.tonapi = tonapi
        self.burn_address = burn_address or settings.burn_address

    def _item(self, nft_address: str) -> dict[str, Any]:
        return self.db.select_one("nft_items", {"address": nft_address}, not_found_label="Item")

    def check_burn(self, wallet: str, nft_address: str) -> dict[str, Any]:
        """Credit the caller for an NFT they sent to the burn address."""
        self.db.select_one("users", {"wallet": wallet}, columns="wallet", not_found_label="User")
        try:
            normalized = Address.parse(nft_address).raw
        except AddressError as exc:
            raise BadRequestError(str(exc), code="INVALID_ADDRESS") from exc

        item = self._item(normalized)
        if item.get("is_checked"):
            raise ForbiddenError("Already checked", code="ALREADY_CHECKED")

        transfer = latest_transfer(self.tonapi, normalized)
        if transfer is None:
            raise BadRequestError("No NFT transfer events found", code="NO_BURN_EVENT")
        if not same_address(transfer["sender"], wallet) or not same_address(
            transfer["recipient"], self.burn_address
        ):
            raise BadRequestError(
                "NFT transfer does not match burn criteria.", code="NOT_BURNED"
            )

        points = points_for_content(item.get("content"))
        if points <= 0:
            raise BadRequestError(
                "Invalid NFT content format or zero points", code="INVALID_NFT_CONTENT"
            )

        total = self.credit(normalized, wallet, points)
        return {"nft_address": normalized, "points_added": points, "points": total}

    def credit(
        self,
        nft_address: str,
        wallet: str,
        points: int,
        checked_at: datetime | None = None,
    ) -> int:
        """Mark the item checked and add points to ``wallet`` atomically."""
        result = self.db.transaction(
            "credit_burned_nft",
            {
                "p_nft_address": nft_address,
                "p_wallet": wallet,
                "p_points": points,
                "p_checked_at": (checked_at or now_utc()).isoformat(),
                "p_initial_limit": settings.initial_user_limit,
            },
        )
        if not result.get("success"):
            reason = str(result.get("reason") or "")
            if reason == "nft_not_found":
                raise NotFoundError("Item")
            if reason == "already_checked":
                raise ForbiddenError("Already checked", code="ALREADY_CHECKED")
            raise BadRequestError("Burn credit failed")
        logger.info("Credited %s points to %s for %s", points, wallet, nft_address)
        return int(result.get("points") or 0)

    def unchecked_items(self, limit: int = 500) -> list[dict[str, Any]]:
        """Return NFT items whose burn has not been credited yet."""
        return self.db.select_many("nft_items", filters={"is_checked": False}, limit=limit)

    def reconcile_item(
        self,
        item: dict[str, Any],
        now: datetime,
        retries: int = 3,
        retry_delay: float = 0.5,
    ) -> bool:
        """Credit one unchecked item if it has been burned; return whether it was."""
        nft_address = str(item["address"])
        transfer = self._fetch_with_retries(nft_address, retries, retry_delay)
        if transfer is None or not same_address(transfer["recipient"], self.burn_address):
            return False
        if not transfer["sender"]:
            return False

        points = points_for_content(item.get("content"))
        if points <= 0:
            logger.warning("Burned item %s has no points in %r", nft_address, item.get("content"))
            return False

        sender = Address.parse(str(transfer["sender"])).raw
        self.credit(nft_address, sender, points, checked_at=now)
        return True

    def _fetch_with_retries(
        self, nft_address: str, retries: int, retry_delay: float
    ) -> dict[str, str | None] | None:
        attempts = max(1, retries)
        for attempt in range(1, attempts + 1):
            try:
                return latest_transfer(self.tonapi, nft_address)
            except UpstreamError:
                if attempt == attempts:
                    raise
                logger.warning("tonapi failed for %s, retry %s/%s", nft_address, attempt, attempts)
                time.sleep(retry_delay * attempt)
        return None
