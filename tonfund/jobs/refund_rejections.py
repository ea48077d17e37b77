"""Deferred refund of rejected charities."""

from __future__ import annotations

import logging
from datetime import datetime

from tonfund.config import settings
from tonfund.services.charity_service import REJECTED
from tonfund.services.common import SupabaseService
from tonfund.services.ledger_service import LedgerService
from tonfund.utils.supabase_client import get_service_client
from tonfund.utils.time import minutes_before, now_utc
from supabase import Client

logger = logging.getLogger(__name__)


async def refund_eligible_rejections(
    now: datetime | None = None,
    client: Client | None = None,
) -> int:
    """Return reserved amounts of charities rejected more than the grace period ago.

    Each charity is refunded in its own database call, which stamps
    ``refunded_at`` so later runs skip it. Returns how many were refunded.
    """
    client = client or get_service_client()
    db = SupabaseService(client)
    ledger = LedgerService(client)
    cutoff = minutes_before(now or now_utc(), settings.refund_grace_minutes)

    eligible = db.execute(
        client.table("charities")
        .select("id")
        .eq("status", REJECTED)
        .is_("refunded_at", "null")
        .lte("rejected_at", cutoff.isoformat()),
        default=[],
    )

    refunded = 0
    for row in eligible:
        try:
            if ledger.refund_rejection(int(row["id"]), cutoff) is not None:
                refunded += 1
        except Exception:
            logger.exception("Refund failed for rejected charity %s", row.get("id"))

    logger.info("refund_eligible_rejections refunded %s of %s charities", refunded, len(eligible))
    return refunded
