"""Background crediting of NFT burns nobody claimed interactively."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from tonfund.config import settings
from tonfund.services.burn_service import BurnService
from tonfund.utils.supabase_client import get_service_client
from tonfund.utils.time import now_utc
from tonfund.utils.tonapi_client import TonApiClient, get_tonapi_client
from supabase import Client

logger = logging.getLogger(__name__)


async def reconcile_unverified_burns(
    now: datetime | None = None,
    client: Client | None = None,
    tonapi: TonApiClient | None = None,
    retry_delay: float = 0.5,
) -> int:
    """Credit senders of every unchecked NFT that was sent to the burn address.

    Chain lookups block, so each item runs in a worker thread. One item
    failing does not stop the rest. Returns how many items were credited.
    """
    moment = now or now_utc()
    service = BurnService(client or get_service_client(), tonapi or get_tonapi_client())

    items = service.unchecked_items()
    credited = 0
    for item in items:
        try:
            burned = await asyncio.to_thread(
                service.reconcile_item,
                item,
                moment,
                settings.tonapi_job_retries,
                retry_delay,
            )
        except Exception:
            logger.exception("Burn reconciliation failed for %s", item.get("address"))
            continue
        if burned:
            credited += 1

    logger.info("reconcile_unverified_burns credited %s of %s items", credited, len(items))
    return credited
