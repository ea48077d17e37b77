"""Incoming chain API notifications."""

from __future__ import annotations

import hmac
import logging

from fastapi import APIRouter, Depends, Header, Query

from tonfund.config import settings
from tonfund.dependencies import get_db_client, get_tonapi
from tonfund.schemas.webhook import AccountTxNotification
from tonfund.services.donation_service import DonationService
from tonfund.utils.errors import ConfigurationError, UnauthorizedError
from tonfund.utils.tonapi_client import TonApiClient
from supabase import Client

logger = logging.getLogger(__name__)

router = APIRouter()


def verify_webhook_token(
    authorization: str | None = Header(None),
    token: str | None = Query(default=None),
) -> None:
    """Check the shared token from the header or the ``token`` query parameter."""
    expected = settings.webhook_incoming_token
    if not expected:
        raise ConfigurationError("WEBHOOK_INCOMING_TOKEN")

    provided = token
    if authorization and authorization.lower().startswith("bearer "):
        provided = authorization.split(" ", 1)[1].strip()
    if not provided or not hmac.compare_digest(provided, expected):
        raise UnauthorizedError("Invalid webhook token")


@router.post("")
def receive_transaction(
    payload: AccountTxNotification,
    _: None = Depends(verify_webhook_token),
    client: Client = Depends(get_db_client),
    tonapi: TonApiClient = Depends(get_tonapi),
) -> dict:
    """Record a donation when the notified transaction funds a charity."""
    logger.info("Webhook for %s tx %s", payload.account_id, payload.tx_hash)
    donation = DonationService(client, tonapi).record_transaction(payload.tx_hash)
    return {"recorded": donation is not None}
