"""Minimal tonapi.io REST client."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any

import httpx

from tonfund.config import settings
from tonfund.utils.errors import ConfigurationError, UpstreamError, UpstreamTimeoutError

logger = logging.getLogger(__name__)

MAINNET = "mainnet"
TESTNET = "testnet"


class TonApiClient:
    """Read-only access to accounts, NFTs, events and transactions.

    Every call has an explicit timeout. Failures surface as UpstreamError and
    are never retried here; callers that want retries do it themselves.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str,
        timeout_seconds: float = 10.0,
        http_client: httpx.Client | None = None,
    ) -> None:
        if not api_key:
            raise ConfigurationError("TONAPI_KEY")
        self.http = http_client or httpx.Client(
            base_url=base_url,
            timeout=httpx.Timeout(timeout_seconds),
            headers={"Authorization": f"Bearer {api_key}"},
        )

    def _get(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        allow_missing: bool = False,
    ) -> dict[str, Any] | None:
        try:
            response = self.http.get(path, params=params)
        except httpx.TimeoutException as exc:
            logger.warning("tonapi timeout on %s", path)
            raise UpstreamTimeoutError() from exc
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Chain API unreachable: {exc}") from exc

        if response.status_code == 404 and allow_missing:
            return None
        if response.status_code >= 400:
            raise UpstreamError(f"Chain API returned {response.status_code} for {path}")

        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamError("Chain API returned malformed JSON") from exc

    def get_account_public_key(self, account_id: str) -> bytes:
        """Return the wallet's Ed25519 public key."""
        data = self._get(f"/v2/accounts/{account_id}/publickey", allow_missing=True)
        if not data or not data.get("public_key"):
            raise UpstreamError("Public key is not available for this account")
        try:
            return bytes.fromhex(data["public_key"])
        except ValueError as exc:
            raise UpstreamError("Chain API returned a malformed public key") from exc

    def get_nft_history(self, nft_address: str, limit: int = 10) -> list[dict[str, Any]]:
        """Return the most recent events touching an NFT item, newest first."""
        data = self._get(f"/v2/nfts/{nft_address}/history", params={"limit": limit})
        return list((data or {}).get("events") or [])

    def get_event(self, event_id: str) -> dict[str, Any]:
        """Return one event with its decoded actions."""
        data = self._get(f"/v2/events/{event_id}")
        return data or {}

    def get_account_nfts(
        self,
        account_id: str,
        collection: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        """Return NFT items directly owned by an account."""
        params: dict[str, Any] = {
            "limit": limit,
            "offset": offset,
            "indirect_ownership": "false",
        }
        if collection:
            params["collection"] = collection
        data = self._get(f"/v2/accounts/{account_id}/nfts", params=params)
        return list((data or {}).get("nft_items") or [])

    def get_jetton_balance(self, account_id: str, jetton_id: str) -> int:
        """Return the jetton balance in base units.

        An account without a jetton wallet yet has a zero balance.
        """
        data = self._get(f"/v2/accounts/{account_id}/jettons/{jetton_id}", allow_missing=True)
        if data is None:
            return 0
        try:
            return int(data.get("balance") or 0)
        except (TypeError, ValueError) as exc:
            raise UpstreamError("Chain API returned a malformed balance") from exc

    def get_transaction(self, tx_hash: str) -> dict[str, Any] | None:
        """Return one transaction, or None when the indexer does not know it."""
        return self._get(f"/v2/blockchain/transactions/{tx_hash}", allow_missing=True)


@lru_cache(maxsize=2)
def get_tonapi_client(network: str = MAINNET) -> TonApiClient:
    """Return a shared client for the given network."""
    base_url = settings.tonapi_testnet_base_url if network == TESTNET else settings.tonapi_base_url
    return TonApiClient(
        api_key=settings.tonapi_key,
        base_url=base_url,
        timeout_seconds=settings.tonapi_timeout_seconds,
    )
