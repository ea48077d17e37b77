"""Wallet user accounts and self-service reads."""

from __future__ import annotations

from typing import Any

from tonfund.config import settings
from tonfund.services.common import SupabaseService, page
from tonfund.utils.tonapi_client import TonApiClient
from supabase import Client


class UserService:
    """Look up, create and describe wallet users."""

    def __init__(self, client: Client, initial_limit: int | None = None) -> None:
        self.db = SupabaseService(client)
        self.initial_limit = settings.initial_user_limit if initial_limit is None else initial_limit

    def get(self, wallet: str) -> dict[str, Any]:
        """Return a user row."""
        return self.db.select_one("users", {"wallet": wallet}, not_found_label="User")

    def ensure(self, wallet: str) -> dict[str, Any]:
        """Return the user for ``wallet``, creating it on first sight."""
        self.db.execute(
            self.db.client.table("users").upsert(
                {"wallet": wallet, "spending_limit": self.initial_limit},
                on_conflict="wallet",
                ignore_duplicates=True,
            ),
            default=[],
        )
        return self.get(wallet)

    def donations(self, wallet: str, limit: int = 20, offset: int = 0) -> list[dict[str, Any]]:
        """Return donations made from a wallet, newest first."""
        query = self.db.client.table("donations").select("*").eq("user_wallet", wallet)
        return self.db.execute(page(query, limit, offset), default=[])

    def inventory(
        self,
        wallet: str,
        tonapi: TonApiClient,
        limit: int = 100,
        offset: int = 0,
    ) -> dict[str, Any]:
        """Return NFTs held by the wallet and its jetton balance."""
        nfts = tonapi.get_account_nfts(
            wallet,
            collection=settings.nft_collection or None,
            limit=limit,
            offset=offset,
        )
        balance = tonapi.get_jetton_balance(wallet, settings.jetton_master)
        return {"nfts": nfts, "jetton_balance": str(balance)}
