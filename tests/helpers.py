"""Shared wallets, clock and seeding helpers for tests."""

from __future__ import annotations

import io
from datetime import UTC, datetime, timedelta
from typing import Any

from PIL import Image

from tests.fakes import FakeSupabase

AUTHOR = "0:" + "11" * 32
VOTER = "0:" + "22" * 32
OTHER_VOTER = "0:" + "33" * 32
ADMIN = "0:" + "aa" * 32
BURN_ADDRESS = "0:" + "00" * 32
NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def bearer(wallet: str) -> dict[str, str]:
    """Return an Authorization header carrying a fresh token for ``wallet``."""
    from tonfund.dependencies import get_token_issuer

    return {"Authorization": f"Bearer {get_token_issuer().issue(wallet)}"}


def png_bytes(size: tuple[int, int] = (1600, 1200), mode: str = "RGB") -> bytes:
    buffer = io.BytesIO()
    Image.new(mode, size, color=(200, 40, 40) if mode == "RGB" else (200, 40, 40, 128)).save(
        buffer, format="PNG"
    )
    return buffer.getvalue()


def seed_user(db: FakeSupabase, wallet: str, **fields: Any) -> dict[str, Any]:
    return db.insert_row("users", {"wallet": wallet, **fields})


def seed_charity(
    db: FakeSupabase,
    author: str = AUTHOR,
    amount: int = 40,
    age_minutes: int = 0,
    **fields: Any,
) -> dict[str, Any]:
    """Insert a charity created ``age_minutes`` before ``NOW``."""
    created_at = (NOW - timedelta(minutes=age_minutes)).isoformat()
    return db.insert_row(
        "charities",
        {
            "title": "Shelter roof",
            "description": "Fix the roof before winter",
            "donation_needed": amount,
            "contact": "@shelter",
            "deadline": (NOW + timedelta(days=30)).isoformat(),
            "author_wallet": author,
            "created_at": created_at,
            **fields,
        },
    )
