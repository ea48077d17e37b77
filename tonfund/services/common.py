"""Shared Supabase data access helpers."""

from __future__ import annotations

import logging
import time
from typing import Any

from postgrest import APIError

from tonfund.config import settings
from tonfund.utils.errors import InvalidInputError, NotFoundError
from supabase import Client

logger = logging.getLogger(__name__)


class SupabaseService:
    """Thin helper wrapper around a Supabase client."""

    def __init__(self, client: Client) -> None:
        self.client = client

    def execute(self, query, default: Any = None) -> Any:
        """Execute a Supabase query and normalize API errors."""
        started = time.perf_counter()
        try:
            response = query.execute()
            elapsed_ms = (time.perf_counter() - started) * 1000
            threshold_ms = settings.slow_query_log_threshold_ms
            if threshold_ms > 0 and elapsed_ms >= threshold_ms:
                logger.warning("Slow Supabase query %.1fms", elapsed_ms)
            data = response.data
            return default if data is None and default is not None else data
        except APIError as exc:
            message = getattr(exc, "message", "Database request failed")
            raise InvalidInputError(str(message)) from exc

    def transaction(self, function: str, params: dict[str, Any]) -> dict[str, Any]:
        """Run one state change as a single Postgres function call.

        Each function either commits all of its writes or raises and rolls
        them back. Business-rule refusals come back as
        ``{"success": false, "reason": ...}`` and are mapped by the caller.
        """
        result = self.execute(self.client.rpc(function, params))
        if isinstance(result, list):
            result = result[0] if result else None
        if not isinstance(result, dict):
            raise InvalidInputError(f"{function} returned no result")
        return result

    def select_one(
        self,
        table: str,
        filters: dict[str, Any],
        columns: str = "*",
        not_found_label: str | None = None,
    ) -> dict[str, Any]:
        """Select a single row and raise NotFoundError when missing."""
        query = self.client.table(table).select(columns)
        for key, value in filters.items():
            query = query.eq(key, value)
        rows = self.execute(query.limit(1), default=[])
        if not rows:
            label = not_found_label or table
            raise NotFoundError(label)
        return rows[0]

    def select_many(
        self,
        table: str,
        filters: dict[str, Any] | None = None,
        columns: str = "*",
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[dict[str, Any]]:
        """Select many rows from a table with optional filters and paging."""
        query = self.client.table(table).select(columns)
        if filters:
            for key, value in filters.items():
                query = query.eq(key, value)
        if order_by:
            query = query.order(order_by, desc=descending)
        if offset:
            query = query.offset(offset)
        if limit:
            query = query.limit(limit)
        return self.execute(query, default=[])


def page(query, limit: int, offset: int):
    """Apply newest-first ordering and limit/offset paging to a select."""
    query = query.order("created_at", desc=True)
    if offset:
        query = query.offset(offset)
    return query.limit(limit)
