"""In-memory stand-ins for the Supabase client and the chain API.

``FakeSupabase`` understands the query-builder calls the services make and
implements the database functions from ``supabase/migrations`` in Python so
service tests exercise the same state changes.
"""

from __future__ import annotations

import copy
from datetime import datetime, timedelta
from typing import Any, Callable

from tonfund.utils.errors import UpstreamError
from tonfund.utils.time import now_utc, parse_timestamp

AUTO_ID_TABLES = {"charities", "votes", "donations", "companies"}


def _defaults(table: str, now: datetime) -> dict[str, Any]:
    stamp = now.isoformat()
    if table == "users":
        return {
            "spending_limit": 100,
            "points": 0,
            "initiatives_created": 0,
            "initiatives_supported": 0,
            "votes_participated": 0,
            "total_donated": 0,
            "created_at": stamp,
        }
    if table == "charities":
        return {
            "images": [],
            "donation_received": 0,
            "created_at": stamp,
            "status": "in_review",
            "votes_yes": 0,
            "votes_no": 0,
            "rejected_at": None,
            "refunded_at": None,
            "address": None,
        }
    if table == "votes":
        return {"created_at": stamp, "updated_at": stamp}
    if table == "nft_items":
        return {"is_checked": False, "checked_at": None, "burned_by": None}
    if table in {"donations", "companies"}:
        return {"created_at": stamp}
    return {}


def _coerce(value: Any) -> Any:
    if isinstance(value, datetime):
        return parse_timestamp(value)
    if isinstance(value, str) and len(value) >= 19 and value[4] == "-" and value[10] == "T":
        try:
            return parse_timestamp(value)
        except ValueError:
            return value
    return value


class FakeResponse:
    def __init__(self, data: Any) -> None:
        self.data = data


class FakeQuery:
    """Chainable query over one in-memory table."""

    def __init__(self, db: FakeSupabase, table: str) -> None:
        self.db = db
        self.table_name = table
        self.action = "select"
        self.payload: Any = None
        self.filters: list[Callable[[dict[str, Any]], bool]] = []
        self.ordering: tuple[str, bool] | None = None
        self._offset = 0
        self._limit: int | None = None
        self.on_conflict: str | None = None
        self.ignore_duplicates = False

    def select(self, columns: str = "*") -> FakeQuery:
        self.action = "select"
        return self

    def insert(self, payload: Any) -> FakeQuery:
        self.action = "insert"
        self.payload = payload
        return self

    def upsert(
        self, payload: Any, on_conflict: str | None = None, ignore_duplicates: bool = False
    ) -> FakeQuery:
        self.action = "upsert"
        self.payload = payload
        self.on_conflict = on_conflict
        self.ignore_duplicates = ignore_duplicates
        return self

    def update(self, payload: dict[str, Any]) -> FakeQuery:
        self.action = "update"
        self.payload = payload
        return self

    def delete(self) -> FakeQuery:
        self.action = "delete"
        return self

    def eq(self, column: str, value: Any) -> FakeQuery:
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def gte(self, column: str, value: Any) -> FakeQuery:
        self.filters.append(
            lambda row: row.get(column) is not None and _coerce(row[column]) >= _coerce(value)
        )
        return self

    def lte(self, column: str, value: Any) -> FakeQuery:
        self.filters.append(
            lambda row: row.get(column) is not None and _coerce(row[column]) <= _coerce(value)
        )
        return self

    def ilike(self, column: str, pattern: str) -> FakeQuery:
        needle = pattern.strip("%").lower()
        self.filters.append(lambda row: needle in str(row.get(column) or "").lower())
        return self

    def is_(self, column: str, value: str) -> FakeQuery:
        if value == "null":
            self.filters.append(lambda row: row.get(column) is None)
        return self

    def order(self, column: str, desc: bool = False) -> FakeQuery:
        self.ordering = (column, desc)
        return self

    def offset(self, count: int) -> FakeQuery:
        self._offset = count
        return self

    def limit(self, count: int) -> FakeQuery:
        self._limit = count
        return self

    def _matching(self) -> list[dict[str, Any]]:
        rows = self.db.tables.setdefault(self.table_name, [])
        return [row for row in rows if all(check(row) for check in self.filters)]

    def execute(self) -> FakeResponse:
        if self.action == "insert":
            payloads = self.payload if isinstance(self.payload, list) else [self.payload]
            return FakeResponse([self.db.insert_row(self.table_name, p) for p in payloads])

        if self.action == "upsert":
            key = self.on_conflict or "id"
            rows = self.db.tables.setdefault(self.table_name, [])
            existing = next((r for r in rows if r.get(key) == self.payload.get(key)), None)
            if existing is None:
                return FakeResponse([self.db.insert_row(self.table_name, self.payload)])
            if not self.ignore_duplicates:
                existing.update(self.payload)
                return FakeResponse([copy.deepcopy(existing)])
            return FakeResponse([])

        matched = self._matching()
        if self.action == "update":
            for row in matched:
                row.update(self.payload)
            return FakeResponse(copy.deepcopy(matched))
        if self.action == "delete":
            table = self.db.tables[self.table_name]
            self.db.tables[self.table_name] = [row for row in table if row not in matched]
            return FakeResponse(copy.deepcopy(matched))

        if self.ordering:
            column, desc = self.ordering
            matched = sorted(matched, key=lambda row: _coerce(row.get(column)), reverse=desc)
        matched = matched[self._offset :]
        if self._limit is not None:
            matched = matched[: self._limit]
        return FakeResponse(copy.deepcopy(matched))


class FakeRpc:
    def __init__(self, db: FakeSupabase, name: str, params: dict[str, Any]) -> None:
        self.db = db
        self.name = name
        self.params = params

    def execute(self) -> FakeResponse:
        self.db.rpc_calls.append((self.name, dict(self.params)))
        for name, predicate in self.db.failures:
            if name == self.name and predicate(self.params):
                raise RuntimeError(f"{self.name} failed")
        handler = getattr(self.db, f"_fn_{self.name}")
        return FakeResponse(handler(**self.params))


class FakeBucket:
    def __init__(self, storage: FakeStorage, bucket: str) -> None:
        self.storage = storage
        self.bucket = bucket

    def upload(self, path: str, file: bytes, file_options: dict[str, str] | None = None) -> None:
        self.storage.objects[(self.bucket, path)] = (file, dict(file_options or {}))

    def get_public_url(self, path: str) -> str:
        return f"https://storage.test/{self.bucket}/{path}"


class FakeStorage:
    def __init__(self) -> None:
        self.objects: dict[tuple[str, str], tuple[bytes, dict[str, str]]] = {}

    def from_(self, bucket: str) -> FakeBucket:
        return FakeBucket(self, bucket)


class FakeSupabase:
    """Tables as lists of dicts, plus the project's database functions.

    Each ``_fn_<name>`` copies ``public.<name>`` from
    ``supabase/migrations/20261017000000_initial_schema.sql``, checks and
    reason strings included; change both together.
    """

    def __init__(self, now: datetime | None = None) -> None:
        self.tables: dict[str, list[dict[str, Any]]] = {}
        self.now = now or now_utc()
        self.storage = FakeStorage()
        self.rpc_calls: list[tuple[str, dict[str, Any]]] = []
        self.failures: list[tuple[str, Callable[[dict[str, Any]], bool]]] = []
        self._ids: dict[str, int] = {}

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rpc(self, name: str, params: dict[str, Any]) -> FakeRpc:
        return FakeRpc(self, name, params)

    def fail_on(self, name: str, predicate: Callable[[dict[str, Any]], bool]) -> None:
        """Make a database function raise whenever ``predicate(params)`` holds."""
        self.failures.append((name, predicate))

    def insert_row(self, table: str, payload: dict[str, Any]) -> dict[str, Any]:
        row = {**_defaults(table, self.now), **copy.deepcopy(payload)}
        if table in AUTO_ID_TABLES and "id" not in row:
            self._ids[table] = self._ids.get(table, 0) + 1
            row["id"] = self._ids[table]
        self.tables.setdefault(table, []).append(row)
        return copy.deepcopy(row)

    def find(self, table: str, **filters: Any) -> dict[str, Any] | None:
        """Return the live row matching ``filters`` (mutations are visible)."""
        for row in self.tables.get(table, []):
            if all(row.get(key) == value for key, value in filters.items()):
                return row
        return None

    def rows(self, table: str, **filters: Any) -> list[dict[str, Any]]:
        return [
            row
            for row in self.tables.get(table, [])
            if all(row.get(key) == value for key, value in filters.items())
        ]

    def _ensure_user(self, wallet: str, initial_limit: int) -> dict[str, Any]:
        user = self.find("users", wallet=wallet)
        if user is None:
            self.insert_row("users", {"wallet": wallet, "spending_limit": initial_limit})
            user = self.find("users", wallet=wallet)
        return user

    # public.create_charity
    def _fn_create_charity(
        self, p_author, p_title, p_description, p_images, p_contact, p_deadline, p_amount
    ) -> dict[str, Any]:
        user = self.find("users", wallet=p_author)
        if user is None:
            return {"success": False, "reason": "user_not_found"}
        if p_amount < 1:
            return {"success": False, "reason": "invalid_amount"}
        if user["spending_limit"] < p_amount:
            return {
                "success": False,
                "reason": "insufficient_limit",
                "available": user["spending_limit"],
            }
        user["spending_limit"] -= p_amount
        user["initiatives_created"] += 1
        charity = self.insert_row(
            "charities",
            {
                "title": p_title,
                "description": p_description,
                "images": p_images or [],
                "donation_needed": p_amount,
                "contact": p_contact,
                "deadline": p_deadline,
                "author_wallet": p_author,
            },
        )
        return {"success": True, "charity": charity}

    # public.delete_charity
    def _fn_delete_charity(self, p_charity_id, p_author) -> dict[str, Any]:
        charity = self.find("charities", id=p_charity_id)
        if charity is None:
            return {"success": False, "reason": "charity_not_found"}
        if charity["author_wallet"] != p_author:
            return {"success": False, "reason": "not_author"}
        if charity["status"] == "accepted":
            return {"success": False, "reason": "already_accepted"}
        refund = 0
        if charity["refunded_at"] is None:
            refund = charity["donation_needed"]
            self.find("users", wallet=charity["author_wallet"])["spending_limit"] += refund
        self.tables["charities"].remove(charity)
        self.tables["votes"] = [
            vote for vote in self.tables.get("votes", []) if vote["charity_id"] != p_charity_id
        ]
        return {"success": True, "refunded": refund}

    # public.review_charity
    def _fn_review_charity(self, p_charity_id, p_status, p_address) -> dict[str, Any]:
        charity = self.find("charities", id=p_charity_id)
        if charity is None:
            return {"success": False, "reason": "charity_not_found"}
        if charity["status"] != "in_review" or p_status not in ("accepted", "rejected"):
            return {"success": False, "reason": "already_processed"}
        if p_status == "accepted" and not p_address:
            return {"success": False, "reason": "address_required"}
        charity["status"] = p_status
        if p_status == "accepted":
            charity["address"] = p_address
            charity["rejected_at"] = None
        else:
            charity["rejected_at"] = self.now.isoformat()
        return {"success": True, "charity": copy.deepcopy(charity)}

    # public.cast_charity_vote
    def _fn_cast_charity_vote(
        self, p_charity_id, p_wallet, p_choice, p_now, p_window_minutes
    ) -> dict[str, Any]:
        charity = self.find("charities", id=p_charity_id)
        if charity is None:
            return {"success": False, "reason": "charity_not_found"}
        if charity["status"] != "in_review":
            return {"success": False, "reason": "not_in_review"}
        closes = parse_timestamp(charity["created_at"]) + timedelta(minutes=p_window_minutes)
        if parse_timestamp(p_now) > closes:
            return {"success": False, "reason": "voting_closed"}
        user = self.find("users", wallet=p_wallet)
        if user is None:
            return {"success": False, "reason": "user_not_found"}

        vote = self.find("votes", charity_id=p_charity_id, user_wallet=p_wallet)
        if vote is None:
            self.insert_row(
                "votes", {"charity_id": p_charity_id, "user_wallet": p_wallet, "choice": p_choice}
            )
            user["votes_participated"] += 1
            charity[f"votes_{p_choice}"] += 1
            action = "created"
        elif vote["choice"] == p_choice:
            action = "unchanged"
        else:
            charity[f"votes_{vote['choice']}"] -= 1
            charity[f"votes_{p_choice}"] += 1
            vote["choice"] = p_choice
            vote["updated_at"] = self.now.isoformat()
            action = "switched"
        return {
            "success": True,
            "action": action,
            "votes_yes": charity["votes_yes"],
            "votes_no": charity["votes_no"],
        }

    # public.refund_rejected_charity
    def _fn_refund_rejected_charity(self, p_charity_id, p_cutoff) -> dict[str, Any]:
        charity = self.find("charities", id=p_charity_id)
        if (
            charity is None
            or charity["status"] != "rejected"
            or charity["refunded_at"] is not None
            or charity["rejected_at"] is None
            or parse_timestamp(charity["rejected_at"]) > parse_timestamp(p_cutoff)
        ):
            return {"success": False, "reason": "not_eligible"}
        charity["refunded_at"] = self.now.isoformat()
        amount = charity["donation_needed"]
        self.find("users", wallet=charity["author_wallet"])["spending_limit"] += amount
        return {"success": True, "author_wallet": charity["author_wallet"], "amount": amount}

    # public.credit_burned_nft
    def _fn_credit_burned_nft(
        self, p_nft_address, p_wallet, p_points, p_checked_at, p_initial_limit
    ) -> dict[str, Any]:
        item = self.find("nft_items", address=p_nft_address)
        if item is None:
            return {"success": False, "reason": "nft_not_found"}
        if item["is_checked"]:
            return {"success": False, "reason": "already_checked"}
        user = self._ensure_user(p_wallet, p_initial_limit)
        user["points"] += p_points
        item.update({"is_checked": True, "checked_at": p_checked_at, "burned_by": p_wallet})
        return {"success": True, "points": user["points"]}

    # public.record_donation
    def _fn_record_donation(
        self, p_tx_hash, p_charity_id, p_wallet, p_amount, p_initial_limit
    ) -> dict[str, Any]:
        charity = self.find("charities", id=p_charity_id)
        if charity is None or charity["status"] != "accepted":
            return {"success": False, "reason": "charity_not_found"}
        if p_amount <= 0:
            return {"success": False, "reason": "invalid_amount"}
        user = self._ensure_user(p_wallet, p_initial_limit)
        first = self.find("donations", charity_id=p_charity_id, user_wallet=p_wallet) is None
        if self.find("donations", tx_hash=p_tx_hash) is not None:
            return {"success": False, "reason": "already_recorded"}
        donation = self.insert_row(
            "donations",
            {
                "tx_hash": p_tx_hash,
                "charity_id": p_charity_id,
                "user_wallet": p_wallet,
                "amount": p_amount,
            },
        )
        user["total_donated"] += p_amount
        if first:
            user["initiatives_supported"] += 1
        charity["donation_received"] += p_amount
        return {"success": True, "donation": donation}

    # public.create_company
    def _fn_create_company(
        self, p_author, p_title, p_description, p_image, p_expired_at, p_total_amount, p_cost
    ) -> dict[str, Any]:
        user = self.find("users", wallet=p_author)
        if user is None:
            return {"success": False, "reason": "user_not_found"}
        if user["points"] < p_cost:
            return {"success": False, "reason": "not_enough_points"}
        user["points"] -= p_cost
        company = self.insert_row(
            "companies",
            {
                "title": p_title,
                "description": p_description,
                "image": p_image,
                "expired_at": p_expired_at,
                "total_amount": int(p_total_amount),
                "author_wallet": p_author,
            },
        )
        return {"success": True, "company": company}


class FakeTonApi:
    """Canned chain API answers keyed by address, event id or hash."""

    def __init__(self) -> None:
        self.public_keys: dict[str, bytes] = {}
        self.histories: dict[str, list[dict[str, Any]]] = {}
        self.events: dict[str, dict[str, Any]] = {}
        self.transactions: dict[str, dict[str, Any]] = {}
        self.nfts: dict[str, list[dict[str, Any]]] = {}
        self.jetton_balances: dict[str, int] = {}
        self.history_failures: dict[str, int] = {}
        self.history_calls: list[str] = []

    def add_transfer(self, nft_address: str, event_id: str, sender: str, recipient: str) -> None:
        self.histories[nft_address] = [{"event_id": event_id}]
        self.events[event_id] = {
            "event_id": event_id,
            "actions": [
                {
                    "type": "NftItemTransfer",
                    "NftItemTransfer": {
                        "sender": {"address": sender},
                        "recipient": {"address": recipient},
                        "nft": nft_address,
                    },
                }
            ],
        }

    def get_account_public_key(self, account_id: str) -> bytes:
        if account_id not in self.public_keys:
            raise UpstreamError("Chain API returned no public key")
        return self.public_keys[account_id]

    def get_nft_history(self, nft_address: str, limit: int = 10) -> list[dict[str, Any]]:
        self.history_calls.append(nft_address)
        remaining = self.history_failures.get(nft_address, 0)
        if remaining:
            self.history_failures[nft_address] = remaining - 1
            raise UpstreamError("Chain API returned 503")
        return self.histories.get(nft_address, [])[:limit]

    def get_event(self, event_id: str) -> dict[str, Any]:
        return self.events[event_id]

    def get_account_nfts(
        self, account_id: str, collection: str | None = None, limit: int = 100, offset: int = 0
    ) -> list[dict[str, Any]]:
        return self.nfts.get(account_id, [])[offset : offset + limit]

    def get_jetton_balance(self, account_id: str, jetton_id: str) -> int:
        return self.jetton_balances.get(account_id, 0)

    def get_transaction(self, tx_hash: str) -> dict[str, Any] | None:
        return self.transactions.get(tx_hash)
