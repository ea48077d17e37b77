"""Community voting on charities in review."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from tonfund.config import settings
from tonfund.services.charity_service import ensure_voting_open
from tonfund.services.common import SupabaseService
from tonfund.utils.errors import ConflictError, InvalidInputError, NotFoundError
from tonfund.utils.time import now_utc
from supabase import Client

VOTE_CHOICES = ("yes", "no")
CREATED = "created"
UNCHANGED = "unchanged"
SWITCHED = "switched"


class VoteService:
    """Record one vote per (charity, wallet) and keep tallies in step."""

    def __init__(self, client: Client, voting_window_minutes: int | None = None) -> None:
        self.db = SupabaseService(client)
        self.voting_window_minutes = (
            settings.voting_window_minutes
            if voting_window_minutes is None
            else voting_window_minutes
        )

    def cast(
        self,
        charity_id: int,
        voter_wallet: str,
        choice: str,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        """Create, keep or switch a wallet's vote.

        The result ``action`` is ``created``, ``unchanged`` or ``switched``.
        """
        if choice not in VOTE_CHOICES:
            raise InvalidInputError('choice must be "yes" or "no"')

        moment = now or now_utc()
        charity = self.db.select_one("charities", {"id": charity_id}, not_found_label="Charity")
        ensure_voting_open(charity, moment, self.voting_window_minutes)

        result = self.db.transaction(
            "cast_charity_vote",
            {
                "p_charity_id": charity_id,
                "p_wallet": voter_wallet,
                "p_choice": choice,
                "p_now": moment.isoformat(),
                "p_window_minutes": self.voting_window_minutes,
            },
        )
        if not result.get("success"):
            self._raise_for_reason(str(result.get("reason") or ""))

        action = str(result["action"])
        return {
            "changed": action != UNCHANGED,
            "action": action,
            "choice": choice,
            "votes_yes": int(result["votes_yes"]),
            "votes_no": int(result["votes_no"]),
        }

    def get_vote(self, charity_id: int, voter_wallet: str) -> dict[str, Any] | None:
        """Return a wallet's current vote on a charity, if any."""
        rows = self.db.select_many(
            "votes",
            filters={"charity_id": charity_id, "user_wallet": voter_wallet},
            limit=1,
        )
        return rows[0] if rows else None

    @staticmethod
    def _raise_for_reason(reason: str) -> None:
        if reason == "charity_not_found":
            raise NotFoundError("Charity")
        if reason == "user_not_found":
            raise NotFoundError("User")
        if reason == "not_in_review":
            raise ConflictError(
                "Voting is allowed only while charity is in_review",
                code="NOT_IN_REVIEW",
            )
        if reason == "voting_closed":
            raise ConflictError("Voting period has expired", code="VOTING_CLOSED")
        raise InvalidInputError("Vote failed")
