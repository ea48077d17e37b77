"""Company listing tests."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

import pytest

from tests.fakes import FakeSupabase
from tests.helpers import AUTHOR, NOW, seed_user
from tonfund.schemas.company import CompanyCreate
from tonfund.services.company_service import CompanyService
from tonfund.utils.errors import BadRequestError, NotFoundError


def company_input() -> CompanyCreate:
    return CompanyCreate(
        title="Winter clothes",
        description="Collect coats for the shelter",
        expired_at=NOW + timedelta(days=10),
        total_amount=Decimal("5000000000"),
    )


def test_create_spends_one_point(db: FakeSupabase) -> None:
    seed_user(db, AUTHOR, points=3)
    company = CompanyService(db).create(AUTHOR, company_input())

    assert company["total_amount"] == "5000000000"
    assert company["author_wallet"] == AUTHOR
    assert db.find("users", wallet=AUTHOR)["points"] == 2
    assert [c["id"] for c in CompanyService(db).list()] == [company["id"]]


def test_create_without_points(db: FakeSupabase) -> None:
    seed_user(db, AUTHOR, points=0)
    with pytest.raises(BadRequestError) as exc_info:
        CompanyService(db).create(AUTHOR, company_input())
    assert exc_info.value.code == "NOT_ENOUGH_POINTS"
    assert db.rows("companies") == []


def test_create_for_unknown_user(db: FakeSupabase) -> None:
    with pytest.raises(NotFoundError):
        CompanyService(db).create(AUTHOR, company_input())
