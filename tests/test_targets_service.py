from __future__ import annotations

from decimal import Decimal

import pytest

from src.core.errors import BadRequestError, ForbiddenError, NotFoundError
from src.schemas.targets import CurrentUser, TargetFilters, TargetUpsertRequest

ADMIN = CurrentUser(id="admin-1", role="ADMIN")
USER_A = CurrentUser(id="user-a", role="USER")


def test_list_monthly_targets_for_admin(targets_service):
    views = targets_service.list_targets(TargetFilters(month=3), ADMIN)

    assert [(view.id, view.target_type, view.amount) for view in views] == [
        ("t-a-3", "USER", 100.0),
        ("t-b-3", "USER", 100.0),
        ("company-monthly-2024-3", "COMPANY", 200.0),
    ]
    assert views[0].user.name == "Asha Rao"
    assert views[2].user_id is None


def test_list_quarterly_targets_are_rolled_up(targets_service):
    views = targets_service.list_targets(TargetFilters(period="QUARTERLY", year=2024), USER_A)

    assert {view.id: view.amount for view in views} == {
        "quarterly-user-a-2024-1": 300.0,
        "company-quarterly-2024-1": 400.0,
    }
    assert views[0].period_display == "Q1 2024"


def test_list_targets_rejects_other_user_for_non_admin(targets_service):
    with pytest.raises(ForbiddenError):
        targets_service.list_targets(TargetFilters(user_id="user-b"), USER_A)


def test_upsert_target_writes_monthly_user_row(targets_service, targets_repository):
    payload = TargetUpsertRequest(amount=Decimal("1500.50"), currency="usd", year=2024, month=5, user_id="user-a")

    target = targets_service.upsert_target(payload, ADMIN)

    assert targets_repository.upserted == {
        "user_id": "user-a",
        "year": 2024,
        "month": 5,
        "amount": "1500.50",
        "currency": "USD",
        "period": "MONTHLY",
        "target_type": "USER",
        "quarter": None,
        "created_by": "admin-1",
    }
    assert target.amount == 1500.5
    assert target.currency == "USD"
    assert target.user.email == "asha@example.com"


@pytest.mark.parametrize("month", [0, 13])
def test_upsert_target_rejects_month_out_of_range(targets_service, targets_repository, month):
    payload = TargetUpsertRequest(amount=Decimal("10"), year=2024, month=month, user_id="user-a")

    with pytest.raises(BadRequestError, match="Month must be between 1 and 12"):
        targets_service.upsert_target(payload, ADMIN)
    assert targets_repository.upserted is None


def test_upsert_target_rejects_unknown_user(targets_service):
    payload = TargetUpsertRequest(amount=Decimal("10"), year=2024, month=1, user_id="user-ghost")

    with pytest.raises(BadRequestError, match="User not found"):
        targets_service.upsert_target(payload, ADMIN)


def test_upsert_target_rejects_unsupported_currency(targets_service):
    payload = TargetUpsertRequest(amount=Decimal("10"), currency="EUR", year=2024, month=1, user_id="user-a")

    with pytest.raises(BadRequestError):
        targets_service.upsert_target(payload, ADMIN)


def test_delete_target(targets_service, targets_repository):
    result = targets_service.delete_target("t-a-1")

    assert result.deleted is True
    assert targets_repository.get_target("t-a-1") is None


def test_delete_missing_target_raises_not_found(targets_service, targets_repository):
    with pytest.raises(NotFoundError):
        targets_service.delete_target("missing")
    assert targets_repository.deleted == []
