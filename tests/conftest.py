from __future__ import annotations

import os

os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

import pytest
from fastapi.testclient import TestClient

from src.api.dependencies import (
    get_achievements_service,
    get_pipeline_service,
    get_targets_service,
    get_users_service,
)
from src.main import create_app
from src.models.targets import LeadRecord, MonthlyTargetRecord, UserRecord, WonDealRecord
from src.services.achievements_service import AchievementsService
from src.services.currency_service import CurrencyService
from src.services.pipeline_service import PipelineService
from src.services.targets_service import TargetsService
from src.services.users_service import UsersService

USERS = {
    "user-a": UserRecord(id="user-a", first_name="Asha", last_name="Rao", email="asha@example.com", role="USER"),
    "user-b": UserRecord(id="user-b", first_name="Ben", last_name="Cole", email="ben@example.com", role="USER"),
}
ROSTER = [
    UserRecord(
        id="admin-1", first_name="Carla", last_name="Diaz", email="carla@example.com", role="ADMIN", is_active=True
    ),
    USERS["user-a"].model_copy(update={"is_active": True}),
    USERS["user-b"].model_copy(update={"is_active": True}),
    UserRecord(id="user-c", first_name="Dev", last_name="Patel", email="dev@example.com", role="USER", is_active=False),
]


def make_target(
    target_id: str,
    user_id: Optional[str],
    year: int,
    month: int,
    amount: str,
    currency: str = "INR",
    with_user: bool = True,
) -> MonthlyTargetRecord:
    return MonthlyTargetRecord(
        id=target_id,
        user_id=user_id,
        year=year,
        month=month,
        amount=Decimal(amount),
        currency=currency,
        user=USERS.get(user_id or "") if with_user else None,
    )


def make_deal(
    deal_id: str,
    owner_id: str,
    amount: str,
    closed_at: datetime,
    currency: str = "INR",
) -> WonDealRecord:
    return WonDealRecord(
        id=deal_id,
        owner_id=owner_id,
        amount=Decimal(amount),
        currency=currency,
        closed_at=closed_at,
        status="WON",
    )



def make_lead(
    lead_id: str,
    owner_id: str,
    amount: Optional[str],
    status: str,
    created_at: datetime,
    currency: str = "INR",
    source: Optional[str] = None,
    is_active: Optional[bool] = True,
) -> LeadRecord:
    return LeadRecord(
        id=lead_id,
        owner_id=owner_id,
        amount=Decimal(amount) if amount is not None else None,
        currency=currency,
        status=status,
        source=source,
        is_active=is_active,
        created_at=created_at,
    )


class StubTargetsRepository:
    def __init__(self, targets: Optional[List[MonthlyTargetRecord]] = None) -> None:
        self.targets: List[MonthlyTargetRecord] = list(targets or [])
        self.upserted: Optional[Dict[str, Any]] = None
        self.deleted: List[str] = []

    def list_monthly_targets(
        self,
        year: Optional[int] = None,
        month: Optional[int] = None,
        user_id: Optional[str] = None,
    ) -> List[MonthlyTargetRecord]:
        return [
            target
            for target in self.targets
            if (year is None or target.year == year)
            and (month is None or target.month == month)
            and (user_id is None or target.user_id == user_id)
        ]

    def get_target(self, target_id: str) -> Optional[MonthlyTargetRecord]:
        return next((target for target in self.targets if target.id == target_id), None)

    def upsert_monthly_target(self, payload: Dict[str, Any]) -> MonthlyTargetRecord:
        self.upserted = payload
        return MonthlyTargetRecord(
            id="target-new",
            user_id=payload["user_id"],
            year=payload["year"],
            month=payload["month"],
            amount=Decimal(str(payload["amount"])),
            currency=payload["currency"],
            created_by=payload["created_by"],
            user=USERS.get(payload["user_id"]),
        )

    def delete_target(self, target_id: str) -> bool:
        before = len(self.targets)
        self.targets = [target for target in self.targets if target.id != target_id]
        self.deleted.append(target_id)
        return len(self.targets) != before


class StubUsersRepository:
    def __init__(self, users: Optional[List[UserRecord]] = None) -> None:
        self.users: List[UserRecord] = list(ROSTER if users is None else users)
        self.calls: List[Dict[str, Any]] = []

    def list_users(
        self,
        search: Optional[str] = None,
        role: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> List[UserRecord]:
        self.calls.append({"search": search, "role": role, "is_active": is_active})
        term = (search or "").lower()
        return [
            user
            for user in self.users
            if (not term or term in " ".join(filter(None, (user.first_name, user.last_name, user.email))).lower())
            and (role is None or user.role == role)
            and (is_active is None or user.is_active is is_active)
        ]

    def get_user(self, user_id: str) -> Optional[UserRecord]:
        return next((user for user in self.users if user.id == user_id), None)


class StubLeadsRepository:
    def __init__(
        self,
        deals: Optional[List[WonDealRecord]] = None,
        leads: Optional[List[LeadRecord]] = None,
    ) -> None:
        self.deals: List[WonDealRecord] = list(deals or [])
        self.leads: List[LeadRecord] = list(leads or [])
        self.calls: List[Dict[str, Any]] = []

    def list_won_deals(
        self,
        start_date: date,
        end_date: date,
        statuses: Sequence[str],
        owner_id: Optional[str] = None,
    ) -> List[WonDealRecord]:
        self.calls.append(
            {"start_date": start_date, "end_date": end_date, "statuses": list(statuses), "owner_id": owner_id}
        )
        return [
            deal
            for deal in self.deals
            if start_date <= deal.closed_at.date() <= end_date
            and (owner_id is None or deal.owner_id == owner_id)
        ]

    def list_leads(
        self,
        start_date: date,
        end_date: date,
        owner_id: Optional[str] = None,
    ) -> List[LeadRecord]:
        self.calls.append({"start_date": start_date, "end_date": end_date, "owner_id": owner_id})
        return [
            lead
            for lead in self.leads
            if start_date <= lead.created_at.date() <= end_date
            and (owner_id is None or lead.owner_id == owner_id)
        ]


@pytest.fixture()
def currency_service() -> CurrencyService:
    return CurrencyService(
        rates={"INR": Decimal("1"), "USD": Decimal("83")},
        reporting_currency="INR",
        default_currency="INR",
    )


@pytest.fixture()
def sample_targets() -> List[MonthlyTargetRecord]:
    return [
        make_target("t-a-1", "user-a", 2024, 1, "100"),
        make_target("t-a-2", "user-a", 2024, 2, "100"),
        make_target("t-a-3", "user-a", 2024, 3, "100"),
        make_target("t-b-3", "user-b", 2024, 3, "100"),
    ]


@pytest.fixture()
def sample_deals() -> List[WonDealRecord]:
    return [
        make_deal("deal-1", "user-a", "60", datetime(2024, 3, 5, 10, 0)),
        make_deal("deal-2", "user-a", "50", datetime(2024, 3, 31, 23, 59, 59)),
        make_deal("deal-3", "user-b", "2", datetime(2024, 3, 12, 9, 30), currency="USD"),
        make_deal("deal-4", "user-b", "500", datetime(2024, 4, 1, 0, 0)),
    ]


@pytest.fixture()
def sample_leads() -> List[LeadRecord]:
    return [
        make_lead("lead-1", "user-a", "1000", "WON", datetime(2024, 3, 5), source="Referral"),
        make_lead("lead-2", "user-a", "2000", "Proposal", datetime(2024, 3, 20), source="Website", is_active=None),
        make_lead("lead-3", "user-b", "10", "lost", datetime(2024, 3, 25), currency="USD", source=" "),
        make_lead("lead-4", "user-b", "500", "NEW", datetime(2024, 3, 30), source="Website", is_active=False),
        make_lead("lead-5", "user-a", "700", "NEW", datetime(2024, 4, 2), source="Website"),
    ]


@pytest.fixture()
def targets_repository(sample_targets) -> StubTargetsRepository:
    return StubTargetsRepository(sample_targets)


@pytest.fixture()
def leads_repository(sample_deals, sample_leads) -> StubLeadsRepository:
    return StubLeadsRepository(sample_deals, sample_leads)


@pytest.fixture()
def users_repository() -> StubUsersRepository:
    return StubUsersRepository()


@pytest.fixture()
def achievements_service(targets_repository, leads_repository, currency_service) -> AchievementsService:
    return AchievementsService(
        targets_repository=targets_repository,
        leads_repository=leads_repository,
        currency_service=currency_service,
    )


@pytest.fixture()
def targets_service(targets_repository, users_repository, currency_service) -> TargetsService:
    return TargetsService(
        repository=targets_repository,
        users_repository=users_repository,
        currency_service=currency_service,
    )


@pytest.fixture()
def pipeline_service(targets_repository, leads_repository, currency_service) -> PipelineService:
    return PipelineService(
        targets_repository=targets_repository,
        leads_repository=leads_repository,
        currency_service=currency_service,
    )


@pytest.fixture()
def users_service(users_repository) -> UsersService:
    return UsersService(repository=users_repository)


@pytest.fixture()
def client(achievements_service, targets_service, pipeline_service, users_service) -> TestClient:
    app = create_app()
    app.dependency_overrides[get_achievements_service] = lambda: achievements_service
    app.dependency_overrides[get_targets_service] = lambda: targets_service
    app.dependency_overrides[get_pipeline_service] = lambda: pipeline_service
    app.dependency_overrides[get_users_service] = lambda: users_service
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


ADMIN_HEADERS = {"X-User-Id": "admin-1", "X-User-Role": "ADMIN"}
USER_A_HEADERS = {"X-User-Id": "user-a", "X-User-Role": "USER"}
