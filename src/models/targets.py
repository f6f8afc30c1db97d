from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import FrozenSet, Literal, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field

from src.shared.time import PeriodWindow

TargetScope = Literal["USER", "COMPANY"]
TargetPeriod = Literal["MONTHLY", "QUARTERLY", "YEARLY"]


class UserRecord(BaseModel):
    id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None
    is_active: Optional[bool] = None
    created_at: Optional[datetime] = None

    @property
    def display_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part).strip()


class MonthlyTargetRecord(BaseModel):
    id: str
    user_id: Optional[str] = None
    year: int
    month: int = Field(ge=1, le=12)
    amount: Decimal = Field(ge=0)
    currency: Optional[str] = None
    period: str = "MONTHLY"
    target_type: str = "USER"
    user: Optional[UserRecord] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class WonDealRecord(BaseModel):
    id: str
    owner_id: Optional[str] = None
    amount: Decimal
    currency: Optional[str] = None
    closed_at: datetime
    status: Optional[str] = None


class LeadRecord(BaseModel):
    id: str
    owner_id: Optional[str] = None
    amount: Optional[Decimal] = None
    currency: Optional[str] = None
    status: Optional[str] = None
    source: Optional[str] = None
    is_active: Optional[bool] = None
    created_at: datetime


class PeriodKey(NamedTuple):
    period: str
    year: int
    month: Optional[int]
    quarter: Optional[int]


class PeriodTarget(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    scope: TargetScope
    period: TargetPeriod
    year: int
    month: Optional[int] = None
    quarter: Optional[int] = None
    amount: Decimal
    currency: str
    owner_id: Optional[str] = None
    user: Optional[UserRecord] = None

    @property
    def key(self) -> PeriodKey:
        return PeriodKey(self.period, self.year, self.month, self.quarter)


class AchievementRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    target: PeriodTarget
    window: PeriodWindow
    achieved_amount: Decimal
    achievement_percentage: Decimal
    is_achieved: bool
    remaining_amount: Decimal
    deal_ids: FrozenSet[str] = frozenset()

    @property
    def deals_count(self) -> int:
        return len(self.deal_ids)

    @property
    def target_amount(self) -> Decimal:
        return self.target.amount
