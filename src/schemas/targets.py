from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import ConfigDict, Field, field_validator

from src.schemas.achievements import PeriodFilter, TargetTypeFilter, UserSummary
from src.shared.base import BaseSchema

UserRole = Literal["ADMIN", "USER"]


class CurrentUser(BaseSchema):
    id: str
    role: UserRole = "USER"

    @property
    def is_admin(self) -> bool:
        return self.role == "ADMIN"


class TargetFilters(BaseSchema):
    # Keep query parameter names in snake_case for API contract consistency.
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    period: PeriodFilter = "MONTHLY"
    year: Optional[int] = Field(default=None, ge=2000, le=2100)
    month: Optional[int] = Field(default=None, ge=1, le=12)
    quarter: Optional[int] = Field(default=None, ge=1, le=4)
    user_id: Optional[str] = None
    target_type: TargetTypeFilter = "ALL"


class TargetView(BaseSchema):
    id: str
    target_type: str
    period: str
    period_display: str
    year: int
    month: Optional[int] = None
    quarter: Optional[int] = None
    amount: float
    currency: str
    user_id: Optional[str] = None
    user: Optional[UserSummary] = None


class TargetUpsertRequest(BaseSchema):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    amount: Decimal = Field(gt=0)
    currency: str = Field(default="INR", min_length=3, max_length=3)
    year: int = Field(ge=2000, le=2100)
    month: int
    user_id: str = Field(min_length=1)

    @field_validator("currency")
    @classmethod
    def normalize_currency(cls, value: str) -> str:
        return value.strip().upper()


class MonthlyTarget(BaseSchema):
    id: str
    user_id: str
    year: int
    month: int
    amount: float
    currency: str
    period: str = "MONTHLY"
    target_type: str = "USER"
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    user: Optional[UserSummary] = None


class DeleteResult(BaseSchema):
    id: str
    deleted: bool
