from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import ConfigDict, Field

from src.shared.base import BaseSchema

PeriodFilter = Literal["MONTHLY", "QUARTERLY", "YEARLY", "ALL"]
TargetTypeFilter = Literal["USER", "COMPANY", "ALL"]
AchievementStatus = Literal["ACHIEVED", "NOT_ACHIEVED"]


class AchievementFilters(BaseSchema):
    # Keep query parameter names in snake_case for API contract consistency.
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    period: PeriodFilter = "MONTHLY"
    year: Optional[int] = Field(default=None, ge=2000, le=2100)
    month: Optional[int] = Field(default=None, ge=1, le=12)
    quarter: Optional[int] = Field(default=None, ge=1, le=4)
    user_id: Optional[str] = None
    target_type: TargetTypeFilter = "ALL"


class UserSummary(BaseSchema):
    id: str
    name: str
    email: Optional[str] = None


class DateRange(BaseSchema):
    start: str
    end: str


class AchievementItem(BaseSchema):
    id: str
    target_type: str
    period: str
    period_display: str
    year: int
    month: Optional[int] = None
    quarter: Optional[int] = None
    target_amount: float
    achieved_amount: float
    achievement_percentage: float
    is_achieved: bool
    status: AchievementStatus
    currency: str
    deals_count: int
    remaining_amount: float
    user: Optional[UserSummary] = None
    date_range: DateRange


class AchievementSummary(BaseSchema):
    total_targets: int
    achieved_targets: int
    failed_targets: int
    achievement_rate: float
    total_target_amount: float
    total_achieved_amount: float
    amount_percentage: float
    currency: Optional[str] = None
    total_deals: int


class ViewerContext(BaseSchema):
    user_id: Optional[str] = None
    is_admin: bool
    period: str
    year: Optional[int] = None
    user_filter: Optional[str] = None


class AchievementsResponse(BaseSchema):
    achievements: List[AchievementItem] = Field(default_factory=list)
    summary: AchievementSummary
    warnings: List[str] = Field(default_factory=list)
    viewer: ViewerContext


class ProgressFilters(BaseSchema):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    period: Literal["MONTHLY", "QUARTERLY", "YEARLY"] = "MONTHLY"
    year: Optional[int] = Field(default=None, ge=2000, le=2100)
    month: Optional[int] = Field(default=None, ge=1, le=12)
    quarter: Optional[int] = Field(default=None, ge=1, le=4)
    user_id: Optional[str] = None


class ProgressPeriod(BaseSchema):
    type: str
    year: int
    month: Optional[int] = None
    quarter: Optional[int] = None
    start_date: str
    end_date: str


class TargetProgressResponse(BaseSchema):
    progress: List[AchievementItem] = Field(default_factory=list)
    summary: AchievementSummary
    period: ProgressPeriod
    warnings: List[str] = Field(default_factory=list)
