from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import ConfigDict, Field

from src.schemas.achievements import ProgressPeriod
from src.shared.base import BaseSchema


class PipelineFilters(BaseSchema):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    period: Literal["MONTHLY", "QUARTERLY", "YEARLY"] = "MONTHLY"
    year: Optional[int] = Field(default=None, ge=2000, le=2100)
    month: Optional[int] = Field(default=None, ge=1, le=12)
    quarter: Optional[int] = Field(default=None, ge=1, le=4)
    user_id: Optional[str] = None


class PipelineMetrics(BaseSchema):
    total_pipeline_value: float
    expected_revenue: float
    deals_in_pipeline: int
    won_deals: int
    lost_deals: int
    conversion_rate: float
    avg_deal_size: float
    target_amount: float
    forecast_vs_target: float


class StageSummary(BaseSchema):
    stage: str
    count: int
    value: float


class SourceSummary(BaseSchema):
    source: str
    count: int
    revenue: float


class AgingBucket(BaseSchema):
    id: str
    label: str
    deals: int
    value: float
    percentage: float


class PipelineBreakdown(BaseSchema):
    metrics: PipelineMetrics
    stages: List[StageSummary] = Field(default_factory=list)
    sources: List[SourceSummary] = Field(default_factory=list)
    aging: List[AgingBucket] = Field(default_factory=list)


class PipelineResponse(PipelineBreakdown):
    currency: str
    period: ProgressPeriod
    warnings: List[str] = Field(default_factory=list)
