from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import get_current_user, get_pipeline_service
from src.schemas.pipeline import PipelineFilters, PipelineResponse
from src.schemas.targets import CurrentUser
from src.services.pipeline_service import PipelineService
from src.shared.response import ResponseEnvelope, build_meta

router = APIRouter(prefix="/pipeline", tags=["pipeline"])


def get_pipeline_filters(
    period: str = Query(default="MONTHLY", pattern="^(MONTHLY|QUARTERLY|YEARLY)$"),
    year: Optional[int] = Query(default=None, ge=2000, le=2100),
    month: Optional[int] = Query(default=None, ge=1, le=12),
    quarter: Optional[int] = Query(default=None, ge=1, le=4),
    user_id: Optional[str] = Query(default=None, alias="userId"),
) -> PipelineFilters:
    return PipelineFilters(period=period, year=year, month=month, quarter=quarter, user_id=user_id)


@router.get("")
def get_pipeline(
    filters: PipelineFilters = Depends(get_pipeline_filters),
    viewer: CurrentUser = Depends(get_current_user),
    service: PipelineService = Depends(get_pipeline_service),
) -> ResponseEnvelope[PipelineResponse]:
    data = service.get_pipeline(filters, viewer)
    meta = build_meta("leads,targets", filters.period.lower(), currency=data.currency, degraded=bool(data.warnings))
    return ResponseEnvelope(data=data, pagination=None, meta=meta)
