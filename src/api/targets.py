from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import (
    get_achievements_service,
    get_current_user,
    get_targets_service,
    require_admin,
)
from src.schemas.achievements import ProgressFilters, TargetProgressResponse
from src.schemas.targets import (
    CurrentUser,
    DeleteResult,
    MonthlyTarget,
    TargetFilters,
    TargetUpsertRequest,
    TargetView,
)
from src.services.achievements_service import AchievementsService
from src.services.targets_service import TargetsService
from src.shared.response import ResponseEnvelope, build_meta, build_pagination

router = APIRouter(prefix="/targets", tags=["targets"])


def get_target_filters(
    period: str = Query(default="MONTHLY", pattern="^(MONTHLY|QUARTERLY|YEARLY|ALL)$"),
    year: Optional[int] = Query(default=None, ge=2000, le=2100),
    month: Optional[int] = Query(default=None, ge=1, le=12),
    quarter: Optional[int] = Query(default=None, ge=1, le=4),
    user_id: Optional[str] = Query(default=None, alias="userId"),
    target_type: str = Query(default="ALL", alias="targetType", pattern="^(USER|COMPANY|ALL)$"),
) -> TargetFilters:
    return TargetFilters(
        period=period,
        year=year,
        month=month,
        quarter=quarter,
        user_id=user_id,
        target_type=target_type,
    )


def get_progress_filters(
    period: str = Query(default="MONTHLY", pattern="^(MONTHLY|QUARTERLY|YEARLY)$"),
    year: Optional[int] = Query(default=None, ge=2000, le=2100),
    month: Optional[int] = Query(default=None, ge=1, le=12),
    quarter: Optional[int] = Query(default=None, ge=1, le=4),
    user_id: Optional[str] = Query(default=None, alias="userId"),
) -> ProgressFilters:
    return ProgressFilters(period=period, year=year, month=month, quarter=quarter, user_id=user_id)


@router.get("")
def list_targets(
    filters: TargetFilters = Depends(get_target_filters),
    viewer: CurrentUser = Depends(get_current_user),
    service: TargetsService = Depends(get_targets_service),
) -> ResponseEnvelope[List[TargetView]]:
    items = service.list_targets(filters, viewer)
    pagination = build_pagination(page=1, page_size=max(len(items), 1), total_items=len(items))
    return ResponseEnvelope(
        data=items,
        pagination=pagination,
        meta=build_meta("targets", filters.period.lower()),
    )


@router.get("/progress")
def target_progress(
    filters: ProgressFilters = Depends(get_progress_filters),
    viewer: CurrentUser = Depends(get_current_user),
    service: AchievementsService = Depends(get_achievements_service),
) -> ResponseEnvelope[TargetProgressResponse]:
    data = service.get_progress(filters, viewer)
    meta = build_meta("targets,leads", filters.period.lower(), degraded=bool(data.warnings))
    return ResponseEnvelope(data=data, pagination=None, meta=meta)


@router.post("", status_code=201)
def upsert_target(
    payload: TargetUpsertRequest,
    admin: CurrentUser = Depends(require_admin),
    service: TargetsService = Depends(get_targets_service),
) -> ResponseEnvelope[MonthlyTarget]:
    data = service.upsert_target(payload, admin)
    return ResponseEnvelope(data=data, pagination=None, meta=build_meta("targets", "monthly"))


@router.delete("/{target_id}")
def delete_target(
    target_id: str,
    _: CurrentUser = Depends(require_admin),
    service: TargetsService = Depends(get_targets_service),
) -> ResponseEnvelope[DeleteResult]:
    data = service.delete_target(target_id)
    return ResponseEnvelope(data=data, pagination=None, meta=build_meta("targets", "na"))
