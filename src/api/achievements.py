from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from src.api.dependencies import get_achievements_service, get_current_user
from src.core.config import get_settings
from src.schemas.achievements import AchievementFilters, AchievementsResponse
from src.schemas.targets import CurrentUser
from src.services.achievements_service import AchievementsService
from src.shared.response import ResponseEnvelope, build_meta

router = APIRouter(prefix="/achievements", tags=["achievements"])


def get_achievement_filters(
    period: str = Query(default="MONTHLY", pattern="^(MONTHLY|QUARTERLY|YEARLY|ALL)$"),
    year: Optional[int] = Query(default=None, ge=2000, le=2100),
    month: Optional[int] = Query(default=None, ge=1, le=12),
    quarter: Optional[int] = Query(default=None, ge=1, le=4),
    user_id: Optional[str] = Query(default=None, alias="userId"),
    target_type: str = Query(default="ALL", alias="targetType", pattern="^(USER|COMPANY|ALL)$"),
) -> AchievementFilters:
    return AchievementFilters(
        period=period,
        year=year,
        month=month,
        quarter=quarter,
        user_id=user_id,
        target_type=target_type,
    )


@router.get("")
def list_achievements(
    response: Response,
    filters: AchievementFilters = Depends(get_achievement_filters),
    viewer: CurrentUser = Depends(get_current_user),
    service: AchievementsService = Depends(get_achievements_service),
) -> ResponseEnvelope[AchievementsResponse]:
    data = service.get_achievements(filters, viewer)
    cache_seconds = get_settings().achievements_cache_seconds
    response.headers["Cache-Control"] = (
        f"private, max-age={cache_seconds}, stale-while-revalidate={cache_seconds * 2}"
    )
    meta = build_meta(
        source="targets,leads",
        time_window=filters.period.lower(),
        currency=data.achievements[0].currency if data.achievements else None,
        degraded=bool(data.warnings),
    )
    return ResponseEnvelope(data=data, pagination=None, meta=meta)
