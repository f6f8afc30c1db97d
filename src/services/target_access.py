from __future__ import annotations

from typing import Iterable, List, NamedTuple, Optional

from src.core.errors import BadRequestError, ForbiddenError
from src.models.targets import PeriodTarget
from src.schemas.targets import CurrentUser

ALL_USERS = "ALL"
COMPANY_ONLY = "COMPANY"


class ScopedTarget(NamedTuple):
    target: PeriodTarget
    # Owner whose deals a COMPANY target is narrowed to; None means every owner.
    deal_owner: Optional[str]


def resolve_user_filter(viewer: CurrentUser, user_id: Optional[str]) -> Optional[str]:
    """Normalise the requested ``userId`` into the filter the viewer may use."""
    requested = (user_id or "").strip() or None
    if viewer.is_admin:
        if requested is None or requested.upper() == ALL_USERS:
            return None
        if requested.upper() == COMPANY_ONLY:
            return COMPANY_ONLY
        return requested
    if requested is not None and requested != viewer.id:
        raise ForbiddenError("Only administrators can view other users' targets")
    return viewer.id


def scope_targets(
    targets: Iterable[PeriodTarget],
    viewer: CurrentUser,
    user_filter: Optional[str],
) -> List[ScopedTarget]:
    scoped: List[ScopedTarget] = []
    for target in targets:
        if target.scope == "COMPANY":
            narrowed = user_filter if viewer.is_admin and user_filter not in (None, COMPANY_ONLY) else None
            scoped.append(ScopedTarget(target, narrowed))
            continue
        if viewer.is_admin:
            if user_filter == COMPANY_ONLY:
                continue
            if user_filter is not None and target.owner_id != user_filter:
                continue
        elif target.owner_id != viewer.id:
            continue
        scoped.append(ScopedTarget(target, None))
    return scoped


def filter_target_type(scoped: Iterable[ScopedTarget], target_type: Optional[str]) -> List[ScopedTarget]:
    if not target_type or target_type == "ALL":
        return list(scoped)
    return [item for item in scoped if item.target.scope == target_type]


def validate_period_filters(period: str, month: Optional[int], quarter: Optional[int]) -> None:
    if month is not None and period not in {"MONTHLY", "ALL"}:
        raise BadRequestError("month can only be combined with the MONTHLY or ALL period")
    if quarter is not None and period not in {"QUARTERLY", "ALL"}:
        raise BadRequestError("quarter can only be combined with the QUARTERLY or ALL period")


def matches_period_filters(target: PeriodTarget, month: Optional[int], quarter: Optional[int]) -> bool:
    if month is not None and target.period == "MONTHLY" and target.month != month:
        return False
    if quarter is not None and target.period == "QUARTERLY" and target.quarter != quarter:
        return False
    return True
