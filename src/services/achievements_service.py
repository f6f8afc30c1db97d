from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional, Sequence, Set, Tuple

from src.analytics.target_rollup import (
    RollupWarnings,
    build_period_targets,
    compute_achievement,
    deduplicate_deals_across_targets,
    exclude_orphaned_targets,
    round_amount,
    summarize_achievements,
)
from src.core.config import get_won_lead_statuses
from src.models.targets import AchievementRecord, PeriodTarget, UserRecord, WonDealRecord
from src.repositories.leads_repository import LeadsRepository
from src.repositories.targets_repository import TargetsRepository
from src.schemas.achievements import (
    AchievementFilters,
    AchievementItem,
    AchievementsResponse,
    AchievementSummary,
    DateRange,
    ProgressFilters,
    ProgressPeriod,
    TargetProgressResponse,
    UserSummary,
    ViewerContext,
)
from src.schemas.targets import CurrentUser
from src.services.currency_service import CurrencyService
from src.services.target_access import (
    ScopedTarget,
    filter_target_type,
    matches_period_filters,
    resolve_user_filter,
    scope_targets,
    validate_period_filters,
)
from src.shared.time import (
    PeriodWindow,
    format_period_display,
    resolve_period_window,
    resolve_reporting_period,
)

logger = logging.getLogger(__name__)


def to_user_summary(user: Optional[UserRecord]) -> Optional[UserSummary]:
    if user is None:
        return None
    return UserSummary(id=user.id, name=user.display_name, email=user.email)


def to_achievement_item(record: AchievementRecord) -> AchievementItem:
    target = record.target
    return AchievementItem(
        id=target.id,
        target_type=target.scope,
        period=target.period,
        period_display=format_period_display(target.period, target.year, target.month, target.quarter),
        year=target.year,
        month=target.month,
        quarter=target.quarter,
        target_amount=round_amount(target.amount),
        achieved_amount=round_amount(record.achieved_amount),
        achievement_percentage=round_amount(record.achievement_percentage),
        is_achieved=record.is_achieved,
        status="ACHIEVED" if record.is_achieved else "NOT_ACHIEVED",
        currency=target.currency,
        deals_count=record.deals_count,
        remaining_amount=round_amount(record.remaining_amount),
        user=to_user_summary(target.user),
        date_range=DateRange(start=record.window.start_iso(), end=record.window.end_iso()),
    )


class AchievementsService:
    def __init__(
        self,
        targets_repository: TargetsRepository,
        leads_repository: LeadsRepository,
        currency_service: CurrencyService,
    ) -> None:
        self.targets_repository = targets_repository
        self.leads_repository = leads_repository
        self.currency_service = currency_service

    def get_achievements(
        self, filters: AchievementFilters, viewer: CurrentUser
    ) -> AchievementsResponse:
        validate_period_filters(filters.period, filters.month, filters.quarter)
        user_filter = resolve_user_filter(viewer, filters.user_id)
        warnings = RollupWarnings()

        targets = self.load_period_targets(filters.period, filters.year, warnings)
        targets = [t for t in targets if matches_period_filters(t, filters.month, filters.quarter)]
        scoped = filter_target_type(scope_targets(targets, viewer, user_filter), filters.target_type)

        records = self._evaluate(scoped, warnings)
        logger.info(
            "Computed %s achievement records for viewer=%s period=%s year=%s user_filter=%s",
            len(records),
            viewer.id,
            filters.period,
            filters.year,
            user_filter,
        )
        total_deal_ids = deduplicate_deals_across_targets(records)
        return AchievementsResponse(
            achievements=[to_achievement_item(record) for record in records],
            summary=self._summarize(records, warnings, total_deal_ids),
            warnings=list(warnings.messages),
            viewer=ViewerContext(
                user_id=viewer.id,
                is_admin=viewer.is_admin,
                period=filters.period,
                year=filters.year,
                user_filter=filters.user_id,
            ),
        )

    def get_progress(
        self, filters: ProgressFilters, viewer: CurrentUser, today: Optional[date] = None
    ) -> TargetProgressResponse:
        user_filter = resolve_user_filter(viewer, filters.user_id)
        reporting = resolve_reporting_period(filters.period, filters.year, filters.month, filters.quarter, today)

        warnings = RollupWarnings()
        targets = [
            target
            for target in self.load_period_targets(filters.period, reporting.year, warnings)
            if (target.year, target.month, target.quarter) == (reporting.year, reporting.month, reporting.quarter)
        ]
        records = self._evaluate(scope_targets(targets, viewer, user_filter), warnings)
        return TargetProgressResponse(
            progress=[to_achievement_item(record) for record in records],
            summary=self._summarize(records, warnings),
            period=ProgressPeriod(
                type=filters.period,
                year=reporting.year,
                month=reporting.month,
                quarter=reporting.quarter,
                start_date=reporting.window.start_iso(),
                end_date=reporting.window.end_iso(),
            ),
            warnings=list(warnings.messages),
        )

    def _summarize(
        self,
        records: Sequence[AchievementRecord],
        warnings: RollupWarnings,
        total_deal_ids: Optional[Set[str]] = None,
    ) -> AchievementSummary:
        return summarize_achievements(
            records,
            total_deal_ids,
            convert=self.currency_service.convert,
            reporting_currency=self.currency_service.reporting_currency,
            warnings=warnings,
        )

    def load_period_targets(
        self, period: Optional[str], year: Optional[int], warnings: RollupWarnings
    ) -> List[PeriodTarget]:
        # Company rollups need every user's targets, so scoping happens afterwards.
        monthly_targets = self.targets_repository.list_monthly_targets(year=year)
        valid_targets = exclude_orphaned_targets(monthly_targets, warnings)
        if len(valid_targets) != len(monthly_targets):
            logger.warning(
                "Excluded %s orphaned targets out of %s",
                len(monthly_targets) - len(valid_targets),
                len(monthly_targets),
            )
        return build_period_targets(
            valid_targets,
            period,
            convert=self.currency_service.convert,
            reporting_currency=self.currency_service.reporting_currency,
            warnings=warnings,
            default_currency=self.currency_service.default_currency,
        )

    def _evaluate(
        self,
        scoped: Sequence[ScopedTarget],
        warnings: RollupWarnings,
    ) -> List[AchievementRecord]:
        if not scoped:
            return []
        windows = [
            resolve_period_window(item.target.period, item.target.year, item.target.month, item.target.quarter)
            for item in scoped
        ]
        deals = self._load_deals(windows, self._single_deal_owner(scoped))
        return [
            compute_achievement(
                item.target,
                deals,
                window,
                self.currency_service.convert,
                owner_filter=item.deal_owner,
                warnings=warnings,
            )
            for item, window in zip(scoped, windows)
        ]

    @staticmethod
    def _single_deal_owner(scoped: Sequence[ScopedTarget]) -> Optional[str]:
        # Deals can be fetched for one owner only when no record needs anyone else's.
        owners = {
            item.deal_owner if item.target.scope == "COMPANY" else item.target.owner_id for item in scoped
        }
        if len(owners) == 1:
            return owners.pop()
        return None

    def _load_deals(self, windows: Sequence[PeriodWindow], owner_id: Optional[str]) -> List[WonDealRecord]:
        start, end = self._covering_range(windows)
        return self.leads_repository.list_won_deals(
            start_date=start,
            end_date=end,
            statuses=get_won_lead_statuses(),
            owner_id=owner_id,
        )

    @staticmethod
    def _covering_range(windows: Sequence[PeriodWindow]) -> Tuple[date, date]:
        return min(window.start for window in windows), max(window.end for window in windows)
