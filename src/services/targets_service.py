from __future__ import annotations

import logging
from typing import List, Optional

from src.analytics.target_rollup import (
    RollupWarnings,
    build_period_targets,
    exclude_orphaned_targets,
    round_amount,
)
from src.core.errors import BadRequestError, NotFoundError
from src.models.targets import MonthlyTargetRecord, PeriodTarget, UserRecord
from src.repositories.targets_repository import TargetsRepository
from src.repositories.users_repository import UsersRepository
from src.schemas.targets import (
    CurrentUser,
    DeleteResult,
    MonthlyTarget,
    TargetFilters,
    TargetUpsertRequest,
    TargetView,
)
from src.services.achievements_service import to_user_summary
from src.services.currency_service import CurrencyService
from src.services.target_access import (
    filter_target_type,
    matches_period_filters,
    resolve_user_filter,
    scope_targets,
    validate_period_filters,
)
from src.shared.time import format_period_display

logger = logging.getLogger(__name__)


class TargetsService:
    def __init__(
        self,
        repository: TargetsRepository,
        users_repository: UsersRepository,
        currency_service: CurrencyService,
    ) -> None:
        self.repository = repository
        self.users_repository = users_repository
        self.currency_service = currency_service

    def list_targets(self, filters: TargetFilters, viewer: CurrentUser) -> List[TargetView]:
        validate_period_filters(filters.period, filters.month, filters.quarter)
        user_filter = resolve_user_filter(viewer, filters.user_id)

        warnings = RollupWarnings()
        monthly_targets = exclude_orphaned_targets(
            self.repository.list_monthly_targets(year=filters.year), warnings
        )
        targets = build_period_targets(
            monthly_targets,
            filters.period,
            convert=self.currency_service.convert,
            reporting_currency=self.currency_service.reporting_currency,
            warnings=warnings,
            default_currency=self.currency_service.default_currency,
        )
        targets = [t for t in targets if matches_period_filters(t, filters.month, filters.quarter)]
        scoped = filter_target_type(scope_targets(targets, viewer, user_filter), filters.target_type)
        return [self._to_view(item.target) for item in scoped]

    def upsert_target(self, payload: TargetUpsertRequest, admin: CurrentUser) -> MonthlyTarget:
        if payload.month < 1 or payload.month > 12:
            raise BadRequestError("Month must be between 1 and 12")
        if not self.currency_service.supports(payload.currency):
            raise BadRequestError(f"Unsupported currency code: {payload.currency}")
        user = self.users_repository.get_user(payload.user_id)
        if user is None:
            raise BadRequestError("User not found")

        record = self.repository.upsert_monthly_target(
            {
                "user_id": payload.user_id,
                "year": payload.year,
                "month": payload.month,
                "amount": str(payload.amount),
                "currency": payload.currency,
                "period": "MONTHLY",
                "target_type": "USER",
                "quarter": None,
                "created_by": admin.id,
            }
        )
        logger.info(
            "Target %s saved for user=%s %s-%02d by admin=%s",
            record.id,
            payload.user_id,
            payload.year,
            payload.month,
            admin.id,
        )
        return self._to_monthly_target(record, fallback_user=user)

    def delete_target(self, target_id: str) -> DeleteResult:
        existing = self.repository.get_target(target_id)
        if existing is None:
            raise NotFoundError("Target not found")
        if not self.repository.delete_target(target_id):
            raise NotFoundError("Target not found")
        logger.info("Target %s deleted", target_id)
        return DeleteResult(id=target_id, deleted=True)

    @staticmethod
    def _to_view(target: PeriodTarget) -> TargetView:
        return TargetView(
            id=target.id,
            target_type=target.scope,
            period=target.period,
            period_display=format_period_display(target.period, target.year, target.month, target.quarter),
            year=target.year,
            month=target.month,
            quarter=target.quarter,
            amount=round_amount(target.amount),
            currency=target.currency,
            user_id=target.owner_id,
            user=to_user_summary(target.user),
        )

    def _to_monthly_target(
        self, record: MonthlyTargetRecord, fallback_user: Optional[UserRecord] = None
    ) -> MonthlyTarget:
        user = record.user or fallback_user
        return MonthlyTarget(
            id=record.id,
            user_id=record.user_id or "",
            year=record.year,
            month=record.month,
            amount=float(record.amount),
            currency=self.currency_service.normalize(record.currency),
            period=record.period,
            target_type=record.target_type,
            created_by=record.created_by,
            created_at=record.created_at,
            updated_at=record.updated_at,
            user=to_user_summary(user),
        )
