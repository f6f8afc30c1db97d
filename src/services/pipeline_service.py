from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

from src.analytics.pipeline import summarize_pipeline
from src.analytics.target_rollup import ZERO, RollupWarnings, build_period_targets, exclude_orphaned_targets
from src.core.config import get_won_lead_statuses
from src.core.errors import CurrencyConversionError
from src.repositories.leads_repository import LeadsRepository
from src.repositories.targets_repository import TargetsRepository
from src.schemas.achievements import ProgressPeriod
from src.schemas.pipeline import PipelineFilters, PipelineResponse
from src.schemas.targets import CurrentUser
from src.services.currency_service import CurrencyService
from src.services.target_access import COMPANY_ONLY, resolve_user_filter
from src.shared.time import ReportingPeriod, resolve_reporting_period

logger = logging.getLogger(__name__)


class PipelineService:
    def __init__(
        self,
        targets_repository: TargetsRepository,
        leads_repository: LeadsRepository,
        currency_service: CurrencyService,
    ) -> None:
        self.targets_repository = targets_repository
        self.leads_repository = leads_repository
        self.currency_service = currency_service

    def get_pipeline(
        self, filters: PipelineFilters, viewer: CurrentUser, today: Optional[date] = None
    ) -> PipelineResponse:
        today = today or datetime.now(timezone.utc).date()
        user_filter = resolve_user_filter(viewer, filters.user_id)
        owner_id = None if user_filter == COMPANY_ONLY else user_filter
        reporting = resolve_reporting_period(filters.period, filters.year, filters.month, filters.quarter, today)

        warnings = RollupWarnings()
        leads = self.leads_repository.list_leads(
            reporting.window.start, reporting.window.end, owner_id=owner_id
        )
        currency = self.currency_service.reporting_currency
        breakdown = summarize_pipeline(
            leads,
            convert=self.currency_service.convert,
            currency=currency,
            target_amount=self._target_amount(reporting, owner_id, warnings),
            today=today,
            won_statuses=get_won_lead_statuses(),
            warnings=warnings,
        )
        logger.info(
            "Pipeline for %s %s: %s leads (owner=%s)",
            reporting.period,
            reporting.year,
            len(leads),
            owner_id or "all",
        )
        return PipelineResponse(
            metrics=breakdown.metrics,
            stages=breakdown.stages,
            sources=breakdown.sources,
            aging=breakdown.aging,
            currency=currency,
            period=ProgressPeriod(
                type=reporting.period,
                year=reporting.year,
                month=reporting.month,
                quarter=reporting.quarter,
                start_date=reporting.window.start_iso(),
                end_date=reporting.window.end_iso(),
            ),
            warnings=list(warnings.messages),
        )

    def _target_amount(
        self, reporting: ReportingPeriod, owner_id: Optional[str], warnings: RollupWarnings
    ) -> Decimal:
        monthly = exclude_orphaned_targets(
            self.targets_repository.list_monthly_targets(year=reporting.year), warnings
        )
        currency = self.currency_service.reporting_currency
        targets = build_period_targets(
            monthly,
            reporting.period,
            convert=self.currency_service.convert,
            reporting_currency=currency,
            warnings=warnings,
            default_currency=self.currency_service.default_currency,
        )
        total = ZERO
        for target in targets:
            if target.scope != "USER" or (target.month, target.quarter) != (reporting.month, reporting.quarter):
                continue
            if owner_id is not None and target.owner_id != owner_id:
                continue
            try:
                total += self.currency_service.convert(target.amount, target.currency, currency)
            except CurrencyConversionError as exc:
                warnings.add(f"Target {target.id} left out of the pipeline target: {exc.message}")
        return total
