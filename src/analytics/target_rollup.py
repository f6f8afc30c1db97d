"""Target rollups and achievement math.

Only monthly USER targets are stored. Every other granularity (quarterly,
yearly, company-wide) is derived here from a snapshot of those rows and then
paired with the won deals that fall inside its window. Nothing in this module
performs I/O or keeps state between calls.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from src.core.errors import CurrencyConversionError
from src.models.targets import (
    AchievementRecord,
    MonthlyTargetRecord,
    PeriodKey,
    PeriodTarget,
    WonDealRecord,
)
from src.schemas.achievements import AchievementSummary
from src.shared.time import PeriodWindow, quarter_of_month

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")
COARSEST_FIRST = ("YEARLY", "QUARTERLY", "MONTHLY")

Converter = Callable[[Decimal, Optional[str], Optional[str]], Decimal]


class RollupWarnings:
    """Collects data-integrity warnings raised while aggregating."""

    def __init__(self) -> None:
        self.messages: List[str] = []

    def add(self, message: str) -> None:
        logger.warning(message)
        if message not in self.messages:
            self.messages.append(message)

    def __bool__(self) -> bool:
        return bool(self.messages)


def _warn(warnings: Optional[RollupWarnings], message: str) -> None:
    if warnings is None:
        logger.warning(message)
    else:
        warnings.add(message)


def exclude_orphaned_targets(
    monthly_targets: Iterable[MonthlyTargetRecord],
    warnings: Optional[RollupWarnings] = None,
) -> List[MonthlyTargetRecord]:
    valid: List[MonthlyTargetRecord] = []
    for target in monthly_targets:
        if not target.user_id or target.user is None:
            _warn(warnings, f"Skipping orphaned target {target.id}: user {target.user_id} not found")
            continue
        valid.append(target)
    return valid


def monthly_user_targets(
    monthly_targets: Iterable[MonthlyTargetRecord], default_currency: str = "INR"
) -> List[PeriodTarget]:
    return [
        PeriodTarget(
            id=target.id,
            scope="USER",
            period="MONTHLY",
            year=target.year,
            month=target.month,
            amount=target.amount,
            currency=(target.currency or default_currency).upper(),
            owner_id=target.user_id,
            user=target.user,
        )
        for target in monthly_targets
    ]


UserPeriodGroup = Tuple[Optional[str], int, Optional[int]]


def _rollup_user_targets(
    monthly_targets: Iterable[MonthlyTargetRecord],
    period: str,
    default_currency: str,
    convert: Optional[Converter],
    warnings: Optional[RollupWarnings],
    reporting_currency: Optional[str],
) -> List[PeriodTarget]:
    # With a converter every group is kept in one known currency.
    fixed_currency = (reporting_currency or default_currency).upper() if convert is not None else None
    sums: Dict[UserPeriodGroup, Decimal] = defaultdict(lambda: ZERO)
    first_seen: Dict[UserPeriodGroup, MonthlyTargetRecord] = {}
    for target in monthly_targets:
        quarter = quarter_of_month(target.month) if period == "QUARTERLY" else None
        group = (target.user_id, target.year, quarter)
        first = first_seen.setdefault(group, target)
        group_currency = fixed_currency or (first.currency or default_currency).upper()
        target_currency = (target.currency or default_currency).upper()
        amount = target.amount
        if target_currency != group_currency:
            if convert is None:
                raise CurrencyConversionError(
                    f"Monthly targets for user {target.user_id} in {target.year} mix "
                    f"{group_currency} and {target_currency}"
                )
            try:
                amount = convert(target.amount, target_currency, group_currency)
            except CurrencyConversionError as exc:
                _warn(warnings, f"Excluded target {target.id} from {period.lower()} total: {exc.message}")
                continue
        sums[group] += amount

    rolled: List[PeriodTarget] = []
    for group, amount in sums.items():
        user_id, year, quarter = group
        first = first_seen[group]
        target_id = (
            f"quarterly-{user_id}-{year}-{quarter}" if period == "QUARTERLY" else f"yearly-{user_id}-{year}"
        )
        rolled.append(
            PeriodTarget(
                id=target_id,
                scope="USER",
                period=period,
                year=year,
                quarter=quarter,
                amount=amount,
                currency=fixed_currency or (first.currency or default_currency).upper(),
                owner_id=user_id,
                user=first.user,
            )
        )
    return rolled


def rollup_quarterly_targets(
    monthly_targets: Iterable[MonthlyTargetRecord],
    default_currency: str = "INR",
    convert: Optional[Converter] = None,
    warnings: Optional[RollupWarnings] = None,
    reporting_currency: Optional[str] = None,
) -> List[PeriodTarget]:
    """Sum each user's months per quarter; missing months are simply absent."""
    return _rollup_user_targets(
        monthly_targets, "QUARTERLY", default_currency, convert, warnings, reporting_currency
    )


def rollup_yearly_targets(
    monthly_targets: Iterable[MonthlyTargetRecord],
    default_currency: str = "INR",
    convert: Optional[Converter] = None,
    warnings: Optional[RollupWarnings] = None,
    reporting_currency: Optional[str] = None,
) -> List[PeriodTarget]:
    return _rollup_user_targets(
        monthly_targets, "YEARLY", default_currency, convert, warnings, reporting_currency
    )


def _company_target_id(key: PeriodKey) -> str:
    if key.period == "MONTHLY":
        return f"company-monthly-{key.year}-{key.month}"
    if key.period == "QUARTERLY":
        return f"company-quarterly-{key.year}-{key.quarter}"
    return f"company-yearly-{key.year}"


def rollup_company_targets(
    targets: Iterable[PeriodTarget],
    convert: Optional[Converter] = None,
    reporting_currency: Optional[str] = None,
    warnings: Optional[RollupWarnings] = None,
) -> List[PeriodTarget]:
    """One COMPANY target per period key, summing every USER target sharing it.

    With ``convert`` each amount is brought into ``reporting_currency`` (or the
    first target's currency when none is given) and a target in an unknown
    currency is left out with a warning. Without ``convert`` a key whose targets
    disagree on currency raises ``CurrencyConversionError``.
    """
    sums: Dict[PeriodKey, Decimal] = {}
    currencies: Dict[PeriodKey, str] = {}
    for target in targets:
        if target.scope != "USER":
            continue
        key = target.key
        currency = currencies.setdefault(key, (reporting_currency or target.currency).upper())
        amount = target.amount
        if target.currency != currency:
            if convert is None:
                raise CurrencyConversionError(
                    f"Cannot sum {target.currency} and {currency} targets for {_company_target_id(key)} "
                    "without a currency converter"
                )
            try:
                amount = convert(target.amount, target.currency, currency)
            except CurrencyConversionError as exc:
                _warn(warnings, f"Excluded target {target.id} from company total: {exc.message}")
                continue
        sums[key] = sums.get(key, ZERO) + amount

    return [
        PeriodTarget(
            id=_company_target_id(key),
            scope="COMPANY",
            period=key.period,
            year=key.year,
            month=key.month,
            quarter=key.quarter,
            amount=amount,
            currency=currencies[key],
            owner_id=None,
            user=None,
        )
        for key, amount in sums.items()
    ]


def build_period_targets(
    monthly_targets: Sequence[MonthlyTargetRecord],
    period: Optional[str],
    convert: Optional[Converter] = None,
    reporting_currency: Optional[str] = None,
    warnings: Optional[RollupWarnings] = None,
    default_currency: str = "INR",
) -> List[PeriodTarget]:
    """USER targets for the requested period followed by their COMPANY rollups.

    ``ALL`` yields monthly, quarterly and yearly blocks in that order; anything
    unrecognised is treated as ``MONTHLY``.
    """
    requested = (period or "MONTHLY").upper()
    if requested == "ALL":
        periods = ["MONTHLY", "QUARTERLY", "YEARLY"]
    elif requested in {"QUARTERLY", "YEARLY"}:
        periods = [requested]
    else:
        periods = ["MONTHLY"]

    result: List[PeriodTarget] = []
    for current in periods:
        if current == "MONTHLY":
            user_targets = monthly_user_targets(monthly_targets, default_currency)
        elif current == "QUARTERLY":
            user_targets = rollup_quarterly_targets(
                monthly_targets, default_currency, convert, warnings, reporting_currency
            )
        else:
            user_targets = rollup_yearly_targets(
                monthly_targets, default_currency, convert, warnings, reporting_currency
            )
        result.extend(user_targets)
        result.extend(rollup_company_targets(user_targets, convert, reporting_currency, warnings))
    return result


def compute_achievement(
    target: PeriodTarget,
    won_deals: Iterable[WonDealRecord],
    window: PeriodWindow,
    convert: Converter,
    owner_filter: Optional[str] = None,
    warnings: Optional[RollupWarnings] = None,
) -> AchievementRecord:
    achieved = ZERO
    deal_ids: Set[str] = set()
    for deal in won_deals:
        if not window.contains(deal.closed_at):
            continue
        if target.scope == "USER":
            if deal.owner_id != target.owner_id:
                continue
        elif owner_filter is not None and deal.owner_id != owner_filter:
            continue
        if deal.id in deal_ids:
            continue
        deal_ids.add(deal.id)
        try:
            achieved += convert(deal.amount, deal.currency, target.currency)
        except CurrencyConversionError as exc:
            _warn(warnings, f"Deal {deal.id} contributes 0 to {target.id}: {exc.message}")

    target_amount = target.amount
    percentage = achieved / target_amount * HUNDRED if target_amount > 0 else ZERO
    return AchievementRecord(
        target=target,
        window=window,
        achieved_amount=achieved,
        achievement_percentage=percentage,
        is_achieved=achieved >= target_amount,
        remaining_amount=max(ZERO, target_amount - achieved),
        deal_ids=frozenset(deal_ids),
    )


def deduplicate_deals_across_targets(records: Iterable[AchievementRecord]) -> Set[str]:
    """Distinct deal ids across all records.

    A deal shows up under its owner's USER target and again under the matching
    COMPANY target, so summaries count this set rather than adding up
    ``deals_count``.
    """
    unique: Set[str] = set()
    for record in records:
        unique.update(record.deal_ids)
    return unique


def round_amount(value: Decimal) -> float:
    return float(value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def _amount_records(records: Sequence[AchievementRecord]) -> List[AchievementRecord]:
    """Records whose amounts make up the summary totals.

    COMPANY rows already contain the USER rows, and a yearly row contains its
    quarters and months, so only one scope and the coarsest granularity present
    are added up.
    """
    pool = [record for record in records if record.target.scope == "COMPANY"]
    if not pool:
        pool = [record for record in records if record.target.scope == "USER"]
    for period in COARSEST_FIRST:
        selected = [record for record in pool if record.target.period == period]
        if selected:
            return selected
    return []


def summarize_achievements(
    records: Sequence[AchievementRecord],
    total_deal_ids: Optional[Set[str]] = None,
    convert: Optional[Converter] = None,
    reporting_currency: Optional[str] = None,
    warnings: Optional[RollupWarnings] = None,
) -> AchievementSummary:
    if total_deal_ids is None:
        total_deal_ids = deduplicate_deals_across_targets(records)
    total_targets = len(records)
    achieved_targets = sum(1 for record in records if record.is_achieved)

    amount_records = _amount_records(records)
    currency = (reporting_currency or (amount_records[0].target.currency if amount_records else "")).upper()
    total_target_amount = ZERO
    total_achieved_amount = ZERO
    for record in amount_records:
        target_amount = record.target_amount
        achieved_amount = record.achieved_amount
        if record.target.currency != currency:
            if convert is None:
                raise CurrencyConversionError(
                    f"Cannot total {record.target.currency} and {currency} targets without a currency converter"
                )
            try:
                target_amount = convert(target_amount, record.target.currency, currency)
                achieved_amount = convert(achieved_amount, record.target.currency, currency)
            except CurrencyConversionError as exc:
                _warn(warnings, f"Excluded target {record.target.id} from summary totals: {exc.message}")
                continue
        total_target_amount += target_amount
        total_achieved_amount += achieved_amount

    achievement_rate = (
        Decimal(achieved_targets) / Decimal(total_targets) * HUNDRED if total_targets else ZERO
    )
    amount_percentage = (
        total_achieved_amount / total_target_amount * HUNDRED if total_target_amount > 0 else ZERO
    )
    return AchievementSummary(
        total_targets=total_targets,
        achieved_targets=achieved_targets,
        failed_targets=total_targets - achieved_targets,
        achievement_rate=round_amount(achievement_rate),
        total_target_amount=round_amount(total_target_amount),
        total_achieved_amount=round_amount(total_achieved_amount),
        amount_percentage=round_amount(amount_percentage),
        currency=currency or None,
        total_deals=len(total_deal_ids),
    )
