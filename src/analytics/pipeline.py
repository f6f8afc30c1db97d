"""Lead pipeline aggregates: stage and source totals, aging buckets and headline metrics.

Every lead value is converted into one reporting currency before it is added.
"""
from __future__ import annotations

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from src.analytics.target_rollup import HUNDRED, ZERO, Converter, RollupWarnings, _warn, round_amount
from src.core.errors import CurrencyConversionError
from src.models.targets import LeadRecord
from src.schemas.pipeline import (
    AgingBucket,
    PipelineBreakdown,
    PipelineMetrics,
    SourceSummary,
    StageSummary,
)

PIPELINE_STAGES = ("NEW", "CONTACTED", "QUALIFIED", "PROPOSAL", "WON", "LOST")
EXPECTED_REVENUE_RATE = Decimal("0.3")
AGING_BUCKETS: Tuple[Tuple[str, str, int, Optional[int]], ...] = (
    ("0-30", "0-30 days", 0, 30),
    ("31-60", "31-60 days", 31, 60),
    ("61-90", "61-90 days", 61, 90),
    ("90+", "90+ days", 91, None),
)


def lead_stage(lead: LeadRecord, won_statuses: Iterable[str]) -> str:
    status = (lead.status or "").strip().upper()
    if status in {value.upper() for value in won_statuses}:
        return "WON"
    return status


def lead_value(
    lead: LeadRecord,
    convert: Converter,
    currency: str,
    warnings: Optional[RollupWarnings] = None,
) -> Decimal:
    if not lead.amount:
        return ZERO
    try:
        return convert(lead.amount, lead.currency, currency)
    except CurrencyConversionError as exc:
        _warn(warnings, f"Lead {lead.id} valued at 0: {exc.message}")
        return ZERO


def _aging_index(age_days: int) -> int:
    for index, (_, _, lower, upper) in enumerate(AGING_BUCKETS):
        if age_days >= lower and (upper is None or age_days <= upper):
            return index
    return len(AGING_BUCKETS) - 1


def summarize_pipeline(
    leads: Sequence[LeadRecord],
    convert: Converter,
    currency: str,
    target_amount: Decimal,
    today: date,
    won_statuses: Iterable[str] = ("WON",),
    warnings: Optional[RollupWarnings] = None,
) -> PipelineBreakdown:
    won_statuses = list(won_statuses)
    values: Dict[str, Decimal] = {lead.id: lead_value(lead, convert, currency, warnings) for lead in leads}
    active = [lead for lead in leads if lead.is_active is not False]

    stage_counts: Dict[str, int] = defaultdict(int)
    stage_values: Dict[str, Decimal] = defaultdict(lambda: ZERO)
    source_counts: Dict[str, int] = defaultdict(int)
    source_values: Dict[str, Decimal] = defaultdict(lambda: ZERO)
    for lead in leads:
        stage = lead_stage(lead, won_statuses)
        stage_counts[stage] += 1
        stage_values[stage] += values[lead.id]
        source = (lead.source or "").strip() or "Unknown"
        source_counts[source] += 1
        source_values[source] += values[lead.id]

    bucket_deals = [0] * len(AGING_BUCKETS)
    bucket_values = [ZERO] * len(AGING_BUCKETS)
    for lead in active:
        index = _aging_index(max(0, (today - lead.created_at.date()).days))
        bucket_deals[index] += 1
        bucket_values[index] += values[lead.id]

    total_value = sum((values[lead.id] for lead in active), ZERO)
    expected_revenue = total_value * EXPECTED_REVENUE_RATE
    won = stage_counts["WON"]
    lost = stage_counts["LOST"]
    closed = won + lost
    metrics = PipelineMetrics(
        total_pipeline_value=round_amount(total_value),
        expected_revenue=round_amount(expected_revenue),
        deals_in_pipeline=len(active),
        won_deals=won,
        lost_deals=lost,
        conversion_rate=round_amount(Decimal(won) / Decimal(closed) * HUNDRED if closed else ZERO),
        avg_deal_size=round_amount(total_value / len(active) if active else ZERO),
        target_amount=round_amount(target_amount),
        forecast_vs_target=round_amount(
            expected_revenue / target_amount * HUNDRED if target_amount > 0 else ZERO
        ),
    )

    sources: List[SourceSummary] = [
        SourceSummary(source=source, count=source_counts[source], revenue=round_amount(source_values[source]))
        for source in sorted(source_counts, key=lambda key: (-source_values[key], -source_counts[key], key))
    ]
    return PipelineBreakdown(
        metrics=metrics,
        stages=[
            StageSummary(stage=stage, count=stage_counts[stage], value=round_amount(stage_values[stage]))
            for stage in PIPELINE_STAGES
        ],
        sources=sources,
        aging=[
            AgingBucket(
                id=bucket_id,
                label=label,
                deals=bucket_deals[index],
                value=round_amount(bucket_values[index]),
                percentage=round_amount(
                    Decimal(bucket_deals[index]) / Decimal(len(active)) * HUNDRED if active else ZERO
                ),
            )
            for index, (bucket_id, label, _, _) in enumerate(AGING_BUCKETS)
        ],
    )
