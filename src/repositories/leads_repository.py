from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import List, Optional, Sequence, Tuple

from src.core.supabase import SupabaseClient
from src.models.targets import LeadRecord, WonDealRecord

logger = logging.getLogger(__name__)

MAX_QUERY_ROWS = 10000


class LeadsRepository:
    def __init__(self) -> None:
        self.client = SupabaseClient()

    @staticmethod
    def _to_iso_utc(value: datetime) -> str:
        return value.astimezone(timezone.utc).isoformat()

    def list_won_deals(
        self,
        start_date: date,
        end_date: date,
        statuses: Sequence[str],
        owner_id: Optional[str] = None,
    ) -> List[WonDealRecord]:
        # Upper bound is exclusive on the following midnight so the whole last day is kept.
        window_start = datetime.combine(start_date, time.min, tzinfo=timezone.utc)
        window_end = datetime.combine(end_date + timedelta(days=1), time.min, tzinfo=timezone.utc)
        status_filter = ",".join(statuses)
        filters: List[Tuple[str, str]] = [
            ("status", f"in.({status_filter})"),
            ("project_value", "not.is.null"),
            ("created_at", f"gte.{self._to_iso_utc(window_start)}"),
            ("created_at", f"lt.{self._to_iso_utc(window_end)}"),
        ]
        if owner_id:
            filters.append(("owner_id", f"eq.{owner_id}"))
        rows, _ = self.client.select(
            table="leads",
            select="id,owner_id,project_value,currency,status,created_at",
            filters=filters,
            order="created_at.asc",
            limit=MAX_QUERY_ROWS,
        )
        if len(rows) >= MAX_QUERY_ROWS:
            logger.warning(
                "Won deal query for %s..%s hit the %s row limit; achievements may be understated",
                start_date,
                end_date,
                MAX_QUERY_ROWS,
            )
        return [
            WonDealRecord(
                id=str(row["id"]),
                owner_id=row.get("owner_id"),
                amount=row["project_value"],
                currency=row.get("currency"),
                closed_at=row["created_at"],
                status=row.get("status"),
            )
            for row in rows
        ]

    def list_leads(
        self,
        start_date: date,
        end_date: date,
        owner_id: Optional[str] = None,
    ) -> List[LeadRecord]:
        window_start = datetime.combine(start_date, time.min, tzinfo=timezone.utc)
        window_end = datetime.combine(end_date + timedelta(days=1), time.min, tzinfo=timezone.utc)
        filters: List[Tuple[str, str]] = [
            ("created_at", f"gte.{self._to_iso_utc(window_start)}"),
            ("created_at", f"lt.{self._to_iso_utc(window_end)}"),
        ]
        if owner_id:
            filters.append(("owner_id", f"eq.{owner_id}"))
        rows, _ = self.client.select(
            table="leads",
            select="id,owner_id,project_value,currency,status,source,is_active,created_at",
            filters=filters,
            order="created_at.asc",
            limit=MAX_QUERY_ROWS,
        )
        if len(rows) >= MAX_QUERY_ROWS:
            logger.warning("Pipeline query for %s..%s hit the %s row limit", start_date, end_date, MAX_QUERY_ROWS)
        return [
            LeadRecord(
                id=str(row["id"]),
                owner_id=row.get("owner_id"),
                amount=row.get("project_value"),
                currency=row.get("currency"),
                status=row.get("status"),
                source=row.get("source"),
                is_active=row.get("is_active"),
                created_at=row["created_at"],
            )
            for row in rows
        ]
