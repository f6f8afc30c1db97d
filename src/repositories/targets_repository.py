from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from src.core.supabase import SupabaseClient
from src.models.targets import MonthlyTargetRecord

MAX_QUERY_ROWS = 5000
TARGET_SELECT = (
    "id,user_id,year,month,amount,currency,period,target_type,created_by,created_at,updated_at,"
    "user:users!targets_user_id_fkey(id,first_name,last_name,email,role)"
)


class TargetsRepository:
    def __init__(self) -> None:
        self.client = SupabaseClient()

    def list_monthly_targets(
        self,
        year: Optional[int] = None,
        month: Optional[int] = None,
        user_id: Optional[str] = None,
    ) -> List[MonthlyTargetRecord]:
        filters: List[Tuple[str, str]] = [
            ("period", "eq.MONTHLY"),
            ("target_type", "eq.USER"),
        ]
        if year is not None:
            filters.append(("year", f"eq.{year}"))
        if month is not None:
            filters.append(("month", f"eq.{month}"))
        if user_id:
            filters.append(("user_id", f"eq.{user_id}"))
        rows, _ = self.client.select(
            table="targets",
            select=TARGET_SELECT,
            filters=filters,
            order="year.desc,month.desc",
            limit=MAX_QUERY_ROWS,
        )
        return [MonthlyTargetRecord.model_validate(row) for row in rows]

    def get_target(self, target_id: str) -> Optional[MonthlyTargetRecord]:
        rows, _ = self.client.select(
            table="targets",
            select=TARGET_SELECT,
            filters=[("id", f"eq.{target_id}")],
            limit=1,
        )
        if not rows:
            return None
        return MonthlyTargetRecord.model_validate(rows[0])

    def upsert_monthly_target(self, payload: Dict[str, Any]) -> MonthlyTargetRecord:
        rows = self.client.insert(
            table="targets",
            payload=payload,
            upsert=True,
            on_conflict="user_id,period,year,month",
            select=TARGET_SELECT,
        )
        return MonthlyTargetRecord.model_validate(rows[0])

    def delete_target(self, target_id: str) -> bool:
        rows = self.client.delete(table="targets", filters=[("id", f"eq.{target_id}")])
        return bool(rows)
