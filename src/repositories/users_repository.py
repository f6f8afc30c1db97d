from __future__ import annotations

import re
from typing import List, Optional, Tuple

from src.core.supabase import SupabaseClient
from src.models.targets import UserRecord

MAX_QUERY_ROWS = 2000
USER_SELECT = "id,first_name,last_name,email,role,is_active,created_at"
# Characters with meaning inside a PostgREST or=(...) expression.
_SEARCH_RESERVED = re.compile(r"[,()*\\]")


class UsersRepository:
    def __init__(self) -> None:
        self.client = SupabaseClient()

    def list_users(
        self,
        search: Optional[str] = None,
        role: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> List[UserRecord]:
        filters: List[Tuple[str, str]] = []
        term = _SEARCH_RESERVED.sub(" ", search or "").strip()
        if term:
            pattern = f"*{term}*"
            filters.append(
                (
                    "or",
                    f"(first_name.ilike.{pattern},last_name.ilike.{pattern},email.ilike.{pattern})",
                )
            )
        if role:
            filters.append(("role", f"eq.{role}"))
        if is_active is not None:
            filters.append(("is_active", f"is.{str(is_active).lower()}"))
        rows, _ = self.client.select(
            table="users",
            select=USER_SELECT,
            filters=filters,
            order="first_name.asc,last_name.asc",
            limit=MAX_QUERY_ROWS,
        )
        return [UserRecord.model_validate(row) for row in rows]

    def get_user(self, user_id: str) -> Optional[UserRecord]:
        rows, _ = self.client.select(
            table="users",
            select=USER_SELECT,
            filters=[("id", f"eq.{user_id}")],
            limit=1,
        )
        if not rows:
            return None
        return UserRecord.model_validate(rows[0])
