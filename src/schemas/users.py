from __future__ import annotations

from typing import Optional

from pydantic import ConfigDict

from src.schemas.targets import UserRole
from src.shared.base import BaseSchema


class UserFilters(BaseSchema):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    search: Optional[str] = None
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None


class UserView(BaseSchema):
    id: str
    name: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None
    is_active: Optional[bool] = None
