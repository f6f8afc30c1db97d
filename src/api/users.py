from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import get_users_service, require_admin
from src.schemas.targets import CurrentUser
from src.schemas.users import UserFilters, UserView
from src.services.users_service import UsersService
from src.shared.response import ResponseEnvelope, build_meta, build_pagination

router = APIRouter(prefix="/users", tags=["users"])


def get_user_filters(
    q: Optional[str] = Query(default=None, max_length=100),
    role: Optional[str] = Query(default=None, pattern="^(ADMIN|USER)$"),
    is_active: Optional[bool] = Query(default=None, alias="isActive"),
) -> UserFilters:
    return UserFilters(search=q, role=role, is_active=is_active)


@router.get("")
def list_users(
    filters: UserFilters = Depends(get_user_filters),
    _: CurrentUser = Depends(require_admin),
    service: UsersService = Depends(get_users_service),
) -> ResponseEnvelope[List[UserView]]:
    items = service.list_users(filters)
    pagination = build_pagination(page=1, page_size=max(len(items), 1), total_items=len(items))
    return ResponseEnvelope(data=items, pagination=pagination, meta=build_meta("users", "now"))
