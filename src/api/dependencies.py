from __future__ import annotations

from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header

from src.core.errors import ForbiddenError, UnauthorizedError
from src.repositories.leads_repository import LeadsRepository
from src.repositories.targets_repository import TargetsRepository
from src.repositories.users_repository import UsersRepository
from src.schemas.targets import CurrentUser
from src.services.achievements_service import AchievementsService
from src.services.currency_service import CurrencyService
from src.services.pipeline_service import PipelineService
from src.services.targets_service import TargetsService
from src.services.users_service import UsersService

SUPPORTED_ROLES = frozenset({"ADMIN", "USER"})


@lru_cache
def get_targets_repository() -> TargetsRepository:
    return TargetsRepository()


@lru_cache
def get_leads_repository() -> LeadsRepository:
    return LeadsRepository()


@lru_cache
def get_users_repository() -> UsersRepository:
    return UsersRepository()


@lru_cache
def get_currency_service() -> CurrencyService:
    return CurrencyService()


def get_targets_service() -> TargetsService:
    return TargetsService(
        repository=get_targets_repository(),
        users_repository=get_users_repository(),
        currency_service=get_currency_service(),
    )


def get_achievements_service() -> AchievementsService:
    return AchievementsService(
        targets_repository=get_targets_repository(),
        leads_repository=get_leads_repository(),
        currency_service=get_currency_service(),
    )


def get_pipeline_service() -> PipelineService:
    return PipelineService(
        targets_repository=get_targets_repository(),
        leads_repository=get_leads_repository(),
        currency_service=get_currency_service(),
    )


def get_users_service() -> UsersService:
    return UsersService(repository=get_users_repository())


def get_current_user(
    x_user_id: Optional[str] = Header(default=None),
    x_user_role: Optional[str] = Header(default=None),
) -> CurrentUser:
    # Identity is asserted by the upstream gateway that terminates the session.
    user_id = (x_user_id or "").strip()
    if not user_id:
        raise UnauthorizedError("Missing authenticated user")
    role = (x_user_role or "USER").strip().upper()
    if role not in SUPPORTED_ROLES:
        raise UnauthorizedError("Unsupported user role")
    return CurrentUser(id=user_id, role=role)


def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not user.is_admin:
        raise ForbiddenError("Administrator access required")
    return user
