from __future__ import annotations

import logging
from typing import List

from src.models.targets import UserRecord
from src.repositories.users_repository import UsersRepository
from src.schemas.users import UserFilters, UserView

logger = logging.getLogger(__name__)


class UsersService:
    """Read-only roster used when assigning targets."""

    def __init__(self, repository: UsersRepository) -> None:
        self.repository = repository

    def list_users(self, filters: UserFilters) -> List[UserView]:
        records = self.repository.list_users(
            search=filters.search,
            role=filters.role,
            is_active=filters.is_active,
        )
        logger.info("Listed %s users (role=%s active=%s)", len(records), filters.role, filters.is_active)
        return [self._to_view(record) for record in records]

    @staticmethod
    def _to_view(record: UserRecord) -> UserView:
        return UserView(
            id=record.id,
            name=record.display_name or record.email or record.id,
            first_name=record.first_name,
            last_name=record.last_name,
            email=record.email,
            role=record.role,
            is_active=record.is_active,
        )
