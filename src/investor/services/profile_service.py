"""User profile reads and name updates behind the user cache."""

import logging
from typing import Optional

from sqlalchemy.orm import sessionmaker

from investor.core.exceptions import NotFoundError, ValidationError
from investor.domain.models import User
from investor.repositories.sqlalchemy.unit_of_work import unit_of_work
from investor.services.cache_service import CacheService, user_key

logger = logging.getLogger(__name__)


class ProfileService:
    def __init__(self, session_factory: sessionmaker, cache: Optional[CacheService] = None):
        self._session_factory = session_factory
        self._cache = cache

    def get_profile(self, user_id: str) -> User:
        """Return the user, served from the user cache when warm."""

        def load() -> User:
            with unit_of_work(self._session_factory) as uow:
                user = uow.users.get_by_id(user_id)
            if user is None:
                raise NotFoundError("User", user_id)
            return user

        if self._cache is None:
            return load()
        return self._cache.users.get_or_load(user_key(user_id), load)

    def update_names(
        self,
        user_id: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
    ) -> User:
        """Change display names; unset arguments keep their current value."""
        with unit_of_work(self._session_factory) as uow:
            current = uow.users.get_by_id(user_id)
            if current is None:
                raise NotFoundError("User", user_id)
            first = current.first_name if first_name is None else first_name.strip()
            last = current.last_name if last_name is None else last_name.strip()
            if not first or not last:
                raise ValidationError("First and last name cannot be empty")
            updated = uow.users.update_names(user_id, first, last)

        if self._cache is not None:
            self._cache.invalidate_user(user_id)
        logger.info(f"Updated profile names for user {user_id}")
        return updated
