"""User repository protocol."""

from decimal import Decimal
from typing import Protocol, Optional

from investor.domain.models import User


class UserRepository(Protocol):
    """Interface for user data access."""

    def create(self, user: User) -> User:
        """Persist a new user."""
        ...

    def get_by_id(self, user_id: str) -> Optional[User]:
        """Retrieve user by ID."""
        ...

    def get_by_email(self, email: str) -> Optional[User]:
        ...

    def update_names(self, user_id: str, first_name: str, last_name: str) -> User:
        ...

    def apply_cash_delta(self, user_id: str, delta: Decimal) -> User:
        """Add a signed amount to the user's cash balance under a row lock."""
        ...
