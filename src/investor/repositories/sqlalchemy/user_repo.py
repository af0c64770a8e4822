"""SQLAlchemy implementation of UserRepository."""

from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from investor.core.exceptions import NotFoundError
from investor.core.money import to_money
from investor.core.timezone import from_storage, now_utc, to_storage
from investor.domain.models import User
from investor.repositories.sqlalchemy.orm_models import UserORM


class SqlAlchemyUserRepository:
    """SQLAlchemy-backed user repository. Flushes only; the unit of work commits."""

    def __init__(self, db: Session):
        self._db = db

    def create(self, user: User) -> User:
        """Persist a new user."""
        orm_user = UserORM(
            user_id=user.user_id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            cash=to_money(user.cash),
            created_at=to_storage(user.created_at or now_utc()),
        )
        self._db.add(orm_user)
        self._db.flush()
        return self._to_domain(orm_user)

    def get_by_id(self, user_id: str) -> Optional[User]:
        """Retrieve user by ID."""
        orm_user = self._db.query(UserORM).filter(UserORM.user_id == user_id).first()
        return self._to_domain(orm_user) if orm_user else None

    def get_by_email(self, email: str) -> Optional[User]:
        orm_user = self._db.query(UserORM).filter(UserORM.email == email).first()
        return self._to_domain(orm_user) if orm_user else None

    def update_names(self, user_id: str, first_name: str, last_name: str) -> User:
        """Rewrite a user's display names."""
        orm_user = self._get_orm(user_id)
        orm_user.first_name = first_name
        orm_user.last_name = last_name
        orm_user.updated_at = to_storage(now_utc())
        self._db.flush()
        return self._to_domain(orm_user)

    def apply_cash_delta(self, user_id: str, delta: Decimal) -> User:
        """
        Add ``delta`` to the user's cash under a row lock.

        The row is read with SELECT ... FOR UPDATE so concurrent writers to
        the same user serialize on it (SQLite ignores the clause; its write
        lock is already held by the caller's earlier insert).
        """
        orm_user = (
            self._db.query(UserORM)
            .filter(UserORM.user_id == user_id)
            .with_for_update()
            .first()
        )
        if not orm_user:
            raise NotFoundError("User", user_id)

        orm_user.cash = to_money(Decimal(str(orm_user.cash)) + delta)
        orm_user.updated_at = to_storage(now_utc())
        self._db.flush()
        return self._to_domain(orm_user)

    def _get_orm(self, user_id: str) -> UserORM:
        orm_user = self._db.query(UserORM).filter(UserORM.user_id == user_id).first()
        if not orm_user:
            raise NotFoundError("User", user_id)
        return orm_user

    @staticmethod
    def _to_domain(orm: UserORM) -> User:
        """Convert ORM model to domain model."""
        return User(
            user_id=orm.user_id,
            email=orm.email,
            first_name=orm.first_name or "",
            last_name=orm.last_name or "",
            cash=to_money(Decimal(str(orm.cash))) if orm.cash is not None else Decimal("0.00"),
            created_at=from_storage(orm.created_at),
            updated_at=from_storage(orm.updated_at),
        )
