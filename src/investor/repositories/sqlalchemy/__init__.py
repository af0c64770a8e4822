"""SQLAlchemy repository implementations."""

from investor.repositories.sqlalchemy.database import (
    build_engine,
    build_session_factory,
    init_db,
    Base,
)
from investor.repositories.sqlalchemy.user_repo import SqlAlchemyUserRepository
from investor.repositories.sqlalchemy.transaction_repo import SqlAlchemyTransactionRepository
from investor.repositories.sqlalchemy.holding_repo import SqlAlchemyHoldingRepository
from investor.repositories.sqlalchemy.unit_of_work import UnitOfWork, unit_of_work

__all__ = [
    "build_engine",
    "build_session_factory",
    "init_db",
    "Base",
    "SqlAlchemyUserRepository",
    "SqlAlchemyTransactionRepository",
    "SqlAlchemyHoldingRepository",
    "UnitOfWork",
    "unit_of_work",
]
