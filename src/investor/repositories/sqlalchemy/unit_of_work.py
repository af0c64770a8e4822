"""Unit of work: one session, one database transaction, all-or-nothing."""

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from investor.core.exceptions import AtomicWriteAbortedError
from investor.repositories.protocols import (
    HoldingRepository,
    TransactionRepository,
    UserRepository,
)
from investor.repositories.sqlalchemy.holding_repo import SqlAlchemyHoldingRepository
from investor.repositories.sqlalchemy.transaction_repo import SqlAlchemyTransactionRepository
from investor.repositories.sqlalchemy.user_repo import SqlAlchemyUserRepository

logger = logging.getLogger(__name__)


class UnitOfWork:
    """Repositories sharing a single session."""

    def __init__(self, session: Session):
        self.session = session
        self.users: UserRepository = SqlAlchemyUserRepository(session)
        self.transactions: TransactionRepository = SqlAlchemyTransactionRepository(session)
        self.holdings: HoldingRepository = SqlAlchemyHoldingRepository(session)


@contextmanager
def unit_of_work(session_factory: sessionmaker) -> Iterator[UnitOfWork]:
    """
    Provide a transactional scope.

    Commits when the block exits normally. Any exception rolls the session
    back and propagates; database driver failures are re-raised as
    ``AtomicWriteAbortedError``. The session is always closed.
    """
    session = session_factory()
    try:
        yield UnitOfWork(session)
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Unit of work aborted by database error")
        raise AtomicWriteAbortedError(f"Write aborted and rolled back: {exc.__class__.__name__}") from exc
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
