"""SQLAlchemy ORM model definitions."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    Column,
    String,
    DateTime,
    Integer,
    Text,
    ForeignKey,
    Numeric,
    UniqueConstraint,
    Index,
    Enum as SqlEnum,
)
from sqlalchemy.orm import relationship

from investor.repositories.sqlalchemy.database import Base
from investor.domain.models.enums import Operation


def _utcnow() -> datetime:
    return datetime.utcnow()


class UserORM(Base):
    """SQLAlchemy model for User."""

    __tablename__ = "users"

    user_id = Column(String(36), primary_key=True)
    email = Column(String(255), unique=True, nullable=False)
    first_name = Column(String(100), nullable=False, default="")
    last_name = Column(String(100), nullable=False, default="")
    cash = Column(Numeric(precision=18, scale=2), nullable=False, default=Decimal("0.00"))
    # Bumped by every holdings invalidation; recompute compares-and-sets it
    holdings_generation = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=_utcnow)
    updated_at = Column(DateTime, nullable=True, onupdate=_utcnow)

    transactions = relationship("TransactionORM", back_populates="user")


class TransactionORM(Base):
    """SQLAlchemy model for Transaction (ledger entry)."""

    __tablename__ = "transactions"
    __table_args__ = (
        Index("ix_transactions_user_executed", "user_id", "executed_at"),
    )

    transaction_id = Column(String(36), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.user_id"), nullable=False)
    operation = Column(SqlEnum(Operation), nullable=False)
    ticker = Column(String(5), nullable=False)
    price = Column(Numeric(precision=18, scale=2), nullable=False)
    share_count = Column(Integer, nullable=False)
    executed_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, nullable=False, default=_utcnow)
    updated_at = Column(DateTime, nullable=True, onupdate=_utcnow)

    user = relationship("UserORM", back_populates="transactions")


class HoldingORM(Base):
    """SQLAlchemy model for Holding (derived projection, one row per user/ticker)."""

    __tablename__ = "holdings"
    __table_args__ = (
        UniqueConstraint("user_id", "ticker", name="uq_holdings_user_ticker"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(36), ForeignKey("users.user_id"), nullable=False)
    ticker = Column(String(5), nullable=False)
    total_shares = Column(Integer, nullable=False, default=0)
    average_price = Column(Numeric(precision=18, scale=2), nullable=False, default=Decimal("0.00"))
    total_spent = Column(Numeric(precision=18, scale=2), nullable=False, default=Decimal("0.00"))
    total_value = Column(Numeric(precision=18, scale=2), nullable=True)
    last_price = Column(Numeric(precision=18, scale=2), nullable=True)
    stop_loss = Column(Numeric(precision=18, scale=2), nullable=False, default=Decimal("0.00"))
    entry_reason = Column(Text, nullable=False, default="")
    last_synced_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=_utcnow)
    updated_at = Column(DateTime, nullable=True, onupdate=_utcnow)
