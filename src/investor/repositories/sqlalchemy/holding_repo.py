"""SQLAlchemy implementation of HoldingRepository."""

from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from investor.core.money import to_money, ZERO
from investor.core.timezone import from_storage, now_utc, to_storage
from investor.domain.models import Holding, ComputedHolding
from investor.repositories.sqlalchemy.orm_models import HoldingORM, UserORM


def _money_or_none(value) -> Optional[Decimal]:
    return to_money(value) if value is not None else None


class SqlAlchemyHoldingRepository:
    """SQLAlchemy-backed holdings projection repository."""

    def __init__(self, db: Session):
        self._db = db

    def list_for_user(self, user_id: str) -> list[Holding]:
        """Get all holding rows for a user, ordered by ticker."""
        orm_rows = (
            self._db.query(HoldingORM)
            .filter(HoldingORM.user_id == user_id)
            .order_by(HoldingORM.ticker)
            .all()
        )
        return [self._to_domain(h) for h in orm_rows]

    def get(self, user_id: str, ticker: str) -> Optional[Holding]:
        orm_row = self._get_orm(user_id, ticker)
        return self._to_domain(orm_row) if orm_row else None

    def invalidate(self, user_id: str, tickers: Iterable[str]) -> int:
        """
        Null out last_synced_at for the given tickers; returns rows touched.

        The owner's holdings generation is bumped even when no row matches,
        so a recompute that started earlier cannot stamp a snapshot missing
        a brand new ticker.
        """
        tickers = list(tickers)
        if not tickers:
            return 0
        count = (
            self._db.query(HoldingORM)
            .filter(HoldingORM.user_id == user_id, HoldingORM.ticker.in_(tickers))
            .update(
                {
                    HoldingORM.last_synced_at: None,
                    HoldingORM.updated_at: to_storage(now_utc()),
                },
                synchronize_session=False,
            )
        )
        self._db.query(UserORM).filter(UserORM.user_id == user_id).update(
            {UserORM.holdings_generation: UserORM.holdings_generation + 1},
            synchronize_session=False,
        )
        self._db.flush()
        return int(count)

    def generation(self, user_id: str) -> int:
        """Current holdings generation of the owner (0 for unknown users)."""
        value = (
            self._db.query(UserORM.holdings_generation)
            .filter(UserORM.user_id == user_id)
            .scalar()
        )
        return int(value or 0)

    def claim_generation(self, user_id: str, expected: int) -> bool:
        """
        Lock the owner's row if the generation is still ``expected``.

        The no-op UPDATE takes the row (or database) write lock, so no
        invalidation can commit between this check and the caller's commit.
        """
        count = (
            self._db.query(UserORM)
            .filter(UserORM.user_id == user_id, UserORM.holdings_generation == expected)
            .update(
                {
                    UserORM.holdings_generation: UserORM.holdings_generation,
                    UserORM.updated_at: UserORM.updated_at,
                },
                synchronize_session=False,
            )
        )
        return count == 1

    def upsert_position(
        self, user_id: str, computed: ComputedHolding, synced_at: datetime
    ) -> Holding:
        """Write position fields for a ticker, leaving annotations untouched."""

        def apply(row: HoldingORM) -> None:
            row.total_shares = computed.total_shares
            row.average_price = to_money(computed.average_price)
            row.total_spent = to_money(computed.total_spent)
            row.total_value = _money_or_none(computed.total_value)
            row.last_price = _money_or_none(computed.last_price)
            row.last_synced_at = to_storage(synced_at)
            row.updated_at = to_storage(now_utc())

        return self._upsert(user_id, computed.ticker, apply)

    def zero_missing(self, user_id: str, keep: Iterable[str], synced_at: datetime) -> int:
        """Zero and stamp every row whose ticker is not in ``keep``."""
        keep = set(keep)
        count = 0
        orm_rows = self._db.query(HoldingORM).filter(HoldingORM.user_id == user_id).all()
        for row in orm_rows:
            if row.ticker in keep:
                continue
            row.total_shares = 0
            row.average_price = ZERO
            row.total_spent = ZERO
            row.total_value = ZERO if row.last_price is not None else None
            row.last_synced_at = to_storage(synced_at)
            row.updated_at = to_storage(now_utc())
            count += 1
        self._db.flush()
        return count

    def upsert_annotation(
        self, user_id: str, ticker: str, stop_loss: Decimal, entry_reason: str
    ) -> Holding:
        """Set stop_loss/entry_reason; a row created here starts stale."""

        def apply(row: HoldingORM) -> None:
            row.stop_loss = to_money(stop_loss)
            row.entry_reason = entry_reason
            row.updated_at = to_storage(now_utc())

        return self._upsert(user_id, ticker, apply)

    def _upsert(self, user_id: str, ticker: str, apply) -> Holding:
        orm_row = self._get_orm(user_id, ticker)
        if orm_row is None:
            try:
                # Savepoint so a lost insert race only rolls back this row
                with self._db.begin_nested():
                    orm_row = HoldingORM(
                        user_id=user_id,
                        ticker=ticker,
                        total_shares=0,
                        average_price=ZERO,
                        total_spent=ZERO,
                        stop_loss=ZERO,
                        entry_reason="",
                        last_synced_at=None,
                        created_at=to_storage(now_utc()),
                    )
                    apply(orm_row)
                    self._db.add(orm_row)
                    self._db.flush()
                return self._to_domain(orm_row)
            except IntegrityError:
                orm_row = self._get_orm(user_id, ticker)
                if orm_row is None:
                    raise

        apply(orm_row)
        self._db.flush()
        return self._to_domain(orm_row)

    def _get_orm(self, user_id: str, ticker: str) -> Optional[HoldingORM]:
        return (
            self._db.query(HoldingORM)
            .filter(HoldingORM.user_id == user_id, HoldingORM.ticker == ticker)
            .first()
        )

    @staticmethod
    def _to_domain(orm: HoldingORM) -> Holding:
        """Convert ORM model to domain model."""
        return Holding(
            user_id=orm.user_id,
            ticker=orm.ticker,
            total_shares=int(orm.total_shares or 0),
            average_price=to_money(orm.average_price or ZERO),
            total_spent=to_money(orm.total_spent or ZERO),
            total_value=_money_or_none(orm.total_value),
            last_price=_money_or_none(orm.last_price),
            stop_loss=to_money(orm.stop_loss or ZERO),
            entry_reason=orm.entry_reason or "",
            last_synced_at=from_storage(orm.last_synced_at),
            created_at=from_storage(orm.created_at),
            updated_at=from_storage(orm.updated_at),
        )
