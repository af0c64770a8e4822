"""SQLAlchemy implementation of TransactionRepository."""

from typing import Optional

from sqlalchemy import and_, func
from sqlalchemy.orm import Session

from investor.core.exceptions import NotFoundError
from investor.core.money import to_money
from investor.core.timezone import from_storage, now_utc, to_storage
from investor.domain.models import Transaction, SortField, SortOrder
from investor.domain.views import TransactionQuery
from investor.repositories.sqlalchemy.orm_models import TransactionORM

# Sort key per field; PRICE sorts by total value, not unit price
_SORT_COLUMNS = {
    SortField.EXECUTED_AT: TransactionORM.executed_at,
    SortField.CREATED_AT: TransactionORM.created_at,
    SortField.TICKER: TransactionORM.ticker,
    SortField.OPERATION: TransactionORM.operation,
    SortField.PRICE: TransactionORM.price * TransactionORM.share_count,
    SortField.SHARE_COUNT: TransactionORM.share_count,
}


class SqlAlchemyTransactionRepository:
    """SQLAlchemy-backed ledger repository. Flushes only; the unit of work commits."""

    def __init__(self, db: Session):
        self._db = db

    def create(self, transaction: Transaction) -> Transaction:
        """Persist a new transaction."""
        orm_txn = self._to_orm(transaction)
        self._db.add(orm_txn)
        self._db.flush()
        return self._to_domain(orm_txn)

    def get_for_user(self, user_id: str, transaction_id: str) -> Optional[Transaction]:
        """Retrieve a transaction only if ``user_id`` owns it."""
        orm_txn = self._query_owned(user_id, transaction_id).first()
        return self._to_domain(orm_txn) if orm_txn else None

    def update(self, transaction: Transaction) -> Transaction:
        """Update an existing transaction."""
        orm_txn = self._query_owned(transaction.user_id, transaction.transaction_id).first()
        if not orm_txn:
            raise NotFoundError("Transaction", transaction.transaction_id)

        orm_txn.operation = transaction.operation
        orm_txn.ticker = transaction.ticker
        orm_txn.price = transaction.price
        orm_txn.share_count = transaction.share_count
        orm_txn.executed_at = to_storage(transaction.executed_at)
        orm_txn.updated_at = to_storage(now_utc())

        self._db.flush()
        return self._to_domain(orm_txn)

    def delete(self, user_id: str, transaction_id: str) -> Transaction:
        """Hard-delete an owned transaction and return what was removed."""
        orm_txn = self._query_owned(user_id, transaction_id).first()
        if not orm_txn:
            raise NotFoundError("Transaction", transaction_id)
        removed = self._to_domain(orm_txn)
        self._db.delete(orm_txn)
        self._db.flush()
        return removed

    def list_page(self, user_id: str, query: TransactionQuery) -> tuple[list[Transaction], int]:
        """Return one filtered, sorted page and the total match count."""
        conditions = [TransactionORM.user_id == user_id]
        if query.ticker:
            conditions.append(
                TransactionORM.ticker.istartswith(query.ticker.strip(), autoescape=True)
            )
        if query.operation:
            conditions.append(TransactionORM.operation == query.operation)
        if query.start_date:
            conditions.append(TransactionORM.executed_at >= to_storage(query.start_date))
        if query.end_date:
            conditions.append(TransactionORM.executed_at <= to_storage(query.end_date))

        base = self._db.query(TransactionORM).filter(and_(*conditions))
        total = (
            self._db.query(func.count(TransactionORM.transaction_id))
            .filter(and_(*conditions))
            .scalar()
        )

        column = _SORT_COLUMNS[query.sort_by]
        if query.sort_order == SortOrder.ASC:
            ordering = [column.asc(), TransactionORM.created_at.asc(), TransactionORM.transaction_id.asc()]
        else:
            ordering = [column.desc(), TransactionORM.created_at.desc(), TransactionORM.transaction_id.desc()]

        rows = base.order_by(*ordering).offset(query.offset).limit(query.page_size).all()
        return [self._to_domain(t) for t in rows], int(total or 0)

    def list_chronological(self, user_id: str, limit: Optional[int] = None) -> list[Transaction]:
        """List a user's ledger by ascending executed_at (ties by created_at)."""
        query = (
            self._db.query(TransactionORM)
            .filter(TransactionORM.user_id == user_id)
            .order_by(
                TransactionORM.executed_at.asc(),
                TransactionORM.created_at.asc(),
                TransactionORM.transaction_id.asc(),
            )
        )
        if limit is not None:
            query = query.limit(limit)
        return [self._to_domain(t) for t in query.all()]

    def _query_owned(self, user_id: str, transaction_id: str):
        return self._db.query(TransactionORM).filter(
            TransactionORM.transaction_id == transaction_id,
            TransactionORM.user_id == user_id,
        )

    def _to_orm(self, txn: Transaction) -> TransactionORM:
        """Convert domain model to ORM model."""
        return TransactionORM(
            transaction_id=txn.transaction_id,
            user_id=txn.user_id,
            operation=txn.operation,
            ticker=txn.ticker,
            price=txn.price,
            share_count=txn.share_count,
            executed_at=to_storage(txn.executed_at),
            created_at=to_storage(txn.created_at or now_utc()),
            updated_at=to_storage(txn.updated_at),
        )

    @staticmethod
    def _to_domain(orm: TransactionORM) -> Transaction:
        """Convert ORM model to domain model."""
        return Transaction(
            transaction_id=orm.transaction_id,
            user_id=orm.user_id,
            operation=orm.operation,
            ticker=orm.ticker,
            price=to_money(orm.price),
            share_count=int(orm.share_count),
            executed_at=from_storage(orm.executed_at),
            created_at=from_storage(orm.created_at),
            updated_at=from_storage(orm.updated_at),
        )
