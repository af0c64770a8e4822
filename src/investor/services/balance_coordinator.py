"""Atomic ledger + cash mutations."""

import logging
import uuid
from dataclasses import replace
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import sessionmaker

from investor.core.exceptions import NotFoundError, ValidationError
from investor.core.money import ZERO, to_money
from investor.core.timezone import now_utc, to_utc
from investor.domain.models import (
    Operation,
    Transaction,
    TransactionCreate,
    TransactionUpdate,
    UpdateCashPolicy,
)
from investor.domain.views import BatchResult
from investor.repositories.sqlalchemy.unit_of_work import unit_of_work

logger = logging.getLogger(__name__)

MAX_BATCH_SIZE = 10


def normalize_ticker(ticker: Optional[str]) -> str:
    return (ticker or "").strip().upper()


class BalanceCoordinator:
    """
    Applies every ledger write together with its cash effect.

    Each operation runs in one unit of work: the ledger row is written
    first, then the owner's cash row is locked and rewritten, then the
    holdings for the affected tickers are marked stale. Either all of it
    commits or none of it does.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        update_cash_policy: UpdateCashPolicy = UpdateCashPolicy.REAPPLY,
    ):
        self._session_factory = session_factory
        self._update_cash_policy = update_cash_policy

    def apply_transaction(self, command: TransactionCreate) -> Transaction:
        """Record a trade and apply its cash delta atomically."""
        transaction = self._build(command)

        with unit_of_work(self._session_factory) as uow:
            created = uow.transactions.create(transaction)
            uow.users.apply_cash_delta(created.user_id, created.cash_delta)
            uow.holdings.invalidate(created.user_id, [created.ticker])

        logger.info(
            f"Recorded {created.operation.value} {created.share_count} {created.ticker} "
            f"@ {created.price} for user {created.user_id} (cash {created.cash_delta:+})"
        )
        return created

    def reverse_transaction(self, user_id: str, transaction_id: str) -> Transaction:
        """Delete an owned trade and undo its cash effect atomically."""
        with unit_of_work(self._session_factory) as uow:
            removed = uow.transactions.delete(user_id, transaction_id)
            uow.users.apply_cash_delta(user_id, -removed.cash_delta)
            uow.holdings.invalidate(user_id, [removed.ticker])

        logger.info(f"Reversed transaction {transaction_id} for user {user_id}")
        return removed

    def update_transaction(
        self,
        user_id: str,
        transaction_id: str,
        patch: TransactionUpdate,
    ) -> Transaction:
        """
        Edit an owned trade.

        Cash handling follows the configured policy: REAPPLY moves cash by
        (new delta - old delta), IGNORE leaves cash alone, RESTRICT rejects
        changes to operation, price or share count.
        """
        with unit_of_work(self._session_factory) as uow:
            existing = uow.transactions.get_for_user(user_id, transaction_id)
            if existing is None:
                raise NotFoundError("Transaction", transaction_id)

            merged = self._merge(existing, patch)
            if self._update_cash_policy == UpdateCashPolicy.RESTRICT and (
                merged.operation != existing.operation
                or merged.price != existing.price
                or merged.share_count != existing.share_count
            ):
                raise ValidationError(
                    "Operation, price and share count cannot be changed; "
                    "delete and re-create the transaction instead"
                )

            updated = uow.transactions.update(merged)

            if self._update_cash_policy == UpdateCashPolicy.REAPPLY:
                delta = updated.cash_delta - existing.cash_delta
                if delta != ZERO:
                    uow.users.apply_cash_delta(user_id, delta)

            uow.holdings.invalidate(user_id, {existing.ticker, updated.ticker})

        logger.info(f"Updated transaction {transaction_id} for user {user_id}")
        return updated

    def apply_batch(self, user_id: str, commands: list[TransactionCreate]) -> BatchResult:
        """
        Record up to ``MAX_BATCH_SIZE`` trades as one unit.

        Every item is validated before anything is written; a single invalid
        item rejects the whole batch. The summed cash delta is applied once.
        """
        if not commands:
            raise ValidationError("Batch must contain at least one transaction")
        if len(commands) > MAX_BATCH_SIZE:
            raise ValidationError(f"Batch cannot contain more than {MAX_BATCH_SIZE} transactions")

        transactions = []
        for index, command in enumerate(commands):
            if command.user_id != user_id:
                raise ValidationError(f"Item {index}: transaction belongs to another user")
            try:
                transactions.append(self._build(command))
            except ValidationError as e:
                raise ValidationError(f"Item {index}: {e.message}") from e

        with unit_of_work(self._session_factory) as uow:
            created = [uow.transactions.create(txn) for txn in transactions]
            cash_change = to_money(sum((txn.cash_delta for txn in created), ZERO))
            uow.users.apply_cash_delta(user_id, cash_change)
            uow.holdings.invalidate(user_id, {txn.ticker for txn in created})

        logger.info(f"Recorded batch of {len(created)} for user {user_id} (cash {cash_change:+})")
        return BatchResult(transactions=created, cash_change=cash_change)

    def _build(self, command: TransactionCreate) -> Transaction:
        now = now_utc()
        transaction = Transaction(
            transaction_id=str(uuid.uuid4()),
            user_id=command.user_id,
            operation=command.operation,
            ticker=normalize_ticker(command.ticker),
            price=command.price,
            share_count=command.share_count,
            executed_at=command.executed_at,
            created_at=now,
        )
        return self._validated(transaction, now)

    def _merge(self, existing: Transaction, patch: TransactionUpdate) -> Transaction:
        merged = replace(existing)
        if patch.operation is not None:
            merged.operation = Operation(patch.operation)
        if patch.ticker is not None:
            merged.ticker = normalize_ticker(patch.ticker)
        if patch.price is not None:
            merged.price = patch.price
        if patch.share_count is not None:
            merged.share_count = patch.share_count
        if patch.executed_at is not None:
            merged.executed_at = patch.executed_at
        return self._validated(merged, now_utc())

    @staticmethod
    def _validated(transaction: Transaction, now) -> Transaction:
        """Check business invariants and normalize money/time fields."""
        if not transaction.ticker:
            raise ValidationError("Ticker is required")
        if transaction.price is None or Decimal(str(transaction.price)) <= 0:
            raise ValidationError("Price must be greater than 0")
        if transaction.share_count is None or transaction.share_count <= 0:
            raise ValidationError("Share count must be greater than 0")
        if transaction.executed_at is None:
            raise ValidationError("Execution time is required")

        transaction.price = to_money(transaction.price)
        transaction.executed_at = to_utc(transaction.executed_at)
        if transaction.executed_at > now:
            raise ValidationError("Execution time cannot be in the future")
        if transaction.price <= 0:
            raise ValidationError("Price must be greater than 0")
        return transaction
