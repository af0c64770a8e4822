"""Ledger service: transaction reads and the write facade."""

import logging
from typing import Optional

from sqlalchemy.orm import sessionmaker

from investor.core.exceptions import LedgerCapExceededError, NotFoundError, ValidationError
from investor.domain.models import Transaction, TransactionCreate, TransactionUpdate
from investor.domain.views import BatchResult, TransactionPage, TransactionQuery
from investor.repositories.sqlalchemy.unit_of_work import unit_of_work
from investor.services.balance_coordinator import BalanceCoordinator
from investor.services.cache_service import CacheService, transactions_key

logger = logging.getLogger(__name__)


class LedgerService:
    """
    Service for reading and writing the transaction ledger.

    Writes go through the balance coordinator (ledger row, cash and holding
    invalidation in one unit); once committed, the owner's read-through
    cache entries are dropped.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        coordinator: BalanceCoordinator,
        cache: Optional[CacheService] = None,
        fetch_cap: int = 1000,
    ):
        self._session_factory = session_factory
        self._coordinator = coordinator
        self._cache = cache
        self._fetch_cap = fetch_cap

    # Reads

    def list_transactions(self, user_id: str, query: TransactionQuery) -> TransactionPage:
        """Filtered, sorted, paginated ledger listing (read-through cached)."""
        if query.page < 1:
            raise ValidationError("Page must be at least 1")
        if query.page_size < 1:
            raise ValidationError("Page size must be at least 1")

        def load() -> TransactionPage:
            with unit_of_work(self._session_factory) as uow:
                items, total = uow.transactions.list_page(user_id, query)
            return TransactionPage(
                items=items, total=total, page=query.page, page_size=query.page_size
            )

        if self._cache is None:
            return load()
        return self._cache.transactions.get_or_load(
            transactions_key(user_id, query.cache_suffix()), load
        )

    def get_transaction(self, user_id: str, transaction_id: str) -> Transaction:
        """Get an owned transaction by ID."""
        with unit_of_work(self._session_factory) as uow:
            transaction = uow.transactions.get_for_user(user_id, transaction_id)
        if transaction is None:
            raise NotFoundError("Transaction", transaction_id)
        return transaction

    def get_all_unpaginated(self, user_id: str) -> list[Transaction]:
        """
        Full ledger in ascending execution order.

        Raises:
            LedgerCapExceededError: if the ledger is larger than the fetch cap
        """
        with unit_of_work(self._session_factory) as uow:
            transactions = uow.transactions.list_chronological(user_id, limit=self._fetch_cap + 1)
        if len(transactions) > self._fetch_cap:
            logger.warning(f"Ledger for user {user_id} exceeds fetch cap {self._fetch_cap}")
            raise LedgerCapExceededError(user_id, self._fetch_cap)
        return transactions

    # Writes

    def create_transaction(self, command: TransactionCreate) -> Transaction:
        created = self._coordinator.apply_transaction(command)
        self._invalidate_cache(command.user_id)
        return created

    def update_transaction(
        self, user_id: str, transaction_id: str, patch: TransactionUpdate
    ) -> Transaction:
        updated = self._coordinator.update_transaction(user_id, transaction_id, patch)
        self._invalidate_cache(user_id)
        return updated

    def delete_transaction(self, user_id: str, transaction_id: str) -> Transaction:
        removed = self._coordinator.reverse_transaction(user_id, transaction_id)
        self._invalidate_cache(user_id)
        return removed

    def create_batch(self, user_id: str, commands: list[TransactionCreate]) -> BatchResult:
        result = self._coordinator.apply_batch(user_id, commands)
        self._invalidate_cache(user_id)
        return result

    def _invalidate_cache(self, user_id: str) -> None:
        if self._cache is not None:
            self._cache.invalidate_user(user_id)
