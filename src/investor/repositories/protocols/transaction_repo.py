"""Transaction repository protocol."""

from typing import Protocol, Optional

from investor.domain.models import Transaction
from investor.domain.views import TransactionQuery


class TransactionRepository(Protocol):
    """Interface for transaction (ledger) data access."""

    def create(self, transaction: Transaction) -> Transaction:
        """Persist a new transaction."""
        ...

    def get_for_user(self, user_id: str, transaction_id: str) -> Optional[Transaction]:
        """Retrieve an owned transaction by ID."""
        ...

    def update(self, transaction: Transaction) -> Transaction:
        """Update an existing transaction."""
        ...

    def delete(self, user_id: str, transaction_id: str) -> Transaction:
        """Delete an owned transaction (hard delete)."""
        ...

    def list_page(self, user_id: str, query: TransactionQuery) -> tuple[list[Transaction], int]:
        """Filtered, sorted page plus total match count."""
        ...

    def list_chronological(self, user_id: str, limit: Optional[int] = None) -> list[Transaction]:
        """All transactions for a user, oldest first."""
        ...
