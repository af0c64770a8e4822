"""Transaction domain model and write commands."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from investor.core.money import to_money
from investor.domain.models.enums import Operation


@dataclass
class Transaction:
    """
    Ledger transaction entry (source of truth).

    - price is per share, 2-decimal money
    - share_count is a positive integer
    - USD only
    """

    transaction_id: str
    user_id: str
    operation: Operation
    ticker: str
    price: Decimal
    share_count: int
    executed_at: datetime
    created_at: Optional[datetime] = field(default=None)
    updated_at: Optional[datetime] = field(default=None)

    def __post_init__(self) -> None:
        if isinstance(self.operation, str):
            self.operation = Operation(self.operation)

    @property
    def total_value(self) -> Decimal:
        """Gross value of the trade (price x shares)."""
        return to_money(self.price * self.share_count)

    @property
    def cash_delta(self) -> Decimal:
        """
        Cash effect of this transaction on its owner.

        Negative for buys (cash spent), positive for sells.
        """
        if self.operation == Operation.BUY:
            return -self.total_value
        return self.total_value


@dataclass
class TransactionCreate:
    """Validated input for recording a trade."""

    user_id: str
    operation: Operation
    ticker: str
    price: Decimal
    share_count: int
    executed_at: datetime


@dataclass
class TransactionUpdate:
    """Partial update for an existing trade."""

    operation: Optional[Operation] = None
    ticker: Optional[str] = None
    price: Optional[Decimal] = None
    share_count: Optional[int] = None
    executed_at: Optional[datetime] = None

