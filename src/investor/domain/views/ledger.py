"""View models for ledger reads and batch writes."""

import math
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from investor.domain.models.enums import Operation, SortField, SortOrder
from investor.domain.models.transaction import Transaction


@dataclass
class TransactionQuery:
    """Filter, sort and page parameters for a ledger listing."""

    ticker: Optional[str] = None
    operation: Optional[Operation] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    sort_by: SortField = SortField.EXECUTED_AT
    sort_order: SortOrder = SortOrder.DESC
    page: int = 1
    page_size: int = 20

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    def cache_suffix(self) -> str:
        """Stable key fragment identifying this query variant."""
        parts = [
            self.ticker.upper() if self.ticker else "",
            self.operation.value if self.operation else "",
            self.start_date.isoformat() if self.start_date else "",
            self.end_date.isoformat() if self.end_date else "",
            self.sort_by.value,
            self.sort_order.value,
            str(self.page),
            str(self.page_size),
        ]
        return ":".join(parts)


@dataclass
class TransactionPage:
    """One page of a ledger listing."""

    items: list[Transaction]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        if self.total <= 0:
            return 0
        return math.ceil(self.total / self.page_size)

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    @property
    def next_page(self) -> Optional[int]:
        return self.page + 1 if self.has_next else None

    @property
    def prev_page(self) -> Optional[int]:
        return self.page - 1 if self.has_prev else None


@dataclass
class BatchResult:
    """Outcome of an atomic batch create."""

    transactions: list[Transaction] = field(default_factory=list)
    cash_change: Decimal = field(default_factory=lambda: Decimal("0.00"))

    @property
    def count(self) -> int:
        return len(self.transactions)
