"""Holding projection models."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional


@dataclass
class Holding:
    """
    Derived per-(user, ticker) position row.

    IMPORTANT: position fields are only ever written by a sync. A null
    ``last_synced_at`` marks the row stale. ``stop_loss`` and
    ``entry_reason`` are user annotations and survive every resync.
    """

    user_id: str
    ticker: str
    total_shares: int = 0
    average_price: Decimal = field(default_factory=lambda: Decimal("0.00"))
    total_spent: Decimal = field(default_factory=lambda: Decimal("0.00"))
    total_value: Optional[Decimal] = None
    last_price: Optional[Decimal] = None
    stop_loss: Decimal = field(default_factory=lambda: Decimal("0.00"))
    entry_reason: str = ""
    last_synced_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_stale(self) -> bool:
        return self.last_synced_at is None


@dataclass
class ComputedHolding:
    """Position values produced by a ledger recompute (or supplied to sync)."""

    ticker: str
    total_shares: int
    average_price: Decimal
    total_spent: Decimal
    total_value: Optional[Decimal] = None
    last_price: Optional[Decimal] = None
