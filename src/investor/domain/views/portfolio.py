"""View models for holdings and portfolio outputs."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional


@dataclass
class HoldingView:
    """A valued holding with read-time risk metrics."""

    ticker: str
    total_shares: int
    average_price: Decimal
    total_spent: Decimal
    last_price: Optional[Decimal] = None
    total_value: Optional[Decimal] = None
    unrealized_pl: Optional[Decimal] = None
    unrealized_pl_percent: Optional[Decimal] = None
    stop_loss: Decimal = field(default_factory=lambda: Decimal("0.00"))
    entry_reason: str = ""
    risk_dollar: Decimal = field(default_factory=lambda: Decimal("0.00"))
    risk_percent: Decimal = field(default_factory=lambda: Decimal("0.00"))
    total_percent: Decimal = field(default_factory=lambda: Decimal("0.00"))
    price_stale: bool = False
    last_synced_at: Optional[datetime] = None


@dataclass
class PortfolioView:
    """Portfolio-level totals plus per-holding views."""

    holdings: list[HoldingView] = field(default_factory=list)
    total_spent: Decimal = field(default_factory=lambda: Decimal("0.00"))
    total_value: Decimal = field(default_factory=lambda: Decimal("0.00"))
    unrealized_pl: Decimal = field(default_factory=lambda: Decimal("0.00"))
    unrealized_pl_percent: Decimal = field(default_factory=lambda: Decimal("0.00"))
    cash: Decimal = field(default_factory=lambda: Decimal("0.00"))
    synced_at: Optional[datetime] = None
    recomputed: bool = False
    prices_complete: bool = True
