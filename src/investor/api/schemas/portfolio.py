"""Pydantic schemas for the portfolio view."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel


class PortfolioHoldingResponse(BaseModel):
    """A valued holding with risk metrics. Null price fields mean the price is unknown."""

    model_config = {"from_attributes": True}

    ticker: str
    total_shares: int
    average_price: Decimal
    total_spent: Decimal
    last_price: Optional[Decimal] = None
    total_value: Optional[Decimal] = None
    unrealized_pl: Optional[Decimal] = None
    unrealized_pl_percent: Optional[Decimal] = None
    stop_loss: Decimal
    entry_reason: str
    risk_dollar: Decimal
    risk_percent: Decimal
    total_percent: Decimal
    price_stale: bool
    last_synced_at: Optional[datetime] = None


class PortfolioResponse(BaseModel):
    """Portfolio totals, cash and open holdings."""

    holdings: list[PortfolioHoldingResponse]
    total_spent: Decimal
    total_value: Decimal
    unrealized_pl: Decimal
    unrealized_pl_percent: Decimal
    cash: Decimal
    synced_at: Optional[datetime] = None
    recomputed: bool
    prices_complete: bool
