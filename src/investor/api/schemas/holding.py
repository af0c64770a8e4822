"""Pydantic schemas for holdings projection endpoints."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class HoldingResponse(BaseModel):
    """A stored projection row, stale or not."""

    model_config = {"from_attributes": True}

    ticker: str
    total_shares: int
    average_price: Decimal
    total_spent: Decimal
    total_value: Optional[Decimal] = None
    last_price: Optional[Decimal] = None
    stop_loss: Decimal
    entry_reason: str
    last_synced_at: Optional[datetime] = None
    is_stale: bool


class HoldingSyncItem(BaseModel):
    ticker: Optional[str] = Field(default=None, max_length=5)
    total_shares: int
    average_price: Decimal = Field(default=Decimal("0"), ge=0)
    total_spent: Decimal = Field(default=Decimal("0"))
    total_value: Optional[Decimal] = None
    last_price: Optional[Decimal] = Field(default=None, ge=0)


class HoldingSyncRequest(BaseModel):
    """Computed positions to write back; entries with no shares are skipped."""

    holdings: list[HoldingSyncItem]


class HoldingInvalidateRequest(BaseModel):
    tickers: list[str] = Field(..., min_length=1)


class HoldingInvalidateResponse(BaseModel):
    invalidated: int


class HoldingAnnotationRequest(BaseModel):
    """User annotations; omitted fields reset to their defaults."""

    stop_loss: Optional[Decimal] = Field(default=None, ge=0, decimal_places=2)
    entry_reason: Optional[str] = Field(default=None, max_length=1000)
