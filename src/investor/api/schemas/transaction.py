"""Pydantic schemas for transaction endpoints."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from investor.domain.models.enums import Operation

TICKER_PATTERN = r"^[A-Za-z]{1,5}$"


def _strip(v):
    return v.strip() if isinstance(v, str) else v


class TransactionCreateRequest(BaseModel):
    """Request schema for recording a trade."""

    operation: Operation = Field(..., description="buy or sell")
    ticker: str = Field(..., pattern=TICKER_PATTERN, description="1-5 letter symbol")
    price: Decimal = Field(..., gt=0, decimal_places=2, description="Price per share (USD)")
    share_count: int = Field(..., ge=1, description="Whole number of shares")
    executed_at: datetime = Field(..., description="Execution time; cannot be in the future")

    @field_validator("ticker", mode="before")
    @classmethod
    def strip_ticker(cls, v):
        return _strip(v)

    @field_validator("ticker")
    @classmethod
    def uppercase_ticker(cls, v: str) -> str:
        return v.upper()


class TransactionUpdateRequest(BaseModel):
    """Request schema for updating a transaction (partial update)."""

    operation: Optional[Operation] = None
    ticker: Optional[str] = Field(default=None, pattern=TICKER_PATTERN)
    price: Optional[Decimal] = Field(default=None, gt=0, decimal_places=2)
    share_count: Optional[int] = Field(default=None, ge=1)
    executed_at: Optional[datetime] = None

    @field_validator("ticker", mode="before")
    @classmethod
    def strip_ticker(cls, v):
        return _strip(v)

    @field_validator("ticker")
    @classmethod
    def uppercase_ticker(cls, v: Optional[str]) -> Optional[str]:
        return v.upper() if v else None


class TransactionBatchRequest(BaseModel):
    """Request schema for an atomic batch of 1-10 trades."""

    transactions: list[TransactionCreateRequest] = Field(..., min_length=1, max_length=10)


class TransactionResponse(BaseModel):
    """Response schema for a single transaction."""

    model_config = {"from_attributes": True}

    transaction_id: str
    user_id: str
    operation: Operation
    ticker: str
    price: Decimal
    share_count: int
    total_value: Decimal
    executed_at: datetime
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TransactionListResponse(BaseModel):
    """Response schema for a page of transactions."""

    items: list[TransactionResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
    has_next: bool
    has_prev: bool
    next_page: Optional[int] = None
    prev_page: Optional[int] = None


class TransactionBatchResponse(BaseModel):
    """Response schema for a batch create."""

    transactions: list[TransactionResponse]
    count: int
    cash_change: Decimal
