"""Pydantic schemas for price feed endpoints."""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from investor.domain.models.enums import FeedState


class PriceResponse(BaseModel):
    symbol: str
    price: Decimal


class FeedStatusResponse(BaseModel):
    """Connection state of the price stream."""

    model_config = {"from_attributes": True}

    state: FeedState
    connected: bool
    authenticated: bool
    subscribed_symbols: list[str]
    cached_prices: int


class SymbolsRequest(BaseModel):
    """Explicit symbol list; when omitted the caller's open holdings are used."""

    symbols: Optional[list[str]] = Field(default=None, max_length=100)


class SubscriptionResponse(BaseModel):
    symbols: list[str]
    status: FeedStatusResponse
