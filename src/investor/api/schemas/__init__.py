"""Pydantic schemas for API request/response."""

from investor.api.schemas.transaction import (
    TransactionCreateRequest,
    TransactionUpdateRequest,
    TransactionBatchRequest,
    TransactionResponse,
    TransactionListResponse,
    TransactionBatchResponse,
)
from investor.api.schemas.holding import (
    HoldingResponse,
    HoldingSyncItem,
    HoldingSyncRequest,
    HoldingInvalidateRequest,
    HoldingInvalidateResponse,
    HoldingAnnotationRequest,
)
from investor.api.schemas.portfolio import PortfolioHoldingResponse, PortfolioResponse
from investor.api.schemas.price import (
    PriceResponse,
    FeedStatusResponse,
    SymbolsRequest,
    SubscriptionResponse,
)
from investor.api.schemas.user import UserResponse, UserUpdateRequest

__all__ = [
    "TransactionCreateRequest",
    "TransactionUpdateRequest",
    "TransactionBatchRequest",
    "TransactionResponse",
    "TransactionListResponse",
    "TransactionBatchResponse",
    "HoldingResponse",
    "HoldingSyncItem",
    "HoldingSyncRequest",
    "HoldingInvalidateRequest",
    "HoldingInvalidateResponse",
    "HoldingAnnotationRequest",
    "PortfolioHoldingResponse",
    "PortfolioResponse",
    "PriceResponse",
    "FeedStatusResponse",
    "SymbolsRequest",
    "SubscriptionResponse",
    "UserResponse",
    "UserUpdateRequest",
]
