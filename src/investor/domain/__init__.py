"""Domain layer - pure business models with no external dependencies."""

from investor.domain.models import (
    User,
    Transaction,
    TransactionCreate,
    TransactionUpdate,
    Holding,
    ComputedHolding,
    Operation,
    SortField,
    SortOrder,
    UpdateCashPolicy,
    FeedState,
)

__all__ = [
    "User",
    "Transaction",
    "TransactionCreate",
    "TransactionUpdate",
    "Holding",
    "ComputedHolding",
    "Operation",
    "SortField",
    "SortOrder",
    "UpdateCashPolicy",
    "FeedState",
]
