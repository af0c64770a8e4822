"""Domain models package."""

from investor.domain.models.enums import (
    Operation,
    SortField,
    SortOrder,
    UpdateCashPolicy,
    FeedState,
)
from investor.domain.models.user import User
from investor.domain.models.transaction import (
    Transaction,
    TransactionCreate,
    TransactionUpdate,
)
from investor.domain.models.holding import Holding, ComputedHolding

__all__ = [
    "Operation",
    "SortField",
    "SortOrder",
    "UpdateCashPolicy",
    "FeedState",
    "User",
    "Transaction",
    "TransactionCreate",
    "TransactionUpdate",
    "Holding",
    "ComputedHolding",
]
