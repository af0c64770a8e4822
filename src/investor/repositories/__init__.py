"""Repository layer - data access abstractions and implementations."""

from investor.repositories.protocols import (
    UserRepository,
    TransactionRepository,
    HoldingRepository,
)

__all__ = [
    "UserRepository",
    "TransactionRepository",
    "HoldingRepository",
]
