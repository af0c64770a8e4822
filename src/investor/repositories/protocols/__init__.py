"""Repository protocol definitions (interfaces)."""

from investor.repositories.protocols.user_repo import UserRepository
from investor.repositories.protocols.transaction_repo import TransactionRepository
from investor.repositories.protocols.holding_repo import HoldingRepository

__all__ = [
    "UserRepository",
    "TransactionRepository",
    "HoldingRepository",
]
