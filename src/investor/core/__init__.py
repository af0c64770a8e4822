"""Core utilities and shared functionality."""

from investor.core.timezone import (
    now_utc,
    to_utc,
    parse_datetime_utc,
    UTC,
)
from investor.core.exceptions import (
    AppError,
    ValidationError,
    NotFoundError,
    LedgerCapExceededError,
    AtomicWriteAbortedError,
    PriceUnavailableError,
)

__all__ = [
    "now_utc",
    "to_utc",
    "parse_datetime_utc",
    "UTC",
    "AppError",
    "ValidationError",
    "NotFoundError",
    "LedgerCapExceededError",
    "AtomicWriteAbortedError",
    "PriceUnavailableError",
]
