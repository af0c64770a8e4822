"""Quote provider protocol."""

from decimal import Decimal
from typing import Optional, Protocol


class QuoteProviderError(Exception):
    """Raised when a quote request fails at the transport or HTTP level."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class QuoteProvider(Protocol):
    """
    Protocol for REST quote sources used when the stream has no price.

    ``get_latest_price`` returns None when the source has no usable quote
    and raises ``QuoteProviderError`` when the request itself fails.
    """

    def get_latest_price(self, symbol: str) -> Optional[Decimal]:
        ...

    def close(self) -> None:
        ...
