"""Stub quote provider for offline/testing use."""

from decimal import Decimal
from typing import Optional

from investor.core.money import to_money


# Deterministic fake prices for common symbols
_STUB_PRICES: dict[str, Decimal] = {
    "AAPL": Decimal("185.50"),
    "GOOGL": Decimal("142.75"),
    "MSFT": Decimal("378.25"),
    "AMZN": Decimal("178.50"),
    "TSLA": Decimal("248.75"),
    "NVDA": Decimal("485.25"),
    "META": Decimal("505.50"),
    "NFLX": Decimal("452.10"),
    "SPY": Decimal("485.25"),
    "QQQ": Decimal("418.75"),
    "VTI": Decimal("252.30"),
}


class StubQuoteProvider:
    """
    Stub provider with deterministic fake data for offline operation.

    Uses predefined prices for common symbols. Unknown symbols have no
    quote (None), like a real provider with nothing to report.
    """

    def __init__(self, prices: Optional[dict[str, Decimal]] = None):
        source = _STUB_PRICES if prices is None else prices
        self._prices = {symbol.upper(): to_money(price) for symbol, price in source.items()}

    def get_latest_price(self, symbol: str) -> Optional[Decimal]:
        return self._prices.get(symbol.upper())

    def close(self) -> None:
        pass
