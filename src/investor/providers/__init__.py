"""Quote providers module."""

from investor.providers.quote_provider import QuoteProvider, QuoteProviderError
from investor.providers.alpaca_quotes import AlpacaQuoteProvider
from investor.providers.stub_provider import StubQuoteProvider

__all__ = [
    "QuoteProvider",
    "QuoteProviderError",
    "AlpacaQuoteProvider",
    "StubQuoteProvider",
]
