"""Alpaca market-data REST client for latest quotes."""

import logging
from decimal import Decimal
from typing import Optional

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from investor.core.money import to_money
from investor.providers.quote_provider import QuoteProviderError

logger = logging.getLogger(__name__)


class AlpacaQuoteProvider:
    """Fetches the latest ask price for a symbol from Alpaca's data API."""

    def __init__(
        self,
        api_key: str,
        secret_key: str,
        base_url: str = "https://data.alpaca.markets",
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url
        self.timeout = timeout
        self.default_headers = {
            "APCA-API-KEY-ID": api_key,
            "APCA-API-SECRET-KEY": secret_key,
        }
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    @property
    def client(self) -> httpx.Client:
        """Lazy initialization of HTTP client."""
        if self._client is None:
            self._client = httpx.Client(
                base_url=self.base_url,
                timeout=self.timeout,
                headers=self.default_headers,
                transport=self._transport,
            )
        return self._client

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def get_latest_price(self, symbol: str) -> Optional[Decimal]:
        """
        Return the latest ask price for ``symbol``, or None if Alpaca has no quote.

        Raises:
            QuoteProviderError: on HTTP errors, timeouts or connection failures
        """
        symbol = symbol.upper()
        try:
            response = self._get_latest_quotes(symbol)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning(
                f"HTTP {e.response.status_code} fetching quote for {symbol}: {e.response.text[:200]}"
            )
            raise QuoteProviderError(
                f"HTTP {e.response.status_code}: {e.response.reason_phrase}",
                status_code=e.response.status_code,
            ) from e
        except httpx.TimeoutException as e:
            logger.warning(f"Timeout fetching quote for {symbol}")
            raise QuoteProviderError(f"Quote request timed out for {symbol}") from e
        except httpx.TransportError as e:
            logger.warning(f"Connection error fetching quote for {symbol}: {e}")
            raise QuoteProviderError(f"Quote request failed for {symbol}") from e

        try:
            payload = response.json()
        except ValueError as e:
            raise QuoteProviderError(f"Malformed quote response for {symbol}") from e

        if not isinstance(payload, dict):
            raise QuoteProviderError(f"Malformed quote response for {symbol}")
        quotes = payload.get("quotes") or {}
        if not isinstance(quotes, dict):
            raise QuoteProviderError(f"Malformed quote response for {symbol}")
        quote = quotes.get(symbol) or {}
        if not isinstance(quote, dict):
            raise QuoteProviderError(f"Malformed quote for {symbol}")
        try:
            ask = to_money(quote["ap"]) if quote.get("ap") is not None else None
        except ValueError as e:
            raise QuoteProviderError(f"Malformed ask price for {symbol}") from e
        if ask is None or ask <= 0:
            logger.info(f"No ask price in Alpaca quote for {symbol}")
            return None
        return ask

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type((httpx.TimeoutException, httpx.ConnectError)),
        reraise=True,
    )
    def _get_latest_quotes(self, symbol: str) -> httpx.Response:
        return self.client.get("/v2/stocks/quotes/latest", params={"symbols": symbol})
