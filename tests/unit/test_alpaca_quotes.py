"""
Unit tests for AlpacaQuoteProvider.

HTTP is served by httpx.MockTransport; retry waits are disabled.
"""

from decimal import Decimal

import httpx
import pytest
from tenacity import wait_none

from investor.providers import AlpacaQuoteProvider, QuoteProviderError


@pytest.fixture(autouse=True)
def no_retry_wait(monkeypatch):
    monkeypatch.setattr(AlpacaQuoteProvider._get_latest_quotes.retry, "wait", wait_none())


def _provider(handler) -> AlpacaQuoteProvider:
    return AlpacaQuoteProvider(
        api_key="key-id",
        secret_key="secret",
        transport=httpx.MockTransport(handler),
    )


class TestGetLatestPrice:
    """Tests for AlpacaQuoteProvider.get_latest_price."""

    def test_returns_ask_price_and_sends_credentials(self):
        """
        GIVEN Alpaca answers with a quote for AAPL
        WHEN get_latest_price is called
        THEN the ask price is returned and the APCA headers were sent
        """
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"quotes": {"AAPL": {"ap": 185.505, "bp": 185.4}}})

        provider = _provider(handler)

        assert provider.get_latest_price("aapl") == Decimal("185.51")
        request = seen[0]
        assert request.url.path == "/v2/stocks/quotes/latest"
        assert request.url.params["symbols"] == "AAPL"
        assert request.headers["APCA-API-KEY-ID"] == "key-id"
        assert request.headers["APCA-API-SECRET-KEY"] == "secret"
        provider.close()

    def test_zero_ask_means_no_price(self):
        def handler(request):
            return httpx.Response(200, json={"quotes": {"AAPL": {"ap": 0}}})

        assert _provider(handler).get_latest_price("AAPL") is None

    def test_missing_symbol_means_no_price(self):
        def handler(request):
            return httpx.Response(200, json={"quotes": {}})

        assert _provider(handler).get_latest_price("AAPL") is None

    def test_http_error_raises_provider_error(self):
        def handler(request):
            return httpx.Response(403, text="forbidden")

        with pytest.raises(QuoteProviderError) as exc_info:
            _provider(handler).get_latest_price("AAPL")

        assert exc_info.value.status_code == 403

    def test_malformed_body_raises_provider_error(self):
        def handler(request):
            return httpx.Response(200, text="<html>")

        with pytest.raises(QuoteProviderError):
            _provider(handler).get_latest_price("AAPL")

    @pytest.mark.parametrize(
        "body",
        [
            "[]",
            "null",
            '"quotes"',
            '{"quotes": ["AAPL"]}',
            '{"quotes": {"AAPL": [185.5]}}',
            '{"quotes": {"AAPL": {"ap": "Infinity"}}}',
        ],
    )
    def test_unexpected_json_shape_raises_provider_error(self, body):
        """
        GIVEN a 200 response whose JSON is not a quotes object
        WHEN get_latest_price is called
        THEN QuoteProviderError is raised (not AttributeError/TypeError)
        """

        def handler(request):
            return httpx.Response(200, text=body, headers={"content-type": "application/json"})

        with pytest.raises(QuoteProviderError):
            _provider(handler).get_latest_price("AAPL")

    def test_negative_ask_means_no_price(self):
        def handler(request):
            return httpx.Response(200, json={"quotes": {"AAPL": {"ap": -1.5}}})

        assert _provider(handler).get_latest_price("AAPL") is None

    def test_connect_error_is_retried(self):
        """
        GIVEN the first two connections fail
        WHEN get_latest_price is called
        THEN the third attempt's price is returned
        """
        attempts = []

        def handler(request):
            attempts.append(request)
            if len(attempts) < 3:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(200, json={"quotes": {"MSFT": {"ap": "378.25"}}})

        assert _provider(handler).get_latest_price("MSFT") == Decimal("378.25")
        assert len(attempts) == 3

    def test_persistent_connect_error_raises_provider_error(self):
        attempts = []

        def handler(request):
            attempts.append(request)
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(QuoteProviderError):
            _provider(handler).get_latest_price("MSFT")

        assert len(attempts) == 3
