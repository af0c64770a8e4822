"""Streaming price client (Alpaca market-data v2) with REST fallback."""

import asyncio
import contextlib
import functools
import json
import logging
import threading
from decimal import Decimal
from typing import Any, Awaitable, Callable, Iterable, Optional

import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

from investor.core.exceptions import PriceUnavailableError
from investor.core.money import to_money
from investor.domain.models import FeedState
from investor.domain.views import FeedStatus
from investor.providers.quote_provider import QuoteProvider, QuoteProviderError

logger = logging.getLogger(__name__)

Connector = Callable[[str], Awaitable[Any]]


class FeedAuthError(Exception):
    """Raised when the stream rejects our credentials."""


def _default_connector() -> Connector:
    # Keepalive pings stop idle streams from being dropped by the server
    return functools.partial(websockets.connect, ping_interval=20, ping_timeout=20)


class PriceFeedClient:
    """
    Keeps a last-trade price cache fed by the Alpaca trade stream.

    There is no background reconnect loop: ``connect`` retries its handshake
    with exponential backoff and is invoked again by callers (startup, the
    subscribe endpoint) whenever the feed is found disconnected. Losing the
    socket clears the subscription set so the next connect can resubscribe.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        secret_key: Optional[str] = None,
        stream_url: str = "wss://stream.data.alpaca.markets/v2/iex",
        quote_provider: Optional[QuoteProvider] = None,
        connector: Optional[Connector] = None,
        connect_attempts: int = 3,
        backoff_seconds: float = 1.0,
        auth_timeout_seconds: float = 10.0,
    ):
        self._api_key = api_key
        self._secret_key = secret_key
        self._stream_url = stream_url
        self._quote_provider = quote_provider
        self._connector = connector or _default_connector()
        self._connect_attempts = max(1, connect_attempts)
        self._backoff_seconds = backoff_seconds
        self._auth_timeout = auth_timeout_seconds

        self._state = FeedState.DISCONNECTED
        self._ws: Any = None
        self._listener: Optional[asyncio.Task] = None
        self._auth_error: Optional[str] = None
        self._subscribed: set[str] = set()
        self._prices: dict[str, Decimal] = {}
        self._lock = threading.Lock()

    @property
    def state(self) -> FeedState:
        return self._state

    @property
    def is_authenticated(self) -> bool:
        return self._state == FeedState.AUTHENTICATED

    # Lifecycle

    async def connect(self) -> bool:
        """
        Open the stream and authenticate.

        Returns True once authenticated. Without an API key the client logs
        and stays disconnected; REST lookups still work.
        """
        if not self._api_key:
            logger.info("No market data API key configured; price stream disabled")
            return False
        if self._state != FeedState.DISCONNECTED:
            return self.is_authenticated

        for attempt in range(1, self._connect_attempts + 1):
            try:
                await self._handshake()
            except (OSError, asyncio.TimeoutError, WebSocketException, FeedAuthError) as e:
                logger.warning(
                    f"Price stream connect attempt {attempt}/{self._connect_attempts} failed: {e!r}"
                )
                await self._close_socket()
                self._set_state(FeedState.DISCONNECTED)
                if attempt < self._connect_attempts:
                    await asyncio.sleep(self._backoff_seconds * 2 ** (attempt - 1))
                continue

            self._listener = asyncio.create_task(self._listen(self._ws))
            return True

        logger.error("Price stream unavailable; falling back to REST quotes")
        return False

    async def disconnect(self) -> None:
        """Stop listening, close the socket and forget subscriptions."""
        listener, self._listener = self._listener, None
        ws, self._ws = self._ws, None
        if listener is not None and not listener.done():
            listener.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await listener
        if ws is not None:
            with contextlib.suppress(Exception):
                await ws.close()
        self._subscribed.clear()
        self._set_state(FeedState.DISCONNECTED)

    async def _handshake(self) -> None:
        self._auth_error = None
        self._set_state(FeedState.CONNECTING)
        self._ws = await self._connector(self._stream_url)
        self._set_state(FeedState.CONNECTED)

        self._set_state(FeedState.AUTHENTICATING)
        await self._ws.send(
            json.dumps({"action": "auth", "key": self._api_key, "secret": self._secret_key})
        )
        await asyncio.wait_for(self._await_authentication(), timeout=self._auth_timeout)

    async def _await_authentication(self) -> None:
        while self._state != FeedState.AUTHENTICATED:
            raw = await self._ws.recv()
            self.handle_message(raw)
            if self._auth_error is not None:
                raise FeedAuthError(self._auth_error)

    async def _listen(self, ws: Any) -> None:
        try:
            while True:
                raw = await ws.recv()
                self.handle_message(raw)
        except ConnectionClosed as e:
            logger.warning(f"Price stream closed: {e}")
        except OSError as e:
            logger.warning(f"Price stream socket error: {e}")
        finally:
            if ws is self._ws:
                self._ws = None
                self._subscribed.clear()
                self._set_state(FeedState.DISCONNECTED)

    async def _close_socket(self) -> None:
        ws, self._ws = self._ws, None
        if ws is not None:
            with contextlib.suppress(Exception):
                await ws.close()

    def _set_state(self, state: FeedState) -> None:
        if state != self._state:
            logger.info(f"Price stream {self._state.value} -> {state.value}")
            self._state = state

    # Wire protocol

    def handle_message(self, raw: Any) -> None:
        """Apply one stream frame (a JSON array of messages) to the client state."""
        try:
            payload = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning(f"Ignoring malformed stream frame: {str(raw)[:200]}")
            return

        messages = payload if isinstance(payload, list) else [payload]
        for message in messages:
            if not isinstance(message, dict):
                continue
            kind = message.get("T")
            if kind == "t":
                self._record_trade(message)
            elif kind == "success":
                if message.get("msg") == "authenticated":
                    self._set_state(FeedState.AUTHENTICATED)
            elif kind == "error":
                logger.warning(
                    f"Price stream error {message.get('code')}: {message.get('msg')}"
                )
                if self._state == FeedState.AUTHENTICATING:
                    self._auth_error = str(message.get("msg") or "authentication failed")
            elif kind == "subscription":
                logger.debug(f"Stream subscriptions: {message.get('trades')}")

    def _record_trade(self, message: dict) -> None:
        symbol = message.get("S")
        price = message.get("p")
        if not symbol or price is None:
            return
        try:
            value = to_money(price)
        except ValueError:
            logger.warning(f"Ignoring trade with bad price for {symbol}: {price!r}")
            return
        if value <= 0:
            logger.warning(f"Ignoring non-positive trade price for {symbol}: {price!r}")
            return
        # Last write wins; trades carry no sequence we could check
        with self._lock:
            self._prices[str(symbol).upper()] = value

    # Subscriptions

    async def subscribe(self, symbols: Iterable[str]) -> list[str]:
        """
        Subscribe to trades for symbols not already subscribed.

        A no-op (nothing queued) unless authenticated. Returns the symbols
        actually sent.
        """
        if not self.is_authenticated:
            logger.debug("Subscribe skipped: price stream not authenticated")
            return []
        wanted = sorted({s.strip().upper() for s in symbols if s and s.strip()})
        new = [s for s in wanted if s not in self._subscribed]
        if not new:
            return []
        if not await self._send({"action": "subscribe", "trades": new}):
            return []
        self._subscribed.update(new)
        logger.info(f"Subscribed to {new}")
        return new

    async def unsubscribe_except(self, keep_symbols: Iterable[str]) -> list[str]:
        """Unsubscribe every subscribed symbol not in ``keep_symbols``."""
        if not self.is_authenticated:
            return []
        keep = {s.strip().upper() for s in keep_symbols if s and s.strip()}
        drop = sorted(self._subscribed - keep)
        if not drop:
            return []
        if not await self._send({"action": "unsubscribe", "trades": drop}):
            return []
        self._subscribed.difference_update(drop)
        logger.info(f"Unsubscribed from {drop}")
        return drop

    async def _send(self, message: dict) -> bool:
        try:
            await self._ws.send(json.dumps(message))
        except (ConnectionClosed, OSError) as e:
            logger.warning(f"Price stream send failed: {e}")
            return False
        return True

    # Prices

    def get_price(self, symbol: str) -> Optional[Decimal]:
        """Cached price only; None when the stream has not seen the symbol."""
        with self._lock:
            return self._prices.get(symbol.upper())

    def get_all_prices(self) -> dict[str, Decimal]:
        with self._lock:
            return dict(self._prices)

    def fetch_price(self, symbol: str) -> Decimal:
        """
        Cached price, else a REST quote (which is cached on success).

        Raises:
            PriceUnavailableError: if neither source has a price
        """
        symbol = symbol.upper()
        cached = self.get_price(symbol)
        if cached is not None:
            return cached
        if self._quote_provider is None:
            raise PriceUnavailableError(symbol, "no quote source configured")

        try:
            price = self._quote_provider.get_latest_price(symbol)
        except QuoteProviderError as e:
            logger.warning(f"REST quote failed for {symbol}: {e}")
            raise PriceUnavailableError(symbol, str(e)) from e

        if price is None:
            raise PriceUnavailableError(symbol)
        with self._lock:
            self._prices[symbol] = price
        return price

    async def get_price_async(self, symbol: str) -> Decimal:
        """``fetch_price`` with the REST call moved off the event loop."""
        cached = self.get_price(symbol)
        if cached is not None:
            return cached
        return await asyncio.to_thread(self.fetch_price, symbol)

    def status(self) -> FeedStatus:
        with self._lock:
            cached = len(self._prices)
        return FeedStatus(
            state=self._state,
            subscribed_symbols=sorted(self._subscribed),
            cached_prices=cached,
        )
