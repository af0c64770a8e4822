"""
Pytest configuration and fixtures for the investor backend tests.

This module provides:
- In-memory SQLite database fixtures (and a file-backed one for threads)
- Factory helpers for users and trades
- Deterministic quote providers and a fake price stream socket
- Service fixtures wired the way AppContext wires them
"""

import asyncio
import json
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, StaticPool
from sqlalchemy.orm import sessionmaker
from websockets.exceptions import ConnectionClosed

from investor.app_context import AppContext
from investor.config.settings import Settings, reset_settings
from investor.core.timezone import UTC
from investor.domain.models import (
    Operation,
    TransactionCreate,
    UpdateCashPolicy,
    User,
)
from investor.main import create_app
from investor.providers import QuoteProviderError
from investor.repositories.sqlalchemy import Base, build_session_factory, unit_of_work
# Import ORM models to register them with Base before creating tables
from investor.repositories.sqlalchemy import orm_models  # noqa: F401
from investor.services import (
    BalanceCoordinator,
    CacheService,
    HoldingsProjection,
    LedgerService,
    PortfolioEngine,
    PriceFeedClient,
    ProfileService,
)


# =============================================================================
# TIME HELPERS
# =============================================================================


def utc_datetime(
    year: int,
    month: int,
    day: int,
    hour: int = 10,
    minute: int = 0,
    second: int = 0,
) -> datetime:
    """Create an aware UTC datetime."""
    return UTC.localize(datetime(year, month, day, hour, minute, second))


# =============================================================================
# DATABASE FIXTURES
# =============================================================================


@pytest.fixture(scope="function")
def test_engine():
    """Create test database engine with shared in-memory SQLite."""
    # Reset settings for clean state
    reset_settings()

    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> sessionmaker:
    """Session factory bound to the in-memory engine."""
    return build_session_factory(test_engine)


# =============================================================================
# MARKET DATA FIXTURES
# =============================================================================


class DeterministicQuoteProvider:
    """Fixed REST quotes; counts calls so tests can assert on fallbacks."""

    FIXED_PRICES = {
        "AAPL": Decimal("185.50"),
        "MSFT": Decimal("378.25"),
        "TSLA": Decimal("248.75"),
        "XYZ": Decimal("60.00"),
    }

    def __init__(self, prices: Optional[dict[str, Decimal]] = None):
        self.prices = dict(self.FIXED_PRICES if prices is None else prices)
        self.calls: list[str] = []

    def get_latest_price(self, symbol: str) -> Optional[Decimal]:
        self.calls.append(symbol)
        return self.prices.get(symbol.upper())

    def close(self) -> None:
        pass


class FailingQuoteProvider:
    """Quote provider whose requests always fail."""

    def __init__(self):
        self.calls: list[str] = []

    def get_latest_price(self, symbol: str) -> Optional[Decimal]:
        self.calls.append(symbol)
        raise QuoteProviderError("Connection failed", status_code=None)

    def close(self) -> None:
        pass


CLOSE = object()


class FakeWebSocket:
    """
    In-memory stand-in for a websockets client connection.

    Frames queued with ``push`` are returned by ``recv``; pushing ``CLOSE``
    makes ``recv`` raise ConnectionClosed. Sent frames are decoded into
    ``sent``.
    """

    def __init__(self, frames: Optional[list] = None):
        self.incoming: asyncio.Queue = asyncio.Queue()
        self.sent: list[dict] = []
        self.closed = False
        for frame in frames or []:
            self.push(frame)

    def push(self, frame) -> None:
        if frame is not CLOSE and not isinstance(frame, str):
            frame = json.dumps(frame)
        self.incoming.put_nowait(frame)

    async def send(self, message: str) -> None:
        if self.closed:
            raise ConnectionClosed(None, None)
        self.sent.append(json.loads(message))

    async def recv(self) -> str:
        frame = await self.incoming.get()
        if frame is CLOSE:
            self.closed = True
            raise ConnectionClosed(None, None)
        return frame

    async def close(self) -> None:
        if not self.closed:
            self.closed = True
            self.incoming.put_nowait(CLOSE)


CONNECTED_FRAME = [{"T": "success", "msg": "connected"}]
AUTHENTICATED_FRAME = [{"T": "success", "msg": "authenticated"}]


def authenticating_socket() -> FakeWebSocket:
    """A socket that greets and accepts the credentials. Build it inside the event loop."""
    return FakeWebSocket([CONNECTED_FRAME, AUTHENTICATED_FRAME])


async def settle(rounds: int = 10) -> None:
    """Yield to the event loop so background listeners process queued frames."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def quote_provider() -> DeterministicQuoteProvider:
    return DeterministicQuoteProvider()


@pytest.fixture
def price_feed(quote_provider) -> PriceFeedClient:
    """Offline price feed (no API key) with deterministic REST fallback."""
    return PriceFeedClient(api_key=None, quote_provider=quote_provider, backoff_seconds=0)


# =============================================================================
# SERVICE FIXTURES
# =============================================================================


@pytest.fixture
def cache_service() -> CacheService:
    return CacheService(user_ttl=300, transaction_ttl=120)


@pytest.fixture
def coordinator(session_factory) -> BalanceCoordinator:
    """Provide BalanceCoordinator with the default (reapply) update policy."""
    return BalanceCoordinator(session_factory)


@pytest.fixture
def ledger_service(session_factory, coordinator, cache_service) -> LedgerService:
    """Provide test LedgerService."""
    return LedgerService(
        session_factory,
        coordinator=coordinator,
        cache=cache_service,
        fetch_cap=1000,
    )


@pytest.fixture
def holdings_projection(session_factory) -> HoldingsProjection:
    return HoldingsProjection(session_factory)


@pytest.fixture
def portfolio_engine(session_factory, ledger_service, holdings_projection, price_feed) -> PortfolioEngine:
    """Provide test PortfolioEngine."""
    return PortfolioEngine(
        session_factory,
        ledger=ledger_service,
        projection=holdings_projection,
        price_feed=price_feed,
    )


@pytest.fixture
def profile_service(session_factory, cache_service) -> ProfileService:
    return ProfileService(session_factory, cache=cache_service)


# =============================================================================
# FACTORY FIXTURES
# =============================================================================


@pytest.fixture
def user_factory(session_factory) -> Callable[..., User]:
    """Factory for creating test users."""

    def _create_user(
        cash: Decimal = Decimal("1000.00"),
        email: Optional[str] = None,
        first_name: str = "Test",
        last_name: str = "Investor",
    ) -> User:
        user_id = str(uuid.uuid4())
        with unit_of_work(session_factory) as uow:
            return uow.users.create(
                User(
                    user_id=user_id,
                    email=email or f"{user_id[:8]}@example.com",
                    first_name=first_name,
                    last_name=last_name,
                    cash=cash,
                )
            )

    return _create_user


@pytest.fixture
def sample_user(user_factory) -> User:
    """A user with $1,000.00 cash."""
    return user_factory(cash=Decimal("1000.00"))


def get_cash(session_factory: sessionmaker, user_id: str) -> Decimal:
    """Read a user's persisted cash balance."""
    with unit_of_work(session_factory) as uow:
        return uow.users.get_by_id(user_id).cash


def buy(
    user_id: str,
    ticker: str,
    share_count: int,
    price: str,
    executed_at: Optional[datetime] = None,
) -> TransactionCreate:
    """Helper to create BUY command data."""
    return TransactionCreate(
        user_id=user_id,
        operation=Operation.BUY,
        ticker=ticker,
        price=Decimal(price),
        share_count=share_count,
        executed_at=executed_at or utc_datetime(2024, 1, 15),
    )


def sell(
    user_id: str,
    ticker: str,
    share_count: int,
    price: str,
    executed_at: Optional[datetime] = None,
) -> TransactionCreate:
    """Helper to create SELL command data."""
    return TransactionCreate(
        user_id=user_id,
        operation=Operation.SELL,
        ticker=ticker,
        price=Decimal(price),
        share_count=share_count,
        executed_at=executed_at or utc_datetime(2024, 2, 15),
    )


# =============================================================================
# API TEST CLIENT FIXTURES
# =============================================================================


def make_settings(**overrides) -> Settings:
    """Settings isolated from the environment's .env file."""
    return Settings(_env_file=None, database_url="sqlite:///:memory:", **overrides)


@pytest.fixture
def app_context(session_factory, quote_provider, price_feed, cache_service) -> AppContext:
    return AppContext(
        settings=make_settings(),
        session_factory=session_factory,
        quote_provider=quote_provider,
        price_feed=price_feed,
        cache=cache_service,
    )


@pytest.fixture
def client(app_context) -> TestClient:
    """Provide FastAPI test client around the test context."""
    app = create_app(app_context)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def auth_headers(sample_user) -> dict:
    return {"X-User-Id": sample_user.user_id}


# =============================================================================
# HELPER FUNCTIONS (exported for use in tests)
# =============================================================================


def restrictive_context(session_factory, quote_provider, price_feed, cache_service) -> AppContext:
    """AppContext whose transaction edits may not touch cash fields."""
    return AppContext(
        settings=make_settings(update_cash_policy=UpdateCashPolicy.RESTRICT),
        session_factory=session_factory,
        quote_provider=quote_provider,
        price_feed=price_feed,
        cache=cache_service,
    )
