"""Application context: the process-wide components and the services built on them.

Constructed once at startup (or directly in tests) and handed to the API
through ``app.state``. Nothing here is a hidden global.
"""

import logging
from typing import Optional

from sqlalchemy import Engine
from sqlalchemy.orm import sessionmaker

from investor.config.settings import Settings, get_settings
from investor.providers import AlpacaQuoteProvider, QuoteProvider, StubQuoteProvider
from investor.repositories.sqlalchemy.database import build_engine, build_session_factory
from investor.services import (
    BalanceCoordinator,
    CacheService,
    HoldingsProjection,
    LedgerService,
    PortfolioEngine,
    PriceFeedClient,
    ProfileService,
)

logger = logging.getLogger(__name__)


class AppContext:
    """
    Application context providing access to all services.

    Components can be injected (tests pass an in-memory session factory,
    a fake stream connector, a stub quote provider); anything left out is
    built from settings on first use.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        session_factory: Optional[sessionmaker] = None,
        quote_provider: Optional[QuoteProvider] = None,
        price_feed: Optional[PriceFeedClient] = None,
        cache: Optional[CacheService] = None,
    ):
        self.settings = settings or get_settings()
        self._session_factory = session_factory
        self._quote_provider = quote_provider
        self._price_feed = price_feed
        self._cache = cache
        self._engine: Optional[Engine] = None

        # Service instances (lazy initialized)
        self._coordinator: Optional[BalanceCoordinator] = None
        self._ledger: Optional[LedgerService] = None
        self._holdings: Optional[HoldingsProjection] = None
        self._portfolio: Optional[PortfolioEngine] = None
        self._profiles: Optional[ProfileService] = None

    # Components

    @property
    def session_factory(self) -> sessionmaker:
        if self._session_factory is None:
            self._engine = build_engine(self.settings.database_url)
            self._session_factory = build_session_factory(self._engine)
        return self._session_factory

    @property
    def engine(self) -> Engine:
        return self.session_factory.kw["bind"]

    @property
    def quote_provider(self) -> Optional[QuoteProvider]:
        """REST quote source, or None when prices have no configured source."""
        if self._quote_provider is None:
            if self.settings.has_market_data_credentials:
                self._quote_provider = AlpacaQuoteProvider(
                    api_key=self.settings.alpaca_api_key,
                    secret_key=self.settings.alpaca_secret_key,
                    base_url=self.settings.alpaca_data_url,
                    timeout=self.settings.quote_timeout_seconds,
                )
            elif self.settings.use_stub_quotes:
                logger.info("Using stub quotes for offline operation")
                self._quote_provider = StubQuoteProvider()
            else:
                logger.warning("No market data credentials; prices are unavailable")
        return self._quote_provider

    @property
    def price_feed(self) -> PriceFeedClient:
        if self._price_feed is None:
            self._price_feed = PriceFeedClient(
                api_key=self.settings.alpaca_api_key,
                secret_key=self.settings.alpaca_secret_key,
                stream_url=self.settings.alpaca_stream_url,
                quote_provider=self.quote_provider,
                connect_attempts=self.settings.price_feed_connect_attempts,
                backoff_seconds=self.settings.price_feed_backoff_seconds,
                auth_timeout_seconds=self.settings.price_feed_auth_timeout_seconds,
            )
        return self._price_feed

    @property
    def cache(self) -> CacheService:
        if self._cache is None:
            self._cache = CacheService(
                user_ttl=self.settings.user_cache_ttl_seconds,
                transaction_ttl=self.settings.transaction_cache_ttl_seconds,
            )
        return self._cache

    # Services

    @property
    def coordinator(self) -> BalanceCoordinator:
        if self._coordinator is None:
            self._coordinator = BalanceCoordinator(
                self.session_factory,
                update_cash_policy=self.settings.update_cash_policy,
            )
        return self._coordinator

    @property
    def ledger(self) -> LedgerService:
        """Get the LedgerService instance."""
        if self._ledger is None:
            self._ledger = LedgerService(
                self.session_factory,
                coordinator=self.coordinator,
                cache=self.cache,
                fetch_cap=self.settings.ledger_fetch_cap,
            )
        return self._ledger

    @property
    def holdings(self) -> HoldingsProjection:
        if self._holdings is None:
            self._holdings = HoldingsProjection(self.session_factory)
        return self._holdings

    @property
    def portfolio(self) -> PortfolioEngine:
        """Get the PortfolioEngine instance."""
        if self._portfolio is None:
            self._portfolio = PortfolioEngine(
                self.session_factory,
                ledger=self.ledger,
                projection=self.holdings,
                price_feed=self.price_feed,
            )
        return self._portfolio

    @property
    def profiles(self) -> ProfileService:
        if self._profiles is None:
            self._profiles = ProfileService(self.session_factory, cache=self.cache)
        return self._profiles

    def close(self) -> None:
        """Release the quote client and any engine this context created."""
        if self._quote_provider is not None:
            self._quote_provider.close()
        if self._engine is not None:
            self._engine.dispose()
