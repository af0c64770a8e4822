"""Service layer - business logic orchestration."""

from investor.services.balance_coordinator import BalanceCoordinator
from investor.services.cache_service import CacheService, TTLCache, MISS
from investor.services.holdings_projection import HoldingsProjection
from investor.services.ledger_service import LedgerService
from investor.services.portfolio_engine import PortfolioEngine
from investor.services.price_feed import PriceFeedClient
from investor.services.profile_service import ProfileService

__all__ = [
    "BalanceCoordinator",
    "CacheService",
    "TTLCache",
    "MISS",
    "HoldingsProjection",
    "LedgerService",
    "PortfolioEngine",
    "PriceFeedClient",
    "ProfileService",
]
