"""API routers package."""

from investor.api.routers.transactions import router as transactions_router
from investor.api.routers.holdings import router as holdings_router
from investor.api.routers.portfolio import router as portfolio_router
from investor.api.routers.prices import router as prices_router
from investor.api.routers.users import router as users_router

__all__ = [
    "transactions_router",
    "holdings_router",
    "portfolio_router",
    "prices_router",
    "users_router",
]
