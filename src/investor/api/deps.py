"""Dependency injection for FastAPI."""

from typing import Optional

from fastapi import Depends, Header, HTTPException, Request

from investor.app_context import AppContext
from investor.services import (
    CacheService,
    HoldingsProjection,
    LedgerService,
    PortfolioEngine,
    PriceFeedClient,
    ProfileService,
)


def get_app_context(request: Request) -> AppContext:
    """Provide the AppContext built at startup."""
    return request.app.state.context


def get_current_user_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    """
    Resolve the caller's user id.

    Session verification happens upstream; the verified id arrives in the
    ``X-User-Id`` header.
    """
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Authentication required")
    return x_user_id.strip()


def get_ledger_service(context: AppContext = Depends(get_app_context)) -> LedgerService:
    """Provide LedgerService instance."""
    return context.ledger


def get_holdings_projection(context: AppContext = Depends(get_app_context)) -> HoldingsProjection:
    return context.holdings


def get_portfolio_engine(context: AppContext = Depends(get_app_context)) -> PortfolioEngine:
    """Provide PortfolioEngine instance."""
    return context.portfolio


def get_price_feed(context: AppContext = Depends(get_app_context)) -> PriceFeedClient:
    return context.price_feed


def get_profile_service(context: AppContext = Depends(get_app_context)) -> ProfileService:
    return context.profiles


def get_cache_service(context: AppContext = Depends(get_app_context)) -> CacheService:
    return context.cache
