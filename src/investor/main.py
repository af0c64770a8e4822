"""FastAPI application entry point."""

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from investor.api.deps import get_cache_service
from investor.api.routers import (
    holdings_router,
    portfolio_router,
    prices_router,
    transactions_router,
    users_router,
)
from investor.app_context import AppContext
from investor.config.logging_config import setup_logging
from investor.config.settings import get_settings
from investor.core.exceptions import AppError
from investor.repositories.sqlalchemy.database import init_db
from investor.services import CacheService
from investor.services.cache_service import run_cache_sweeper

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    setup_logging()
    context: Optional[AppContext] = getattr(app.state, "context", None)
    if context is None:
        context = AppContext(get_settings())
        app.state.context = context
    init_db(context.engine)

    await context.price_feed.connect()
    sweeper = asyncio.create_task(
        run_cache_sweeper(context.cache, context.settings.cache_sweep_interval_seconds)
    )
    logger.info(f"{context.settings.app_name} started")

    yield

    # Shutdown
    sweeper.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await sweeper
    await context.price_feed.disconnect()
    context.close()


def create_app(context: Optional[AppContext] = None) -> FastAPI:
    """Build the FastAPI app, optionally around a prepared context."""
    settings = context.settings if context is not None else get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Investment ledger, holdings projection and live pricing",
        version=settings.app_version,
        lifespan=lifespan,
    )
    if context is not None:
        app.state.context = context

    # Include routers
    app.include_router(transactions_router)
    app.include_router(holdings_router)
    app.include_router(portfolio_router)
    app.include_router(prices_router)
    app.include_router(users_router)

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        """Global handler for application errors."""
        if exc.status_code >= 500:
            logger.warning(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.code, "message": exc.message},
        )

    @app.get("/health")
    def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy"}

    @app.get("/cache-stats")
    def cache_stats(cache: CacheService = Depends(get_cache_service)) -> dict:
        """Hit/miss counters and sizes of the read-through caches."""
        return cache.stats()

    @app.get("/")
    def root() -> dict[str, str]:
        """Root endpoint with API info."""
        return {
            "app": settings.app_name,
            "version": settings.app_version,
            "docs": "/docs",
        }

    return app


app = create_app()
