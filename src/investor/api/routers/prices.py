"""Price feed endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Path
from fastapi.concurrency import run_in_threadpool

from investor.api.deps import get_current_user_id, get_holdings_projection, get_price_feed
from investor.api.schemas import (
    FeedStatusResponse,
    PriceResponse,
    SubscriptionResponse,
    SymbolsRequest,
)
from investor.domain.models import FeedState
from investor.services import HoldingsProjection, PriceFeedClient

router = APIRouter(prefix="/prices", tags=["prices"])


async def _portfolio_symbols(
    user_id: str, data: Optional[SymbolsRequest], projection: HoldingsProjection
) -> list[str]:
    if data is not None and data.symbols is not None:
        return data.symbols
    holdings = await run_in_threadpool(projection.get, user_id)
    return [h.ticker for h in holdings if h.total_shares > 0]


@router.get("/status", response_model=FeedStatusResponse)
def get_status(feed: PriceFeedClient = Depends(get_price_feed)) -> FeedStatusResponse:
    return FeedStatusResponse.model_validate(feed.status())


@router.get("/{symbol}", response_model=PriceResponse)
async def get_price(
    symbol: str = Path(..., pattern=r"^[A-Za-z]{1,5}$"),
    feed: PriceFeedClient = Depends(get_price_feed),
) -> PriceResponse:
    """Streamed price if cached, otherwise a REST quote. 503 when neither has one."""
    price = await feed.get_price_async(symbol)
    return PriceResponse(symbol=symbol.upper(), price=price)


@router.post("/subscribe-portfolio", response_model=SubscriptionResponse)
async def subscribe_portfolio(
    data: Optional[SymbolsRequest] = None,
    user_id: str = Depends(get_current_user_id),
    feed: PriceFeedClient = Depends(get_price_feed),
    projection: HoldingsProjection = Depends(get_holdings_projection),
) -> SubscriptionResponse:
    """Subscribe to the caller's holdings (or the given symbols), connecting first if needed."""
    if feed.state == FeedState.DISCONNECTED:
        await feed.connect()
    symbols = await _portfolio_symbols(user_id, data, projection)
    sent = await feed.subscribe(symbols)
    return SubscriptionResponse(symbols=sent, status=FeedStatusResponse.model_validate(feed.status()))


@router.post("/unsubscribe-unused", response_model=SubscriptionResponse)
async def unsubscribe_unused(
    data: Optional[SymbolsRequest] = None,
    user_id: str = Depends(get_current_user_id),
    feed: PriceFeedClient = Depends(get_price_feed),
    projection: HoldingsProjection = Depends(get_holdings_projection),
) -> SubscriptionResponse:
    """Drop every subscription not in the caller's holdings (or the given symbols)."""
    keep = await _portfolio_symbols(user_id, data, projection)
    dropped = await feed.unsubscribe_except(keep)
    return SubscriptionResponse(symbols=dropped, status=FeedStatusResponse.model_validate(feed.status()))
