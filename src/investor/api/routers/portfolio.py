"""Portfolio view endpoint."""

from fastapi import APIRouter, Depends

from investor.api.deps import get_current_user_id, get_portfolio_engine
from investor.api.schemas import PortfolioHoldingResponse, PortfolioResponse
from investor.services import PortfolioEngine

router = APIRouter(prefix="/portfolio", tags=["portfolio"])


@router.get("", response_model=PortfolioResponse)
def get_portfolio(
    user_id: str = Depends(get_current_user_id),
    engine: PortfolioEngine = Depends(get_portfolio_engine),
) -> PortfolioResponse:
    """
    Return the caller's portfolio.

    - If any holding is stale (or none exist) the ledger is replayed first
      and ``recomputed`` is true.
    - ``price_stale`` marks holdings valued with a stored price.
    - Null ``last_price``/``total_value`` mean no price is known.
    """
    view = engine.get_portfolio(user_id)
    return PortfolioResponse(
        holdings=[PortfolioHoldingResponse.model_validate(h) for h in view.holdings],
        total_spent=view.total_spent,
        total_value=view.total_value,
        unrealized_pl=view.unrealized_pl,
        unrealized_pl_percent=view.unrealized_pl_percent,
        cash=view.cash,
        synced_at=view.synced_at,
        recomputed=view.recomputed,
        prices_complete=view.prices_complete,
    )
