"""Holdings projection endpoints."""

from fastapi import APIRouter, Depends

from investor.api.deps import get_current_user_id, get_holdings_projection
from investor.api.schemas import (
    HoldingAnnotationRequest,
    HoldingInvalidateRequest,
    HoldingInvalidateResponse,
    HoldingResponse,
    HoldingSyncRequest,
)
from investor.domain.models import ComputedHolding
from investor.services import HoldingsProjection

router = APIRouter(prefix="/holdings", tags=["holdings"])


@router.get("", response_model=list[HoldingResponse])
def list_holdings(
    user_id: str = Depends(get_current_user_id),
    projection: HoldingsProjection = Depends(get_holdings_projection),
) -> list[HoldingResponse]:
    """Stored projection rows as-is; stale rows are flagged, not recomputed."""
    return [HoldingResponse.model_validate(h) for h in projection.get(user_id)]


@router.post("/sync", response_model=list[HoldingResponse])
def sync_holdings(
    data: HoldingSyncRequest,
    user_id: str = Depends(get_current_user_id),
    projection: HoldingsProjection = Depends(get_holdings_projection),
) -> list[HoldingResponse]:
    """Write computed positions back; annotations are preserved."""
    computed = [
        ComputedHolding(
            ticker=item.ticker or "",
            total_shares=item.total_shares,
            average_price=item.average_price,
            total_spent=item.total_spent,
            total_value=item.total_value,
            last_price=item.last_price,
        )
        for item in data.holdings
    ]
    rows = projection.sync(user_id, computed)
    return [HoldingResponse.model_validate(h) for h in rows]


@router.post("/invalidate", response_model=HoldingInvalidateResponse)
def invalidate_holdings(
    data: HoldingInvalidateRequest,
    user_id: str = Depends(get_current_user_id),
    projection: HoldingsProjection = Depends(get_holdings_projection),
) -> HoldingInvalidateResponse:
    return HoldingInvalidateResponse(invalidated=projection.invalidate(user_id, data.tickers))


@router.put("/{ticker}", response_model=HoldingResponse)
def update_annotation(
    ticker: str,
    data: HoldingAnnotationRequest,
    user_id: str = Depends(get_current_user_id),
    projection: HoldingsProjection = Depends(get_holdings_projection),
) -> HoldingResponse:
    """Set stop loss and entry reason for a ticker (creates the row if needed)."""
    holding = projection.update_annotation(
        user_id,
        ticker,
        stop_loss=data.stop_loss,
        entry_reason=data.entry_reason,
    )
    return HoldingResponse.model_validate(holding)
