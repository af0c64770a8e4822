"""Transaction ledger endpoints."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from investor.api.deps import get_current_user_id, get_ledger_service
from investor.api.schemas import (
    TransactionBatchRequest,
    TransactionBatchResponse,
    TransactionCreateRequest,
    TransactionListResponse,
    TransactionResponse,
    TransactionUpdateRequest,
)
from investor.core.exceptions import ValidationError
from investor.core.timezone import parse_datetime_utc
from investor.domain.models import (
    Operation,
    SortField,
    SortOrder,
    TransactionCreate,
    TransactionUpdate,
)
from investor.domain.views import TransactionQuery
from investor.services import LedgerService

router = APIRouter(prefix="/transactions", tags=["transactions"])


def _parse_bound(name: str, value: Optional[str]) -> Optional[datetime]:
    """Parse a date filter leniently (dates, ISO timestamps); naive values are UTC."""
    if not value:
        return None
    try:
        return parse_datetime_utc(value)
    except (ValueError, OverflowError) as e:
        raise ValidationError(f"Invalid {name}: {value!r}") from e


def _to_command(user_id: str, data: TransactionCreateRequest) -> TransactionCreate:
    return TransactionCreate(
        user_id=user_id,
        operation=data.operation,
        ticker=data.ticker,
        price=data.price,
        share_count=data.share_count,
        executed_at=data.executed_at,
    )


@router.get("", response_model=TransactionListResponse)
def list_transactions(
    ticker: Optional[str] = Query(None, max_length=5, description="Case-insensitive ticker prefix"),
    operation: Optional[Operation] = Query(None),
    start_date: Optional[str] = Query(None, description="Inclusive lower bound on executed_at"),
    end_date: Optional[str] = Query(None, description="Inclusive upper bound on executed_at"),
    sort_by: SortField = Query(SortField.EXECUTED_AT, description="price sorts by total value"),
    sort_order: SortOrder = Query(SortOrder.DESC),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    user_id: str = Depends(get_current_user_id),
    ledger: LedgerService = Depends(get_ledger_service),
) -> TransactionListResponse:
    """List the caller's transactions with filters, sorting and pagination."""
    query = TransactionQuery(
        ticker=ticker,
        operation=operation,
        start_date=_parse_bound("start_date", start_date),
        end_date=_parse_bound("end_date", end_date),
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        page_size=limit,
    )
    result = ledger.list_transactions(user_id, query)
    return TransactionListResponse(
        items=[TransactionResponse.model_validate(t) for t in result.items],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        total_pages=result.total_pages,
        has_next=result.has_next,
        has_prev=result.has_prev,
        next_page=result.next_page,
        prev_page=result.prev_page,
    )


@router.get("/all", response_model=list[TransactionResponse])
def list_all_transactions(
    user_id: str = Depends(get_current_user_id),
    ledger: LedgerService = Depends(get_ledger_service),
) -> list[TransactionResponse]:
    """Entire ledger, oldest first. Fails with 422 above the fetch cap."""
    return [TransactionResponse.model_validate(t) for t in ledger.get_all_unpaginated(user_id)]


@router.post("/batch", response_model=TransactionBatchResponse, status_code=201)
def create_batch(
    data: TransactionBatchRequest,
    user_id: str = Depends(get_current_user_id),
    ledger: LedgerService = Depends(get_ledger_service),
) -> TransactionBatchResponse:
    """Record 1-10 trades atomically; one bad item rejects the batch."""
    result = ledger.create_batch(user_id, [_to_command(user_id, item) for item in data.transactions])
    return TransactionBatchResponse(
        transactions=[TransactionResponse.model_validate(t) for t in result.transactions],
        count=result.count,
        cash_change=result.cash_change,
    )


@router.get("/{transaction_id}", response_model=TransactionResponse)
def get_transaction(
    transaction_id: str,
    user_id: str = Depends(get_current_user_id),
    ledger: LedgerService = Depends(get_ledger_service),
) -> TransactionResponse:
    return TransactionResponse.model_validate(ledger.get_transaction(user_id, transaction_id))


@router.post("", response_model=TransactionResponse, status_code=201)
def create_transaction(
    data: TransactionCreateRequest,
    user_id: str = Depends(get_current_user_id),
    ledger: LedgerService = Depends(get_ledger_service),
) -> TransactionResponse:
    """Record a trade and move the caller's cash by its value."""
    created = ledger.create_transaction(_to_command(user_id, data))
    return TransactionResponse.model_validate(created)


@router.put("/{transaction_id}", response_model=TransactionResponse)
def update_transaction(
    transaction_id: str,
    data: TransactionUpdateRequest,
    user_id: str = Depends(get_current_user_id),
    ledger: LedgerService = Depends(get_ledger_service),
) -> TransactionResponse:
    """Edit a trade; cash handling follows the configured update policy."""
    patch = TransactionUpdate(
        operation=data.operation,
        ticker=data.ticker,
        price=data.price,
        share_count=data.share_count,
        executed_at=data.executed_at,
    )
    updated = ledger.update_transaction(user_id, transaction_id, patch)
    return TransactionResponse.model_validate(updated)


@router.delete("/{transaction_id}", status_code=204)
def delete_transaction(
    transaction_id: str,
    user_id: str = Depends(get_current_user_id),
    ledger: LedgerService = Depends(get_ledger_service),
) -> Response:
    """Delete a trade and reverse its cash effect."""
    ledger.delete_transaction(user_id, transaction_id)
    return Response(status_code=204)
