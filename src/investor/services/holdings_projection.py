"""Holdings projection: read, invalidate, sync and annotate derived rows."""

import logging
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy.orm import sessionmaker

from investor.core.exceptions import ValidationError
from investor.core.money import ZERO, to_money
from investor.core.timezone import now_utc
from investor.domain.models import ComputedHolding, Holding
from investor.repositories.sqlalchemy.unit_of_work import unit_of_work
from investor.services.balance_coordinator import normalize_ticker

logger = logging.getLogger(__name__)


class HoldingsProjection:
    """
    Per-(user, ticker) projection of the ledger.

    Rows are never deleted. Invalidation only clears ``last_synced_at``;
    sync rewrites position fields and stamps the row. User annotations
    (stop loss, entry reason) are left alone by both.
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def get(self, user_id: str) -> list[Holding]:
        """Return the stored rows as-is (possibly stale)."""
        with unit_of_work(self._session_factory) as uow:
            return uow.holdings.list_for_user(user_id)

    def invalidate(self, user_id: str, tickers: Iterable[str]) -> int:
        """Mark the given tickers stale. Unknown tickers are ignored."""
        normalized = {normalize_ticker(t) for t in tickers if t and t.strip()}
        with unit_of_work(self._session_factory) as uow:
            count = uow.holdings.invalidate(user_id, normalized)
        logger.info(f"Invalidated {count} holdings for user {user_id}: {sorted(normalized)}")
        return count

    def generation(self, user_id: str) -> int:
        """Invalidation counter for the user's rows. Read it before the ledger."""
        with unit_of_work(self._session_factory) as uow:
            return uow.holdings.generation(user_id)

    def sync(
        self,
        user_id: str,
        computed: list[ComputedHolding],
        complete: bool = False,
        generation: Optional[int] = None,
    ) -> Optional[list[Holding]]:
        """
        Upsert computed positions and stamp them as fresh.

        Entries without a ticker or with no shares left are skipped. With
        ``complete`` the input is the full recomputed set, so stored rows
        for tickers not in it are zeroed and stamped as well.

        When ``generation`` is given the write is a compare-and-set: if any
        invalidation committed since that generation was read, nothing is
        written and None is returned.
        """
        synced_at = now_utc()
        written: dict[str, ComputedHolding] = {}
        for entry in computed:
            ticker = normalize_ticker(entry.ticker)
            if not ticker or entry.total_shares <= 0:
                continue
            entry.ticker = ticker
            written[ticker] = entry

        with unit_of_work(self._session_factory) as uow:
            if generation is not None and not uow.holdings.claim_generation(user_id, generation):
                logger.info(f"Holdings for user {user_id} changed since generation {generation}; sync skipped")
                return None
            for entry in written.values():
                uow.holdings.upsert_position(user_id, entry, synced_at)
            zeroed = 0
            if complete:
                zeroed = uow.holdings.zero_missing(user_id, written.keys(), synced_at)
            rows = uow.holdings.list_for_user(user_id)

        logger.info(f"Synced {len(written)} holdings for user {user_id} ({zeroed} closed)")
        return rows

    def update_annotation(
        self,
        user_id: str,
        ticker: str,
        stop_loss: Optional[Decimal] = None,
        entry_reason: Optional[str] = None,
    ) -> Holding:
        """Upsert stop loss / entry reason. Missing values reset to 0 and ""."""
        ticker = normalize_ticker(ticker)
        if not ticker:
            raise ValidationError("Ticker is required")
        stop_loss = to_money(stop_loss) if stop_loss is not None else ZERO
        if stop_loss < 0:
            raise ValidationError("Stop loss cannot be negative")

        with unit_of_work(self._session_factory) as uow:
            return uow.holdings.upsert_annotation(user_id, ticker, stop_loss, entry_reason or "")
