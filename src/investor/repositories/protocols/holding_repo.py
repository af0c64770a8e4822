"""Holding repository protocol for the derived projection."""

from datetime import datetime
from decimal import Decimal
from typing import Iterable, Protocol, Optional

from investor.domain.models import Holding, ComputedHolding


class HoldingRepository(Protocol):
    """Interface for holdings projection data access."""

    def list_for_user(self, user_id: str) -> list[Holding]:
        ...

    def get(self, user_id: str, ticker: str) -> Optional[Holding]:
        ...

    def invalidate(self, user_id: str, tickers: Iterable[str]) -> int:
        """Mark rows stale and bump the owner's generation; returns rows touched."""
        ...

    def generation(self, user_id: str) -> int:
        ...

    def claim_generation(self, user_id: str, expected: int) -> bool:
        """Lock the owner for a sync iff the generation is still ``expected``."""
        ...

    def upsert_position(
        self, user_id: str, computed: ComputedHolding, synced_at: datetime
    ) -> Holding:
        """Insert or update position fields, preserving annotations."""
        ...

    def zero_missing(self, user_id: str, keep: Iterable[str], synced_at: datetime) -> int:
        """Zero rows for tickers outside ``keep``."""
        ...

    def upsert_annotation(
        self, user_id: str, ticker: str, stop_loss: Decimal, entry_reason: str
    ) -> Holding:
        ...
