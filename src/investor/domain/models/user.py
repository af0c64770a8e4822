"""User domain model."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional


@dataclass
class User:
    """
    Ledger owner.

    ``cash`` may go negative: buys are allowed to overdraw.
    """

    user_id: str
    email: str
    first_name: str = ""
    last_name: str = ""
    cash: Decimal = field(default_factory=lambda: Decimal("0.00"))
    created_at: Optional[datetime] = field(default=None)
    updated_at: Optional[datetime] = field(default=None)
