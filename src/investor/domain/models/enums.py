"""Enumerations for domain models."""

from enum import Enum


class Operation(str, Enum):
    """Ledger operation types."""

    BUY = "buy"
    SELL = "sell"


class SortField(str, Enum):
    """Sortable transaction columns. PRICE sorts by total value (price x shares)."""

    EXECUTED_AT = "executed_at"
    CREATED_AT = "created_at"
    TICKER = "ticker"
    OPERATION = "operation"
    PRICE = "price"
    SHARE_COUNT = "share_count"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class UpdateCashPolicy(str, Enum):
    """How a transaction edit treats the owner's cash balance."""

    REAPPLY = "reapply"  # reverse the old delta, apply the new one
    IGNORE = "ignore"  # edit the row only; cash is left as is
    RESTRICT = "restrict"  # only ticker/executed_at may change


class FeedState(str, Enum):
    """Price stream connection states."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"
