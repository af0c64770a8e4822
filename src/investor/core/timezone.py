"""Clock utilities; all ledger timestamps are UTC."""

from datetime import datetime
from typing import Optional

import pytz
from dateutil import parser as date_parser

UTC = pytz.utc


def now_utc() -> datetime:
    """Return current time as an aware UTC datetime."""
    return datetime.now(UTC)


def to_utc(dt: datetime) -> datetime:
    """Convert a datetime to aware UTC. Naive datetimes are assumed to be UTC."""
    if dt.tzinfo is None:
        return UTC.localize(dt)
    return dt.astimezone(UTC)


def parse_datetime_utc(value: str) -> datetime:
    """Parse an ISO-ish datetime or date string into aware UTC."""
    return to_utc(date_parser.parse(value))


def to_storage(dt: Optional[datetime]) -> Optional[datetime]:
    """Normalize to naive UTC for DateTime columns (SQLite drops tzinfo)."""
    if dt is None:
        return None
    return to_utc(dt).replace(tzinfo=None)


def from_storage(dt: Optional[datetime]) -> Optional[datetime]:
    """Re-attach UTC to a datetime loaded from the database."""
    if dt is None:
        return None
    return to_utc(dt)
