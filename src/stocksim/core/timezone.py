"""Timezone utilities for US/Eastern market time."""

from datetime import datetime
from typing import Optional

import pytz
from dateutil import parser as date_parser

EASTERN_TZ = pytz.timezone("US/Eastern")


def now_eastern() -> datetime:
    """Return current time in US/Eastern timezone."""
    return datetime.now(EASTERN_TZ)


def to_eastern(dt: datetime) -> datetime:
    """Convert a datetime to US/Eastern; naive values are taken as Eastern already."""
    if dt.tzinfo is None:
        return EASTERN_TZ.localize(dt)
    return dt.astimezone(EASTERN_TZ)


def parse_datetime_eastern(value: str) -> datetime:
    """
    Parse an ISO-8601 (or similar) timestamp string into US/Eastern.

    Raises ValueError / OverflowError from dateutil on unparseable input.
    """
    return to_eastern(date_parser.parse(value))


def parse_timestamp_or_now(value: Optional[str]) -> datetime:
    """Parse a persisted timestamp, falling back to now for missing or bad values."""
    if not value:
        return now_eastern()
    try:
        return parse_datetime_eastern(value)
    except (ValueError, OverflowError):
        return now_eastern()


def seconds_between(earlier: datetime, later: datetime) -> float:
    """Elapsed seconds from earlier to later (both tz-aware)."""
    return (later - earlier).total_seconds()
