"""Enumerations for domain models."""

from enum import Enum


class TransactionType(str, Enum):
    """Direction of a ledger transaction, derived from the quantity sign."""

    BUY = "BUY"
    SELL = "SELL"


class Timeframe(str, Enum):
    """Chart timeframes for historical series."""

    ONE_DAY = "1d"
    ONE_WEEK = "1w"
    ONE_MONTH = "1m"
    THREE_MONTHS = "3m"
    SIX_MONTHS = "6m"
    ONE_YEAR = "1y"
    MAX = "max"


class SeriesInterval(str, Enum):
    """Bar spacing an upstream series is requested at."""

    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"


def interval_for(timeframe: Timeframe) -> SeriesInterval:
    """Map a chart timeframe to the bar interval used to fetch it."""
    if timeframe in (Timeframe.SIX_MONTHS, Timeframe.ONE_YEAR):
        return SeriesInterval.WEEKLY
    if timeframe == Timeframe.MAX:
        return SeriesInterval.MONTHLY
    return SeriesInterval.DAILY


def is_full_history(timeframe: Timeframe) -> bool:
    """True for timeframes that need the full (not compact) upstream series."""
    return timeframe in (Timeframe.SIX_MONTHS, Timeframe.ONE_YEAR, Timeframe.MAX)
