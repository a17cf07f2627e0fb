"""Domain models package."""

from stocksim.domain.models.enums import (
    TransactionType,
    Timeframe,
    SeriesInterval,
    interval_for,
    is_full_history,
)
from stocksim.domain.models.transaction import Transaction, to_decimal
from stocksim.domain.models.position import OwnedStock
from stocksim.domain.models.cache import CacheEntry

__all__ = [
    "TransactionType",
    "Timeframe",
    "SeriesInterval",
    "interval_for",
    "is_full_history",
    "Transaction",
    "to_decimal",
    "OwnedStock",
    "CacheEntry",
]
