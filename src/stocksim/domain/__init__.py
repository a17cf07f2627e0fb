"""Domain layer - pure business models with no external dependencies."""

from stocksim.domain.models import (
    Transaction,
    OwnedStock,
    CacheEntry,
    TransactionType,
    Timeframe,
)

__all__ = [
    "Transaction",
    "OwnedStock",
    "CacheEntry",
    "TransactionType",
    "Timeframe",
]
