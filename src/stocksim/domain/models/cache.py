"""Cache entry model for time-sensitive market data."""

from dataclasses import dataclass
from datetime import datetime
from typing import Generic, Optional, TypeVar

from stocksim.core.timezone import now_eastern, seconds_between

T = TypeVar("T")


@dataclass
class CacheEntry(Generic[T]):
    """A cached value and when it was fetched. Freshness depends on the owning cache's TTL."""

    value: T
    fetched_at: datetime

    def age_seconds(self, now: Optional[datetime] = None) -> float:
        return seconds_between(self.fetched_at, now or now_eastern())

    def is_fresh(self, ttl_seconds: float, now: Optional[datetime] = None) -> bool:
        return self.age_seconds(now) < ttl_seconds
