"""Market data source protocol."""

from typing import Optional, Protocol

from stocksim.domain.models import Timeframe
from stocksim.domain.views import (
    CompanyProfile,
    NewsArticle,
    QuoteData,
    RawHistoricalRecord,
    SymbolMatch,
)


class MarketDataSource(Protocol):
    """
    Protocol for upstream market data.

    Implementations raise UpstreamError subclasses for missing credentials,
    rate limiting, malformed payloads and transport failures. They do no
    caching.
    """

    def get_quote(self, symbol: str) -> QuoteData:
        """Fetch the latest quote. Unknown symbols yield an all-zero QuoteData."""
        ...

    def get_profile(self, symbol: str) -> Optional[CompanyProfile]:
        """Fetch the company profile, or None when the source has none."""
        ...

    def search(self, query: str) -> list[SymbolMatch]:
        """Search symbols by free text."""
        ...

    def get_historical(self, symbol: str, timeframe: Timeframe) -> list[RawHistoricalRecord]:
        """
        Fetch raw OHLCV records ordered by date ascending.

        Records are left unparsed so the caller can drop malformed rows one
        at a time.
        """
        ...

    def get_news(self, category: str = "general") -> list[NewsArticle]:
        """Fetch the latest market news headlines for a category, newest first."""
        ...
