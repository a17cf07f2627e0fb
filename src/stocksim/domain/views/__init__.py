"""View models for service outputs."""

from stocksim.domain.views.market import (
    QuoteData,
    CompanyProfile,
    SymbolMatch,
    Quote,
    HistoricalBar,
    RawHistoricalRecord,
    HistoricalResult,
    BatchQuoteResult,
    NewsArticle,
)
from stocksim.domain.views.portfolio import (
    PortfolioSnapshot,
    PositionValuation,
    PortfolioValuation,
)

__all__ = [
    "QuoteData",
    "CompanyProfile",
    "SymbolMatch",
    "Quote",
    "HistoricalBar",
    "RawHistoricalRecord",
    "HistoricalResult",
    "BatchQuoteResult",
    "NewsArticle",
    "PortfolioSnapshot",
    "PositionValuation",
    "PortfolioValuation",
]
