"""Pydantic schemas for API request/response."""

from stocksim.api.schemas.portfolio import (
    TransactionOut,
    PositionOut,
    PortfolioResponse,
    TradeRequest,
    TradeResponse,
    PositionValuationOut,
    ValuationResponse,
)
from stocksim.api.schemas.market import (
    QuoteResponse,
    ErrorDetail,
    BatchQuoteResponse,
    HistoricalBarOut,
    HistoricalResponse,
    SymbolMatchOut,
    SearchResponse,
    NewsArticleOut,
    NewsResponse,
)

__all__ = [
    "TransactionOut",
    "PositionOut",
    "PortfolioResponse",
    "TradeRequest",
    "TradeResponse",
    "PositionValuationOut",
    "ValuationResponse",
    "QuoteResponse",
    "ErrorDetail",
    "BatchQuoteResponse",
    "HistoricalBarOut",
    "HistoricalResponse",
    "SymbolMatchOut",
    "SearchResponse",
    "NewsArticleOut",
    "NewsResponse",
]
