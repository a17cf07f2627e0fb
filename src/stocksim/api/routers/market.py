"""Market data API: quotes, historical series, symbol search and news."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from stocksim.services import MarketDataCache
from stocksim.api.deps import get_market_data
from stocksim.api.schemas import (
    QuoteResponse,
    BatchQuoteResponse,
    ErrorDetail,
    HistoricalResponse,
    SymbolMatchOut,
    SearchResponse,
    NewsArticleOut,
    NewsResponse,
)

router = APIRouter(prefix="/market", tags=["market"])


def _split_symbols(values: list[str]) -> list[str]:
    """Accept both ?symbols=A&symbols=B and ?symbols=A,B."""
    symbols = []
    for value in values:
        symbols.extend(part.strip().upper() for part in value.split(",") if part.strip())
    return symbols


@router.get("/quotes/{symbol}", response_model=QuoteResponse)
def get_quote(symbol: str, market_data: MarketDataCache = Depends(get_market_data)):
    """Latest quote (cached for a couple of minutes)."""
    return QuoteResponse.from_domain(market_data.get_quote(symbol))


@router.get("/quotes", response_model=BatchQuoteResponse)
def get_quotes(
    symbols: list[str] = Query(..., description="Repeatable or comma-separated symbols"),
    market_data: MarketDataCache = Depends(get_market_data),
):
    """Quotes for several symbols. One failing symbol does not fail the request."""
    batch = market_data.get_quotes_for_symbols(_split_symbols(symbols))
    return BatchQuoteResponse(
        quotes=[QuoteResponse.from_domain(quote) for quote in batch.quotes.values()],
        errors={
            symbol: ErrorDetail(error=exc.code, message=exc.message)
            for symbol, exc in batch.errors.items()
        },
        first_error_symbol=batch.first_error_symbol,
    )


@router.get("/historical/{symbol}", response_model=HistoricalResponse)
def get_historical(
    symbol: str,
    timeframe: str = Query("1m", description="1d, 1w, 1m, 3m, 6m, 1y or max"),
    market_data: MarketDataCache = Depends(get_market_data),
):
    """Historical series for a chart timeframe (cached until refreshed)."""
    return HistoricalResponse.from_domain(market_data.get_historical(symbol, timeframe))


@router.post("/historical/{symbol}/refresh", response_model=HistoricalResponse)
def refresh_historical(
    symbol: str,
    timeframe: str = Query("1m"),
    market_data: MarketDataCache = Depends(get_market_data),
):
    """Refetch a historical series, replacing the cached one."""
    return HistoricalResponse.from_domain(market_data.refresh_historical(symbol, timeframe))


@router.get("/search", response_model=SearchResponse)
def search(
    q: Optional[str] = Query(None, description="Symbol or company name fragment"),
    market_data: MarketDataCache = Depends(get_market_data),
):
    """Search symbols upstream (not cached)."""
    query = (q or "").strip()
    matches = market_data.search_symbols(query)
    return SearchResponse(
        query=query,
        results=[SymbolMatchOut(symbol=m.symbol, name=m.name) for m in matches],
    )


@router.get("/news", response_model=NewsResponse)
def get_news(
    category: str = Query("general", description="general, forex, crypto or merger"),
    market_data: MarketDataCache = Depends(get_market_data),
):
    """Latest market headlines."""
    category = category.strip().lower() or "general"
    articles = market_data.get_news(category)
    return NewsResponse(
        category=category,
        articles=[NewsArticleOut.from_domain(article) for article in articles],
    )
