"""Pydantic schemas for the market data API."""

import datetime as dt
from typing import Optional

from pydantic import BaseModel

from stocksim.domain.views import Quote, HistoricalResult, NewsArticle


class QuoteResponse(BaseModel):
    """Latest quote for a symbol."""

    symbol: str
    name: Optional[str] = None
    price: float
    change: float
    change_percent: float
    previous_close: float
    fetched_at: dt.datetime

    @classmethod
    def from_domain(cls, quote: Quote) -> "QuoteResponse":
        return cls(
            symbol=quote.symbol,
            name=quote.name,
            price=float(quote.price),
            change=float(quote.change),
            change_percent=float(quote.change_percent),
            previous_close=float(quote.previous_close),
            fetched_at=quote.fetched_at,
        )


class ErrorDetail(BaseModel):
    """Error code and message, as returned by every failing endpoint."""

    error: str
    message: str


class BatchQuoteResponse(BaseModel):
    """Quotes for many symbols; failed symbols are listed in errors."""

    quotes: list[QuoteResponse]
    errors: dict[str, ErrorDetail]
    first_error_symbol: Optional[str] = None


class HistoricalBarOut(BaseModel):
    date: dt.date
    open: float
    high: float
    low: float
    close: float
    volume: int


class HistoricalResponse(BaseModel):
    """Historical series; partial is true when malformed upstream records were dropped."""

    symbol: str
    timeframe: str
    bars: list[HistoricalBarOut]
    skipped: int
    partial: bool

    @classmethod
    def from_domain(cls, result: HistoricalResult) -> "HistoricalResponse":
        return cls(
            symbol=result.symbol,
            timeframe=result.timeframe.value,
            bars=[
                HistoricalBarOut(
                    date=bar.date,
                    open=float(bar.open),
                    high=float(bar.high),
                    low=float(bar.low),
                    close=float(bar.close),
                    volume=bar.volume,
                )
                for bar in result.bars
            ],
            skipped=result.skipped,
            partial=result.partial,
        )


class SymbolMatchOut(BaseModel):
    symbol: str
    name: str


class SearchResponse(BaseModel):
    query: str
    results: list[SymbolMatchOut]


class NewsArticleOut(BaseModel):
    headline: str
    summary: str
    url: str
    source: str
    image_url: Optional[str] = None
    published_at: Optional[dt.datetime] = None

    @classmethod
    def from_domain(cls, article: NewsArticle) -> "NewsArticleOut":
        return cls(
            headline=article.headline,
            summary=article.summary,
            url=article.url,
            source=article.source,
            image_url=article.image_url,
            published_at=article.published_at,
        )


class NewsResponse(BaseModel):
    """Market headlines for a category (cached for a few minutes)."""

    category: str
    articles: list[NewsArticleOut]
