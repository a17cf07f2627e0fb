"""
Yahoo Finance market data source via yfinance.

No API key is needed. Field fallbacks follow what yfinance exposes:
currentPrice then regularMarketPrice, longName then shortName.
"""

import logging
from typing import Any, Optional

from dateutil import parser as date_parser

from stocksim.core.exceptions import MalformedPayloadError, RateLimitError, TransportError
from stocksim.domain.models import SeriesInterval, Timeframe, interval_for
from stocksim.domain.views import (
    CompanyProfile,
    NewsArticle,
    QuoteData,
    RawHistoricalRecord,
    SymbolMatch,
)
from stocksim.providers.parsers import parse_news, parse_quote

logger = logging.getLogger(__name__)


# Lazy import so tests can patch before import
def _get_yf():
    import yfinance as yf
    return yf


# (period, interval) per bar spacing
_HISTORY_PARAMS: dict[SeriesInterval, tuple[str, str]] = {
    SeriesInterval.DAILY: ("6mo", "1d"),
    SeriesInterval.WEEKLY: ("max", "1wk"),
    SeriesInterval.MONTHLY: ("max", "1mo"),
}

DEFAULT_SEARCH_RESULTS = 10

# yfinance has no general news feed; headlines come from a proxy ticker per category
_NEWS_PROXIES = {
    "general": "SPY",
    "forex": "EURUSD=X",
    "crypto": "BTC-USD",
    "merger": "SPY",
}


class YFinanceSource:
    """Market data source backed by yfinance."""

    def __init__(self, max_search_results: int = DEFAULT_SEARCH_RESULTS):
        self._max_search_results = max_search_results

    def get_quote(self, symbol: str) -> QuoteData:
        info = self._info(symbol)
        price = info.get("currentPrice")
        if price is None:
            price = info.get("regularMarketPrice")
        prev_close = info.get("previousClose")
        if prev_close is None:
            prev_close = info.get("regularMarketPreviousClose")
        return parse_quote(
            {
                "c": price,
                "pc": prev_close,
                "d": info.get("regularMarketChange"),
                "dp": info.get("regularMarketChangePercent"),
                "t": info.get("regularMarketTime"),
            }
        )

    def get_profile(self, symbol: str) -> Optional[CompanyProfile]:
        info = self._info(symbol)
        name = (info.get("longName") or info.get("shortName") or "").strip()
        if not name:
            return None
        return CompanyProfile(
            name=name,
            ticker=info.get("symbol") or symbol,
            exchange=info.get("exchange"),
            currency=info.get("currency"),
            industry=info.get("industry"),
            web_url=info.get("website"),
        )

    def search(self, query: str) -> list[SymbolMatch]:
        yf = _get_yf()
        try:
            quotes = yf.Search(query, max_results=self._max_search_results).quotes
        except Exception as exc:
            raise self._translate(exc, f"search '{query}'")
        if not isinstance(quotes, list):
            return []
        matches = []
        for item in quotes:
            if not isinstance(item, dict) or not item.get("symbol"):
                continue
            name = item.get("longname") or item.get("shortname") or ""
            matches.append(SymbolMatch(symbol=str(item["symbol"]), name=str(name)))
        return matches

    def get_historical(self, symbol: str, timeframe: Timeframe) -> list[RawHistoricalRecord]:
        period, interval = _HISTORY_PARAMS[interval_for(timeframe)]
        yf = _get_yf()
        try:
            frame = yf.Ticker(symbol).history(period=period, interval=interval, auto_adjust=True)
        except Exception as exc:
            raise self._translate(exc, f"history for {symbol}")

        if frame is None or frame.empty:
            return []

        records: list[RawHistoricalRecord] = []
        for idx, row in frame.iterrows():
            records.append(
                {
                    "date": idx,
                    "open": row.get("Open"),
                    "high": row.get("High"),
                    "low": row.get("Low"),
                    "close": row.get("Close"),
                    "volume": row.get("Volume"),
                }
            )
        return records

    def get_news(self, category: str = "general") -> list[NewsArticle]:
        proxy = _NEWS_PROXIES.get(category, _NEWS_PROXIES["general"])
        yf = _get_yf()
        try:
            items = yf.Ticker(proxy).news
        except Exception as exc:
            raise self._translate(exc, f"{category} news")
        if not isinstance(items, list):
            return []
        return parse_news([_news_record(item) for item in items if isinstance(item, dict)])

    def _info(self, symbol: str) -> dict[str, Any]:
        yf = _get_yf()
        try:
            info = yf.Ticker(symbol).info
        except Exception as exc:
            raise self._translate(exc, f"info for {symbol}")
        if not isinstance(info, dict):
            raise MalformedPayloadError(f"yfinance info for {symbol} is not a dict")
        return info

    @staticmethod
    def _translate(exc: Exception, what: str) -> Exception:
        from yfinance.exceptions import YFRateLimitError

        if isinstance(exc, YFRateLimitError):
            return RateLimitError(f"Yahoo Finance throttled {what}")
        logger.warning("yfinance failed fetching %s: %s", what, exc)
        return TransportError(f"yfinance failed fetching {what}: {exc}")


def _nested(mapping: Any, *keys: str) -> Any:
    for key in keys:
        if not isinstance(mapping, dict):
            return None
        mapping = mapping.get(key)
    return mapping


def _news_record(item: dict[str, Any]) -> dict[str, Any]:
    """Map a yfinance news item (flat or under "content") to the Finnhub news shape."""
    content = item.get("content") if isinstance(item.get("content"), dict) else item

    published = content.get("providerPublishTime")
    pub_date = content.get("pubDate")
    if published is None and isinstance(pub_date, str):
        try:
            published = int(date_parser.isoparse(pub_date).timestamp())
        except (ValueError, OverflowError):
            published = None

    return {
        "headline": content.get("title"),
        "summary": content.get("summary"),
        "url": (
            _nested(content, "canonicalUrl", "url")
            or _nested(content, "clickThroughUrl", "url")
            or content.get("link")
        ),
        "source": _nested(content, "provider", "displayName") or content.get("publisher"),
        "image": _nested(content, "thumbnail", "originalUrl"),
        "datetime": published,
    }
