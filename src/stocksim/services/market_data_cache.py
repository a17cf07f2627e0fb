"""Market data cache for quotes, company profiles and historical series."""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from datetime import date, datetime
from typing import Callable, Iterable, Optional, Union

from stocksim.core.timezone import now_eastern
from stocksim.core.exceptions import (
    AppError,
    ValidationError,
    SymbolNotFoundError,
    UpstreamError,
    MalformedPayloadError,
    ParseError,
)
from stocksim.core.single_flight import SingleFlight
from stocksim.domain.models import CacheEntry, Timeframe
from stocksim.domain.views import (
    Quote,
    CompanyProfile,
    SymbolMatch,
    HistoricalBar,
    HistoricalResult,
    BatchQuoteResult,
    NewsArticle,
    RawHistoricalRecord,
)
from stocksim.providers.market_data_source import MarketDataSource
from stocksim.providers.parsers import parse_historical_record

logger = logging.getLogger(__name__)

DEFAULT_QUOTE_TTL_SECONDS = 2 * 60
DEFAULT_PROFILE_TTL_SECONDS = 24 * 60 * 60
DEFAULT_NEWS_TTL_SECONDS = 10 * 60
DEFAULT_NEWS_CATEGORY = "general"

HistoricalKey = tuple[str, Timeframe]


def coerce_timeframe(value: Union[Timeframe, str]) -> Timeframe:
    """Accept a Timeframe or its string value ("1d", "6m", ...)."""
    if isinstance(value, Timeframe):
        return value
    try:
        return Timeframe(str(value).strip().lower())
    except ValueError:
        valid = ", ".join(tf.value for tf in Timeframe)
        raise ValidationError(f"Unknown timeframe '{value}'. Expected one of: {valid}")


def build_historical_result(
    symbol: str,
    timeframe: Timeframe,
    records: Iterable[RawHistoricalRecord],
) -> HistoricalResult:
    """
    Parse raw records into a date-ascending series, one bar per date.

    Malformed records are dropped and counted; a later record for a date
    replaces an earlier one.
    """
    bars: dict[date, HistoricalBar] = {}
    skipped = 0
    for record in records:
        try:
            bar = parse_historical_record(record)
        except ParseError as exc:
            skipped += 1
            logger.debug("Skipping historical record for %s: %s", symbol, exc.message)
            continue
        bars[bar.date] = bar

    ordered: list[HistoricalBar] = [bars[key] for key in sorted(bars)]
    return HistoricalResult(symbol=symbol, timeframe=timeframe, bars=ordered, skipped=skipped)


class MarketDataCache:
    """
    In-memory cache in front of a MarketDataSource.

    Quotes expire after ``quote_ttl_seconds``; company profiles (used for the
    quote's display name) after ``profile_ttl_seconds``; news headlines after
    ``news_ttl_seconds``. Historical series never expire and are only
    replaced by ``refresh_historical``.

    Concurrent requests for the same quote symbol, or the same
    (symbol, timeframe) series, share a single upstream call. Requests for
    different keys run independently.
    """

    def __init__(
        self,
        source: MarketDataSource,
        quote_ttl_seconds: float = DEFAULT_QUOTE_TTL_SECONDS,
        profile_ttl_seconds: float = DEFAULT_PROFILE_TTL_SECONDS,
        news_ttl_seconds: float = DEFAULT_NEWS_TTL_SECONDS,
        fetch_workers: int = 4,
        clock: Callable[[], datetime] = now_eastern,
    ):
        self._source = source
        self._quote_ttl = quote_ttl_seconds
        self._profile_ttl = profile_ttl_seconds
        self._news_ttl = news_ttl_seconds
        self._clock = clock
        self._executor = ThreadPoolExecutor(
            max_workers=max(2, fetch_workers),
            thread_name_prefix="market-data",
        )

        self._quotes: dict[str, CacheEntry[Quote]] = {}
        self._quotes_lock = threading.Lock()
        self._profiles: dict[str, CacheEntry[Optional[CompanyProfile]]] = {}
        self._profiles_lock = threading.Lock()
        self._historical: dict[HistoricalKey, HistoricalResult] = {}
        self._historical_lock = threading.Lock()
        self._news: dict[str, CacheEntry[list[NewsArticle]]] = {}
        self._news_lock = threading.Lock()

        self._quote_flight: SingleFlight[Quote] = SingleFlight()
        self._historical_flight: SingleFlight[HistoricalResult] = SingleFlight()
        self._news_flight: SingleFlight[list[NewsArticle]] = SingleFlight()

    # ------------------------------------------------------------------
    # Quotes
    # ------------------------------------------------------------------

    def get_quote(self, symbol: str) -> Quote:
        """
        Return a quote for symbol, from cache when still fresh.

        Raises:
            ValidationError: blank symbol
            SymbolNotFoundError: upstream answered with an all-zero quote
            UpstreamError: the source failed
        """
        symbol = self._normalize(symbol)

        entry = self._fresh_quote_entry(symbol)
        if entry is not None:
            logger.debug("Quote cache hit for %s", symbol)
            if entry.value.name is None:
                return self._backfill_name(symbol, entry)
            return entry.value

        logger.debug("Quote cache miss for %s", symbol)
        return self._quote_flight.do(symbol, lambda: self._fetch_quote(symbol))

    def get_quotes_for_symbols(self, symbols: Iterable[str]) -> BatchQuoteResult:
        """
        Refresh quotes one symbol at a time.

        A failure for one symbol never stops the loop; the first failure is
        kept in ``first_error`` and every failure in ``errors``.
        """
        result = BatchQuoteResult()
        seen: set[str] = set()
        for raw in symbols:
            symbol = (raw or "").strip().upper()
            if symbol in seen:
                continue
            seen.add(symbol)
            try:
                result.quotes[symbol] = self.get_quote(symbol)
            except AppError as exc:
                logger.warning("Quote refresh failed for %s: %s", symbol, exc.message)
                result.errors[symbol] = exc
                if result.first_error is None:
                    result.first_error = exc
                    result.first_error_symbol = symbol
        return result

    def seed_quote(self, quote: Quote) -> Quote:
        """Store a quote already in hand (e.g. the one a trade executed at) as fresh."""
        now = self._clock()
        seeded = replace(quote, symbol=self._normalize(quote.symbol), fetched_at=now)
        with self._quotes_lock:
            self._quotes[seeded.symbol] = CacheEntry(value=seeded, fetched_at=now)
        return seeded

    def cached_quote(self, symbol: str) -> Optional[CacheEntry[Quote]]:
        """Current cache entry for symbol regardless of age."""
        with self._quotes_lock:
            return self._quotes.get((symbol or "").strip().upper())

    def _fresh_quote_entry(self, symbol: str) -> Optional[CacheEntry[Quote]]:
        with self._quotes_lock:
            entry = self._quotes.get(symbol)
        if entry is not None and entry.is_fresh(self._quote_ttl, self._clock()):
            return entry
        return None

    def _fetch_quote(self, symbol: str) -> Quote:
        # Another caller may have filled the cache while we waited to lead.
        entry = self._fresh_quote_entry(symbol)
        if entry is not None:
            return entry.value

        quote_future = self._executor.submit(self._source.get_quote, symbol)
        name_future = self._executor.submit(self._lookup_name, symbol)

        data = quote_future.result()
        name = name_future.result()

        if data.is_empty:
            raise SymbolNotFoundError(symbol)

        now = self._clock()
        quote = Quote.from_data(symbol, data, fetched_at=now, name=name)
        with self._quotes_lock:
            self._quotes[symbol] = CacheEntry(value=quote, fetched_at=now)
        return quote

    def _backfill_name(self, symbol: str, entry: CacheEntry[Quote]) -> Quote:
        name = self._lookup_name(symbol)
        if name is None:
            return entry.value
        with self._quotes_lock:
            current = self._quotes.get(symbol)
            if current is entry:
                # fetched_at is left alone: the price is no newer than before.
                entry.value = entry.value.with_name(name)
                return entry.value
        return entry.value.with_name(name)

    # ------------------------------------------------------------------
    # Company profiles
    # ------------------------------------------------------------------

    def get_profile(self, symbol: str) -> Optional[CompanyProfile]:
        """
        Return the company profile for symbol, or None when upstream has none.

        Raises UpstreamError when the source fails; failures are not cached.
        """
        symbol = self._normalize(symbol)
        with self._profiles_lock:
            entry = self._profiles.get(symbol)
        if entry is not None and entry.is_fresh(self._profile_ttl, self._clock()):
            return entry.value

        profile = self._source.get_profile(symbol)
        with self._profiles_lock:
            self._profiles[symbol] = CacheEntry(value=profile, fetched_at=self._clock())
        return profile

    def _lookup_name(self, symbol: str) -> Optional[str]:
        try:
            profile = self.get_profile(symbol)
        except AppError as exc:
            logger.warning("Company name lookup failed for %s: %s", symbol, exc.message)
            return None
        if profile is None:
            return None
        return profile.name or None

    # ------------------------------------------------------------------
    # Historical series
    # ------------------------------------------------------------------

    def get_historical(self, symbol: str, timeframe: Union[Timeframe, str]) -> HistoricalResult:
        """
        Return the series for (symbol, timeframe), fetching it once if not cached.

        Raises:
            ValidationError: blank symbol or unknown timeframe
            UpstreamError: the source failed (an empty series is cached for the key)
        """
        key = (self._normalize(symbol), coerce_timeframe(timeframe))
        cached = self._cached_historical(key)
        if cached is not None:
            logger.debug("Historical cache hit for %s %s", key[0], key[1].value)
            return cached
        return self._historical_flight.do(key, lambda: self._load_historical(key, reuse_cached=True))

    def refresh_historical(self, symbol: str, timeframe: Union[Timeframe, str]) -> HistoricalResult:
        """Refetch the series for (symbol, timeframe), replacing any cached one."""
        key = (self._normalize(symbol), coerce_timeframe(timeframe))
        return self._historical_flight.do(key, lambda: self._load_historical(key, reuse_cached=False))

    def _cached_historical(self, key: HistoricalKey) -> Optional[HistoricalResult]:
        with self._historical_lock:
            return self._historical.get(key)

    def _load_historical(self, key: HistoricalKey, reuse_cached: bool) -> HistoricalResult:
        symbol, timeframe = key
        if reuse_cached:
            cached = self._cached_historical(key)
            if cached is not None:
                return cached

        logger.debug("Fetching historical series for %s %s", symbol, timeframe.value)
        try:
            records = self._source.get_historical(symbol, timeframe)
        except UpstreamError as exc:
            logger.warning(
                "Historical fetch failed for %s %s: %s", symbol, timeframe.value, exc.message
            )
            with self._historical_lock:
                self._historical[key] = HistoricalResult(symbol=symbol, timeframe=timeframe)
            raise

        result = build_historical_result(symbol, timeframe, records or [])
        if result.partial:
            logger.warning(
                "Dropped %d malformed historical records for %s %s",
                result.skipped,
                symbol,
                timeframe.value,
            )
        with self._historical_lock:
            self._historical[key] = result
        return result

    # ------------------------------------------------------------------
    # News
    # ------------------------------------------------------------------

    def get_news(self, category: str = DEFAULT_NEWS_CATEGORY) -> list[NewsArticle]:
        """
        Return market headlines for category, from cache when still fresh.

        Raises UpstreamError when the source fails; failures are not cached.
        """
        category = (category or "").strip().lower() or DEFAULT_NEWS_CATEGORY
        cached = self._fresh_news(category)
        if cached is not None:
            logger.debug("News cache hit for %s", category)
            return list(cached)
        return list(self._news_flight.do(category, lambda: self._fetch_news(category)))

    def _fresh_news(self, category: str) -> Optional[list[NewsArticle]]:
        with self._news_lock:
            entry = self._news.get(category)
        if entry is not None and entry.is_fresh(self._news_ttl, self._clock()):
            return entry.value
        return None

    def _fetch_news(self, category: str) -> list[NewsArticle]:
        cached = self._fresh_news(category)
        if cached is not None:
            return cached

        logger.debug("Fetching %s news", category)
        articles = [a for a in self._source.get_news(category) or [] if isinstance(a, NewsArticle)]
        with self._news_lock:
            self._news[category] = CacheEntry(value=articles, fetched_at=self._clock())
        return articles

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def search_symbols(self, query: str) -> list[SymbolMatch]:
        """Search upstream for symbols; not cached. Blank query or bad payload gives []."""
        query = (query or "").strip()
        if not query:
            return []
        try:
            matches = self._source.search(query)
        except MalformedPayloadError as exc:
            logger.warning("Malformed search response for '%s': %s", query, exc.message)
            return []
        if not isinstance(matches, list):
            return []
        return [match for match in matches if isinstance(match, SymbolMatch)]

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def invalidate(self, symbol: Optional[str] = None) -> None:
        """Drop cached data for one symbol, or everything when symbol is None."""
        if symbol is None:
            with self._quotes_lock:
                self._quotes.clear()
            with self._profiles_lock:
                self._profiles.clear()
            with self._historical_lock:
                self._historical.clear()
            with self._news_lock:
                self._news.clear()
            return

        symbol = (symbol or "").strip().upper()
        with self._quotes_lock:
            self._quotes.pop(symbol, None)
        with self._profiles_lock:
            self._profiles.pop(symbol, None)
        with self._historical_lock:
            for key in [key for key in self._historical if key[0] == symbol]:
                del self._historical[key]

    def close(self) -> None:
        """Stop the fetch pool. In-flight fetches finish first."""
        self._executor.shutdown(wait=True)

    def __enter__(self) -> "MarketDataCache":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @staticmethod
    def _normalize(symbol: str) -> str:
        symbol = (symbol or "").strip().upper()
        if not symbol:
            raise ValidationError("Symbol is required")
        return symbol
