"""Stub market data source for offline/testing use."""

import random
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from stocksim.core.timezone import now_eastern
from stocksim.domain.models import SeriesInterval, Timeframe, interval_for
from stocksim.domain.views import (
    CompanyProfile,
    NewsArticle,
    QuoteData,
    RawHistoricalRecord,
    SymbolMatch,
)


# Deterministic fake prices for common symbols: (last, previous close, name)
_STUB_QUOTES: dict[str, tuple[Decimal, Decimal, str]] = {
    "AAPL": (Decimal("185.50"), Decimal("184.25"), "Apple Inc"),
    "GOOGL": (Decimal("142.75"), Decimal("141.50"), "Alphabet Inc"),
    "MSFT": (Decimal("378.25"), Decimal("376.80"), "Microsoft Corp"),
    "AMZN": (Decimal("178.50"), Decimal("177.25"), "Amazon.com Inc"),
    "TSLA": (Decimal("248.75"), Decimal("250.10"), "Tesla Inc"),
    "NVDA": (Decimal("485.25"), Decimal("482.50"), "NVIDIA Corp"),
    "META": (Decimal("505.50"), Decimal("502.75"), "Meta Platforms Inc"),
    "SPY": (Decimal("485.25"), Decimal("484.10"), "SPDR S&P 500 ETF Trust"),
}

# Number of bars generated per interval
_BAR_COUNTS = {
    SeriesInterval.DAILY: 100,
    SeriesInterval.WEEKLY: 52,
    SeriesInterval.MONTHLY: 120,
}

_STEP_DAYS = {
    SeriesInterval.DAILY: 1,
    SeriesInterval.WEEKLY: 7,
    SeriesInterval.MONTHLY: 30,
}


class StubMarketDataSource:
    """
    Stub source with deterministic fake data for offline operation.

    Known symbols use fixed prices; any other symbol gets a price seeded by
    its name so repeated calls agree. Symbols listed in ``unknown_symbols``
    answer with the all-zero quote real providers use for unknown tickers.
    """

    def __init__(self, seed: int = 42, unknown_symbols: Optional[set[str]] = None):
        self._seed = seed
        self._unknown = {s.upper() for s in (unknown_symbols or set())}

    def _rng(self, symbol: str) -> random.Random:
        return random.Random(f"{self._seed}:{symbol}")

    def _prices(self, symbol: str) -> tuple[Decimal, Decimal]:
        if symbol in _STUB_QUOTES:
            last_price, prev_close, _ = _STUB_QUOTES[symbol]
            return last_price, prev_close
        rng = self._rng(symbol)
        last_price = Decimal(str(50 + rng.random() * 200)).quantize(Decimal("0.01"))
        change_pct = Decimal(str((rng.random() - 0.5) * 0.04))
        prev_close = (last_price / (1 + change_pct)).quantize(Decimal("0.01"))
        return last_price, prev_close

    def get_quote(self, symbol: str) -> QuoteData:
        upper_symbol = symbol.upper()
        if upper_symbol in self._unknown:
            zero = Decimal("0")
            return QuoteData(price=zero, previous_close=zero, change=zero, change_percent=zero, epoch=0)

        last_price, prev_close = self._prices(upper_symbol)
        change = last_price - prev_close
        return QuoteData(
            price=last_price,
            previous_close=prev_close,
            change=change,
            change_percent=(change / prev_close * 100).quantize(Decimal("0.0001")),
            epoch=int(now_eastern().timestamp()),
        )

    def get_profile(self, symbol: str) -> Optional[CompanyProfile]:
        upper_symbol = symbol.upper()
        if upper_symbol in _STUB_QUOTES:
            return CompanyProfile(name=_STUB_QUOTES[upper_symbol][2], ticker=upper_symbol)
        return None

    def search(self, query: str) -> list[SymbolMatch]:
        needle = query.strip().lower()
        if not needle:
            return []
        return [
            SymbolMatch(symbol=symbol, name=name)
            for symbol, (_, _, name) in _STUB_QUOTES.items()
            if needle in symbol.lower() or needle in name.lower()
        ]

    def get_news(self, category: str = "general") -> list[NewsArticle]:
        """Fixed headlines, one per known symbol, published an hour apart."""
        latest = now_eastern().replace(minute=0, second=0, microsecond=0)
        return [
            NewsArticle(
                headline=f"{name} shares move as {category} market trading continues",
                url=f"https://example.com/news/{category}/{symbol.lower()}",
                source="Stub Newswire",
                summary=f"Offline headline about {name} ({symbol}).",
                published_at=latest - timedelta(hours=offset),
            )
            for offset, (symbol, (_, _, name)) in enumerate(_STUB_QUOTES.items())
        ]

    def get_historical(self, symbol: str, timeframe: Timeframe) -> list[RawHistoricalRecord]:
        """Random walk ending at the stub's current price, oldest first."""
        upper_symbol = symbol.upper()
        if upper_symbol in self._unknown:
            return []

        interval = interval_for(timeframe)
        count = _BAR_COUNTS[interval]
        step = timedelta(days=_STEP_DAYS[interval])
        rng = self._rng(f"{upper_symbol}:{interval.value}")

        close = float(self._prices(upper_symbol)[0])
        day = date.today()
        bars: list[RawHistoricalRecord] = []
        for _ in range(count):
            open_ = close * (1 + (rng.random() - 0.5) * 0.02)
            high = max(open_, close) * (1 + rng.random() * 0.01)
            low = min(open_, close) * (1 - rng.random() * 0.01)
            bars.append(
                {
                    "date": day.isoformat(),
                    "open": f"{open_:.4f}",
                    "high": f"{high:.4f}",
                    "low": f"{low:.4f}",
                    "close": f"{close:.4f}",
                    "volume": str(rng.randint(100_000, 5_000_000)),
                }
            )
            close = open_
            day -= step
        bars.reverse()
        return bars
