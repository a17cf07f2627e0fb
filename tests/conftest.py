"""
Pytest configuration and fixtures for stocksim tests.

This module provides:
- In-memory SQLite database fixtures
- Key-value store fixtures (working and failing)
- Deterministic and failing market data sources
- Time helpers for Eastern timezone
- Service fixtures and the API test client
"""

import threading
from collections import Counter
from datetime import datetime
from decimal import Decimal
from typing import Optional

import pytest
from sqlalchemy import create_engine, StaticPool
from sqlalchemy.orm import sessionmaker, Session
from fastapi.testclient import TestClient

from stocksim.main import app
from stocksim.app_context import AppContext, set_app_context
from stocksim.config.settings import Settings, set_settings, reset_settings
from stocksim.repositories.sqlalchemy.database import Base, reset_database
# Import ORM models to register them with Base before creating tables
from stocksim.repositories.sqlalchemy import orm_models  # noqa: F401
from stocksim.repositories.sqlalchemy import SqlAlchemyKeyValueStore
from stocksim.core.exceptions import PersistenceError, TransportError
from stocksim.core.timezone import EASTERN_TZ
from stocksim.domain.models import Timeframe
from stocksim.domain.views import QuoteData, CompanyProfile, SymbolMatch, RawHistoricalRecord, NewsArticle
from stocksim.identity import SessionIdentity
from stocksim.services import PortfolioStore, MarketDataCache, StockTrader


# =============================================================================
# TIMEZONE HELPERS
# =============================================================================


def eastern_datetime(
    year: int,
    month: int,
    day: int,
    hour: int = 10,
    minute: int = 0,
    second: int = 0,
) -> datetime:
    """Create a localized datetime in US/Eastern timezone."""
    return EASTERN_TZ.localize(datetime(year, month, day, hour, minute, second))


@pytest.fixture
def fixed_now() -> datetime:
    """Fixed 'now' timestamp for deterministic tests."""
    return eastern_datetime(2024, 6, 15, 14, 30, 0)


class FakeClock:
    """Settable clock for cache freshness tests."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock(fixed_now) -> FakeClock:
    return FakeClock(fixed_now)


# =============================================================================
# DATABASE FIXTURES
# =============================================================================


@pytest.fixture(scope="function")
def test_engine():
    """Create test database engine with shared in-memory SQLite."""
    # Reset settings for clean state
    reset_settings()

    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def test_session(test_engine) -> Session:
    """Create test database session."""
    TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()


# =============================================================================
# KEY-VALUE STORE FIXTURES
# =============================================================================


@pytest.fixture
def kv_store(test_session) -> SqlAlchemyKeyValueStore:
    """Provide a key-value store over the test database."""
    return SqlAlchemyKeyValueStore(test_session)


class FailingKeyValueStore:
    """
    Key-value store whose writes (and optionally reads) fail.

    Wraps a working store so reads can still see seeded data.
    """

    def __init__(self, inner=None, fail_reads: bool = False, fail_writes: bool = True):
        self._inner = inner
        self.fail_reads = fail_reads
        self.fail_writes = fail_writes
        self.write_attempts = 0

    def _read(self, method: str, key: str):
        if self.fail_reads or self._inner is None:
            raise PersistenceError(f"Disk unavailable reading {key}")
        return getattr(self._inner, method)(key)

    def _write(self, method: str, *args):
        self.write_attempts += 1
        if self.fail_writes or self._inner is None:
            raise PersistenceError(f"Disk unavailable writing {args[0]}")
        return getattr(self._inner, method)(*args)

    def get_string(self, key: str) -> Optional[str]:
        return self._read("get_string", key)

    def get_double(self, key: str) -> Optional[float]:
        return self._read("get_double", key)

    def set_string(self, key: str, value: str) -> None:
        self._write("set_string", key, value)

    def set_double(self, key: str, value: float) -> None:
        self._write("set_double", key, value)

    def remove(self, key: str) -> None:
        self._write("remove", key)


@pytest.fixture
def failing_kv_store() -> FailingKeyValueStore:
    """Provide a store that fails every read and write."""
    return FailingKeyValueStore(fail_reads=True, fail_writes=True)


# =============================================================================
# MARKET DATA FIXTURES
# =============================================================================


class DeterministicMarketSource:
    """
    Deterministic market data source for testing.

    Provides fixed quotes with no randomness and counts every call. Symbols
    listed in ``gated`` block inside get_quote/get_historical until
    ``release()`` is called, which lets tests hold a fetch in flight.
    """

    FIXED_QUOTES = {
        "AAPL": (Decimal("185.50"), Decimal("184.25")),  # +1.25
        "GOOGL": (Decimal("142.75"), Decimal("141.50")),  # +1.25
        "MSFT": (Decimal("378.25"), Decimal("376.80")),  # +1.45
        "TSLA": (Decimal("248.75"), Decimal("250.10")),  # -1.35 (down)
        "SPY": (Decimal("485.25"), Decimal("484.10")),  # +1.15
    }

    NAMES = {
        "AAPL": "Apple Inc",
        "GOOGL": "Alphabet Inc",
        "MSFT": "Microsoft Corp",
        "TSLA": "Tesla Inc",
    }

    def __init__(
        self,
        failing_symbols: Optional[set[str]] = None,
        failing_profiles: Optional[set[str]] = None,
        gated: Optional[set[str]] = None,
        historical: Optional[dict[str, list[RawHistoricalRecord]]] = None,
        failing_news: Optional[set[str]] = None,
    ):
        self.failing_symbols = failing_symbols or set()
        self.failing_profiles = failing_profiles or set()
        self.gated = gated or set()
        self.historical = historical or {}
        self.failing_news = failing_news or set()
        self.quote_calls: Counter = Counter()
        self.profile_calls: Counter = Counter()
        self.search_calls: Counter = Counter()
        self.historical_calls: Counter = Counter()
        self.news_calls: Counter = Counter()
        self.entered = threading.Event()
        self._gate = threading.Event()
        self._lock = threading.Lock()

    def release(self) -> None:
        self._gate.set()

    def _maybe_block(self, symbol: str) -> None:
        if symbol in self.gated:
            self.entered.set()
            assert self._gate.wait(timeout=5), "gate was never released"

    def get_quote(self, symbol: str) -> QuoteData:
        with self._lock:
            self.quote_calls[symbol] += 1
        self._maybe_block(symbol)
        if symbol in self.failing_symbols:
            raise TransportError(f"Connection reset fetching {symbol}")
        if symbol not in self.FIXED_QUOTES:
            # Upstream answers unknown symbols with an all-zero quote.
            return QuoteData(
                price=Decimal("0"),
                previous_close=Decimal("0"),
                change=Decimal("0"),
                change_percent=Decimal("0"),
                epoch=0,
            )
        price, prev_close = self.FIXED_QUOTES[symbol]
        change = price - prev_close
        return QuoteData(
            price=price,
            previous_close=prev_close,
            change=change,
            change_percent=(change / prev_close * 100).quantize(Decimal("0.0001")),
            epoch=1718476200,
        )

    def get_profile(self, symbol: str) -> Optional[CompanyProfile]:
        with self._lock:
            self.profile_calls[symbol] += 1
        if symbol in self.failing_profiles:
            raise TransportError(f"Profile lookup failed for {symbol}")
        name = self.NAMES.get(symbol)
        if name is None:
            return None
        return CompanyProfile(name=name, ticker=symbol, exchange="NASDAQ", currency="USD")

    def search(self, query: str) -> list[SymbolMatch]:
        with self._lock:
            self.search_calls[query] += 1
        needle = query.upper()
        return [
            SymbolMatch(symbol=symbol, name=name)
            for symbol, name in self.NAMES.items()
            if needle in symbol or needle in name.upper()
        ]

    def get_news(self, category: str = "general") -> list[NewsArticle]:
        with self._lock:
            self.news_calls[category] += 1
        if category in self.failing_news:
            raise TransportError(f"Connection reset fetching {category} news")
        return [
            NewsArticle(
                headline="Stocks rally into the close",
                url="https://news.example.com/rally",
                source="Example Wire",
                summary="Major indexes finished higher.",
                published_at=eastern_datetime(2024, 6, 14, 16, 5),
            ),
            NewsArticle(
                headline="Apple unveils new chips",
                url="https://news.example.com/apple",
                source="Example Wire",
                published_at=eastern_datetime(2024, 6, 14, 9, 30),
            ),
        ]

    def get_historical(self, symbol: str, timeframe: Timeframe) -> list[RawHistoricalRecord]:
        with self._lock:
            self.historical_calls[(symbol, timeframe)] += 1
        self._maybe_block(symbol)
        if symbol in self.failing_symbols:
            raise TransportError(f"Connection reset fetching history for {symbol}")
        if symbol in self.historical:
            return list(self.historical[symbol])
        return [
            {"date": "2024-06-12", "open": "180.0", "high": "182.0", "low": "179.5", "close": "181.0", "volume": "1000"},
            {"date": "2024-06-13", "open": "181.0", "high": "184.0", "low": "180.5", "close": "183.5", "volume": "1200"},
            {"date": "2024-06-14", "open": "183.5", "high": "186.0", "low": "183.0", "close": "185.5", "volume": "900"},
        ]


class FailingMarketSource:
    """Market source that always raises a transport error."""

    def get_quote(self, symbol: str) -> QuoteData:
        raise TransportError("Network unavailable")

    def get_profile(self, symbol: str) -> Optional[CompanyProfile]:
        raise TransportError("Network unavailable")

    def search(self, query: str) -> list[SymbolMatch]:
        raise TransportError("Network unavailable")

    def get_historical(self, symbol: str, timeframe: Timeframe) -> list[RawHistoricalRecord]:
        raise TransportError("Network unavailable")

    def get_news(self, category: str = "general") -> list[NewsArticle]:
        raise TransportError("Network unavailable")


@pytest.fixture
def deterministic_source() -> DeterministicMarketSource:
    """Provide a deterministic market data source."""
    return DeterministicMarketSource()


@pytest.fixture
def failing_source() -> FailingMarketSource:
    """Provide a market source that always fails."""
    return FailingMarketSource()


# =============================================================================
# SERVICE FIXTURES
# =============================================================================


@pytest.fixture
def identity() -> SessionIdentity:
    """Provide a signed-in identity."""
    return SessionIdentity("user-123")


@pytest.fixture
def portfolio_store(kv_store, identity) -> PortfolioStore:
    """Provide a loaded PortfolioStore with $10,000 starting cash."""
    store = PortfolioStore(
        store=kv_store,
        identity=identity,
        starting_cash=Decimal("10000.00"),
    )
    assert store.load() is None
    return store


@pytest.fixture
def market_cache(deterministic_source, clock) -> MarketDataCache:
    """Provide a MarketDataCache over the deterministic source and a fake clock."""
    cache = MarketDataCache(
        source=deterministic_source,
        quote_ttl_seconds=120,
        profile_ttl_seconds=24 * 60 * 60,
        fetch_workers=4,
        clock=clock,
    )
    yield cache
    cache.close()


@pytest.fixture
def stock_trader(portfolio_store, market_cache) -> StockTrader:
    """Provide a StockTrader over the test portfolio and cache."""
    return StockTrader(portfolio=portfolio_store, market_data=market_cache)


# =============================================================================
# API TEST CLIENT FIXTURE
# =============================================================================


@pytest.fixture
def api_source() -> DeterministicMarketSource:
    """Market source used behind the API test client."""
    return DeterministicMarketSource(failing_symbols={"BROKEN"})


@pytest.fixture
def client(kv_store, api_source) -> TestClient:
    """Provide FastAPI test client over the test database and deterministic source."""
    reset_database()
    set_settings(Settings(database_url="sqlite://", market_data_source="stub"))
    context = AppContext(key_value_store=kv_store, source=api_source)
    set_app_context(context)
    with TestClient(app) as c:
        yield c
    set_app_context(None)
    reset_database()
    reset_settings()


# =============================================================================
# HELPER FUNCTIONS (exported for use in tests)
# =============================================================================


def assert_decimal_equal(
    actual: Decimal,
    expected: Decimal,
    tolerance: Decimal = Decimal("0.01"),
) -> None:
    """Assert two Decimals are equal within tolerance."""
    diff = abs(actual - expected)
    assert diff <= tolerance, f"Expected {expected}, got {actual} (diff={diff})"


def user_headers(user_id: str = "user-123") -> dict[str, str]:
    """Headers identifying the requesting user."""
    return {"X-User-Id": user_id}
