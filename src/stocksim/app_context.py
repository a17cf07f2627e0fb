"""Application context for in-process service management.

Owns the database session, the market data cache and one PortfolioStore per
user, so the HTTP layer and scripts share the same state.
"""

import logging
import threading
from collections import OrderedDict
from pathlib import Path
from typing import Optional

from stocksim.config.settings import Settings, set_settings, get_settings
from stocksim.identity import SessionIdentity
from stocksim.repositories.protocols import KeyValueStore
from stocksim.repositories.sqlalchemy.database import (
    init_db,
    init_db_with_path,
    reset_database,
    get_session,
)
from stocksim.repositories.sqlalchemy import SqlAlchemyKeyValueStore
from stocksim.providers import (
    MarketDataSource,
    FinnhubAlphaVantageSource,
    YFinanceSource,
    StubMarketDataSource,
)
from stocksim.services import PortfolioStore, MarketDataCache, StockTrader

logger = logging.getLogger(__name__)


def build_market_data_source(settings: Settings) -> MarketDataSource:
    """Create the source selected by ``settings.market_data_source``."""
    if settings.market_data_source == "finnhub":
        return FinnhubAlphaVantageSource(
            finnhub_api_key=settings.finnhub_api_key,
            alpha_vantage_api_key=settings.alpha_vantage_api_key,
            timeout_seconds=settings.request_timeout_seconds,
        )
    if settings.market_data_source == "yfinance":
        return YFinanceSource()
    return StubMarketDataSource()


class AppContext:
    """
    Application context providing in-process access to all services.

    Collaborators can be injected (tests pass an in-memory store and a
    deterministic source); anything not injected is built from settings on
    first use.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        key_value_store: Optional[KeyValueStore] = None,
        source: Optional[MarketDataSource] = None,
    ):
        self._settings = settings
        self._session = None
        self._key_value_store = key_value_store
        self._source = source
        self._lock = threading.Lock()

        # Lazy service instances
        self._market_data: Optional[MarketDataCache] = None
        self._portfolios: OrderedDict[Optional[str], PortfolioStore] = OrderedDict()

    def initialize(self, data_dir: Optional[Path] = None) -> None:
        """
        Point the context at a data directory and (re)create the database.

        Args:
            data_dir: Data directory path. Uses the settings default if not provided.
        """
        settings = self.settings
        if data_dir:
            settings = settings.model_copy(update={"data_dir": data_dir})
            self._settings = settings
            set_settings(settings)

        reset_database()
        if data_dir:
            init_db_with_path(settings.get_data_dir() / "stocksim.db")
        else:
            init_db()

        self.close()
        self._key_value_store = None

    @property
    def settings(self) -> Settings:
        return self._settings or get_settings()

    def _get_session(self):
        if self._session is None:
            self._session = get_session()
        return self._session

    @property
    def key_value_store(self) -> KeyValueStore:
        """Get the persistent key-value store."""
        with self._lock:
            if self._key_value_store is None:
                self._key_value_store = SqlAlchemyKeyValueStore(self._get_session())
            return self._key_value_store

    @property
    def market_data(self) -> MarketDataCache:
        """Get the shared MarketDataCache instance."""
        with self._lock:
            if self._market_data is None:
                settings = self.settings
                source = self._source or build_market_data_source(settings)
                logger.info("Using market data source: %s", type(source).__name__)
                self._market_data = MarketDataCache(
                    source=source,
                    quote_ttl_seconds=settings.quote_cache_ttl_seconds,
                    profile_ttl_seconds=settings.profile_cache_ttl_seconds,
                    news_ttl_seconds=settings.news_cache_ttl_seconds,
                    fetch_workers=settings.fetch_workers,
                )
            return self._market_data

    def portfolio_for(self, user_id: Optional[str]) -> PortfolioStore:
        """
        Get the loaded PortfolioStore for a user.

        ``None`` yields the signed-out store: default cash, no holdings, and
        every trade rejected. At most ``settings.max_loaded_portfolios`` stores
        are kept; the least recently used one is dropped first and is
        reloaded from the key-value store on its next use.
        """
        user_id = (user_id or "").strip() or None
        store = self.key_value_store
        with self._lock:
            portfolio = self._portfolios.get(user_id)
            if portfolio is not None:
                self._portfolios.move_to_end(user_id)
                return portfolio

            portfolio = PortfolioStore(
                store=store,
                identity=SessionIdentity(user_id),
                starting_cash=self.settings.starting_cash,
            )
            portfolio.load()
            self._portfolios[user_id] = portfolio
            limit = max(1, self.settings.max_loaded_portfolios)
            while len(self._portfolios) > limit:
                evicted, _ = self._portfolios.popitem(last=False)
                logger.debug("Dropped loaded portfolio for %s", evicted)
            return portfolio

    def forget_portfolio(self, user_id: Optional[str]) -> None:
        """Drop the in-memory store for a user (after clearing their portfolio)."""
        user_id = (user_id or "").strip() or None
        with self._lock:
            self._portfolios.pop(user_id, None)

    def loaded_user_ids(self) -> list[Optional[str]]:
        """Users with a store in memory, least recently used first."""
        with self._lock:
            return list(self._portfolios)

    def trader_for(self, user_id: Optional[str]) -> StockTrader:
        """Get a StockTrader bound to the user's portfolio."""
        return StockTrader(portfolio=self.portfolio_for(user_id), market_data=self.market_data)

    def close(self) -> None:
        """Clean up resources."""
        with self._lock:
            if self._market_data is not None:
                self._market_data.close()
                self._market_data = None
            self._portfolios.clear()
            if self._session is not None:
                self._session.close()
                self._session = None


# Global application context
_app_context: Optional[AppContext] = None


def get_app_context() -> AppContext:
    """Get or create the global application context."""
    global _app_context
    if _app_context is None:
        _app_context = AppContext()
    return _app_context


def set_app_context(context: Optional[AppContext]) -> None:
    """Set (or clear) the global application context."""
    global _app_context
    _app_context = context
