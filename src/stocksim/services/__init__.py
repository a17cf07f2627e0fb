"""Service layer - business logic and orchestration."""

from stocksim.services.portfolio_store import PortfolioStore
from stocksim.services.market_data_cache import MarketDataCache
from stocksim.services.stock_trader import StockTrader

__all__ = [
    "PortfolioStore",
    "MarketDataCache",
    "StockTrader",
]
