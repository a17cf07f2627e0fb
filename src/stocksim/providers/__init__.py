"""Market data sources module."""

from stocksim.providers.market_data_source import MarketDataSource
from stocksim.providers.finnhub_source import FinnhubAlphaVantageSource
from stocksim.providers.yfinance_source import YFinanceSource
from stocksim.providers.stub_provider import StubMarketDataSource

__all__ = [
    "MarketDataSource",
    "FinnhubAlphaVantageSource",
    "YFinanceSource",
    "StubMarketDataSource",
]
