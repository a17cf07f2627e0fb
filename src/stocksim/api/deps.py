"""Dependency injection for FastAPI."""

from typing import Optional

from fastapi import Depends, Header

from stocksim.app_context import AppContext, get_app_context
from stocksim.services import PortfolioStore, MarketDataCache, StockTrader


def get_context() -> AppContext:
    """Provide the application context."""
    return get_app_context()


def get_user_id(x_user_id: Optional[str] = Header(None, alias="X-User-Id")) -> Optional[str]:
    """Signed-in user taken from the X-User-Id header; absent means signed out."""
    if x_user_id is None:
        return None
    return x_user_id.strip() or None


def get_portfolio_store(
    user_id: Optional[str] = Depends(get_user_id),
    context: AppContext = Depends(get_context),
) -> PortfolioStore:
    """Provide the PortfolioStore of the requesting user."""
    return context.portfolio_for(user_id)


def get_market_data(context: AppContext = Depends(get_context)) -> MarketDataCache:
    """Provide the shared MarketDataCache."""
    return context.market_data


def get_stock_trader(
    portfolio: PortfolioStore = Depends(get_portfolio_store),
    market_data: MarketDataCache = Depends(get_market_data),
) -> StockTrader:
    """Provide a StockTrader for the requesting user."""
    return StockTrader(portfolio=portfolio, market_data=market_data)
