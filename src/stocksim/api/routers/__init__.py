"""API routers package."""

from stocksim.api.routers.portfolio import router as portfolio_router
from stocksim.api.routers.market import router as market_router

__all__ = [
    "portfolio_router",
    "market_router",
]
