"""Portfolio API: the requesting user's cash, ledgers and trades."""

from fastapi import APIRouter, Depends, Response

from stocksim.core.exceptions import NotAuthenticatedError
from stocksim.domain.models import Transaction
from stocksim.services import PortfolioStore, MarketDataCache, StockTrader
from stocksim.app_context import AppContext
from stocksim.api.deps import get_context, get_portfolio_store, get_market_data, get_stock_trader
from stocksim.api.schemas import (
    PortfolioResponse,
    PositionOut,
    TradeRequest,
    TradeResponse,
    TransactionOut,
    ValuationResponse,
)

router = APIRouter(prefix="/portfolio", tags=["portfolio"])


def _trade_response(symbol: str, txn: Transaction, portfolio: PortfolioStore) -> TradeResponse:
    error = portfolio.last_error
    return TradeResponse(
        symbol=symbol,
        transaction=TransactionOut.from_domain(txn),
        cash=float(portfolio.cash),
        persisted=error is None,
        persistence_error=error.message if error else None,
    )


@router.get("", response_model=PortfolioResponse)
def get_portfolio(portfolio: PortfolioStore = Depends(get_portfolio_store)):
    """Return cash and all ledgers, including those sold down to zero."""
    snapshot = portfolio.snapshot()
    error = portfolio.last_error
    return PortfolioResponse(
        user_id=portfolio.user_id,
        cash=float(snapshot.cash),
        positions=[PositionOut.from_domain(owned) for owned in snapshot.positions],
        last_error=error.message if error else None,
    )


@router.get("/valuation", response_model=ValuationResponse)
def get_valuation(trader: StockTrader = Depends(get_stock_trader)):
    """Price held positions against current quotes. Quote failures are reported per symbol."""
    return ValuationResponse.from_domain(trader.portfolio_valuation())


@router.post("/buy", response_model=TradeResponse)
def buy(
    data: TradeRequest,
    portfolio: PortfolioStore = Depends(get_portfolio_store),
    market_data: MarketDataCache = Depends(get_market_data),
    trader: StockTrader = Depends(get_stock_trader),
):
    """
    Buy shares.

    With ``price_per_share`` the order executes at that price; without it,
    at the current quote.
    """
    symbol = data.symbol.strip().upper()
    if data.price_per_share is None:
        if portfolio.user_id is None:
            raise NotAuthenticatedError()
        txn = trader.add_to_portfolio(market_data.get_quote(symbol), data.quantity)
    else:
        txn = portfolio.buy(symbol, data.quantity, data.price_per_share)
    return _trade_response(symbol, txn, portfolio)


@router.post("/sell", response_model=TradeResponse)
def sell(
    data: TradeRequest,
    portfolio: PortfolioStore = Depends(get_portfolio_store),
    market_data: MarketDataCache = Depends(get_market_data),
    trader: StockTrader = Depends(get_stock_trader),
):
    """Sell shares at ``price_per_share``, or at the current quote when omitted."""
    symbol = data.symbol.strip().upper()
    if data.price_per_share is None:
        if portfolio.user_id is None:
            raise NotAuthenticatedError()
        txn = trader.sell_from_portfolio(market_data.get_quote(symbol), data.quantity)
    else:
        txn = portfolio.sell(symbol, data.quantity, data.price_per_share)
    return _trade_response(symbol, txn, portfolio)


@router.delete("", status_code=204)
def clear_portfolio(
    portfolio: PortfolioStore = Depends(get_portfolio_store),
    context: AppContext = Depends(get_context),
):
    """Delete the user's persisted portfolio and start over with the starting cash."""
    user_id = portfolio.user_id
    if user_id is None:
        raise NotAuthenticatedError()
    portfolio.clear_for_identity()
    context.forget_portfolio(user_id)
    return Response(status_code=204)
