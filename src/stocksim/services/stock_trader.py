"""Trade coordinator between the portfolio store and the market data cache."""

import logging

from stocksim.domain.models import Transaction
from stocksim.domain.views import Quote, PortfolioValuation, PositionValuation
from stocksim.services.market_data_cache import MarketDataCache
from stocksim.services.portfolio_store import PortfolioStore

logger = logging.getLogger(__name__)


class StockTrader:
    """
    Executes trades at a quote's price and values the current holdings.

    After a successful buy or sell the quote the trade executed at is
    seeded into the quote cache, so the next read of that symbol does not
    go upstream.
    """

    def __init__(self, portfolio: PortfolioStore, market_data: MarketDataCache):
        self._portfolio = portfolio
        self._market_data = market_data

    def add_to_portfolio(self, quote: Quote, quantity: int) -> Transaction:
        """Buy ``quantity`` shares of ``quote.symbol`` at ``quote.price``."""
        transaction = self._portfolio.buy(quote.symbol, quantity, quote.price)
        self._market_data.seed_quote(quote)
        return transaction

    def sell_from_portfolio(self, quote: Quote, quantity: int) -> Transaction:
        """Sell ``quantity`` shares of ``quote.symbol`` at ``quote.price``."""
        transaction = self._portfolio.sell(quote.symbol, quantity, quote.price)
        self._market_data.seed_quote(quote)
        return transaction

    def portfolio_valuation(self) -> PortfolioValuation:
        """
        Price every held position against its latest quote.

        Positions whose quote could not be fetched are still listed, with
        empty price fields, and the failure is reported in ``errors``.
        """
        snapshot = self._portfolio.snapshot()
        held = [owned for owned in snapshot.positions if owned.quantity > 0]
        batch = self._market_data.get_quotes_for_symbols([owned.symbol for owned in held])

        valuation = PortfolioValuation(cash=snapshot.cash)
        for owned in held:
            position = PositionValuation(
                symbol=owned.symbol,
                quantity=owned.quantity,
                cost_basis=owned.total_cost_basis,
                average_price=owned.average_buy_price,
            )
            quote = batch.quotes.get(owned.symbol)
            if quote is not None:
                market_value = quote.price * owned.quantity
                position.name = quote.name
                position.last_price = quote.price
                position.market_value = market_value
                position.unrealized_pnl = market_value - owned.total_cost_basis
                valuation.holdings_value += market_value
            else:
                error = batch.errors.get(owned.symbol)
                valuation.errors[owned.symbol] = error.message if error else "Quote unavailable"
            valuation.positions.append(position)

        if batch.first_error is not None:
            logger.warning(
                "Valuation incomplete: %d of %d quotes failed",
                len(batch.errors),
                len(held),
            )
        return valuation
