"""Pydantic schemas for the portfolio API."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from stocksim.domain.models import OwnedStock, Transaction
from stocksim.domain.views import PortfolioValuation


class TransactionOut(BaseModel):
    """One ledger entry; negative quantity for sells."""

    quantity: int
    price_per_share: float
    timestamp: datetime
    type: str

    @classmethod
    def from_domain(cls, txn: Transaction) -> "TransactionOut":
        return cls(
            quantity=txn.quantity,
            price_per_share=float(txn.price_per_share),
            timestamp=txn.timestamp,
            type=txn.txn_type.value,
        )


class PositionOut(BaseModel):
    """A symbol's ledger with its derived totals."""

    symbol: str
    quantity: int
    total_cost_basis: float
    average_buy_price: float
    transactions: list[TransactionOut]

    @classmethod
    def from_domain(cls, owned: OwnedStock) -> "PositionOut":
        return cls(
            symbol=owned.symbol,
            quantity=owned.quantity,
            total_cost_basis=float(owned.total_cost_basis),
            average_buy_price=float(owned.average_buy_price),
            transactions=[TransactionOut.from_domain(txn) for txn in owned.transactions],
        )


class PortfolioResponse(BaseModel):
    """Cash and every ledger of the requesting user (zero-quantity ledgers included)."""

    user_id: Optional[str] = None
    cash: float
    positions: list[PositionOut]
    last_error: Optional[str] = None


class TradeRequest(BaseModel):
    """Buy or sell order. Without a price the order executes at the current quote."""

    symbol: str = Field(..., min_length=1)
    quantity: int
    price_per_share: Optional[Decimal] = None


class TradeResponse(BaseModel):
    """Executed trade and the cash balance after it."""

    symbol: str
    transaction: TransactionOut
    cash: float
    persisted: bool
    persistence_error: Optional[str] = None


class PositionValuationOut(BaseModel):
    """A held position priced against its latest quote (price fields null when unavailable)."""

    symbol: str
    name: Optional[str] = None
    quantity: int
    cost_basis: float
    average_price: float
    last_price: Optional[float] = None
    market_value: Optional[float] = None
    unrealized_pnl: Optional[float] = None


class ValuationResponse(BaseModel):
    """Cash, priced holdings and per-symbol quote failures."""

    cash: float
    holdings_value: float
    total_value: float
    positions: list[PositionValuationOut]
    errors: dict[str, str]

    @classmethod
    def from_domain(cls, valuation: PortfolioValuation) -> "ValuationResponse":
        def _opt(value: Optional[Decimal]) -> Optional[float]:
            return float(value) if value is not None else None

        return cls(
            cash=float(valuation.cash),
            holdings_value=float(valuation.holdings_value),
            total_value=float(valuation.total_value),
            positions=[
                PositionValuationOut(
                    symbol=p.symbol,
                    name=p.name,
                    quantity=p.quantity,
                    cost_basis=float(p.cost_basis),
                    average_price=float(p.average_price),
                    last_price=_opt(p.last_price),
                    market_value=_opt(p.market_value),
                    unrealized_pnl=_opt(p.unrealized_pnl),
                )
                for p in valuation.positions
            ],
            errors=valuation.errors,
        )
