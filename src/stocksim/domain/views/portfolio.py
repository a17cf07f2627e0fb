"""View models for portfolio outputs."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from stocksim.domain.models import OwnedStock


@dataclass
class PortfolioSnapshot:
    """Full {cash, positions} state persisted per user."""

    cash: Decimal
    positions: list[OwnedStock] = field(default_factory=list)

    def position(self, symbol: str) -> Optional[OwnedStock]:
        for owned in self.positions:
            if owned.symbol == symbol:
                return owned
        return None


@dataclass
class PositionValuation:
    """A held position priced against its latest quote."""

    symbol: str
    quantity: int
    cost_basis: Decimal
    average_price: Decimal
    name: Optional[str] = None
    last_price: Optional[Decimal] = None
    market_value: Optional[Decimal] = None
    unrealized_pnl: Optional[Decimal] = None


@dataclass
class PortfolioValuation:
    """Cash plus priced positions; positions without a quote keep price fields empty."""

    cash: Decimal
    positions: list[PositionValuation] = field(default_factory=list)
    holdings_value: Decimal = field(default_factory=lambda: Decimal("0"))
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def total_value(self) -> Decimal:
        return self.cash + self.holdings_value
