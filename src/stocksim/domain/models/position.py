"""Per-symbol transaction ledger."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from stocksim.domain.models.transaction import Transaction


@dataclass
class OwnedStock:
    """
    Append-only transaction history for one symbol.

    Quantity, cost basis and average price are folds over the transaction
    list, recomputed on every read.

    Cost basis is the sum of signed ``quantity x price`` over all entries, so
    a sale subtracts its proceeds at the *sale* price rather than the
    original cost of the shares sold. It tracks net cash committed to the
    symbol, not the cost of the shares still held.
    """

    symbol: str
    transactions: list[Transaction] = field(default_factory=list)

    @property
    def quantity(self) -> int:
        return sum((txn.quantity for txn in self.transactions), 0)

    @property
    def total_cost_basis(self) -> Decimal:
        return sum((txn.amount for txn in self.transactions), Decimal("0"))

    @property
    def average_buy_price(self) -> Decimal:
        """Cost basis per held share; 0 when nothing is held."""
        quantity = self.quantity
        if quantity <= 0:
            return Decimal("0")
        cost_basis = self.total_cost_basis
        if not cost_basis.is_finite():
            return Decimal("0")
        return cost_basis / quantity

    def append(self, transaction: Transaction) -> None:
        """Record a transaction. Legality is the caller's responsibility."""
        self.transactions.append(transaction)

    def to_dict(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "transactions": [txn.to_dict() for txn in self.transactions],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "OwnedStock":
        raw_transactions = data.get("transactions")
        transactions = []
        if isinstance(raw_transactions, list):
            transactions = [
                Transaction.from_dict(item) for item in raw_transactions if isinstance(item, dict)
            ]
        symbol = data.get("symbol")
        return cls(
            symbol=symbol if isinstance(symbol, str) else "UNKNOWN",
            transactions=transactions,
        )
