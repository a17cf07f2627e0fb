"""Stock transaction domain model."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from stocksim.core.timezone import parse_timestamp_or_now
from stocksim.domain.models.enums import TransactionType


def to_decimal(value: Any, default: Decimal = Decimal("0")) -> Decimal:
    """Coerce an int/float/str/Decimal into Decimal via its string form."""
    if isinstance(value, Decimal):
        return value
    if value is None or isinstance(value, bool):
        return default
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return default


@dataclass(frozen=True)
class Transaction:
    """
    One immutable ledger entry for a single symbol.

    Buys carry a positive quantity, sells a negative one. The price is
    the per-share price the trade executed at (purchase or sale price).
    """

    quantity: int
    price_per_share: Decimal
    timestamp: datetime

    @property
    def txn_type(self) -> TransactionType:
        return TransactionType.BUY if self.quantity > 0 else TransactionType.SELL

    @property
    def amount(self) -> Decimal:
        """Signed cash committed by this entry (quantity x price)."""
        return self.quantity * self.price_per_share

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the persisted shape."""
        return {
            "quantity": self.quantity,
            "pricePerShare": float(self.price_per_share),
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Transaction":
        """Build from the persisted shape; missing fields fall back to defaults."""
        quantity = data.get("quantity")
        return cls(
            quantity=quantity if isinstance(quantity, int) and not isinstance(quantity, bool) else 0,
            price_per_share=to_decimal(data.get("pricePerShare")),
            timestamp=parse_timestamp_or_now(data.get("timestamp")),
        )
