"""Portfolio store: cash balance plus per-symbol ledgers for the signed-in user."""

import json
import logging
import threading
from decimal import Decimal
from types import MappingProxyType
from typing import Any, Mapping, Optional

from stocksim.core.timezone import now_eastern
from stocksim.core.exceptions import (
    ValidationError,
    InsufficientCashError,
    InsufficientSharesError,
    PositionNotFoundError,
    NotAuthenticatedError,
    PersistenceError,
)
from stocksim.domain.models import OwnedStock, Transaction, to_decimal
from stocksim.domain.views import PortfolioSnapshot
from stocksim.identity import IdentityProvider
from stocksim.repositories.protocols import KeyValueStore

logger = logging.getLogger(__name__)

DEFAULT_STARTING_CASH = Decimal("10000.00")


def cash_key(user_id: str) -> str:
    return f"user_{user_id}_cash"


def portfolio_key(user_id: str) -> str:
    return f"user_{user_id}_portfolio"


def normalize_symbol(symbol: str) -> str:
    return (symbol or "").strip().upper()


def _copy_ledger(owned: OwnedStock) -> OwnedStock:
    return OwnedStock(symbol=owned.symbol, transactions=list(owned.transactions))


def encode_snapshot(positions: list[OwnedStock]) -> str:
    """Serialize positions to the persisted JSON list."""
    return json.dumps([owned.to_dict() for owned in positions])


def decode_snapshot(raw: str) -> list[OwnedStock]:
    """
    Parse the persisted JSON list of positions.

    Entries that are not objects or carry no symbol are dropped. Raises
    PersistenceError when the document itself is not a JSON list.
    """
    try:
        data: Any = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise PersistenceError(f"Corrupt portfolio data: {exc}") from exc
    if not isinstance(data, list):
        raise PersistenceError("Corrupt portfolio data: expected a list of positions")

    positions = []
    for item in data:
        if not isinstance(item, dict) or not isinstance(item.get("symbol"), str):
            logger.warning("Skipping persisted position without a symbol: %r", item)
            continue
        positions.append(OwnedStock.from_dict(item))
    return positions


class PortfolioStore:
    """
    Cash and holdings for one user at a time.

    Trades are validated before any state changes, applied in memory and then
    written through to the key-value store. A failed write does not undo the
    trade: it is logged and kept in ``last_error`` until the next save.

    The cash and portfolio keys are written separately, so a crash between
    the two writes can leave them out of step.
    """

    def __init__(
        self,
        store: KeyValueStore,
        identity: IdentityProvider,
        starting_cash: Decimal = DEFAULT_STARTING_CASH,
    ):
        self._store = store
        self._identity = identity
        self._starting_cash = to_decimal(starting_cash, DEFAULT_STARTING_CASH)
        self._lock = threading.RLock()

        self._user_id: Optional[str] = None
        self._cash = self._starting_cash
        self._portfolio: dict[str, OwnedStock] = {}
        self._last_error: Optional[PersistenceError] = None

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------

    @property
    def cash(self) -> Decimal:
        with self._lock:
            return self._cash

    @property
    def portfolio(self) -> Mapping[str, OwnedStock]:
        """Read-only copy of symbol -> ledger; changing it never touches the store."""
        with self._lock:
            return MappingProxyType(
                {symbol: _copy_ledger(owned) for symbol, owned in self._portfolio.items()}
            )

    @property
    def user_id(self) -> Optional[str]:
        """The signed-in user, as reported by the identity provider."""
        return self._identity.current_user_id()

    @property
    def loaded_user_id(self) -> Optional[str]:
        """The user whose state is currently held in memory."""
        with self._lock:
            return self._user_id

    @property
    def last_error(self) -> Optional[PersistenceError]:
        with self._lock:
            return self._last_error

    @property
    def starting_cash(self) -> Decimal:
        return self._starting_cash

    def position(self, symbol: str) -> Optional[OwnedStock]:
        """Copy of the ledger for symbol, or None if it was never held."""
        with self._lock:
            owned = self._portfolio.get(normalize_symbol(symbol))
            return _copy_ledger(owned) if owned is not None else None

    def snapshot(self) -> PortfolioSnapshot:
        """
        Copy of the current state, safe to read outside the lock.

        The state is first brought in line with the identity provider, so a
        signed-out caller sees the defaults and a switched user sees their own
        portfolio.
        """
        with self._lock:
            self._sync_identity()
            return PortfolioSnapshot(
                cash=self._cash,
                positions=[_copy_ledger(owned) for owned in self._portfolio.values()],
            )

    # ------------------------------------------------------------------
    # Trading
    # ------------------------------------------------------------------

    def buy(self, symbol: str, quantity: int, price_per_share: Any) -> Transaction:
        """
        Buy shares, debiting cash.

        Raises:
            NotAuthenticatedError: no user is signed in
            ValidationError: quantity or price is not positive
            InsufficientCashError: the purchase costs more than available cash
        """
        symbol = normalize_symbol(symbol)

        with self._lock:
            self._require_identity()
            price = self._validate_order(symbol, quantity, price_per_share)
            total_cost = price * quantity
            if total_cost > self._cash:
                raise InsufficientCashError(
                    requested=f"{total_cost:.2f}",
                    available=f"{self._cash:.2f}",
                )

            transaction = Transaction(
                quantity=quantity,
                price_per_share=price,
                timestamp=now_eastern(),
            )
            self._cash -= total_cost
            owned = self._portfolio.get(symbol)
            if owned is None:
                owned = OwnedStock(symbol=symbol)
                self._portfolio[symbol] = owned
            owned.append(transaction)

            logger.info("Bought %d %s @ %s, cash now %s", quantity, symbol, price, self._cash)
            self.save()
            return transaction

    def sell(self, symbol: str, quantity: int, price_per_share: Any) -> Transaction:
        """
        Sell shares, crediting cash. The ledger is kept even at zero quantity.

        Raises:
            NotAuthenticatedError: no user is signed in
            PositionNotFoundError: the symbol was never held
            ValidationError: quantity or price is not positive
            InsufficientSharesError: more shares requested than held
        """
        symbol = normalize_symbol(symbol)

        with self._lock:
            self._require_identity()
            owned = self._portfolio.get(symbol)
            if owned is None:
                raise PositionNotFoundError(symbol)

            price = self._validate_order(symbol, quantity, price_per_share)
            held = owned.quantity
            if quantity > held:
                raise InsufficientSharesError(symbol, requested=quantity, available=held)

            transaction = Transaction(
                quantity=-quantity,
                price_per_share=price,
                timestamp=now_eastern(),
            )
            self._cash += price * quantity
            owned.append(transaction)

            logger.info("Sold %d %s @ %s, cash now %s", quantity, symbol, price, self._cash)
            self.save()
            return transaction

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load(self, user_id: Optional[str] = None) -> Optional[PersistenceError]:
        """
        Replace in-memory state with the persisted state of a user.

        Uses ``user_id`` when given, otherwise the identity provider. With no
        identity the store resets to the signed-out defaults. Storage or
        decode failures reset to defaults and are returned, never raised.

        An explicit ``user_id`` only holds while the identity provider agrees
        with it: trades and saves always act for the provider's current user
        and reload when it differs from the loaded one.
        """
        with self._lock:
            resolved = user_id or self._identity.current_user_id()
            self._reset()
            self._user_id = resolved
            if not resolved:
                logger.debug("No signed-in user; portfolio reset to defaults")
                return None

            try:
                raw_cash = self._store.get_double(cash_key(resolved))
                raw_portfolio = self._store.get_string(portfolio_key(resolved))
                positions = decode_snapshot(raw_portfolio) if raw_portfolio else []
            except PersistenceError as exc:
                logger.error("Failed to load portfolio for %s: %s", resolved, exc.message)
                self._reset()
                self._user_id = resolved
                self._last_error = exc
                return exc

            self._cash = to_decimal(raw_cash, self._starting_cash)
            for owned in positions:
                # Later duplicates replace earlier ones.
                self._portfolio[owned.symbol] = owned

            logger.info(
                "Loaded portfolio for %s: cash=%s, %d positions",
                resolved,
                self._cash,
                len(self._portfolio),
            )
            return None

    def save(self) -> Optional[PersistenceError]:
        """
        Write cash and positions for the signed-in user.

        Nothing is written when no user is signed in, or when the signed-in
        user is not the one whose state is loaded. Returns the failure (also
        kept in ``last_error``) instead of raising.
        """
        with self._lock:
            resolved = self._identity.current_user_id()
            if not resolved:
                error = PersistenceError("Cannot save portfolio: user not logged in.")
            elif resolved != self._user_id:
                error = PersistenceError(
                    f"Cannot save portfolio: loaded state belongs to {self._user_id!r}, "
                    f"not the signed-in user {resolved!r}."
                )
            else:
                error = None
            if error is not None:
                logger.warning(error.message)
                self._last_error = error
                return error

            try:
                self._store.set_double(cash_key(resolved), float(self._cash))
                self._store.set_string(
                    portfolio_key(resolved),
                    encode_snapshot(list(self._portfolio.values())),
                )
            except PersistenceError as exc:
                logger.error("Failed to save portfolio for %s: %s", resolved, exc.message)
                self._last_error = exc
                return exc

            self._last_error = None
            return None

    def clear_for_identity(self, user_id: Optional[str] = None) -> None:
        """
        Delete the user's persisted keys and reset in-memory state.

        Afterwards no user is loaded; the next trade reloads whoever is signed
        in at that point.
        """
        with self._lock:
            resolved = user_id or self._identity.current_user_id() or self._user_id
            if resolved:
                for key in (cash_key(resolved), portfolio_key(resolved)):
                    try:
                        self._store.remove(key)
                    except PersistenceError as exc:
                        logger.warning("Failed to remove %s: %s", key, exc.message)
            self._reset()
            self._user_id = None

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _sync_identity(self) -> Optional[str]:
        """Reload when the signed-in user is not the one whose state is held."""
        current = self._identity.current_user_id()
        if current != self._user_id:
            logger.info(
                "Signed-in user changed from %s to %s; reloading portfolio",
                self._user_id,
                current,
            )
            self.load(current)
        return current

    def _require_identity(self) -> str:
        resolved = self._sync_identity()
        if not resolved:
            raise NotAuthenticatedError()
        return resolved

    def _reset(self) -> None:
        self._cash = self._starting_cash
        self._portfolio = {}
        self._last_error = None

    @staticmethod
    def _validate_order(symbol: str, quantity: int, price_per_share: Any) -> Decimal:
        if not symbol:
            raise ValidationError("Symbol is required")
        if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity <= 0:
            raise ValidationError("Quantity must be a positive whole number")
        price = to_decimal(price_per_share)
        if not price.is_finite() or price <= 0:
            raise ValidationError("Price per share must be positive")
        return price
