"""View models for market data, parsed once at the source boundary."""

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from stocksim.core.exceptions import AppError
from stocksim.domain.models.enums import Timeframe


@dataclass(frozen=True)
class QuoteData:
    """Price fields of an upstream quote, defaults already applied."""

    price: Decimal
    previous_close: Decimal
    change: Decimal
    change_percent: Decimal
    epoch: int = 0

    @property
    def is_empty(self) -> bool:
        """Upstream answers unknown symbols with all-zero price, close and time."""
        return self.price == 0 and self.previous_close == 0 and self.epoch == 0


@dataclass(frozen=True)
class CompanyProfile:
    """Company profile fields used by the app."""

    name: Optional[str]
    ticker: Optional[str] = None
    exchange: Optional[str] = None
    currency: Optional[str] = None
    industry: Optional[str] = None
    logo: Optional[str] = None
    web_url: Optional[str] = None


@dataclass(frozen=True)
class SymbolMatch:
    """A single symbol search hit."""

    symbol: str
    name: str


@dataclass(frozen=True)
class Quote:
    """Market quote for a symbol, merged with its company name when known."""

    symbol: str
    price: Decimal
    change: Decimal
    change_percent: Decimal
    previous_close: Decimal
    fetched_at: datetime
    name: Optional[str] = None

    def with_name(self, name: Optional[str]) -> "Quote":
        return replace(self, name=name)

    @classmethod
    def from_data(
        cls,
        symbol: str,
        data: QuoteData,
        fetched_at: datetime,
        name: Optional[str] = None,
    ) -> "Quote":
        return cls(
            symbol=symbol,
            name=name,
            price=data.price,
            change=data.change,
            change_percent=data.change_percent,
            previous_close=data.previous_close,
            fetched_at=fetched_at,
        )


@dataclass(frozen=True)
class HistoricalBar:
    """One OHLCV point of a historical series."""

    date: date
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    volume: int


# Raw record as returned by a source: {"date": "...", "open": ..., ...}
RawHistoricalRecord = dict[str, Any]


@dataclass
class HistoricalResult:
    """A historical series plus how many upstream records had to be dropped."""

    symbol: str
    timeframe: Timeframe
    bars: list[HistoricalBar] = field(default_factory=list)
    skipped: int = 0

    @property
    def partial(self) -> bool:
        return self.skipped > 0

    @property
    def is_empty(self) -> bool:
        return not self.bars


@dataclass
class BatchQuoteResult:
    """Outcome of refreshing quotes for many symbols one by one."""

    quotes: dict[str, Quote] = field(default_factory=dict)
    errors: dict[str, AppError] = field(default_factory=dict)
    first_error: Optional[AppError] = None
    first_error_symbol: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.first_error is None


@dataclass(frozen=True)
class NewsArticle:
    """One market news headline."""

    headline: str
    url: str
    source: str = "Unknown Source"
    summary: str = ""
    image_url: Optional[str] = None
    published_at: Optional[datetime] = None
