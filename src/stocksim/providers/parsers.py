"""
Parsers from loosely typed upstream JSON into explicit records.

Defaults are applied here, once; nothing past this module sees raw dicts
except the per-record historical payload, which is parsed record by record
so that one bad row does not discard the rest of the series.
"""

from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from dateutil import parser as date_parser

from stocksim.core.exceptions import MalformedPayloadError, ParseError
from stocksim.core.timezone import to_eastern
from stocksim.domain.views import (
    CompanyProfile,
    HistoricalBar,
    NewsArticle,
    QuoteData,
    RawHistoricalRecord,
    SymbolMatch,
)

_ZERO = Decimal("0")


def safe_decimal(value: Any) -> Decimal:
    """Numbers and numeric strings become Decimal; anything else is 0."""
    if isinstance(value, bool):
        return _ZERO
    if isinstance(value, (int, float, str, Decimal)):
        try:
            result = Decimal(str(value))
        except (InvalidOperation, ValueError):
            return _ZERO
        return result if result.is_finite() else _ZERO
    return _ZERO


def _safe_int(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, (float, str)):
        try:
            return int(float(value))
        except (TypeError, ValueError, OverflowError):
            return 0
    return 0


def parse_quote(payload: Any) -> QuoteData:
    """
    Parse a Finnhub-style quote: c (current), pc (previous close), d, dp, t.

    Change and percent change are derived from price and previous close when
    the payload leaves them out.
    """
    if not isinstance(payload, dict):
        raise MalformedPayloadError(f"Quote payload is not an object: {type(payload).__name__}")

    price = safe_decimal(payload.get("c"))
    previous_close = safe_decimal(payload.get("pc"))

    if payload.get("d") is not None:
        change = safe_decimal(payload.get("d"))
    elif price != 0 and previous_close != 0:
        change = price - previous_close
    else:
        change = _ZERO

    if payload.get("dp") is not None:
        change_percent = safe_decimal(payload.get("dp"))
    elif previous_close != 0:
        change_percent = change / previous_close * 100
    else:
        change_percent = _ZERO

    return QuoteData(
        price=price,
        previous_close=previous_close,
        change=change,
        change_percent=change_percent,
        epoch=_safe_int(payload.get("t")),
    )


def parse_profile(payload: Any) -> Optional[CompanyProfile]:
    """Parse a company profile. Empty or non-object payloads mean 'not found'."""
    if not isinstance(payload, dict) or not payload:
        return None

    def _text(key: str) -> Optional[str]:
        value = payload.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
        return None

    return CompanyProfile(
        name=_text("name"),
        ticker=_text("ticker"),
        exchange=_text("exchange"),
        currency=_text("currency"),
        industry=_text("finnhubIndustry"),
        logo=_text("logo"),
        web_url=_text("weburl"),
    )


def parse_search_results(payload: Any) -> list[SymbolMatch]:
    """Parse a search response ({"result": [{symbol, description}, ...]}). Bad shapes give []."""
    if not isinstance(payload, dict):
        return []
    results = payload.get("result")
    if not isinstance(results, list):
        return []

    matches: list[SymbolMatch] = []
    for item in results:
        if not isinstance(item, dict):
            continue
        symbol = item.get("symbol")
        if not isinstance(symbol, str) or not symbol.strip():
            continue
        description = item.get("description")
        matches.append(
            SymbolMatch(
                symbol=symbol.strip(),
                name=description.strip() if isinstance(description, str) else "",
            )
        )
    return matches


def _published_at(epoch: Any) -> Optional[datetime]:
    seconds = _safe_int(epoch)
    if seconds <= 0:
        return None
    try:
        return to_eastern(datetime.fromtimestamp(seconds, tz=timezone.utc))
    except (OverflowError, OSError, ValueError):
        return None


def parse_news(payload: Any) -> list[NewsArticle]:
    """
    Parse a Finnhub-style news list of {headline, summary, url, image, source, datetime}.

    A payload that is not a list gives []. Items without a headline or url
    are dropped; a missing source reads "Unknown Source".
    """
    if not isinstance(payload, list):
        return []

    articles: list[NewsArticle] = []
    for item in payload:
        if not isinstance(item, dict):
            continue
        headline = item.get("headline")
        url = item.get("url")
        if not isinstance(headline, str) or not headline.strip():
            continue
        if not isinstance(url, str) or not url.strip():
            continue
        source = item.get("source")
        summary = item.get("summary")
        image = item.get("image")
        articles.append(
            NewsArticle(
                headline=headline.strip(),
                url=url.strip(),
                source=source.strip() if isinstance(source, str) and source.strip() else "Unknown Source",
                summary=summary.strip() if isinstance(summary, str) else "",
                image_url=image.strip() if isinstance(image, str) and image.strip() else None,
                published_at=_published_at(item.get("datetime")),
            )
        )
    return articles


def _required_decimal(record: dict, key: str) -> Decimal:
    value = record.get(key)
    if value is None or isinstance(value, bool):
        raise ParseError(f"missing field '{key}'")
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ParseError(f"field '{key}' is not a number: {value!r}")
    if not result.is_finite():
        raise ParseError(f"field '{key}' is not finite: {value!r}")
    return result


def parse_historical_record(record: RawHistoricalRecord) -> HistoricalBar:
    """
    Parse one raw record {date, open, high, low, close, volume}.

    Raises ParseError for a record that cannot be turned into a bar. A
    missing volume counts as 0.
    """
    if not isinstance(record, dict):
        raise ParseError(f"record is not an object: {type(record).__name__}")

    raw_date = record.get("date")
    if raw_date is None:
        raise ParseError("missing field 'date'")
    if isinstance(raw_date, datetime):
        bar_date = raw_date.date()
    elif isinstance(raw_date, date):
        bar_date = raw_date
    else:
        try:
            bar_date = date_parser.isoparse(str(raw_date)).date()
        except (ValueError, OverflowError):
            raise ParseError(f"invalid date: {raw_date!r}")

    volume = record.get("volume")
    if volume is None:
        parsed_volume = 0
    else:
        try:
            parsed_volume = int(Decimal(str(volume).strip()))
        except (InvalidOperation, ValueError, OverflowError):
            raise ParseError(f"field 'volume' is not a number: {volume!r}")

    return HistoricalBar(
        date=bar_date,
        open=_required_decimal(record, "open"),
        high=_required_decimal(record, "high"),
        low=_required_decimal(record, "low"),
        close=_required_decimal(record, "close"),
        volume=parsed_volume,
    )
