"""
Unit tests for upstream payload parsers.

Tests cover:
- Quote parsing with defaults and derived change
- Profile and search parsing of odd shapes
- Per-record historical parsing
- News list parsing
"""

from datetime import date, datetime
from decimal import Decimal

import pytest

from stocksim.core.exceptions import MalformedPayloadError, ParseError
from stocksim.providers.parsers import (
    safe_decimal,
    parse_quote,
    parse_profile,
    parse_search_results,
    parse_historical_record,
    parse_news,
)


# =============================================================================
# QUOTE PARSING
# =============================================================================


class TestParseQuote:
    """Tests for parse_quote."""

    def test_full_payload(self):
        data = parse_quote({"c": 185.5, "pc": 184.25, "d": 1.25, "dp": 0.6784, "t": 1718476200})

        assert data.price == Decimal("185.5")
        assert data.previous_close == Decimal("184.25")
        assert data.change == Decimal("1.25")
        assert data.change_percent == Decimal("0.6784")
        assert data.epoch == 1718476200
        assert not data.is_empty

    def test_change_is_derived_when_missing(self):
        """
        GIVEN a payload with price and previous close only
        WHEN I parse it
        THEN change and percent change are computed
        """
        data = parse_quote({"c": "110", "pc": "100"})

        assert data.change == Decimal("10")
        assert data.change_percent == Decimal("10")

    def test_all_zero_payload_is_empty(self):
        data = parse_quote({"c": 0, "d": None, "dp": None, "h": 0, "l": 0, "o": 0, "pc": 0, "t": 0})

        assert data.is_empty
        assert data.change == Decimal("0")

    def test_garbage_fields_default_to_zero(self):
        data = parse_quote({"c": "abc", "pc": None, "t": "soon"})

        assert data.price == Decimal("0")
        assert data.epoch == 0

    @pytest.mark.parametrize("payload", [None, [], "quote", 42])
    def test_non_object_payload_is_malformed(self, payload):
        with pytest.raises(MalformedPayloadError):
            parse_quote(payload)

    def test_safe_decimal_rejects_non_finite(self):
        assert safe_decimal(float("nan")) == Decimal("0")
        assert safe_decimal(True) == Decimal("0")


# =============================================================================
# PROFILE AND SEARCH PARSING
# =============================================================================


class TestParseProfile:
    """Tests for parse_profile."""

    def test_profile_fields(self):
        profile = parse_profile({
            "name": "Apple Inc",
            "ticker": "AAPL",
            "exchange": "NASDAQ NMS - GLOBAL MARKET",
            "currency": "USD",
            "finnhubIndustry": "Technology",
            "weburl": "https://www.apple.com/",
        })

        assert profile.name == "Apple Inc"
        assert profile.industry == "Technology"
        assert profile.web_url == "https://www.apple.com/"
        assert profile.logo is None

    @pytest.mark.parametrize("payload", [{}, None, []])
    def test_empty_profile_is_not_found(self, payload):
        assert parse_profile(payload) is None


class TestParseSearchResults:
    """Tests for parse_search_results."""

    def test_results(self):
        matches = parse_search_results({
            "count": 2,
            "result": [
                {"description": "APPLE INC", "symbol": "AAPL", "type": "Common Stock"},
                {"description": None, "symbol": "AAPL.SW"},
                {"description": "no symbol"},
                "junk",
            ],
        })

        assert [(m.symbol, m.name) for m in matches] == [("AAPL", "APPLE INC"), ("AAPL.SW", "")]

    @pytest.mark.parametrize("payload", [None, [], {"result": "nope"}, {"count": 0}])
    def test_bad_shapes_give_empty_list(self, payload):
        assert parse_search_results(payload) == []


# =============================================================================
# HISTORICAL RECORD PARSING
# =============================================================================


class TestParseHistoricalRecord:
    """Tests for parse_historical_record."""

    def test_string_values(self):
        bar = parse_historical_record({
            "date": "2024-06-14",
            "open": "183.5",
            "high": "186.0",
            "low": "183.0",
            "close": "185.5",
            "volume": "900",
        })

        assert bar.date == date(2024, 6, 14)
        assert bar.close == Decimal("185.5")
        assert bar.volume == 900

    def test_datetime_date_and_missing_volume(self):
        bar = parse_historical_record({
            "date": datetime(2024, 6, 14, 16, 0),
            "open": 1,
            "high": 2,
            "low": 0.5,
            "close": 1.5,
        })

        assert bar.date == date(2024, 6, 14)
        assert bar.volume == 0

    @pytest.mark.parametrize(
        "record",
        [
            "not a dict",
            {"open": 1, "high": 1, "low": 1, "close": 1},
            {"date": "yesterday-ish", "open": 1, "high": 1, "low": 1, "close": 1},
            {"date": "2024-06-14", "high": 1, "low": 1, "close": 1},
            {"date": "2024-06-14", "open": "x", "high": 1, "low": 1, "close": 1},
            {"date": "2024-06-14", "open": "Infinity", "high": 1, "low": 1, "close": 1},
            {"date": "2024-06-14", "open": 1, "high": 1, "low": 1, "close": 1, "volume": "lots"},
        ],
    )
    def test_malformed_records_raise_parse_error(self, record):
        with pytest.raises(ParseError):
            parse_historical_record(record)


# =============================================================================
# NEWS PARSING
# =============================================================================


class TestParseNews:
    """Tests for parse_news."""

    def test_full_item(self):
        articles = parse_news([
            {
                "category": "top news",
                "datetime": 1718395200,
                "headline": " Stocks close higher ",
                "id": 7,
                "image": "https://img.example.com/a.jpg",
                "source": "Reuters",
                "summary": "Indexes rose.",
                "url": "https://news.example.com/a",
            }
        ])

        assert len(articles) == 1
        article = articles[0]
        assert article.headline == "Stocks close higher"
        assert article.url == "https://news.example.com/a"
        assert article.source == "Reuters"
        assert article.summary == "Indexes rose."
        assert article.image_url == "https://img.example.com/a.jpg"
        assert article.published_at.utcoffset() is not None
        assert article.published_at.replace(tzinfo=None) == datetime(2024, 6, 14, 16, 0)

    def test_items_without_headline_or_url_are_dropped(self):
        """
        GIVEN a list mixing complete items with items missing headline or url
        WHEN I parse it
        THEN only the complete item survives
        """
        articles = parse_news([
            {"headline": "Kept", "url": "https://news.example.com/kept"},
            {"headline": "", "url": "https://news.example.com/blank"},
            {"url": "https://news.example.com/no-headline"},
            {"headline": "No url"},
            "not an object",
        ])

        assert [a.headline for a in articles] == ["Kept"]

    def test_missing_optional_fields_get_defaults(self):
        article = parse_news([{"headline": "H", "url": "U", "image": " ", "datetime": 0}])[0]

        assert article.source == "Unknown Source"
        assert article.summary == ""
        assert article.image_url is None
        assert article.published_at is None

    @pytest.mark.parametrize("payload", [None, {}, "news", 3])
    def test_non_list_payload_gives_empty_list(self, payload):
        assert parse_news(payload) == []
