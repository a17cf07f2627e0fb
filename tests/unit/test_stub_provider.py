"""
Unit tests for StubMarketDataSource and SessionIdentity.
"""

from decimal import Decimal

import pytest

from stocksim.domain.models import Timeframe
from stocksim.identity import SessionIdentity
from stocksim.providers import StubMarketDataSource
from stocksim.services.market_data_cache import build_historical_result


class TestStubMarketDataSource:
    """Tests for the offline source."""

    def test_known_symbol_has_fixed_price(self):
        data = StubMarketDataSource().get_quote("AAPL")

        assert data.price == Decimal("185.50")
        assert not data.is_empty

    def test_unknown_symbol_prices_are_repeatable(self):
        first = StubMarketDataSource(seed=7).get_quote("QQQQ")
        second = StubMarketDataSource(seed=7).get_quote("QQQQ")

        assert first.price == second.price
        assert first.price > 0

    def test_configured_unknown_symbol_is_empty(self):
        source = StubMarketDataSource(unknown_symbols={"nope"})

        assert source.get_quote("NOPE").is_empty
        assert source.get_historical("NOPE", Timeframe.ONE_DAY) == []

    def test_profile_and_search(self):
        source = StubMarketDataSource()

        assert source.get_profile("MSFT").name == "Microsoft Corp"
        assert source.get_profile("QQQQ") is None
        assert "TSLA" in [m.symbol for m in source.search("tesla")]

    @pytest.mark.parametrize(
        "timeframe,bars",
        [(Timeframe.ONE_MONTH, 100), (Timeframe.ONE_YEAR, 52), (Timeframe.MAX, 120)],
    )
    def test_history_parses_cleanly(self, timeframe, bars):
        records = StubMarketDataSource().get_historical("AAPL", timeframe)

        result = build_historical_result("AAPL", timeframe, records)

        assert len(result.bars) == bars
        assert result.skipped == 0
        assert result.bars == sorted(result.bars, key=lambda bar: bar.date)

    def test_news_headlines(self):
        articles = StubMarketDataSource().get_news("forex")

        assert len(articles) >= 3
        assert all(a.source == "Stub Newswire" for a in articles)
        assert all("/forex/" in a.url for a in articles)
        published = [a.published_at for a in articles]
        assert published == sorted(published, reverse=True)


class TestSessionIdentity:
    """Tests for sign-in / sign-out."""

    def test_sign_in_and_out(self):
        identity = SessionIdentity()
        assert identity.current_user_id() is None

        identity.sign_in(" user-1 ")
        assert identity.current_user_id() == "user-1"
        assert identity.is_signed_in

        identity.sign_out()
        assert identity.current_user_id() is None

    def test_blank_user_id_is_rejected(self):
        with pytest.raises(ValueError):
            SessionIdentity().sign_in("  ")
