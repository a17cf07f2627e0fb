"""
Unit tests for AppContext.

Tests cover:
- Per-user store reuse
- Least-recently-used eviction of loaded stores
- Dropping a cleared user's store
"""

from decimal import Decimal

import pytest

from stocksim.app_context import AppContext
from stocksim.config.settings import Settings

from tests.conftest import DeterministicMarketSource


@pytest.fixture
def context(kv_store) -> AppContext:
    """Context holding at most two loaded portfolios."""
    ctx = AppContext(
        settings=Settings(database_url="sqlite://", market_data_source="stub", max_loaded_portfolios=2),
        key_value_store=kv_store,
        source=DeterministicMarketSource(),
    )
    yield ctx
    ctx.close()


# =============================================================================
# LOADED PORTFOLIO TESTS
# =============================================================================


class TestLoadedPortfolios:
    """Tests for portfolio_for and its bound."""

    def test_same_user_gets_same_store(self, context: AppContext):
        assert context.portfolio_for("alice") is context.portfolio_for(" alice ")

    def test_oldest_user_is_evicted(self, context: AppContext):
        """
        GIVEN a limit of two loaded portfolios
        WHEN a third user is loaded
        THEN the least recently used user is dropped
        """
        context.portfolio_for("alice")
        context.portfolio_for("bob")
        context.portfolio_for("carol")

        assert context.loaded_user_ids() == ["bob", "carol"]

    def test_recent_use_protects_from_eviction(self, context: AppContext):
        context.portfolio_for("alice")
        context.portfolio_for("bob")
        context.portfolio_for("alice")
        context.portfolio_for("carol")

        assert context.loaded_user_ids() == ["alice", "carol"]

    def test_evicted_user_reloads_persisted_state(self, context: AppContext):
        context.portfolio_for("alice").buy("AAPL", 5, "100")
        context.portfolio_for("bob")
        context.portfolio_for("carol")

        reloaded = context.portfolio_for("alice")

        assert reloaded.cash == Decimal("9500")
        assert reloaded.position("AAPL").quantity == 5

    def test_forget_portfolio_drops_store(self, context: AppContext):
        """
        GIVEN alice cleared her portfolio
        WHEN the context forgets her store
        THEN it is no longer held and a later request loads a fresh one
        """
        store = context.portfolio_for("alice")
        store.clear_for_identity()

        context.forget_portfolio("alice")

        assert "alice" not in context.loaded_user_ids()
        assert context.portfolio_for("alice") is not store
