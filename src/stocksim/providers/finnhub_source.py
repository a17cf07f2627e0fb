"""
Finnhub + Alpha Vantage market data source.

Quotes, company profiles, symbol search and market news come from Finnhub;
historical series come from Alpha Vantage's adjusted time series endpoints.
"""

import logging
from typing import Any, Mapping, Optional

import requests

from stocksim.core.exceptions import (
    MalformedPayloadError,
    MissingCredentialsError,
    RateLimitError,
    TransportError,
    UpstreamError,
)
from stocksim.domain.models import SeriesInterval, Timeframe, interval_for, is_full_history
from stocksim.domain.views import (
    CompanyProfile,
    NewsArticle,
    QuoteData,
    RawHistoricalRecord,
    SymbolMatch,
)
from stocksim.providers.parsers import parse_news, parse_profile, parse_quote, parse_search_results

logger = logging.getLogger(__name__)

FINNHUB_BASE_URL = "https://finnhub.io/api/v1"
ALPHA_VANTAGE_BASE_URL = "https://www.alphavantage.co/query"

_AV_FUNCTIONS: dict[SeriesInterval, tuple[str, str]] = {
    SeriesInterval.DAILY: ("TIME_SERIES_DAILY_ADJUSTED", "Time Series (Daily)"),
    SeriesInterval.WEEKLY: ("TIME_SERIES_WEEKLY_ADJUSTED", "Weekly Adjusted Time Series"),
    SeriesInterval.MONTHLY: ("TIME_SERIES_MONTHLY_ADJUSTED", "Monthly Adjusted Time Series"),
}


class FinnhubAlphaVantageSource:
    """HTTP market data source backed by Finnhub and Alpha Vantage."""

    def __init__(
        self,
        finnhub_api_key: Optional[str],
        alpha_vantage_api_key: Optional[str],
        timeout_seconds: float = 10.0,
        session: Optional[requests.Session] = None,
        finnhub_base_url: str = FINNHUB_BASE_URL,
        alpha_vantage_base_url: str = ALPHA_VANTAGE_BASE_URL,
    ):
        self._finnhub_key = (finnhub_api_key or "").strip()
        self._av_key = (alpha_vantage_api_key or "").strip()
        self._timeout = timeout_seconds
        self._session = session or requests.Session()
        self._finnhub_base = finnhub_base_url.rstrip("/")
        self._av_base = alpha_vantage_base_url

    # Finnhub

    def get_quote(self, symbol: str) -> QuoteData:
        payload = self._finnhub_get("/quote", {"symbol": symbol})
        return parse_quote(payload)

    def get_profile(self, symbol: str) -> Optional[CompanyProfile]:
        payload = self._finnhub_get("/stock/profile2", {"symbol": symbol})
        profile = parse_profile(payload)
        if profile is None:
            logger.info("Profile not found or empty for %s", symbol)
        return profile

    def search(self, query: str) -> list[SymbolMatch]:
        payload = self._finnhub_get("/search", {"q": query})
        return parse_search_results(payload)

    def get_news(self, category: str = "general") -> list[NewsArticle]:
        payload = self._finnhub_get("/news", {"category": category})
        if not isinstance(payload, list):
            logger.warning("Unexpected news response shape: %s", type(payload).__name__)
        return parse_news(payload)

    # Alpha Vantage

    def get_historical(self, symbol: str, timeframe: Timeframe) -> list[RawHistoricalRecord]:
        function, series_key = _AV_FUNCTIONS[interval_for(timeframe)]
        params = {
            "function": function,
            "symbol": symbol,
            "outputsize": "full" if is_full_history(timeframe) else "compact",
        }
        payload = self._alpha_vantage_get(params)

        series = payload.get(series_key)
        if series is None:
            logger.warning(
                "'%s' not found in Alpha Vantage response for %s (keys: %s)",
                series_key,
                symbol,
                list(payload.keys()),
            )
            return []
        if not isinstance(series, dict):
            raise MalformedPayloadError(
                f"'{series_key}' is not an object: {type(series).__name__}"
            )

        records: list[RawHistoricalRecord] = []
        for date_string in sorted(series):
            values = series[date_string]
            if not isinstance(values, dict):
                # Left for the per-record parser to reject.
                records.append({"date": date_string, "values": values})
                continue
            records.append(
                {
                    "date": date_string,
                    "open": values.get("1. open"),
                    "high": values.get("2. high"),
                    "low": values.get("3. low"),
                    "close": values.get("5. adjusted close", values.get("4. close")),
                    "volume": values.get("6. volume", values.get("5. volume")),
                }
            )
        return records

    # HTTP helpers

    def _finnhub_get(self, endpoint: str, params: Mapping[str, str]) -> Any:
        if not self._finnhub_key:
            raise MissingCredentialsError("Finnhub", "STOCKSIM_FINNHUB_API_KEY")
        query = dict(params)
        query["token"] = self._finnhub_key
        return self._get_json(f"{self._finnhub_base}{endpoint}", query, "Finnhub")

    def _alpha_vantage_get(self, params: Mapping[str, str]) -> dict[str, Any]:
        if not self._av_key:
            raise MissingCredentialsError("Alpha Vantage", "STOCKSIM_ALPHA_VANTAGE_API_KEY")
        query = dict(params)
        query["apikey"] = self._av_key
        payload = self._get_json(self._av_base, query, "Alpha Vantage")

        if not isinstance(payload, dict):
            raise MalformedPayloadError(
                f"Alpha Vantage response is not an object: {type(payload).__name__}"
            )
        if "Error Message" in payload:
            raise UpstreamError(f"Alpha Vantage error: {payload['Error Message']}")
        for notice_key in ("Note", "Information"):
            if notice_key in payload:
                raise RateLimitError(str(payload[notice_key]))
        return payload

    def _get_json(self, url: str, params: Mapping[str, str], provider: str) -> Any:
        logger.debug("%s request: %s %s", provider, url, _redacted(params))
        try:
            response = self._session.get(url, params=dict(params), timeout=self._timeout)
        except requests.RequestException as exc:
            raise TransportError(f"{provider} request failed: {exc}") from exc

        if response.status_code == 429:
            raise RateLimitError(f"{provider} returned HTTP 429")
        if not 200 <= response.status_code < 300:
            raise TransportError(
                f"{provider} request failed (HTTP {response.status_code})",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as exc:
            raise MalformedPayloadError(f"{provider} returned a non-JSON body") from exc


def _redacted(params: Mapping[str, str]) -> dict[str, str]:
    return {k: ("***" if k in ("token", "apikey") else v) for k, v in params.items()}
