from __future__ import annotations

import logging
from typing import Any

import requests
from pydantic import ValidationError

from app.undervalued_bot.models.schemas import AnalystEstimate, KeyMetrics, RawCandidate, StockInsights
from app.undervalued_bot.providers.base import DataProvider
from app.undervalued_bot.services.insights import extract_key_insights
from app.undervalued_bot.utils.math_utils import is_number

logger = logging.getLogger(__name__)


def _format_param(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    return value


class FMPProvider(DataProvider):
    """
    Financial Modeling Prep client.

    Only the screener call raises; the per-symbol lookups log and return an
    empty result so a single bad symbol never aborts the run.
    """

    BASE_URL = "https://financialmodelingprep.com"
    SCREENER_PATH = "/stable/company-screener"
    PRICE_TARGET_PATH = "/stable/price-target-summary"
    ANALYST_ESTIMATES_PATH = "/stable/analyst-estimates"
    KEY_METRICS_TTM_PATH = "/api/v3/key-metrics-ttm/{symbol}"

    def __init__(
        self,
        api_key: str,
        base_url: str | None = None,
        timeout_sec: float = 15,
        estimates_limit: int = 10,
        session: requests.Session | None = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self.timeout_sec = timeout_sec
        self.estimates_limit = estimates_limit
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})

    def _get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        query = {k: _format_param(v) for k, v in (params or {}).items()}
        query["apikey"] = self.api_key
        resp = self.session.get(f"{self.base_url}{path}", params=query, timeout=self.timeout_sec)
        resp.raise_for_status()
        return resp.json()

    def screen(self, params: dict[str, Any]) -> list[RawCandidate]:
        payload = self._get_json(self.SCREENER_PATH, params)
        if not isinstance(payload, list):
            raise ValueError(f"Unexpected screener payload: {str(payload)[:200]}")

        out: list[RawCandidate] = []
        for row in payload:
            if not isinstance(row, dict):
                continue
            try:
                out.append(RawCandidate.model_validate(row))
            except ValidationError:
                logger.warning("Skipping malformed screener row: %s", row.get("symbol", "?"))
        return out

    def get_target_price(self, symbol: str) -> float | None:
        try:
            data = self._get_json(self.PRICE_TARGET_PATH, {"symbol": symbol})
        except (requests.RequestException, ValueError) as exc:
            logger.warning("Target price fetch failed for %s: %s", symbol, exc)
            return None

        if not isinstance(data, list) or not data or not isinstance(data[0], dict):
            return None

        target = data[0].get("allTimeAvgPriceTarget")
        if is_number(target) and target > 0:
            return float(target)
        return None

    def get_analyst_sentiment(self, symbol: str) -> StockInsights | None:
        params = {"symbol": symbol, "period": "annual", "page": 0, "limit": self.estimates_limit}
        try:
            data = self._get_json(self.ANALYST_ESTIMATES_PATH, params)
        except (requests.RequestException, ValueError) as exc:
            logger.warning("Failed to get analyst sentiment for %s: %s", symbol, exc)
            return None

        if not isinstance(data, list) or not data or not isinstance(data[0], dict):
            logger.warning("No analyst estimates data for %s", symbol)
            return None

        # First row is the most recent estimate
        latest = data[0]
        if not is_number(latest.get("epsAvg")) or not is_number(latest.get("numAnalystsEps")):
            logger.warning("Missing EPS average or analyst count for %s", symbol)
            return None

        try:
            return extract_key_insights(AnalystEstimate.model_validate(latest))
        except (ValidationError, ValueError, ArithmeticError) as exc:
            logger.warning("Unusable analyst estimate for %s: %s", symbol, exc)
            return None

    def get_metrics(self, symbol: str) -> KeyMetrics:
        try:
            data = self._get_json(self.KEY_METRICS_TTM_PATH.format(symbol=symbol))
        except (requests.RequestException, ValueError) as exc:
            logger.error("Error fetching metrics for %s: %s", symbol, exc)
            return KeyMetrics()

        if not isinstance(data, list) or not data or not isinstance(data[0], dict):
            return KeyMetrics()

        metrics = data[0]
        return KeyMetrics(
            pe=metrics.get("peRatioTTM"),
            pb=metrics.get("pbRatioTTM"),
            debt_to_equity=metrics.get("debtToEquityTTM"),
        )

    def get_rsi(self, symbol: str) -> float | None:
        # TODO: wire FMP's /stable/technical-indicators/rsi endpoint once the plan tier allows it
        return None
