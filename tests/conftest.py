"""Pytest configuration and fixtures."""

from __future__ import annotations

import copy
from types import SimpleNamespace
from typing import Any, Callable

import pytest
import requests

from app.undervalued_bot.core.rules import load_rules
from app.undervalued_bot.models.schemas import KeyMetrics, RawCandidate, StockInsights
from app.undervalued_bot.providers.base import DataProvider


class FakeResponse:
    def __init__(self, payload: Any = None, status_code: int = 200) -> None:
        self.payload = payload
        self.status_code = status_code

    def json(self) -> Any:
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")


class FakeSession:
    """Stands in for requests.Session; a handler decides each response."""

    def __init__(self, handler: Callable[..., FakeResponse] | None = None) -> None:
        self.handler = handler or (lambda *args, **kwargs: FakeResponse([]))
        self.headers: dict[str, str] = {}
        self.calls: list[dict[str, Any]] = []

    def get(self, url: str, params: dict[str, Any] | None = None, timeout: float | None = None) -> FakeResponse:
        self.calls.append({"method": "GET", "url": url, "params": params or {}, "timeout": timeout})
        return self.handler(url, params or {})

    def post(self, url: str, json: Any = None, headers: dict[str, str] | None = None, timeout: float | None = None):
        self.calls.append({"method": "POST", "url": url, "json": json, "headers": headers, "timeout": timeout})
        return self.handler(url, json)


class FakeProvider(DataProvider):
    """In-memory provider keyed by symbol."""

    def __init__(
        self,
        candidates: list[dict[str, Any]] | None = None,
        targets: dict[str, float | None] | None = None,
        sentiments: dict[str, StockInsights | None] | None = None,
        metrics: dict[str, KeyMetrics] | None = None,
        screen_error: Exception | None = None,
    ) -> None:
        self.candidates = candidates or []
        self.targets = targets or {}
        self.sentiments = sentiments or {}
        self.metrics = metrics or {}
        self.screen_error = screen_error
        self.screen_params: dict[str, Any] | None = None
        self.calls: list[tuple[str, str]] = []

    def screen(self, params: dict[str, Any]) -> list[RawCandidate]:
        self.screen_params = params
        if self.screen_error is not None:
            raise self.screen_error
        return [RawCandidate.model_validate(c) for c in self.candidates]

    def get_target_price(self, symbol: str) -> float | None:
        self.calls.append(("target", symbol))
        return self.targets.get(symbol)

    def get_analyst_sentiment(self, symbol: str) -> StockInsights | None:
        self.calls.append(("sentiment", symbol))
        return self.sentiments.get(symbol)

    def get_metrics(self, symbol: str) -> KeyMetrics:
        self.calls.append(("metrics", symbol))
        return self.metrics.get(symbol, KeyMetrics())

    def get_rsi(self, symbol: str) -> float | None:
        self.calls.append(("rsi", symbol))
        return None


class FakeCompletions:
    def __init__(self, content: str | None) -> None:
        self.content = content
        self.requests: list[dict[str, Any]] = []

    def create(self, **kwargs: Any) -> SimpleNamespace:
        self.requests.append(kwargs)
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def make_openai_client(content: str | None) -> SimpleNamespace:
    return SimpleNamespace(chat=SimpleNamespace(completions=FakeCompletions(content)))


@pytest.fixture
def rules() -> dict[str, Any]:
    """Shipped rules with the scheduler off and plain-text scoring."""
    data = copy.deepcopy(load_rules())
    data["schedules"]["enabled"] = False
    data["scoring"]["structured_output"] = False
    return data


@pytest.fixture
def insights() -> StockInsights:
    return StockInsights(
        period="2026-12-31",
        eps=2.01,
        ebitda_margin=0.25,
        net_margin=0.1,
        sga_to_revenue_ratio=0.05,
        analyst_count=12,
        summary="EPS: $2.01, EBITDA Margin: 25.0%, Net Margin: 10.0%, SG&A: 5.0%, Analysts: 12",
    )


@pytest.fixture
def good_metrics() -> KeyMetrics:
    return KeyMetrics(pe=8.5, pb=0.9, debt_to_equity=0.4)


@pytest.fixture
def estimate_row() -> dict[str, Any]:
    """Raw FMP analyst-estimate row."""
    return {
        "symbol": "ABC",
        "date": "2026-12-31",
        "revenueAvg": 1_000_000.0,
        "ebitdaAvg": 250_000.0,
        "netIncomeAvg": 100_000.0,
        "sgaExpenseAvg": 50_000.0,
        "epsAvg": 2.005,
        "numAnalystsRevenue": 9,
        "numAnalystsEps": 12,
    }
