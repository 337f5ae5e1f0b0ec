from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from app.undervalued_bot.models.schemas import KeyMetrics, RawCandidate, StockInsights


class DataProvider(ABC):
    @abstractmethod
    def screen(self, params: dict[str, Any]) -> list[RawCandidate]:
        raise NotImplementedError

    @abstractmethod
    def get_target_price(self, symbol: str) -> float | None:
        raise NotImplementedError

    @abstractmethod
    def get_analyst_sentiment(self, symbol: str) -> StockInsights | None:
        raise NotImplementedError

    @abstractmethod
    def get_metrics(self, symbol: str) -> KeyMetrics:
        raise NotImplementedError

    @abstractmethod
    def get_rsi(self, symbol: str) -> float | None:
        raise NotImplementedError
