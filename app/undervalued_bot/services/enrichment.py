from __future__ import annotations

import logging
from typing import Any

from app.undervalued_bot.models.schemas import RawCandidate, ScreenerOptions, Stock
from app.undervalued_bot.providers.base import DataProvider
from app.undervalued_bot.utils.math_utils import is_number

logger = logging.getLogger(__name__)

DEFAULT_SCREENER_PARAMS: dict[str, Any] = {
    "isActivelyTrading": True,
    "limit": 400,
    "exchange": "NASDAQ",
}
DEFAULT_MIN_UPSIDE_RATIO = 1.5
DEFAULT_RSI = 50.0


def build_query_params(
    options: ScreenerOptions | None = None,
    defaults: dict[str, Any] | None = None,
) -> dict[str, Any]:
    base = dict(DEFAULT_SCREENER_PARAMS if defaults is None else defaults)
    supplied = options.to_params() if options is not None else {}
    return {**base, **supplied}


class EnrichmentPipeline:
    def __init__(self, provider: DataProvider, rules: dict[str, Any] | None = None) -> None:
        rules = rules or {}
        self.provider = provider
        self.screener_defaults = {**DEFAULT_SCREENER_PARAMS, **(rules.get("screener") or {})}
        filters = rules.get("filters", {})
        self.min_upside_ratio = float(filters.get("min_upside_ratio", DEFAULT_MIN_UPSIDE_RATIO))
        self.default_rsi = float(filters.get("default_rsi", DEFAULT_RSI))

    def fetch_undervalued_stocks(self, options: ScreenerOptions | None = None) -> list[Stock]:
        params = build_query_params(options, self.screener_defaults)

        try:
            candidates = self.provider.screen(params)
        except Exception as exc:
            logger.error("Failed to fetch undervalued stocks: %s", exc)
            raise

        filtered = [c for c in candidates if not c.is_etf and not c.is_fund]

        enriched: list[Stock] = []
        for candidate in filtered:
            stock = self._enrich(candidate)
            if stock is not None:
                enriched.append(stock)

        logger.info(
            "Enrichment: %d screened, %d after ETF/fund filter, %d enriched",
            len(candidates),
            len(filtered),
            len(enriched),
        )
        return enriched

    def _enrich(self, candidate: RawCandidate) -> Stock | None:
        symbol = candidate.symbol

        # Target price first: cheapest disqualifier
        target_price = self.provider.get_target_price(symbol)
        if target_price is None or candidate.price <= 0:
            return None
        if target_price / candidate.price <= self.min_upside_ratio:
            return None

        insights = self.provider.get_analyst_sentiment(symbol)
        if insights is None:
            return None

        metrics = self.provider.get_metrics(symbol)
        if not (is_number(metrics.pe) and is_number(metrics.pb) and is_number(metrics.debt_to_equity)):
            return None

        rsi = self.provider.get_rsi(symbol)

        return Stock(
            symbol=symbol,
            company_name=candidate.company_name,
            price=candidate.price,
            target_price=target_price,
            pe=metrics.pe,
            pb=metrics.pb,
            rsi=self.default_rsi if rsi is None else rsi,
            debt_to_equity=metrics.debt_to_equity,
            **insights.model_dump(),
        )
