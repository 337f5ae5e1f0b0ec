from __future__ import annotations

import logging
from typing import Any

from openai import OpenAI

from app.undervalued_bot.core.config import AppConfig
from app.undervalued_bot.core.rules import load_rules
from app.undervalued_bot.models.schemas import ScoredStock, ScreenerOptions
from app.undervalued_bot.providers.fmp_provider import FMPProvider
from app.undervalued_bot.services.enrichment import EnrichmentPipeline
from app.undervalued_bot.services.notifier import DiscordNotifier
from app.undervalued_bot.services.scoring import AIScoringService

logger = logging.getLogger(__name__)


def rank_top(scored: list[ScoredStock], n: int = 3) -> list[ScoredStock]:
    """Re-rank locally; the model's own order and count are not trusted."""
    return sorted(scored, key=lambda s: s.score, reverse=True)[:n]


class PipelineService:
    def __init__(
        self,
        enrichment: EnrichmentPipeline,
        scorer: AIScoringService,
        notifier: DiscordNotifier | None,
        rules: dict[str, Any],
    ) -> None:
        self.enrichment = enrichment
        self.scorer = scorer
        self.notifier = notifier
        self.rules = rules
        self.top_n = int(rules.get("scoring", {}).get("top_n", 3))

    @classmethod
    def from_config(cls, config: AppConfig, rules: dict[str, Any] | None = None) -> PipelineService:
        rules = rules if rules is not None else load_rules()
        provider_cfg = rules.get("data_provider", {})
        notifier_cfg = rules.get("notifier", {})

        provider = FMPProvider(
            api_key=config.fmp_api_key,
            base_url=provider_cfg.get("base_url"),
            timeout_sec=float(provider_cfg.get("requests_timeout_sec", 15)),
            estimates_limit=int(provider_cfg.get("analyst_estimates_limit", 10)),
        )
        scorer = AIScoringService(
            client=OpenAI(api_key=config.openai_api_key),
            rules=rules,
            model=config.openai_model,
        )
        notifier = None
        if bool(notifier_cfg.get("enabled", True)):
            notifier = DiscordNotifier(
                bot_token=config.discord_bot_token,
                channel_id=config.discord_channel_id,
                timeout_sec=float(notifier_cfg.get("request_timeout_sec", 15)),
            )

        return cls(EnrichmentPipeline(provider, rules), scorer, notifier, rules)

    def run_bot(self, options: ScreenerOptions | None = None) -> list[ScoredStock]:
        stocks = self.enrichment.fetch_undervalued_stocks(options)
        scored = self.scorer.score_and_explain(stocks)

        top = rank_top(scored, self.top_n)
        if self.notifier is not None:
            self.notifier.notify(top)
        else:
            logger.info("Notifier disabled; skipping delivery of %d stocks", len(top))

        logger.info("Run complete: %d enriched, %d scored, %d reported", len(stocks), len(scored), len(top))
        return top

    def run_scheduled(self) -> None:
        """Scheduled runs have no caller to report to, so failures are only logged."""
        try:
            self.run_bot()
        except Exception:
            logger.exception("Scheduled run failed")
