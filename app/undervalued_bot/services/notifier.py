from __future__ import annotations

import logging

import requests

from app.undervalued_bot.models.schemas import ScoredStock

logger = logging.getLogger(__name__)

DISCORD_API = "https://discord.com/api/v10"
DISCORD_MAX_CONTENT = 2000


def format_message(top_stocks: list[ScoredStock]) -> str:
    entries = "\n\n".join(
        f"**{i}. {s.symbol}** — Score: **{s.score:.2f}**\n*{s.explanation}*"
        for i, s in enumerate(top_stocks, start=1)
    )
    content = f"📈 **Top {len(top_stocks)} Undervalued Stocks Today**\n\n{entries}"
    if len(content) > DISCORD_MAX_CONTENT:
        content = content[: DISCORD_MAX_CONTENT - 3] + "..."
    return content


class DiscordNotifier:
    def __init__(
        self,
        bot_token: str,
        channel_id: str,
        timeout_sec: float = 15,
        session: requests.Session | None = None,
    ) -> None:
        self.bot_token = bot_token
        self.channel_id = channel_id
        self.timeout_sec = timeout_sec
        self.session = session or requests.Session()

    @property
    def url(self) -> str:
        return f"{DISCORD_API}/channels/{self.channel_id}/messages"

    def notify(self, top_stocks: list[ScoredStock]) -> None:
        if not top_stocks:
            logger.warning("No stocks to notify")
            return

        payload = {"content": format_message(top_stocks)}
        headers = {
            "Authorization": f"Bot {self.bot_token}",
            "Content-Type": "application/json",
        }

        try:
            resp = self.session.post(self.url, json=payload, headers=headers, timeout=self.timeout_sec)
        except requests.RequestException as exc:
            logger.error("Failed to send Discord message: %s", exc)
            raise

        if resp.status_code not in (200, 201):
            logger.warning("Unexpected Discord API status: %s", resp.status_code)
        else:
            logger.info("Message sent to Discord (%d stocks)", len(top_stocks))
