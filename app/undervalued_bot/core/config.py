"""Process-wide credentials, read once from the environment at startup."""

from __future__ import annotations

import os
from typing import Mapping

from pydantic import BaseModel, ConfigDict

from .settings import DEFAULT_PORT


class ConfigError(ValueError):
    pass


REQUIRED_ENV = {
    "fmp_api_key": "FMP_API_KEY",
    "openai_api_key": "OPENAI_API_KEY",
    "discord_bot_token": "DISCORD_BOT_TOKEN",
    "discord_channel_id": "DISCORD_CHANNEL_ID",
}


class AppConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    fmp_api_key: str
    openai_api_key: str
    discord_bot_token: str
    discord_channel_id: str
    openai_model: str | None = None
    port: int = DEFAULT_PORT

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> AppConfig:
        env = os.environ if environ is None else environ

        values: dict[str, str] = {}
        missing: list[str] = []
        for field_name, var in REQUIRED_ENV.items():
            raw = (env.get(var) or "").strip()
            if not raw:
                missing.append(var)
            values[field_name] = raw

        if missing:
            raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")

        raw_port = (env.get("PORT") or "").strip()
        try:
            port = int(raw_port) if raw_port else DEFAULT_PORT
        except ValueError as exc:
            raise ConfigError(f"PORT must be an integer, got {raw_port!r}") from exc

        return cls(
            **values,
            openai_model=(env.get("OPENAI_MODEL") or "").strip() or None,
            port=port,
        )
