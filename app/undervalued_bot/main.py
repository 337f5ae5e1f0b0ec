from __future__ import annotations

import logging
import math
from contextlib import asynccontextmanager
from typing import Any

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from app.undervalued_bot.core.config import AppConfig
from app.undervalued_bot.core.rules import load_rules
from app.undervalued_bot.models.schemas import ScreenerOptions
from app.undervalued_bot.services.enrichment import DEFAULT_SCREENER_PARAMS
from app.undervalued_bot.services.pipeline import PipelineService
from app.undervalued_bot.services.scheduler import start_scheduler, stop_scheduler

load_dotenv()

logger = logging.getLogger(__name__)


def _to_number(raw: str | None) -> float | None:
    if raw is None or not raw.strip():
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def _to_flag(raw: str | None) -> bool | None:
    if raw is None:
        return None
    return raw == "true"


def _to_limit(raw: str | None) -> int:
    default = int(DEFAULT_SCREENER_PARAMS["limit"])
    try:
        value = int(float(raw)) if raw is not None else 0
    except (ValueError, OverflowError):
        return default
    return value or default


def parse_screener_options(query: Any) -> ScreenerOptions:
    exchange = query.get("exchange")
    return ScreenerOptions(
        market_cap_lower_than=_to_number(query.get("marketCapLowerThan")),
        price_lower_than=_to_number(query.get("priceLowerThan")),
        average_volume_more_than=_to_number(query.get("averageVolumeMoreThan")),
        exchange=exchange or None,
        is_actively_trading=_to_flag(query.get("isActivelyTrading")),
        is_etf=_to_flag(query.get("isEtf")),
        is_fund=_to_flag(query.get("isFund")),
        limit=_to_limit(query.get("limit")),
    )


def create_app(pipeline: PipelineService | None = None, rules: dict[str, Any] | None = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.rules = rules if rules is not None else load_rules()
        if pipeline is None:
            # Missing credentials raise ConfigError here and abort startup
            app.state.pipeline = PipelineService.from_config(AppConfig.from_env(), app.state.rules)
        else:
            app.state.pipeline = pipeline
        start_scheduler(app.state.pipeline, app.state.rules)
        yield
        stop_scheduler()

    app = FastAPI(title="Undervalued Stock Bot", version="0.1.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/run")
    def run(request: Request):
        try:
            options = parse_screener_options(request.query_params)
            top = request.app.state.pipeline.run_bot(options)
            return JSONResponse(content=[s.model_dump() for s in top])
        except Exception:
            logger.exception("Run failed")
            return PlainTextResponse("Internal Error", status_code=500)

    @app.get("/api/rules")
    def api_rules(request: Request) -> JSONResponse:
        return JSONResponse(content=request.app.state.rules)

    return app


app = create_app()


def serve() -> None:
    config = AppConfig.from_env()
    uvicorn.run("app.undervalued_bot.main:app", host="0.0.0.0", port=config.port)


if __name__ == "__main__":
    serve()
