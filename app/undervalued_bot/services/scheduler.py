from __future__ import annotations

import logging
from typing import Any

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from app.undervalued_bot.services.pipeline import PipelineService

logger = logging.getLogger(__name__)
_scheduler: BackgroundScheduler | None = None


def _trigger_from_cron(cron_expr: str, timezone: str) -> CronTrigger:
    parts = cron_expr.split()
    if len(parts) != 5:
        raise ValueError(f"Invalid cron format (expected 5 fields): {cron_expr}")
    minute, hour, day, month, day_of_week = parts
    return CronTrigger(
        minute=minute,
        hour=hour,
        day=day,
        month=month,
        day_of_week=day_of_week,
        timezone=timezone,
    )


def start_scheduler(pipeline_service: PipelineService, rules: dict[str, Any]) -> BackgroundScheduler | None:
    global _scheduler
    if _scheduler and _scheduler.running:
        return _scheduler

    schedules = rules.get("schedules", {})
    if not schedules.get("enabled", False):
        logger.info("Scheduler disabled in rules")
        return None

    tz = schedules.get("timezone", "America/New_York")
    run_cron = schedules.get("run_cron", "30 9 * * 1-5")

    scheduler = BackgroundScheduler(timezone=tz)
    scheduler.add_job(
        pipeline_service.run_scheduled,
        trigger=_trigger_from_cron(run_cron, tz),
        id="undervalued_run_job",
        replace_existing=True,
        max_instances=1,
    )

    scheduler.start()
    _scheduler = scheduler
    logger.info("Scheduler started: run [%s] (%s)", run_cron, tz)
    return scheduler


def stop_scheduler() -> None:
    global _scheduler
    if _scheduler and _scheduler.running:
        _scheduler.shutdown(wait=False)
    _scheduler = None
