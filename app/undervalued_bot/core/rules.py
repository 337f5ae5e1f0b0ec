from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from .settings import RULES_PATH


class RuleValidationError(ValueError):
    pass


def _required_keys() -> dict[str, list[str]]:
    return {
        "root": [
            "data_provider",
            "screener",
            "filters",
            "scoring",
            "notifier",
            "schedules",
        ],
        "scoring": ["model", "temperature", "top_n"],
        "schedules": ["enabled", "run_cron", "timezone"],
    }


def validate_rules(rules: dict[str, Any]) -> None:
    required = _required_keys()

    for key in required["root"]:
        if key not in rules:
            raise RuleValidationError(f"Missing root key: {key}")

    for key in required["scoring"]:
        if key not in rules["scoring"]:
            raise RuleValidationError(f"Missing scoring.{key}")

    for key in required["schedules"]:
        if key not in rules["schedules"]:
            raise RuleValidationError(f"Missing schedules.{key}")

    if not isinstance(rules["screener"], dict):
        raise RuleValidationError("screener must be a mapping of query parameters")

    if int(rules["scoring"]["top_n"]) < 1:
        raise RuleValidationError("scoring.top_n must be >= 1")

    temperature = float(rules["scoring"]["temperature"])
    if not 0.0 <= temperature <= 2.0:
        raise RuleValidationError("scoring.temperature must be between 0 and 2")

    if float(rules["filters"].get("min_upside_ratio", 1.5)) <= 0:
        raise RuleValidationError("filters.min_upside_ratio must be > 0")

    if float(rules["data_provider"].get("requests_timeout_sec", 15)) <= 0:
        raise RuleValidationError("data_provider.requests_timeout_sec must be > 0")


def load_rules(path: Path = RULES_PATH) -> dict[str, Any]:
    if not path.exists():
        raise RuleValidationError(f"Rules file not found: {path}")

    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if not isinstance(data, dict):
        raise RuleValidationError("Rules YAML must parse into a dictionary")

    validate_rules(data)
    return data
