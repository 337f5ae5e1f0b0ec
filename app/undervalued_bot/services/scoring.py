from __future__ import annotations

import json
import logging
import re
from typing import Any

from openai import OpenAI
from pydantic import ValidationError

from app.undervalued_bot.models.schemas import ScoredStock, Stock

logger = logging.getLogger(__name__)

JSON_ARRAY_RE = re.compile(r"\[\s*\{[\s\S]*?\}\s*\]")

SCORED_STOCKS_SCHEMA: dict[str, Any] = {
    "name": "scored_stocks",
    "strict": True,
    "schema": {
        "type": "object",
        "properties": {
            "stocks": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "symbol": {"type": "string"},
                        "score": {"type": "number"},
                        "explanation": {"type": "string"},
                    },
                    "required": ["symbol", "score", "explanation"],
                    "additionalProperties": False,
                },
            }
        },
        "required": ["stocks"],
        "additionalProperties": False,
    },
}

_EXAMPLE_ITEM = """  {
    "symbol": "XYZ",
    "score": 8.5,
    "explanation": "Strong upside based on undervalued P/E and increasing EPS."
  }"""


class ScoringError(RuntimeError):
    pass


class EmptyResponseError(ScoringError):
    pass


class JSONArrayNotFoundError(ScoringError):
    pass


class InvalidJSONError(ScoringError):
    pass


class SchemaMismatchError(ScoringError):
    pass


def build_prompt(stocks: list[Stock], top_n: int = 3, structured: bool = False) -> str:
    if structured:
        fmt = '```json\n{\n  "stocks": [\n' + _EXAMPLE_ITEM + "\n  ]\n}\n```"
    else:
        fmt = "```json\n[\n" + _EXAMPLE_ITEM + "\n]\n```"

    batch = json.dumps([s.model_dump() for s in stocks], indent=2)

    return f"""You are a financial analyst AI.

Given a list of stocks and their financial metrics:
- P/E (Price to Earnings)
- P/B (Price to Book)
- RSI (Relative Strength Index)
- Debt to Equity
- EPS
- EBITDA Margin
- Net Margin
- SG&A to Revenue Ratio
- Analyst Coverage
- Current Price vs Target Price

Score each stock from **1 to 10** for **upside potential** (10 = high upside).
Then provide a brief explanation (1-2 sentences) in simple English about **why the stock may be undervalued or attractive**.

Return **only the top {top_n} stocks with the highest upside potential**, sorted from highest to lowest score.

Use the following JSON format in your response:

{fmt}

Here are the stocks:

{batch}
"""


def extract_json_array(content: str) -> list[Any]:
    match = JSON_ARRAY_RE.search(content)
    if not match:
        raise JSONArrayNotFoundError("Could not find a JSON array in the model response")
    try:
        return json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        raise InvalidJSONError(f"JSON array in model response is invalid: {exc}") from exc


def _structured_items(content: str) -> list[Any] | None:
    try:
        payload = json.loads(content)
    except json.JSONDecodeError:
        return None
    if isinstance(payload, dict) and isinstance(payload.get("stocks"), list):
        return payload["stocks"]
    return None


def parse_scored_stocks(content: str | None) -> list[ScoredStock]:
    if not content:
        raise EmptyResponseError("No content received from the language model")

    items = _structured_items(content)
    if items is None:
        items = extract_json_array(content)

    try:
        return [ScoredStock.model_validate(item) for item in items]
    except ValidationError as exc:
        raise SchemaMismatchError(f"Model output does not match the scored-stock schema: {exc}") from exc


class AIScoringService:
    def __init__(self, client: OpenAI, rules: dict[str, Any] | None = None, model: str | None = None) -> None:
        scoring = (rules or {}).get("scoring", {})
        self.client = client
        self.model = model or str(scoring.get("model", "gpt-4o"))
        self.temperature = float(scoring.get("temperature", 0.7))
        self.top_n = int(scoring.get("top_n", 3))
        self.structured_output = bool(scoring.get("structured_output", False))

    def score_and_explain(self, stocks: list[Stock]) -> list[ScoredStock]:
        if not stocks:
            logger.info("No enriched stocks to score")
            return []

        prompt = build_prompt(stocks, top_n=self.top_n, structured=self.structured_output)
        request: dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self.temperature,
        }
        if self.structured_output:
            request["response_format"] = {"type": "json_schema", "json_schema": SCORED_STOCKS_SCHEMA}

        res = self.client.chat.completions.create(**request)
        content = res.choices[0].message.content if res.choices else None

        try:
            scored = parse_scored_stocks(content)
        except ScoringError as exc:
            logger.error("Failed to parse model response: %s", exc)
            logger.error("Raw content was: %s", content)
            raise

        logger.info("Model scored %d of %d stocks", len(scored), len(stocks))
        return scored
