from __future__ import annotations

import logging

from dotenv import load_dotenv

from app.undervalued_bot.core.config import AppConfig
from app.undervalued_bot.services.pipeline import PipelineService

load_dotenv()


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    pipeline = PipelineService.from_config(AppConfig.from_env())
    top = pipeline.run_bot()
    print(f"Run completed with {len(top)} picks")
    for rank, s in enumerate(top, start=1):
        print(f"{rank}. {s.symbol} score={s.score:.2f} - {s.explanation}")


if __name__ == "__main__":
    main()
