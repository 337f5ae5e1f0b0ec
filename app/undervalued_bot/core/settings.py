from pathlib import Path

BASE_DIR = Path(__file__).resolve().parents[3]
APP_DIR = BASE_DIR / "app" / "undervalued_bot"
CONFIG_DIR = BASE_DIR / "config"

RULES_PATH = CONFIG_DIR / "rules.yaml"

DEFAULT_PORT = 3002
