"""Configuration for Budget Buddy.

Values come from the environment (a ``.env`` file in the working directory
is loaded first) and fall back to paths inside the project.
"""
import logging
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

DATA_DIR = Path(os.getenv("BUDGET_DATA_DIR", _PROJECT_ROOT / "data"))
SEED_PATH = Path(os.getenv("BUDGET_SEED_PATH", DATA_DIR / "seed.json"))

CURRENCY = os.getenv("BUDGET_CURRENCY", "INR")
DEFAULT_USER = os.getenv("BUDGET_DEFAULT_USER", "guest")
LOG_LEVEL = os.getenv("BUDGET_LOG_LEVEL", "INFO")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def ensure_data_directories() -> None:
    DATA_DIR.mkdir(parents=True, exist_ok=True)


def configure_logging(level: str | None = None) -> None:
    """Set up root logging once; later calls are no-ops."""
    logging.basicConfig(level=(level or LOG_LEVEL).upper(), format=LOG_FORMAT)
