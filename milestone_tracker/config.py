"""
Service configuration - read once from the environment (.env supported)
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

from .matcher_config import (
    CONFIDENCE_MULTIPLIER,
    MAX_CANDIDATES,
    MIN_MATCH_SCORE,
    RECENT_ACTIVITY_DAYS as DEFAULT_RECENT_ACTIVITY_DAYS,
)

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(BASE_DIR / ".env")


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring malformed %s=%r, using %s", name, raw, default)
        return default


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring malformed %s=%r, using %s", name, raw, default)
        return default


TRACKER_DB_PATH = os.getenv("TRACKER_DB_PATH", str(BASE_DIR / "data" / "tracker.db"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_API_URL = os.getenv(
    "OPENAI_API_URL", "https://api.openai.com/v1/chat/completions"
)
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-3.5-turbo")
GENERATION_TIMEOUT_SECONDS = _float_env("GENERATION_TIMEOUT_SECONDS", 30.0)

MATCH_MIN_SCORE = _int_env("MATCH_MIN_SCORE", MIN_MATCH_SCORE)
MATCH_MAX_CANDIDATES = _int_env("MATCH_MAX_CANDIDATES", MAX_CANDIDATES)
MATCH_CONFIDENCE_MULTIPLIER = _int_env(
    "MATCH_CONFIDENCE_MULTIPLIER", CONFIDENCE_MULTIPLIER
)
RECENT_ACTIVITY_DAYS = _int_env("RECENT_ACTIVITY_DAYS", DEFAULT_RECENT_ACTIVITY_DAYS)
