"""Runtime configuration for the analytics service."""

from __future__ import annotations

import logging
import os
from datetime import timezone, tzinfo
from functools import lru_cache
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


def _env_number(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be a number, got {raw!r}") from None


ORDER_API_BASE_URL = os.getenv("ORDER_API_BASE_URL", "http://localhost:5000/api")
ORDER_API_TIMEOUT = _env_number("ORDER_API_TIMEOUT", 10.0)
ORDER_FETCH_LIMIT = int(_env_number("ORDER_FETCH_LIMIT", 1000))
ANALYTICS_TIMEZONE = os.getenv("ANALYTICS_TIMEZONE", "Europe/Paris")
FRONTEND_URL: Optional[str] = os.getenv("FRONTEND_URL")
APP_ENV = os.getenv("APP_ENV", "development")


@lru_cache(maxsize=1)
def get_local_timezone() -> tzinfo:
    """Timezone whose calendar days bound the daily figures."""
    try:
        return ZoneInfo(ANALYTICS_TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown ANALYTICS_TIMEZONE %r, falling back to UTC", ANALYTICS_TIMEZONE)
        return timezone.utc


__all__ = [
    "ANALYTICS_TIMEZONE",
    "APP_ENV",
    "FRONTEND_URL",
    "ORDER_API_BASE_URL",
    "ORDER_API_TIMEOUT",
    "ORDER_FETCH_LIMIT",
    "get_local_timezone",
]
