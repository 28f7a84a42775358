from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

ENV_PREFIX = "ANALYTICS_"


@dataclass(frozen=True)
class AnalyticsConfig:
    numeric_threshold: float = 0.9
    search_debounce_ms: int = 300
    filter_debounce_ms: int = 150
    default_rows_per_page: int = 10
    api_base_url: str = "http://127.0.0.1:8000"
    fetch_timeout: float = 30.0
    max_upload_bytes: int = 5 * 1024 * 1024


def _env(name: str) -> Optional[str]:
    value = os.getenv(ENV_PREFIX + name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _env_float(name: str, default: float) -> float:
    raw = _env(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        logging.getLogger(__name__).warning("Ignoring invalid %s%s=%r", ENV_PREFIX, name, raw)
        return default


def _env_int(name: str, default: int) -> int:
    raw = _env(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        logging.getLogger(__name__).warning("Ignoring invalid %s%s=%r", ENV_PREFIX, name, raw)
        return default


def load_config() -> AnalyticsConfig:
    """Build the config from ANALYTICS_* environment variables (a .env file is honoured)."""
    load_dotenv()
    defaults = AnalyticsConfig()
    threshold = _env_float("NUMERIC_THRESHOLD", defaults.numeric_threshold)
    if not 0.0 < threshold <= 1.0:
        threshold = defaults.numeric_threshold
    return AnalyticsConfig(
        numeric_threshold=threshold,
        search_debounce_ms=max(0, _env_int("SEARCH_DEBOUNCE_MS", defaults.search_debounce_ms)),
        filter_debounce_ms=max(0, _env_int("FILTER_DEBOUNCE_MS", defaults.filter_debounce_ms)),
        default_rows_per_page=max(1, _env_int("ROWS_PER_PAGE", defaults.default_rows_per_page)),
        api_base_url=(_env("API_BASE_URL") or defaults.api_base_url).rstrip("/"),
        fetch_timeout=_env_float("FETCH_TIMEOUT", defaults.fetch_timeout),
        max_upload_bytes=max(1, _env_int("MAX_UPLOAD_BYTES", defaults.max_upload_bytes)),
    )


def configure_logging(level: Optional[str] = None) -> None:
    load_dotenv()
    name = (level or _env("LOG_LEVEL") or "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, name, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
