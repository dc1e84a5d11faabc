"""Pipeline settings.

All knobs are read from the environment once (a `.env` file is honoured) and
frozen for the life of the process.

Usage:
    from pipeline_config import get_settings
    settings = get_settings()
"""
import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return int(raw.strip())


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return float(raw.strip())


@dataclass(frozen=True)
class PipelineSettings:
    source_timeout_s: float = 60.0
    profile_timeout_s: float = 60.0
    page_timeout_s: float = 10.0
    max_scrape_urls: int = 10
    scrape_concurrency: int = 3
    qualify_batch_size: int = 3
    activity_window_days: int = 60
    max_to_qualify: int = 20
    default_market: str = "ZA"

    @classmethod
    def from_env(cls) -> "PipelineSettings":
        return cls(
            source_timeout_s=_env_float("LEADS_SOURCE_TIMEOUT_S", 60.0),
            profile_timeout_s=_env_float("LEADS_PROFILE_TIMEOUT_S", 60.0),
            page_timeout_s=_env_float("LEADS_PAGE_TIMEOUT_S", 10.0),
            max_scrape_urls=_env_int("LEADS_MAX_SCRAPE_URLS", 10),
            scrape_concurrency=_env_int("LEADS_SCRAPE_CONCURRENCY", 3),
            qualify_batch_size=_env_int("LEADS_QUALIFY_BATCH_SIZE", 3),
            activity_window_days=_env_int("LEADS_ACTIVITY_WINDOW_DAYS", 60),
            max_to_qualify=_env_int("LEADS_MAX_TO_QUALIFY", 20),
            default_market=os.environ.get("LEADS_DEFAULT_MARKET", "ZA").strip() or "ZA",
        )


@lru_cache(maxsize=1)
def get_settings() -> PipelineSettings:
    """Return the process-wide settings, reading the environment on first call."""
    return PipelineSettings.from_env()
