"""
Application settings.

Values are read from the environment. A `.env` file at the project root is
loaded first so local development does not need exported variables.

Environment variables:
- SUPABASE_URL: Supabase project URL
- SUPABASE_KEY: Supabase API key (server-side key on the backend only)
- LOW_STOCK_THRESHOLD: quantity at or below which analytics flags an item (default 10)
- DASHBOARD_LOW_STOCK_THRESHOLD: the dashboard's low-stock count threshold (default 5)
- FAST_MOVING_LIMIT: how many items the fast-moving ranking returns (default 5)
- LOG_LEVEL: root log level (default INFO)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

env_path = Path(__file__).parent / ".env"
load_dotenv(dotenv_path=env_path)


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"Environment variable {name} must be an integer, got {raw!r}") from None


@dataclass(frozen=True, slots=True)
class Settings:
    supabase_url: Optional[str]
    supabase_key: Optional[str]
    low_stock_threshold: int = 10
    dashboard_low_stock_threshold: int = 5
    fast_moving_limit: int = 5
    log_level: str = "INFO"

    def require_supabase_credentials(self) -> tuple[str, str]:
        """Return (url, key) or raise if either is missing."""

        if not self.supabase_url:
            raise RuntimeError(
                "Missing environment variable: SUPABASE_URL. "
                "Set SUPABASE_URL to your Supabase project URL."
            )
        if not self.supabase_key:
            raise RuntimeError(
                "Missing environment variable: SUPABASE_KEY. "
                "Set SUPABASE_KEY to your Supabase API key."
            )
        return self.supabase_url, self.supabase_key


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings(
        supabase_url=os.getenv("SUPABASE_URL"),
        supabase_key=os.getenv("SUPABASE_KEY"),
        low_stock_threshold=_int_env("LOW_STOCK_THRESHOLD", 10),
        dashboard_low_stock_threshold=_int_env("DASHBOARD_LOW_STOCK_THRESHOLD", 5),
        fast_moving_limit=_int_env("FAST_MOVING_LIMIT", 5),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


def configure_logging(level: Optional[str] = None) -> None:
    """Configure console logging for the service."""

    logging.basicConfig(
        level=level or get_settings().log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


__all__ = ["Settings", "get_settings", "configure_logging"]
