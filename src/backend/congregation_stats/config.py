"""
Runtime configuration for the statistics engine.
"""

from __future__ import annotations

import os
from typing import Optional

from pydantic import BaseModel

from .models import DEFAULT_UNASSIGNED_LABEL


class StatsConfig(BaseModel):
    database_url: Optional[str] = None
    snapshot_ttl_seconds: int = 60
    birthday_window_days: int = 7
    top_districts: int = 10
    top_occupations: int = 10
    timezone: str = "Asia/Makassar"
    unassigned_district_label: str = DEFAULT_UNASSIGNED_LABEL


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def load_stats_config() -> StatsConfig:
    cfg = StatsConfig()
    return StatsConfig(
        database_url=os.getenv("CONGREGATION_STATS_DATABASE_URL", cfg.database_url),
        snapshot_ttl_seconds=_env_int("SNAPSHOT_TTL_SECONDS", cfg.snapshot_ttl_seconds),
        birthday_window_days=_env_int("BIRTHDAY_WINDOW_DAYS", cfg.birthday_window_days),
        top_districts=_env_int("TOP_DISTRICTS", cfg.top_districts),
        top_occupations=_env_int("TOP_OCCUPATIONS", cfg.top_occupations),
        timezone=os.getenv("STATS_TIMEZONE", cfg.timezone),
        unassigned_district_label=os.getenv("UNASSIGNED_DISTRICT_LABEL", cfg.unassigned_district_label),
    )
