"""Process configuration read from the environment (and `.env`).

Settings are built once into an immutable object and handed to the HTTP layer
through `Depends(get_settings)`, so tests can override them per request.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv

from stockroom.services.scheduling.dst import (
    DEFAULT_TARGET_HOUR,
    DEFAULT_TARGET_WEEKDAY,
    DEFAULT_TIMEZONE,
    ScheduleConfig,
)

load_dotenv()


def _database_url() -> str:
    url = os.getenv("DATABASE_URL")
    if not url:
        user = os.getenv("POSTGRES_USER", "stockroom")
        password = os.getenv("POSTGRES_PASSWORD", "stockroom")
        host = os.getenv("POSTGRES_HOST", "postgres")
        port = os.getenv("POSTGRES_PORT", "5432")
        db = os.getenv("POSTGRES_DB", "stockroom")
        return f"postgresql+psycopg2://{user}:{password}@{host}:{port}/{db}"

    # Explicitly use the psycopg2 driver
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+psycopg2://", 1)
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+psycopg2://", 1)
    return url


def _redis_url() -> str:
    url = os.getenv("REDIS_URL")
    if url:
        return url
    host = os.getenv("REDIS_HOST", "redis")
    port = os.getenv("REDIS_PORT", "6379")
    return f"redis://{host}:{port}/0"


@dataclass(frozen=True)
class Settings:
    database_url: str
    redis_url: str
    slack_webhook_url: Optional[str]
    slack_channel: str
    cron_secret: Optional[str]
    app_url: str
    upload_dir: str
    alert_timezone: str
    alert_hour: int
    alert_weekday: int
    default_reorder_point: int
    log_level: str

    @property
    def schedule(self) -> ScheduleConfig:
        return ScheduleConfig(
            timezone=self.alert_timezone,
            target_hour=self.alert_hour,
            target_weekday=self.alert_weekday,
        )


def load_settings() -> Settings:
    return Settings(
        database_url=_database_url(),
        redis_url=_redis_url(),
        slack_webhook_url=os.getenv("SLACK_WEBHOOK_URL") or None,
        slack_channel=os.getenv("SLACK_CHANNEL", "#inventory-alerts"),
        cron_secret=os.getenv("CRON_SECRET") or None,
        app_url=os.getenv("APP_URL", "http://localhost:8000").rstrip("/"),
        upload_dir=os.getenv("UPLOAD_DIR", "/data/uploads"),
        alert_timezone=os.getenv("ALERT_TIMEZONE", DEFAULT_TIMEZONE),
        alert_hour=int(os.getenv("ALERT_HOUR", str(DEFAULT_TARGET_HOUR))),
        alert_weekday=int(os.getenv("ALERT_WEEKDAY", str(DEFAULT_TARGET_WEEKDAY))),
        default_reorder_point=int(os.getenv("DEFAULT_REORDER_POINT", "10")),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
