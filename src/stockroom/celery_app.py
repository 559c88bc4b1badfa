"""Common Celery app for Beat and Worker."""

import importlib
import logging
import pkgutil
from typing import List

from celery import Celery
from celery.schedules import crontab

from stockroom.services.scheduling.dst import generate_cron_expression_for_weekly_local_time
from stockroom.settings import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

celery_app = Celery(
    "stockroom",
    broker=settings.redis_url,
    backend=settings.redis_url,
)


def crontab_from_expression(expression: str) -> crontab:
    """5-field cron string -> celery crontab."""
    minute, hour, day_of_month, month_of_year, day_of_week = expression.split()
    return crontab(
        minute=minute,
        hour=hour,
        day_of_month=day_of_month,
        month_of_year=month_of_year,
        day_of_week=day_of_week,
    )


def weekly_alert_expression() -> str:
    """UTC cron for the weekly alert, valid until the next DST transition.

    Beat reads it once at startup; the DST monitor announces when Beat needs a
    restart to pick up the new offset.
    """
    schedule = settings.schedule
    return generate_cron_expression_for_weekly_local_time(
        schedule.target_hour,
        schedule.target_weekday,
        timezone_name=schedule.timezone,
    )


WEEKLY_ALERT_EXPRESSION = weekly_alert_expression()
logger.info("celery: weekly low stock alert scheduled at '%s' UTC", WEEKLY_ALERT_EXPRESSION)

# Celery Beat schedule
celery_app.conf.beat_schedule = {
    "weekly-low-stock-alert": {
        "task": "stockroom.tasks.alerts.weekly_low_stock_alert",
        "schedule": crontab_from_expression(WEEKLY_ALERT_EXPRESSION),
        "options": {"queue": "celery"},
    },
    # Daily at noon UTC: warns a day ahead of each DST transition
    "dst-monitor-daily": {
        "task": "stockroom.tasks.alerts.dst_monitor",
        "schedule": crontab(minute=0, hour=12),
        "options": {"queue": "celery"},
    },
}

celery_app.conf.timezone = "UTC"
celery_app.conf.enable_utc = True


def _import_all_task_modules() -> List[str]:
    """Import all modules under `stockroom.tasks.*` so Celery registers task decorators."""
    imported: List[str] = []
    try:
        import stockroom.tasks as tasks_pkg
    except Exception as e:
        raise RuntimeError(
            "Celery startup failed: cannot import task package 'stockroom.tasks'"
        ) from e

    try:
        for module_info in pkgutil.walk_packages(
            tasks_pkg.__path__,
            prefix=f"{tasks_pkg.__name__}.",
        ):
            name = module_info.name
            importlib.import_module(name)
            imported.append(name)
    except Exception as e:
        raise RuntimeError(
            "Celery startup failed: error while importing task modules under 'stockroom.tasks.*'"
        ) from e
    return imported


# Auto-import tasks for both worker and beat processes.
_import_all_task_modules()
