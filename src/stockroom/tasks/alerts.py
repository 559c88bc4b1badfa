"""Celery tasks for the weekly low-stock alert and the DST monitor."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict

from stockroom.celery_app import celery_app
from stockroom.services.alerts import run_dst_monitor, run_weekly_low_stock_alert, slack_client_from_settings
from stockroom.settings import get_settings

logger = logging.getLogger(__name__)


@celery_app.task(name="stockroom.tasks.alerts.weekly_low_stock_alert")
def weekly_low_stock_alert() -> Dict[str, Any]:
    """Post the low-stock digest to Slack.

    Slack errors propagate so the failure shows up in the task result.
    """
    now = datetime.now(timezone.utc)
    logger.info("weekly_low_stock_alert: starting at %s", now.isoformat())
    result = run_weekly_low_stock_alert(get_settings(), now=now)
    return {
        "item_count": result.item_count,
        "sent": result.sent,
        "message": result.message,
        "timestamp": now.isoformat(),
    }


@celery_app.task(name="stockroom.tasks.alerts.dst_monitor")
def dst_monitor() -> Dict[str, Any]:
    settings = get_settings()
    now = datetime.now(timezone.utc)
    result = run_dst_monitor(settings.schedule, slack_client_from_settings(settings), now)
    verdict = result.verdict
    return {
        "needs_update": verdict.needs_update,
        "reason": verdict.reason,
        "recommended_schedule": verdict.recommended_schedule_expression,
        "transition_instant": verdict.transition_instant.isoformat() if verdict.transition_instant else None,
        "notification_sent": result.notification_sent,
        "notification_error": result.notification_error,
        "checked_at": now.isoformat(),
    }
