"""Slack-backed jobs shared by the HTTP layer and Celery: weekly alert, DST monitor, request pings."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from stockroom import db_inventory, db_settings
from stockroom.services.notifications.slack import (
    SlackClient,
    SlackDeliveryError,
    SlackNotConfigured,
    build_approval_request,
    build_dst_transition_notice,
    build_low_stock_alert,
    build_reorder_request,
    build_reorder_status_update,
)
from stockroom.services.scheduling.dst import ScheduleConfig, ScheduleUpdateVerdict, evaluate_schedule_freshness
from stockroom.settings import Settings

logger = logging.getLogger(__name__)


@dataclass
class WeeklyAlertResult:
    item_count: int
    sent: bool
    message: str


@dataclass
class DstMonitorResult:
    verdict: ScheduleUpdateVerdict
    notification_sent: bool = False
    notification_error: Optional[str] = None


def slack_client_from_settings(settings: Settings) -> SlackClient:
    return SlackClient(settings.slack_webhook_url, settings.slack_channel)


def run_weekly_low_stock_alert(
    settings: Settings,
    client: Optional[SlackClient] = None,
    now: Optional[datetime] = None,
) -> WeeklyAlertResult:
    """Post the low-stock digest. Raises SlackNotConfigured / SlackDeliveryError."""
    client = client or slack_client_from_settings(settings)
    default_reorder_point = db_settings.get_default_reorder_point(settings.default_reorder_point)
    items = db_inventory.list_low_stock(default_reorder_point)

    if not items:
        logger.info("weekly_alert: no low stock items")
        return WeeklyAlertResult(item_count=0, sent=False, message="No low stock items found")

    payload = build_low_stock_alert(items, default_reorder_point, settings.app_url, today=now)
    client.send(payload)
    logger.info("weekly_alert: sent items=%s", len(items))
    return WeeklyAlertResult(item_count=len(items), sent=True, message="Weekly alert sent successfully")


def run_dst_monitor(
    config: ScheduleConfig,
    client: SlackClient,
    now: datetime,
) -> DstMonitorResult:
    """Check the transition window and tell Slack when the cron must change.

    Notification failures are reported in the result, not raised.
    """
    verdict = evaluate_schedule_freshness(now=now, config=config)
    if not verdict.needs_update:
        logger.info("dst_monitor: no update needed tz=%s", config.timezone)
        return DstMonitorResult(verdict=verdict)

    logger.warning(
        "dst_monitor: %s, recommended schedule %s",
        verdict.reason,
        verdict.recommended_schedule_expression,
    )
    try:
        client.send(build_dst_transition_notice(verdict, config))
    except (SlackNotConfigured, SlackDeliveryError) as exc:
        logger.error("dst_monitor: notification failed: %s", exc)
        return DstMonitorResult(verdict=verdict, notification_error=str(exc))
    return DstMonitorResult(verdict=verdict, notification_sent=True)


def _send_best_effort(client: SlackClient, payload: dict, context: str) -> bool:
    """A failed or unconfigured webhook never blocks the request that triggered it."""
    try:
        client.send(payload)
    except SlackNotConfigured:
        logger.info("%s: slack not configured", context)
        return False
    except SlackDeliveryError as exc:
        logger.warning("%s: slack delivery failed: %s", context, exc)
        return False
    return True


def notify_approval_request(change: dict, client: SlackClient, app_url: str) -> bool:
    return _send_best_effort(client, build_approval_request(change, app_url), f"approval_request change_id={change['id']}")


def notify_reorder_request(request: dict, client: SlackClient, app_url: str) -> bool:
    return _send_best_effort(client, build_reorder_request(request, app_url), f"reorder_request id={request['id']}")


def notify_reorder_status(request: dict, previous_status: str, client: SlackClient) -> bool:
    return _send_best_effort(
        client,
        build_reorder_status_update(request, previous_status),
        f"reorder_status id={request['id']}",
    )
