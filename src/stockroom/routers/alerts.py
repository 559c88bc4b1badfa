"""Router for the weekly alert schedule: DST status, monitor and manual triggers.

The weekly alert runs from a UTC cron, so the expression that keeps it at a
fixed local hour changes at every DST transition. These endpoints report the
expression to use and warn (via Slack) when a transition is within 24 hours.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from fastapi import APIRouter, Depends, HTTPException, Query, status

from stockroom.deps import get_now, get_slack_client, verify_cron_secret
from stockroom.schemas.alerts import (
    DstMonitorResponse,
    DstStatusResponse,
    TransitionInfo,
    TimezoneInfoResponse,
    ValidateScheduleRequest,
    ValidateScheduleResponse,
    WeeklyAlertResponse,
)
from stockroom.services.alerts import run_dst_monitor, run_weekly_low_stock_alert
from stockroom.services.notifications.slack import SlackClient, SlackDeliveryError, SlackNotConfigured
from stockroom.services.scheduling.cron import format_cron_human_readable, validate_cron
from stockroom.services.scheduling.dst import (
    ScheduleConfig,
    ScheduleUpdateVerdict,
    evaluate_schedule_freshness,
    get_civil_time_info,
    get_dst_transition_dates,
    get_schedule_description,
    validate_schedule_against_expected,
)
from stockroom.settings import Settings, get_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/alerts", tags=["alerts"])


def get_schedule_config(
    tz: Optional[str] = Query(None, alias="timezone", description="IANA timezone (defaults to ALERT_TIMEZONE)"),
    settings: Settings = Depends(get_settings),
) -> ScheduleConfig:
    config = settings.schedule
    if tz:
        config = replace(config, timezone=tz)
    try:
        ZoneInfo(config.timezone)
    except (ZoneInfoNotFoundError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Unknown timezone: {config.timezone}",
        )
    return config


def _dst_status(config: ScheduleConfig, now: datetime, verdict: ScheduleUpdateVerdict) -> dict:
    year = now.astimezone(ZoneInfo(config.timezone)).year
    transitions = get_dst_transition_dates(year, config.timezone)
    description = get_schedule_description(now=now, config=config)
    return {
        "timezone": config.timezone,
        "year": year,
        "spring_forward": transitions.spring_forward,
        "fall_back": transitions.fall_back,
        "next_transition": TransitionInfo(**description["next_transition"]),
        "needs_update": verdict.needs_update,
        "reason": verdict.reason,
        "recommended_schedule": verdict.recommended_schedule_expression,
        "transition_instant": verdict.transition_instant,
    }


@router.get("/timezone-info", response_model=TimezoneInfoResponse)
async def timezone_info_endpoint(
    config: ScheduleConfig = Depends(get_schedule_config),
    now: datetime = Depends(get_now),
):
    """Current offset, DST flag and the UTC cron for the weekly alert."""
    info = get_civil_time_info(config.timezone, now=now, target_local_hour=config.target_hour)
    description = get_schedule_description(now=now, config=config)
    return TimezoneInfoResponse(
        timezone=config.timezone,
        current_time=description["current_time"],
        is_dst=info.is_daylight_saving,
        abbreviation=info.abbreviation,
        utc_offset_hours=info.utc_offset_hours,
        target_local_hour=config.target_hour,
        utc_hour=info.utc_hour_for_target_local_hour,
        cron_schedule=description["cron_schedule"],
        schedule=description["schedule"],
        schedule_human=format_cron_human_readable(description["cron_schedule"]),
        next_run_at=description["next_run_at"],
    )


@router.get("/dst-status", response_model=DstStatusResponse)
async def dst_status_endpoint(
    config: ScheduleConfig = Depends(get_schedule_config),
    now: datetime = Depends(get_now),
):
    verdict = evaluate_schedule_freshness(now=now, config=config)
    return DstStatusResponse(**_dst_status(config, now, verdict))


@router.post(
    "/dst-monitor",
    response_model=DstMonitorResponse,
    dependencies=[Depends(verify_cron_secret)],
)
async def dst_monitor_endpoint(
    config: ScheduleConfig = Depends(get_schedule_config),
    now: datetime = Depends(get_now),
    client: SlackClient = Depends(get_slack_client),
):
    """Daily check; posts a Slack notice when a transition is within 24 hours."""
    result = run_dst_monitor(config, client, now)
    return DstMonitorResponse(
        **_dst_status(config, now, result.verdict),
        notification_sent=result.notification_sent,
        notification_error=result.notification_error,
    )


@router.post("/validate-schedule", response_model=ValidateScheduleResponse)
async def validate_schedule_endpoint(
    body: ValidateScheduleRequest,
    config: ScheduleConfig = Depends(get_schedule_config),
    now: datetime = Depends(get_now),
):
    """Compare a deployed UTC cron with the one the current offset requires."""
    candidate = body.cron_schedule.strip()
    validate_cron(candidate)
    result = validate_schedule_against_expected(candidate, now=now, config=config)
    return ValidateScheduleResponse(
        is_valid=result.is_valid,
        expected_schedule=result.expected_expression,
        current_schedule=candidate,
        message=result.message,
    )


@router.post(
    "/weekly",
    response_model=WeeklyAlertResponse,
    dependencies=[Depends(verify_cron_secret)],
)
async def weekly_alert_endpoint(
    settings: Settings = Depends(get_settings),
    client: SlackClient = Depends(get_slack_client),
    now: datetime = Depends(get_now),
):
    """Send the low-stock digest now."""
    try:
        result = run_weekly_low_stock_alert(settings, client=client, now=now)
    except SlackNotConfigured as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    except SlackDeliveryError as e:
        logger.error("weekly_alert: delivery failed: %s", e)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

    return WeeklyAlertResponse(
        item_count=result.item_count,
        sent=result.sent,
        message=result.message,
        timestamp=now.astimezone(timezone.utc),
    )
