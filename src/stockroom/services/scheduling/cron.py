from __future__ import annotations

from datetime import datetime, timezone

from croniter import croniter
from fastapi import HTTPException, status

from stockroom.services.scheduling.dst import WEEKDAY_NAMES


def validate_cron(cron_expr: str) -> None:
    """Validate a 5-field cron expression.

    Raises HTTPException 422 if invalid.
    """
    if len(cron_expr.split()) != 5:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Invalid cron expression: {cron_expr}. Expected 5 fields",
        )
    try:
        # croniter itself validates format
        croniter(cron_expr, datetime.now(timezone.utc))
    except (ValueError, KeyError) as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Invalid cron expression: {cron_expr}. Error: {exc}",
        )


def format_cron_human_readable(cron_expr: str, tz_label: str = "UTC") -> str:
    """Convert cron expression to human-readable format.

    Examples:
        "0 */4 * * *" -> "every 4 hours"
        "30 3 * * *" -> "daily at 03:30 UTC"
        "0 13 * * 1" -> "every Monday at 13:00 UTC"
    """
    parts = cron_expr.strip().split()
    if len(parts) != 5:
        return cron_expr

    minute, hour, day_of_month, month, day_of_week = parts

    # Every N minutes
    if minute.startswith("*/") and hour == "*" and day_of_month == "*" and month == "*" and day_of_week == "*":
        try:
            n = int(minute[2:])
            if n == 1:
                return "every minute"
            elif n < 60:
                return f"every {n} minutes"
        except ValueError:
            pass

    # Every N hours (at minute 0)
    if minute == "0" and hour.startswith("*/") and day_of_month == "*" and month == "*" and day_of_week == "*":
        try:
            n = int(hour[2:])
            if n == 1:
                return "every hour"
            return f"every {n} hours"
        except ValueError:
            pass

    if minute.isdigit() and hour.isdigit() and day_of_month == "*" and month == "*":
        m = int(minute)
        h = int(hour)
        if day_of_week == "*":
            return f"daily at {h:02d}:{m:02d} {tz_label}"
        if day_of_week.isdigit() and 0 <= int(day_of_week) <= 6:
            return f"every {WEEKDAY_NAMES[int(day_of_week)]} at {h:02d}:{m:02d} {tz_label}"

    # Fallback: return original cron expression
    return cron_expr
