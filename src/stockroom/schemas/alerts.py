"""Pydantic schemas for the alert schedule endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class TimezoneInfoResponse(BaseModel):
    timezone: str
    current_time: str = Field(..., description="Local wall-clock time, human readable")
    is_dst: bool
    abbreviation: str = Field(..., description="e.g. EST or EDT")
    utc_offset_hours: float = Field(..., description="Hours to add to local time to get UTC")
    target_local_hour: int
    utc_hour: int = Field(..., description="UTC hour matching the target local hour today")
    cron_schedule: str = Field(..., description="UTC cron for the weekly alert, valid until the next transition")
    schedule: str = Field(..., description="e.g. Every Monday at 9:00 AM EDT")
    schedule_human: str = Field(..., description="The cron expression described in UTC")
    next_run_at: datetime


class TransitionInfo(BaseModel):
    date: datetime
    type: str = Field(..., description="spring or fall")
    description: str


class DstStatusResponse(BaseModel):
    timezone: str
    year: int
    spring_forward: datetime
    fall_back: datetime
    next_transition: TransitionInfo
    needs_update: bool
    reason: Optional[str] = None
    recommended_schedule: Optional[str] = None
    transition_instant: Optional[datetime] = None


class DstMonitorResponse(DstStatusResponse):
    notification_sent: bool = False
    notification_error: Optional[str] = None


class ValidateScheduleRequest(BaseModel):
    cron_schedule: str = Field(..., min_length=1, description="Currently deployed UTC cron expression")


class ValidateScheduleResponse(BaseModel):
    is_valid: bool
    expected_schedule: str
    current_schedule: str
    message: str


class WeeklyAlertResponse(BaseModel):
    item_count: int
    sent: bool
    message: str
    timestamp: datetime
