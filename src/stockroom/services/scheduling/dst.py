"""DST-aware weekly schedule calculator.

Answers "which UTC hour is 9:00 AM in America/New_York right now" and whether a
daylight-saving transition is close enough that an already deployed UTC cron
expression has to be regenerated.

Every function here is a pure function of its arguments and a single `now`.
Nothing is persisted, nothing is logged and the environment is never read.
Callers that evaluate several things for one request should capture `now` once
and pass it to every call.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Dict, Optional, Tuple
from zoneinfo import ZoneInfo

from croniter import croniter


DEFAULT_TIMEZONE = "America/New_York"
DEFAULT_TARGET_HOUR = 9
# Cron weekday numbering: 0 = Sunday.
DEFAULT_TARGET_WEEKDAY = 1

# Kept at exactly 24 hours; deployed automation runs the check once a day.
TRANSITION_WINDOW = timedelta(hours=24)
TRANSITION_LOCAL_HOUR = 2

WEEKDAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


@dataclass(frozen=True)
class ScheduleConfig:
    timezone: str = DEFAULT_TIMEZONE
    target_hour: int = DEFAULT_TARGET_HOUR
    target_weekday: int = DEFAULT_TARGET_WEEKDAY


@dataclass(frozen=True)
class CivilTimeInfo:
    is_daylight_saving: bool
    utc_offset_hours: float
    utc_hour_for_target_local_hour: int
    abbreviation: str
    target_local_hour: int
    timezone: str


@dataclass(frozen=True)
class DstTransitionPair:
    spring_forward: datetime
    fall_back: datetime


@dataclass(frozen=True)
class ScheduleUpdateVerdict:
    needs_update: bool
    reason: Optional[str] = None
    recommended_schedule_expression: Optional[str] = None
    transition_instant: Optional[datetime] = None


@dataclass(frozen=True)
class ScheduleValidation:
    is_valid: bool
    expected_expression: str
    message: str


def _as_utc(now: Optional[datetime]) -> datetime:
    """Normalize `now` to an aware UTC datetime (naive values are taken as UTC)."""
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone.utc)


def _whole_hours(value: float) -> float:
    return int(value) if float(value).is_integer() else value


def compute_utc_offset_hours(moment: datetime, timezone_name: str) -> float:
    """Hours to add to local wall time in `timezone_name` to get UTC at `moment`.

    America/New_York yields 5 in winter and 4 in summer. Fractional offsets
    (e.g. Asia/Kolkata, -5.5) are preserved.
    """
    tz = ZoneInfo(timezone_name)
    offset = _as_utc(moment).astimezone(tz).utcoffset() or timedelta(0)
    return _whole_hours(-offset.total_seconds() / 3600)


def _standard_offset_hours(year: int, timezone_name: str) -> float:
    """Winter baseline: whichever of Jan 1 / Jul 1 is further behind UTC."""
    tz = ZoneInfo(timezone_name)
    january = datetime(year, 1, 1, 12, tzinfo=tz)
    july = datetime(year, 7, 1, 12, tzinfo=tz)
    return max(
        compute_utc_offset_hours(january, timezone_name),
        compute_utc_offset_hours(july, timezone_name),
    )


def _zone_abbreviations(year: int, timezone_name: str) -> Tuple[str, str]:
    """(standard, daylight) abbreviations, e.g. ("EST", "EDT")."""
    tz = ZoneInfo(timezone_name)
    january = datetime(year, 1, 1, 12, tzinfo=tz)
    july = datetime(year, 7, 1, 12, tzinfo=tz)
    if compute_utc_offset_hours(january, timezone_name) >= compute_utc_offset_hours(july, timezone_name):
        return january.tzname() or "", july.tzname() or ""
    return july.tzname() or "", january.tzname() or ""


def _utc_time_for_local(target_local_hour: int, offset_hours: float) -> Tuple[int, int, int]:
    """Convert a local hour to (utc_hour, utc_minute, day_shift)."""
    total_minutes = round((target_local_hour + offset_hours) * 60)
    day_shift, minutes_of_day = divmod(total_minutes, 24 * 60)
    return minutes_of_day // 60, minutes_of_day % 60, day_shift


def _check_hour(hour: int) -> None:
    if not 0 <= hour <= 23:
        raise ValueError(f"Local hour must be within 0..23, got {hour}")


def get_civil_time_info(
    timezone_name: str = DEFAULT_TIMEZONE,
    now: Optional[datetime] = None,
    target_local_hour: int = DEFAULT_TARGET_HOUR,
) -> CivilTimeInfo:
    """DST status and UTC offset of `timezone_name` at `now`.

    DST is detected from raw offsets alone: the offset at `now` is compared to
    the winter baseline of the same year. Zones without DST always report
    `is_daylight_saving=False` with a constant offset.
    """
    _check_hour(target_local_hour)
    moment = _as_utc(now)
    local = moment.astimezone(ZoneInfo(timezone_name))

    current_offset = compute_utc_offset_hours(moment, timezone_name)
    standard_offset = _standard_offset_hours(local.year, timezone_name)
    utc_hour, _, _ = _utc_time_for_local(target_local_hour, current_offset)

    return CivilTimeInfo(
        is_daylight_saving=current_offset != standard_offset,
        utc_offset_hours=current_offset,
        utc_hour_for_target_local_hour=utc_hour,
        abbreviation=local.tzname() or "",
        target_local_hour=target_local_hour,
        timezone=timezone_name,
    )


def generate_cron_expression_for_weekly_local_time(
    target_local_hour: int = DEFAULT_TARGET_HOUR,
    target_weekday: int = DEFAULT_TARGET_WEEKDAY,
    now: Optional[datetime] = None,
    timezone_name: str = DEFAULT_TIMEZONE,
) -> str:
    """UTC cron expression (`minute hour * * weekday`) for a weekly local time.

    The result reflects the offset in force at `now` and stops being correct at
    the next DST transition, so callers have to regenerate it.
    """
    _check_hour(target_local_hour)
    if not 0 <= target_weekday <= 6:
        raise ValueError(f"Weekday must be within 0..6 (0=Sunday), got {target_weekday}")

    offset = compute_utc_offset_hours(_as_utc(now), timezone_name)
    hour, minute, day_shift = _utc_time_for_local(target_local_hour, offset)
    weekday = (target_weekday + day_shift) % 7
    return f"{minute} {hour} * * {weekday}"


def _first_sunday(year: int, month: int) -> int:
    """Day of month of the first Sunday."""
    # date.weekday() is Monday=0; shift to Sunday=0
    weekday = (date(year, month, 1).weekday() + 1) % 7
    return 1 + (7 - weekday) % 7


def _transition_instant(year: int, month: int, day: int, tz: ZoneInfo) -> datetime:
    """Instant the clocks change at 02:00 local wall time on the given day.

    The wall hour before 02:00 is unambiguous on both transition days, so the
    change is one elapsed hour after it. The result is expressed in `tz`
    (03:00 daylight time in spring, the second 01:00 in fall).
    """
    before = datetime(year, month, day, TRANSITION_LOCAL_HOUR - 1, tzinfo=tz)
    return (before.astimezone(timezone.utc) + timedelta(hours=1)).astimezone(tz)


@lru_cache(maxsize=64)
def _transition_pair(year: int, timezone_name: str) -> DstTransitionPair:
    tz = ZoneInfo(timezone_name)
    spring_day = _first_sunday(year, 3) + 7
    fall_day = _first_sunday(year, 11)
    return DstTransitionPair(
        spring_forward=_transition_instant(year, 3, spring_day, tz),
        fall_back=_transition_instant(year, 11, fall_day, tz),
    )


def get_dst_transition_dates(
    year: Optional[int] = None,
    timezone_name: str = DEFAULT_TIMEZONE,
) -> DstTransitionPair:
    """US civil DST rules: second Sunday of March and first Sunday of November at 02:00 local.

    For America/New_York that is 07:00 UTC in March and 06:00 UTC in November.
    """
    if year is None:
        year = datetime.now(ZoneInfo(timezone_name)).year
    return _transition_pair(year, timezone_name)


def evaluate_schedule_freshness(
    now: Optional[datetime] = None,
    config: Optional[ScheduleConfig] = None,
) -> ScheduleUpdateVerdict:
    """Flag the 24-hour window around either DST transition of `now`'s year.

    Inside the window the recommended expression is the freshly generated one;
    an expression deployed before the transition drifts by one hour.
    """
    config = config or ScheduleConfig()
    moment = _as_utc(now)
    year = moment.astimezone(ZoneInfo(config.timezone)).year
    transitions = get_dst_transition_dates(year, config.timezone)
    standard_abbr, daylight_abbr = _zone_abbreviations(year, config.timezone)

    candidates = (
        (transitions.spring_forward, f"Spring forward transition ({daylight_abbr} begins)"),
        (transitions.fall_back, f"Fall back transition ({standard_abbr} begins)"),
    )
    for instant, reason in candidates:
        if abs(moment - instant.astimezone(timezone.utc)) <= TRANSITION_WINDOW:
            return ScheduleUpdateVerdict(
                needs_update=True,
                reason=reason,
                recommended_schedule_expression=generate_cron_expression_for_weekly_local_time(
                    config.target_hour,
                    config.target_weekday,
                    now=moment,
                    timezone_name=config.timezone,
                ),
                transition_instant=instant,
            )

    return ScheduleUpdateVerdict(needs_update=False)


def validate_schedule_against_expected(
    candidate_expression: str,
    now: Optional[datetime] = None,
    config: Optional[ScheduleConfig] = None,
) -> ScheduleValidation:
    config = config or ScheduleConfig()
    moment = _as_utc(now)
    expected = generate_cron_expression_for_weekly_local_time(
        config.target_hour,
        config.target_weekday,
        now=moment,
        timezone_name=config.timezone,
    )
    abbreviation = moment.astimezone(ZoneInfo(config.timezone)).tzname()
    is_valid = candidate_expression == expected

    if is_valid:
        message = f"Cron schedule is correct for {abbreviation}"
    else:
        message = (
            f"Cron schedule needs update: expected {expected} for {abbreviation}, "
            f"got {candidate_expression}"
        )
    return ScheduleValidation(is_valid=is_valid, expected_expression=expected, message=message)


def format_local_hour(hour: int) -> str:
    """9 -> '9:00 AM', 0 -> '12:00 AM', 13 -> '1:00 PM'."""
    suffix = "AM" if hour < 12 else "PM"
    display = hour % 12 or 12
    return f"{display}:00 {suffix}"


def describe_weekly_schedule(config: ScheduleConfig, abbreviation: str) -> str:
    return f"Every {WEEKDAY_NAMES[config.target_weekday]} at {format_local_hour(config.target_hour)} {abbreviation}"


def next_local_run(now: Optional[datetime] = None, config: Optional[ScheduleConfig] = None) -> datetime:
    """Next occurrence of the weekly local time, returned in UTC."""
    config = config or ScheduleConfig()
    tz = ZoneInfo(config.timezone)
    local_now = _as_utc(now).astimezone(tz)
    itr = croniter(f"0 {config.target_hour} * * {config.target_weekday}", local_now)
    return itr.get_next(datetime).astimezone(timezone.utc)


def get_schedule_description(
    now: Optional[datetime] = None,
    config: Optional[ScheduleConfig] = None,
) -> Dict[str, Any]:
    """Everything a status page shows about the weekly schedule at `now`."""
    config = config or ScheduleConfig()
    moment = _as_utc(now)
    tz = ZoneInfo(config.timezone)
    local = moment.astimezone(tz)

    info = get_civil_time_info(config.timezone, now=moment, target_local_hour=config.target_hour)
    transitions = get_dst_transition_dates(local.year, config.timezone)
    standard_abbr, daylight_abbr = _zone_abbreviations(local.year, config.timezone)

    if moment < transitions.spring_forward.astimezone(timezone.utc):
        next_transition = {
            "date": transitions.spring_forward,
            "type": "spring",
            "description": f"Spring forward to {daylight_abbr}",
        }
    elif moment < transitions.fall_back.astimezone(timezone.utc):
        next_transition = {
            "date": transitions.fall_back,
            "type": "fall",
            "description": f"Fall back to {standard_abbr}",
        }
    else:
        next_transition = {
            "date": get_dst_transition_dates(local.year + 1, config.timezone).spring_forward,
            "type": "spring",
            "description": f"Spring forward to {daylight_abbr}",
        }

    return {
        "schedule": describe_weekly_schedule(config, info.abbreviation),
        "timezone": config.timezone,
        "current_time": local.strftime("%A, %B %d, %Y %I:%M %p %Z"),
        "is_dst": info.is_daylight_saving,
        "offset_hours": info.utc_offset_hours,
        "cron_schedule": generate_cron_expression_for_weekly_local_time(
            config.target_hour,
            config.target_weekday,
            now=moment,
            timezone_name=config.timezone,
        ),
        "next_run_at": next_local_run(moment, config),
        "next_transition": next_transition,
    }
