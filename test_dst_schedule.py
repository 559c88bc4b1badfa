from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfoNotFoundError

import pytest
from fastapi import HTTPException

from stockroom.services.scheduling.cron import (
    format_cron_human_readable,
    validate_cron,
)
from stockroom.services.scheduling.dst import (
    ScheduleConfig,
    compute_utc_offset_hours,
    evaluate_schedule_freshness,
    generate_cron_expression_for_weekly_local_time,
    get_civil_time_info,
    get_dst_transition_dates,
    get_schedule_description,
    next_local_run,
    validate_schedule_against_expected,
)


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


WINTER = utc(2024, 1, 15, 12)
SUMMER = utc(2024, 7, 15, 12)


def test_new_york_offsets_winter_and_summer():
    assert compute_utc_offset_hours(WINTER, "America/New_York") == 5
    assert compute_utc_offset_hours(SUMMER, "America/New_York") == 4


def test_civil_time_info_summer():
    info = get_civil_time_info("America/New_York", now=SUMMER)
    assert info.is_daylight_saving is True
    assert info.utc_offset_hours == 4
    assert info.utc_hour_for_target_local_hour == 13
    assert info.abbreviation == "EDT"


def test_civil_time_info_winter():
    info = get_civil_time_info("America/New_York", now=WINTER)
    assert info.is_daylight_saving is False
    assert info.utc_offset_hours == 5
    assert info.utc_hour_for_target_local_hour == 14
    assert info.abbreviation == "EST"


def test_zone_without_dst_reports_constant_offset():
    jan = get_civil_time_info("Asia/Tokyo", now=WINTER)
    jul = get_civil_time_info("Asia/Tokyo", now=SUMMER)
    assert jan.is_daylight_saving is False
    assert jul.is_daylight_saving is False
    assert jan.utc_offset_hours == jul.utc_offset_hours == -9


def test_southern_hemisphere_dst_is_detected_in_january():
    info = get_civil_time_info("Pacific/Auckland", now=WINTER)
    assert info.is_daylight_saving is True
    assert info.utc_offset_hours == -13


def test_cron_expression_follows_offset():
    assert generate_cron_expression_for_weekly_local_time(9, 1, now=WINTER) == "0 14 * * 1"
    assert generate_cron_expression_for_weekly_local_time(9, 1, now=SUMMER) == "0 13 * * 1"


def test_cron_expression_keeps_fractional_offset_minutes():
    expr = generate_cron_expression_for_weekly_local_time(9, 1, now=WINTER, timezone_name="Asia/Kolkata")
    assert expr == "30 3 * * 1"


def test_cron_expression_shifts_weekday_back_when_utc_is_previous_day():
    # 08:00 Monday in Tokyo is 23:00 Sunday UTC
    expr = generate_cron_expression_for_weekly_local_time(8, 1, now=WINTER, timezone_name="Asia/Tokyo")
    assert expr == "0 23 * * 0"


def test_cron_expression_wraps_weekday_forward():
    # 20:00 Saturday in Los Angeles (PST) is 04:00 Sunday UTC
    expr = generate_cron_expression_for_weekly_local_time(20, 6, now=WINTER, timezone_name="America/Los_Angeles")
    assert expr == "0 4 * * 0"


@pytest.mark.parametrize("hour,weekday", [(24, 1), (-1, 1), (9, 7), (9, -1)])
def test_cron_expression_rejects_out_of_range(hour, weekday):
    with pytest.raises(ValueError):
        generate_cron_expression_for_weekly_local_time(hour, weekday, now=WINTER)


def test_unknown_timezone_raises():
    with pytest.raises(ZoneInfoNotFoundError):
        get_civil_time_info("Mars/Olympus_Mons", now=WINTER)


@pytest.mark.parametrize(
    "year,spring_day,fall_day",
    [(2024, 10, 3), (2025, 9, 2), (2026, 8, 1)],
)
def test_transition_dates(year, spring_day, fall_day):
    pair = get_dst_transition_dates(year)
    assert pair.spring_forward.astimezone(timezone.utc) == utc(year, 3, spring_day, 7)
    assert pair.fall_back.astimezone(timezone.utc) == utc(year, 11, fall_day, 6)
    assert (pair.spring_forward.month, pair.spring_forward.day) == (3, spring_day)
    assert (pair.fall_back.month, pair.fall_back.day) == (11, fall_day)
    assert pair.spring_forward.weekday() == 6
    assert pair.fall_back.weekday() == 6


def test_transition_instants_in_local_time():
    pair = get_dst_transition_dates(2024)
    assert (pair.spring_forward.hour, pair.spring_forward.tzname()) == (3, "EDT")
    assert (pair.fall_back.hour, pair.fall_back.tzname()) == (1, "EST")


_SPRING_2024 = utc(2024, 3, 10, 7)
_FALL_2024 = utc(2024, 11, 3, 6)


@pytest.mark.parametrize(
    "moment,expected",
    [
        (utc(2024, 1, 1, 0), False),
        (_SPRING_2024 - timedelta(minutes=59), False),
        (_SPRING_2024 - timedelta(minutes=1), False),
        (_SPRING_2024 + timedelta(minutes=1), True),
        (_SPRING_2024 + timedelta(minutes=59), True),
        (utc(2024, 7, 4, 12), True),
        (_FALL_2024 - timedelta(minutes=59), True),
        (_FALL_2024 - timedelta(minutes=30), True),
        (_FALL_2024 - timedelta(minutes=1), True),
        (_FALL_2024 + timedelta(minutes=1), False),
        (_FALL_2024 + timedelta(minutes=59), False),
        (utc(2024, 12, 31, 23), False),
    ],
)
def test_dst_flag_matches_transition_interval(moment, expected):
    pair = get_dst_transition_dates(2024)
    inside = pair.spring_forward < moment < pair.fall_back
    assert inside is expected
    assert get_civil_time_info("America/New_York", now=moment).is_daylight_saving is inside


def test_freshness_flags_spring_forward():
    verdict = evaluate_schedule_freshness(now=utc(2024, 3, 10, 12))
    assert verdict.needs_update is True
    assert verdict.reason == "Spring forward transition (EDT begins)"
    assert verdict.recommended_schedule_expression == "0 13 * * 1"
    assert verdict.transition_instant == get_dst_transition_dates(2024).spring_forward


def test_freshness_flags_fall_back():
    verdict = evaluate_schedule_freshness(now=utc(2024, 11, 3, 12))
    assert verdict.needs_update is True
    assert verdict.reason == "Fall back transition (EST begins)"
    assert verdict.recommended_schedule_expression == "0 14 * * 1"


def test_freshness_window_is_inclusive_at_24_hours():
    assert evaluate_schedule_freshness(now=utc(2024, 3, 11, 7)).needs_update is True
    assert evaluate_schedule_freshness(now=utc(2024, 3, 9, 7)).needs_update is True
    assert evaluate_schedule_freshness(now=utc(2024, 3, 11, 7, 0, 1)).needs_update is False


def test_fall_back_window_is_measured_from_0600_utc():
    assert evaluate_schedule_freshness(now=utc(2024, 11, 4, 6)).needs_update is True
    assert evaluate_schedule_freshness(now=utc(2024, 11, 4, 6, 0, 1)).needs_update is False
    assert evaluate_schedule_freshness(now=utc(2024, 11, 2, 6)).needs_update is True


def test_freshness_outside_window():
    verdict = evaluate_schedule_freshness(now=utc(2024, 6, 1, 12))
    assert verdict.needs_update is False
    assert verdict.reason is None
    assert verdict.recommended_schedule_expression is None


def test_validate_schedule_match_and_mismatch():
    ok = validate_schedule_against_expected("0 13 * * 1", now=SUMMER)
    assert ok.is_valid is True
    assert ok.message == "Cron schedule is correct for EDT"

    stale = validate_schedule_against_expected("0 13 * * 1", now=WINTER)
    assert stale.is_valid is False
    assert stale.expected_expression == "0 14 * * 1"
    assert stale.message == "Cron schedule needs update: expected 0 14 * * 1 for EST, got 0 13 * * 1"


def test_validate_schedule_uses_config():
    config = ScheduleConfig(timezone="America/Chicago", target_hour=8, target_weekday=5)
    assert validate_schedule_against_expected("0 13 * * 5", now=SUMMER, config=config).is_valid is True


def test_schedule_description_summer():
    description = get_schedule_description(now=utc(2024, 7, 1, 12))
    assert description["schedule"] == "Every Monday at 9:00 AM EDT"
    assert description["is_dst"] is True
    assert description["offset_hours"] == 4
    assert description["cron_schedule"] == "0 13 * * 1"
    assert description["next_transition"]["type"] == "fall"
    assert description["next_transition"]["date"].date().isoformat() == "2024-11-03"
    assert description["next_run_at"] == utc(2024, 7, 1, 13)


def test_schedule_description_after_fall_back_points_to_next_spring():
    description = get_schedule_description(now=utc(2024, 12, 1, 12))
    assert description["next_transition"]["type"] == "spring"
    assert description["next_transition"]["date"].date().isoformat() == "2025-03-09"


def test_next_local_run_crosses_spring_forward():
    # Tuesday before DST starts; the next Monday 09:00 is already EDT
    assert next_local_run(utc(2024, 3, 5, 12)) == utc(2024, 3, 11, 13)


def test_next_local_run_same_day_in_winter():
    assert next_local_run(utc(2024, 1, 15, 12)) == utc(2024, 1, 15, 14)


def test_validate_cron_rejects_garbage():
    validate_cron("0 13 * * 1")
    with pytest.raises(HTTPException) as exc:
        validate_cron("0 13 * *")
    assert exc.value.status_code == 422
    with pytest.raises(HTTPException):
        validate_cron("99 13 * * 1")


def test_format_cron_human_readable():
    assert format_cron_human_readable("0 13 * * 1") == "every Monday at 13:00 UTC"
    assert format_cron_human_readable("30 3 * * *") == "daily at 03:30 UTC"
    assert format_cron_human_readable("0 */4 * * *") == "every 4 hours"
