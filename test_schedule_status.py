import json

import pytest

from schedule_status import main


SUMMER_AT = "2024-07-15T12:00:00+00:00"


def _description(output: str) -> dict:
    # the JSON block is printed first; status lines follow it
    end = output.index("\n}") + 2
    return json.loads(output[:end])


def test_matching_schedule_exits_zero(capsys):
    assert main(["--at", SUMMER_AT, "--validate", "0 13 * * 1"]) == 0
    out = capsys.readouterr().out
    assert _description(out)["cron_schedule"] == "0 13 * * 1"
    assert "OK: Cron schedule is correct for EDT" in out


def test_stale_schedule_exits_one(capsys):
    assert main(["--at", SUMMER_AT, "--validate", "0 14 * * 1"]) == 1
    assert "MISMATCH: Cron schedule needs update: expected 0 13 * * 1 for EDT" in capsys.readouterr().out


def test_transition_window_exits_two(capsys):
    assert main(["--at", "2024-03-10T12:00:00+00:00"]) == 2
    assert "WARNING: Spring forward transition (EDT begins); use '0 13 * * 1'" in capsys.readouterr().out


def test_mismatch_takes_precedence_over_transition_warning(capsys):
    assert main(["--at", "2024-11-03T12:00:00+00:00", "--validate", "0 13 * * 1"]) == 1
    out = capsys.readouterr().out
    assert "MISMATCH" in out
    assert "WARNING: Fall back transition (EST begins)" in out


def test_timezone_override_and_naive_instant(capsys):
    # naive --at is read as UTC; 09:00 Monday in Tokyo is 00:00 Monday UTC
    assert main(["--timezone", "Asia/Tokyo", "--at", "2024-07-15T12:00:00", "--validate", "0 0 * * 1"]) == 0
    assert _description(capsys.readouterr().out)["timezone"] == "Asia/Tokyo"


def test_bad_instant_is_a_usage_error():
    with pytest.raises(SystemExit) as exc:
        main(["--at", "next tuesday"])
    assert exc.value.code == 2
