import json
from datetime import datetime, timezone

import httpx
import pytest
from fastapi.testclient import TestClient

from stockroom import db_inventory
from stockroom.deps import get_now, get_slack_client
from stockroom.main import app
from stockroom.services.inventory.items import normalize_item
from stockroom.services.notifications.slack import SlackClient


client = TestClient(app)

AUTH = {"Authorization": "Bearer test-cron-secret"}
SUMMER = datetime(2024, 7, 15, 12, tzinfo=timezone.utc)
SPRING_FORWARD_DAY = datetime(2024, 3, 10, 12, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def clear_overrides():
    yield
    app.dependency_overrides.clear()


def _freeze(moment):
    app.dependency_overrides[get_now] = lambda: moment


def _capture_slack():
    sent = []

    def handler(request: httpx.Request) -> httpx.Response:
        sent.append(json.loads(request.content))
        return httpx.Response(200, text="ok")

    fake = SlackClient("https://hooks.example/T/1", transport=httpx.MockTransport(handler))
    app.dependency_overrides[get_slack_client] = lambda: fake
    return sent


def test_timezone_info_in_summer():
    _freeze(SUMMER)
    resp = client.get("/api/v1/alerts/timezone-info")
    assert resp.status_code == 200
    body = resp.json()
    assert body["is_dst"] is True
    assert body["abbreviation"] == "EDT"
    assert body["utc_offset_hours"] == 4
    assert body["utc_hour"] == 13
    assert body["cron_schedule"] == "0 13 * * 1"
    assert body["schedule"] == "Every Monday at 9:00 AM EDT"
    assert body["schedule_human"] == "every Monday at 13:00 UTC"


def test_timezone_info_unknown_zone_is_422():
    _freeze(SUMMER)
    resp = client.get("/api/v1/alerts/timezone-info", params={"timezone": "Mars/Olympus_Mons"})
    assert resp.status_code == 422


def test_dst_status_on_transition_day():
    _freeze(SPRING_FORWARD_DAY)
    body = client.get("/api/v1/alerts/dst-status").json()
    assert body["needs_update"] is True
    assert body["reason"] == "Spring forward transition (EDT begins)"
    assert body["recommended_schedule"] == "0 13 * * 1"
    assert body["next_transition"]["type"] == "fall"


def test_dst_monitor_requires_cron_secret():
    _freeze(SUMMER)
    assert client.post("/api/v1/alerts/dst-monitor").status_code == 401
    wrong = {"Authorization": "Bearer nope"}
    assert client.post("/api/v1/alerts/dst-monitor", headers=wrong).status_code == 401


def test_dst_monitor_notifies_near_transition():
    _freeze(SPRING_FORWARD_DAY)
    sent = _capture_slack()
    resp = client.post("/api/v1/alerts/dst-monitor", headers=AUTH)
    assert resp.status_code == 200
    assert resp.json()["notification_sent"] is True
    assert len(sent) == 1
    assert "0 13 * * 1" in sent[0]["text"]


def test_dst_monitor_is_quiet_far_from_transition():
    _freeze(SUMMER)
    sent = _capture_slack()
    body = client.post("/api/v1/alerts/dst-monitor", headers=AUTH).json()
    assert body["needs_update"] is False
    assert body["notification_sent"] is False
    assert sent == []


def test_dst_monitor_reports_unconfigured_slack():
    _freeze(SPRING_FORWARD_DAY)
    body = client.post("/api/v1/alerts/dst-monitor", headers=AUTH).json()
    assert body["needs_update"] is True
    assert body["notification_sent"] is False
    assert "not configured" in body["notification_error"]


def test_validate_schedule():
    _freeze(SUMMER)
    good = client.post("/api/v1/alerts/validate-schedule", json={"cron_schedule": "0 13 * * 1"}).json()
    assert good["is_valid"] is True

    stale = client.post("/api/v1/alerts/validate-schedule", json={"cron_schedule": "0 14 * * 1"}).json()
    assert stale["is_valid"] is False
    assert stale["expected_schedule"] == "0 13 * * 1"
    assert stale["current_schedule"] == "0 14 * * 1"


def test_validate_schedule_rejects_malformed_cron():
    _freeze(SUMMER)
    resp = client.post("/api/v1/alerts/validate-schedule", json={"cron_schedule": "every monday"})
    assert resp.status_code == 422


def test_weekly_alert_without_webhook_is_503():
    _freeze(SUMMER)
    db_inventory.insert_item(normalize_item({"part_number": "R-100", "qty": 0}))
    resp = client.post("/api/v1/alerts/weekly", headers=AUTH)
    assert resp.status_code == 503


def test_weekly_alert_sends_low_stock_items():
    _freeze(SUMMER)
    sent = _capture_slack()
    db_inventory.insert_item(normalize_item({"part_number": "R-100", "qty": 2, "location": "H4-001"}))
    db_inventory.insert_item(normalize_item({"part_number": "C-200", "qty": 50, "location": "H4-002"}))

    body = client.post("/api/v1/alerts/weekly", headers=AUTH).json()
    assert body["item_count"] == 1
    assert body["sent"] is True
    assert "R-100" in sent[0]["blocks"][1]["text"]["text"]
    assert "C-200" not in sent[0]["blocks"][1]["text"]["text"]


def test_weekly_alert_with_nothing_low_sends_nothing():
    _freeze(SUMMER)
    sent = _capture_slack()
    body = client.post("/api/v1/alerts/weekly", headers=AUTH).json()
    assert body["item_count"] == 0
    assert body["sent"] is False
    assert body["message"] == "No low stock items found"
    assert body["timestamp"].startswith("2024-07-15T12:00:00")
    assert sent == []
