import io

import pytest
from fastapi.testclient import TestClient
from openpyxl import Workbook, load_workbook

from stockroom import db_inventory, db_settings
from stockroom.main import app
from stockroom.services.inventory.items import normalize_item
from stockroom.services.inventory.spreadsheet import HEADERS


client = TestClient(app)


@pytest.fixture(autouse=True)
def clear_overrides():
    yield
    app.dependency_overrides.clear()


def _seed(part_number, qty=25, location="H4-001", reorder_point=10):
    item = normalize_item({"part_number": part_number, "qty": qty, "location": location})
    item["reorder_point"] = reorder_point
    return db_inventory.insert_item(item)


def _approve(change_id):
    return client.post(
        f"/api/v1/pending-changes/{change_id}/review",
        json={"action": "approve", "approved_by": "lee"},
    )


def test_health():
    assert client.get("/api/v1/health").json() == {"status": "ok"}


def test_add_item_goes_through_approval():
    resp = client.post(
        "/api/v1/inventory/add-item",
        json={"part_number": "R-100", "qty": 25, "location": "H4-001", "requested_by": "sam"},
    )
    assert resp.status_code == 201
    change = resp.json()
    assert change["status"] == "pending"
    assert change["change_type"] == "add"
    assert client.get("/api/v1/inventory").json()["total"] == 0

    pending = client.get("/api/v1/pending-changes").json()
    assert [c["id"] for c in pending["items"]] == [change["id"]]

    review = _approve(change["id"])
    assert review.status_code == 200
    assert review.json()["status"] == "approved"

    items = client.get("/api/v1/inventory").json()["items"]
    assert [i["part_number"] for i in items] == ["R-100"]
    assert client.get("/api/v1/pending-changes").json()["total"] == 0
    assert client.get("/api/v1/pending-changes", params={"status": "approved"}).json()["total"] == 1


def test_add_item_validation():
    resp = client.post("/api/v1/inventory/add-item", json={"part_number": "R-100", "qty": -1, "requested_by": "sam"})
    assert resp.status_code == 422


def test_search_inventory():
    _seed("R-100")
    _seed("C-200", location="H5-001")
    items = client.get("/api/v1/inventory", params={"q": "h5"}).json()["items"]
    assert [i["part_number"] for i in items] == ["C-200"]


def test_low_stock_uses_stored_default_reorder_point():
    _seed("R-100", qty=12, reorder_point=None)
    _seed("C-200", qty=3, reorder_point=5)
    assert [i["part_number"] for i in client.get("/api/v1/inventory/low-stock").json()["items"]] == ["C-200"]

    assert client.put("/api/v1/settings/default_reorder_point", json={"value": 20}).status_code == 200
    body = client.get("/api/v1/inventory/low-stock").json()
    assert body["default_reorder_point"] == 20
    assert [i["part_number"] for i in body["items"]] == ["C-200", "R-100"]


def test_invalid_default_reorder_point_is_rejected():
    resp = client.put("/api/v1/settings/default_reorder_point", json={"value": "lots"})
    assert resp.status_code == 400


def test_settings_round_trip():
    client.put("/api/v1/settings/package_note", json={"value": "REEL > 500"})
    assert client.get("/api/v1/settings").json() == {"package_note": "REEL > 500"}


def test_suggest_location():
    assert client.get("/api/v1/inventory/suggest-location").json()["suggested_location"] is None
    _seed("R-100", location="H4-122")
    _seed("C-200", location="A1-010")
    body = client.get("/api/v1/inventory/suggest-location").json()
    assert body["suggested_location"] == "H4-123"
    assert body["known_locations"] == 2


def test_suggest_location_counts_pending_and_batch_requests():
    _seed("R-100", location="H4-122")
    client.post("/api/v1/inventory/add-item", json={"part_number": "R-200", "location": "H4-130", "requested_by": "sam"})
    client.post(
        "/api/v1/inventory/batch-add",
        json={"items": [{"part_number": "C-1", "location": "H4-140"}, {"part_number": "C-2"}], "requested_by": "sam"},
    )

    body = client.get("/api/v1/inventory/suggest-location").json()
    assert body["suggested_location"] == "H4-141"
    assert body["sources"] == {"inventory": 1, "pending": 1, "batch": 1}
    assert body["known_locations"] == 3


def test_edit_and_quantity_requests():
    item = _seed("R-100")
    edit = client.post(f"/api/v1/inventory/{item['id']}/edit", json={"supplier": "Mouser", "requested_by": "sam"})
    assert edit.status_code == 201
    assert edit.json()["original_data"]["id"] == item["id"]
    _approve(edit.json()["id"])

    qty = client.post(f"/api/v1/inventory/{item['id']}/quantity", json={"new_quantity": 600, "requested_by": "sam"})
    assert qty.status_code == 201
    _approve(qty.json()["id"])

    stored = db_inventory.get_item(item["id"])
    assert stored["supplier"] == "Mouser"
    assert stored["qty"] == 600
    assert stored["package"] == "REEL"


def test_edit_errors():
    assert client.post("/api/v1/inventory/999/edit", json={"qty": 1, "requested_by": "sam"}).status_code == 404
    item = _seed("R-100")
    assert client.post(f"/api/v1/inventory/{item['id']}/edit", json={"requested_by": "sam"}).status_code == 400


def test_delete_request():
    item = _seed("R-100")
    change = client.post(f"/api/v1/inventory/{item['id']}/delete", json={"requested_by": "sam"}).json()
    assert change["change_type"] == "delete"
    _approve(change["id"])
    assert db_inventory.get_item(item["id"]) is None


def test_review_errors():
    assert _approve(999).status_code == 404
    change = client.post("/api/v1/inventory/add-item", json={"part_number": "R-1", "requested_by": "sam"}).json()
    resp = client.post(
        f"/api/v1/pending-changes/{change['id']}/review",
        json={"action": "maybe", "approved_by": "lee"},
    )
    assert resp.status_code == 400
    assert client.get("/api/v1/pending-changes", params={"status": "weird"}).status_code == 400
    assert client.get("/api/v1/pending-changes/999").status_code == 404


def test_batch_item_review_and_duplicate_conflict():
    _seed("R-100")
    change = client.post(
        "/api/v1/inventory/batch-add",
        json={"items": [{"part_number": "R-100"}, {"part_number": "C-200", "qty": 5}], "requested_by": "sam"},
    ).json()
    assert change["change_type"] == "batch_add"
    assert change["item_data"]["is_batch"] is True

    dup = client.post(
        f"/api/v1/pending-changes/{change['id']}/items/0",
        json={"status": "approved", "approved_by": "lee"},
    )
    assert dup.status_code == 409

    ok = client.post(
        f"/api/v1/pending-changes/{change['id']}/items/1",
        json={"status": "approved", "approved_by": "lee"},
    )
    assert ok.status_code == 200
    assert ok.json()["inventory_item"]["part_number"] == "C-200"

    out_of_range = client.post(
        f"/api/v1/pending-changes/{change['id']}/items/9",
        json={"status": "approved", "approved_by": "lee"},
    )
    assert out_of_range.status_code == 400


def _workbook_bytes(rows, note=None):
    wb = Workbook()
    ws = wb.active
    ws.append(list(HEADERS))
    if note:
        ws["J1"] = note
    for row in rows:
        ws.append(row)
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def test_excel_upload_replaces_inventory_and_export_round_trips():
    _seed("OLD-1")
    data = _workbook_bytes(
        [
            ["R-100", "RC0603", 25, "10k resistor", "Digikey", "H4-001", "EXACT"],
            ["C-200", "GRM188", 600, "100nF cap", "Mouser", "H4-002", "REEL"],
        ],
        note="EXACT <= 100",
    )
    resp = client.post(
        "/api/v1/excel/upload",
        files={"file": ("inventory.xlsx", data, "application/octet-stream")},
    )
    assert resp.status_code == 200
    assert resp.json()["item_count"] == 2
    assert resp.json()["package_note"] == "EXACT <= 100"
    assert sorted(i["part_number"] for i in db_inventory.list_items()) == ["C-200", "R-100"]

    export = client.get("/api/v1/excel/export")
    assert export.status_code == 200
    assert export.headers["content-type"].startswith(
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    )
    ws = load_workbook(io.BytesIO(export.content)).active
    assert ws["J1"].value == "EXACT <= 100"
    assert [ws["A2"].value, ws["A3"].value] == ["C-200", "R-100"]


def test_excel_upload_rolls_back_inventory_when_note_write_fails(monkeypatch):
    _seed("OLD-1")

    def broken_upsert(key, value, conn=None):
        raise RuntimeError("settings table unavailable")

    monkeypatch.setattr(db_settings, "upsert_setting", broken_upsert)
    data = _workbook_bytes([["R-100", "RC0603", 25, "10k resistor", "Digikey", "H4-001", "EXACT"]])
    with pytest.raises(RuntimeError):
        client.post("/api/v1/excel/upload", files={"file": ("inventory.xlsx", data, "application/octet-stream")})

    assert [i["part_number"] for i in db_inventory.list_items()] == ["OLD-1"]


def test_excel_upload_rejects_other_files():
    resp = client.post("/api/v1/excel/upload", files={"file": ("notes.txt", b"hello", "text/plain")})
    assert resp.status_code == 400


def test_excel_upload_without_rows_is_400():
    resp = client.post(
        "/api/v1/excel/upload",
        files={"file": ("inventory.xlsx", _workbook_bytes([]), "application/octet-stream")},
    )
    assert resp.status_code == 400
