import pytest

from stockroom import db_inventory
from stockroom.db_pending_changes import ChangeStatus, get_pending_change
from stockroom.services.inventory import approvals
from stockroom.services.inventory.errors import (
    DuplicatePartNumber,
    InvalidBatchIndex,
    InvalidChangeAction,
    InventoryItemNotFound,
    NotABatchChange,
    PendingChangeNotFound,
)


def _seed(part_number="R-100", qty=25, location="H4-001"):
    return db_inventory.insert_item(
        {
            "part_number": part_number,
            "mfg_part_number": "RC0603",
            "qty": qty,
            "part_description": "10k resistor",
            "supplier": "Digikey",
            "location": location,
            "package": "EXACT",
            "reorder_point": 10,
        }
    )


def test_add_is_queued_until_approved():
    change = approvals.request_add({"part_number": "C-200", "qty": 40}, "sam")
    assert change["status"] == ChangeStatus.PENDING
    assert db_inventory.list_items() == []

    result = approvals.review_change(change["id"], "approve", "lee")
    assert result.status == ChangeStatus.APPROVED
    items = db_inventory.list_items()
    assert [i["part_number"] for i in items] == ["C-200"]

    stored = get_pending_change(change["id"])
    assert stored["status"] == ChangeStatus.APPROVED
    assert stored["approved_by"] == "lee"
    assert stored["approved_at"] is not None


def test_reject_leaves_inventory_untouched():
    change = approvals.request_add({"part_number": "C-200", "qty": 40}, "sam")
    result = approvals.review_change(change["id"], "reject", "lee")
    assert result.status == ChangeStatus.REJECTED
    assert result.message == "Change rejected successfully"
    assert db_inventory.list_items() == []


def test_review_twice_is_not_found():
    change = approvals.request_add({"part_number": "C-200"}, "sam")
    approvals.review_change(change["id"], "reject", "lee")
    with pytest.raises(PendingChangeNotFound):
        approvals.review_change(change["id"], "approve", "lee")


def test_unknown_action_is_rejected():
    change = approvals.request_add({"part_number": "C-200"}, "sam")
    with pytest.raises(InvalidChangeAction):
        approvals.review_change(change["id"], "maybe", "lee")


def test_edit_updates_fields_and_package():
    item = _seed()
    change = approvals.request_edit(item["id"], {"qty": 250, "supplier": "Mouser"}, "sam")
    assert change["original_data"]["qty"] == 25

    approvals.review_change(change["id"], "approve", "lee")
    updated = db_inventory.get_item(item["id"])
    assert updated["qty"] == 250
    assert updated["supplier"] == "Mouser"
    assert updated["package"] == "ESTIMATED"
    assert updated["part_number"] == "R-100"


def test_quantity_update_sets_qty_and_package():
    item = _seed()
    change = approvals.request_quantity_update(item["id"], 900, "sam")
    assert change["item_data"]["quantity_change"] == 875

    approvals.review_change(change["id"], "approve", "lee")
    updated = db_inventory.get_item(item["id"])
    assert updated["qty"] == 900
    assert updated["package"] == "REEL"


def test_delete_removes_item():
    item = _seed()
    change = approvals.request_delete(item["id"], "sam")
    approvals.review_change(change["id"], "approve", "lee")
    assert db_inventory.get_item(item["id"]) is None


def test_approving_change_for_vanished_item_is_not_found():
    item = _seed()
    change = approvals.request_delete(item["id"], "sam")
    db_inventory.delete_item(item_id=item["id"])
    with pytest.raises(InventoryItemNotFound):
        approvals.review_change(change["id"], "approve", "lee")
    # the transaction rolled back, so the change is still pending
    assert get_pending_change(change["id"])["status"] == ChangeStatus.PENDING


def test_request_for_missing_item_fails():
    with pytest.raises(InventoryItemNotFound):
        approvals.request_edit(999, {"qty": 1}, "sam")


def test_batch_approval_is_partial_on_duplicates():
    _seed("R-100")
    change = approvals.request_batch_add(
        [
            {"part_number": "R-100", "qty": 5},
            {"part_number": "C-200", "qty": 150},
            {"part_number": "", "qty": 3},
        ],
        "sam",
    )

    result = approvals.review_change(change["id"], "approve", "lee")
    assert result.partial is True
    assert [i["part_number"] for i in result.processed] == ["C-200"]
    assert result.processed[0]["package"] == "ESTIMATED"
    assert [f["index"] for f in result.failed] == [0, 2]
    assert result.message.startswith("Batch partially processed: 1/3 items added successfully.")

    stored = get_pending_change(change["id"])
    assert stored["status"] == ChangeStatus.APPROVED
    assert stored["item_data"]["item_statuses"] == {"0": "rejected", "1": "approved", "2": "rejected"}


def test_batch_reject_reports_item_count():
    change = approvals.request_batch_add([{"part_number": "A"}, {"part_number": "B"}], "sam")
    result = approvals.review_change(change["id"], "reject", "lee")
    assert result.message == "Entire batch rejected successfully (2 items)"


def test_per_item_review_then_batch_approval():
    change = approvals.request_batch_add(
        [{"part_number": "A", "qty": 1}, {"part_number": "B", "qty": 2}, {"part_number": "C", "qty": 3}],
        "sam",
    )

    first = approvals.review_batch_item(change["id"], 0, "approved", "lee")
    assert first["inventory_item"]["part_number"] == "A"
    approvals.review_batch_item(change["id"], 1, "rejected", "lee")
    assert get_pending_change(change["id"])["status"] == ChangeStatus.PENDING

    result = approvals.review_change(change["id"], "approve", "lee")
    assert [i["part_number"] for i in result.processed] == ["C"]
    assert result.failed == []
    assert sorted(i["part_number"] for i in db_inventory.list_items()) == ["A", "C"]


def test_per_item_review_errors():
    batch = approvals.request_batch_add([{"part_number": "A"}], "sam")
    single = approvals.request_add({"part_number": "Z"}, "sam")

    with pytest.raises(InvalidBatchIndex):
        approvals.review_batch_item(batch["id"], 5, "approved", "lee")
    with pytest.raises(NotABatchChange):
        approvals.review_batch_item(single["id"], 0, "approved", "lee")
    with pytest.raises(InvalidChangeAction):
        approvals.review_batch_item(batch["id"], 0, "maybe", "lee")

    _seed("A")
    with pytest.raises(DuplicatePartNumber):
        approvals.review_batch_item(batch["id"], 0, "approved", "lee")
