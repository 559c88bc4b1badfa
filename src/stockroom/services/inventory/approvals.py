"""Approval workflow for inventory changes.

Edits never touch the `inventory` table directly. They are queued in
`pending_changes` and applied when a reviewer approves them:

- add / update / update_quantity / delete act on a single item;
- batch_add carries a list of items with per-item statuses, so reviewers can
  approve or reject items one by one before (or instead of) approving the batch.

Each review runs in a single transaction: either the inventory write and the
status change both land, or neither does.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from stockroom.db import engine
from stockroom import db_inventory
from stockroom.db_pending_changes import (
    ChangeStatus,
    ChangeType,
    create_pending_change,
    get_pending_change,
    mark_processed,
    update_item_data,
)
from stockroom.services.inventory.errors import (
    DuplicatePartNumber,
    InvalidBatchIndex,
    InvalidChangeAction,
    InventoryItemNotFound,
    NotABatchChange,
    PendingChangeNotFound,
)
from stockroom.services.inventory.items import normalize_item, package_for_quantity, to_int

logger = logging.getLogger(__name__)

ACTION_APPROVE = "approve"
ACTION_REJECT = "reject"


@dataclass
class ReviewResult:
    change_id: int
    status: str
    message: str
    processed: List[Dict[str, Any]] = field(default_factory=list)
    failed: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def partial(self) -> bool:
        return bool(self.failed) and bool(self.processed)


# --- submission -------------------------------------------------------------


def request_add(item: Dict[str, Any], requested_by: str) -> Dict[str, Any]:
    normalized = normalize_item(item)
    if not normalized["part_number"]:
        raise ValueError("part_number is required")
    return create_pending_change(ChangeType.ADD, requested_by, item_data=normalized)


def request_batch_add(items: List[Dict[str, Any]], requested_by: str) -> Dict[str, Any]:
    batch_items = [normalize_item(item) for item in items]
    if not batch_items:
        raise ValueError("At least one item is required")
    return create_pending_change(
        ChangeType.BATCH_ADD,
        requested_by,
        item_data={"is_batch": True, "batch_items": batch_items, "item_statuses": {}},
    )


def _require_item(item_id: int) -> Dict[str, Any]:
    existing = db_inventory.get_item(item_id)
    if not existing:
        raise InventoryItemNotFound(f"Inventory item {item_id} not found")
    return existing


def request_edit(item_id: int, changes: Dict[str, Any], requested_by: str) -> Dict[str, Any]:
    existing = _require_item(item_id)
    proposed = normalize_item({**existing, **changes}, reorder_default=existing["reorder_point"])
    return create_pending_change(
        ChangeType.UPDATE,
        requested_by,
        item_data=proposed,
        original_data=existing,
    )


def request_quantity_update(item_id: int, new_quantity: int, requested_by: str) -> Dict[str, Any]:
    if new_quantity < 0:
        raise ValueError("Quantity cannot be negative")
    existing = _require_item(item_id)
    return create_pending_change(
        ChangeType.UPDATE_QUANTITY,
        requested_by,
        item_data={
            "item_id": item_id,
            "part_number": existing["part_number"],
            "part_description": existing["part_description"],
            "location": existing["location"],
            "current_quantity": existing["qty"],
            "new_quantity": new_quantity,
            "quantity_change": new_quantity - existing["qty"],
        },
        original_data=existing,
    )


def request_delete(item_id: int, requested_by: str) -> Dict[str, Any]:
    existing = _require_item(item_id)
    return create_pending_change(
        ChangeType.DELETE,
        requested_by,
        item_data={"part_number": existing["part_number"], "location": existing["location"]},
        original_data=existing,
    )


# --- review -----------------------------------------------------------------


def is_batch_change(change: Dict[str, Any]) -> bool:
    return change["change_type"] == ChangeType.BATCH_ADD or change["item_data"].get("is_batch") is True


def review_change(change_id: int, action: str, approved_by: str) -> ReviewResult:
    """Approve or reject a pending change."""
    if action not in (ACTION_APPROVE, ACTION_REJECT):
        raise InvalidChangeAction(f"Invalid action '{action}'. Must be 'approve' or 'reject'")

    with engine.begin() as conn:
        change = get_pending_change(change_id, only_pending=True, conn=conn)
        if not change:
            raise PendingChangeNotFound(f"Pending change {change_id} not found or already processed")

        batch = is_batch_change(change)
        if batch and not change["item_data"].get("batch_items"):
            raise NotABatchChange("No batch items found to process")

        if action == ACTION_REJECT:
            mark_processed(change_id, ChangeStatus.REJECTED, approved_by, conn=conn)
            if batch:
                count = len(change["item_data"]["batch_items"])
                message = f"Entire batch rejected successfully ({count} items)"
            else:
                message = "Change rejected successfully"
            logger.info("review_change: change_id=%s rejected by %s", change_id, approved_by)
            return ReviewResult(change_id=change_id, status=ChangeStatus.REJECTED, message=message)

        if batch:
            result = _approve_batch(conn, change, approved_by)
        else:
            result = _approve_single(conn, change, approved_by)

    logger.info(
        "review_change: change_id=%s approved by %s processed=%s failed=%s",
        change_id,
        approved_by,
        len(result.processed),
        len(result.failed),
    )
    return result


def _target_kwargs(change: Dict[str, Any]) -> Dict[str, Any]:
    original = change.get("original_data") or {}
    if original.get("id") is not None:
        return {"item_id": original["id"]}
    if change["item_data"].get("item_id") is not None:
        return {"item_id": change["item_data"]["item_id"]}
    return {"part_number": original.get("part_number"), "location": original.get("location")}


def _approve_single(conn, change: Dict[str, Any], approved_by: str) -> ReviewResult:
    change_type = change["change_type"]
    item_data = change["item_data"]
    processed: List[Dict[str, Any]] = []

    if change_type == ChangeType.ADD:
        processed.append(db_inventory.insert_item(normalize_item(item_data), conn=conn))

    elif change_type == ChangeType.UPDATE:
        values = normalize_item(item_data)
        values["package"] = package_for_quantity(values["qty"])
        updated = db_inventory.update_item(values, conn=conn, **_target_kwargs(change))
        if not updated:
            raise InventoryItemNotFound("No matching item found to update")
        processed.append(updated)

    elif change_type == ChangeType.UPDATE_QUANTITY:
        qty = max(to_int(item_data.get("new_quantity")), 0)
        updated = db_inventory.update_item(
            {"qty": qty, "package": package_for_quantity(qty)},
            conn=conn,
            **_target_kwargs(change),
        )
        if not updated:
            raise InventoryItemNotFound("No matching item found to update")
        processed.append(updated)

    elif change_type == ChangeType.DELETE:
        removed = db_inventory.delete_item(conn=conn, **_target_kwargs(change))
        if not removed:
            raise InventoryItemNotFound("No matching item found to delete")

    else:
        raise InvalidChangeAction(f"Unsupported change type '{change_type}'")

    mark_processed(change["id"], ChangeStatus.APPROVED, approved_by, conn=conn)
    return ReviewResult(
        change_id=change["id"],
        status=ChangeStatus.APPROVED,
        message=f"Change approved and applied successfully. {len(processed)} item(s) processed.",
        processed=processed,
    )


def _insert_batch_item(conn, raw: Dict[str, Any]) -> Dict[str, Any]:
    item = normalize_item(raw)
    item["package"] = package_for_quantity(item["qty"])
    if not item["part_number"]:
        raise ValueError("Part number is required")
    if db_inventory.get_item_by_part_number(item["part_number"], conn=conn):
        raise DuplicatePartNumber("Part number already exists in inventory")
    return db_inventory.insert_item(item, conn=conn)


def _approve_batch(conn, change: Dict[str, Any], approved_by: str) -> ReviewResult:
    item_data = dict(change["item_data"])
    batch_items = item_data["batch_items"]
    statuses: Dict[str, str] = dict(item_data.get("item_statuses") or {})
    processed: List[Dict[str, Any]] = []
    failed: List[Dict[str, Any]] = []

    for index, raw in enumerate(batch_items):
        key = str(index)
        item_status = statuses.get(key, ChangeStatus.PENDING)
        # approved items were already inserted by per-item review
        if item_status != ChangeStatus.PENDING:
            continue
        try:
            processed.append(_insert_batch_item(conn, raw))
            statuses[key] = ChangeStatus.APPROVED
        except (DuplicatePartNumber, ValueError) as exc:
            failed.append(
                {
                    "index": index,
                    "part_number": str(raw.get("part_number") or "Unknown"),
                    "error": str(exc),
                }
            )
            statuses[key] = ChangeStatus.REJECTED

    item_data["item_statuses"] = statuses
    mark_processed(change["id"], ChangeStatus.APPROVED, approved_by, item_data=item_data, conn=conn)

    if failed:
        details = ", ".join(f"{f['part_number']} ({f['error']})" for f in failed)
        message = (
            f"Batch partially processed: {len(processed)}/{len(batch_items)} items added successfully. "
            f"Failed items: {details}"
        )
    else:
        message = f"Batch approved successfully! {len(processed)} items added to inventory."
    return ReviewResult(
        change_id=change["id"],
        status=ChangeStatus.APPROVED,
        message=message,
        processed=processed,
        failed=failed,
    )


def review_batch_item(change_id: int, index: int, status: str, approved_by: str) -> Dict[str, Any]:
    """Set the status of one item inside a pending batch.

    Approving an item inserts it right away; the batch itself stays pending.
    """
    if status not in ChangeStatus.all():
        raise InvalidChangeAction(f"Invalid status '{status}'. Must be 'approved', 'rejected', or 'pending'")

    with engine.begin() as conn:
        change = get_pending_change(change_id, only_pending=True, conn=conn)
        if not change:
            raise PendingChangeNotFound(f"Pending batch change {change_id} not found or already processed")
        item_data = dict(change["item_data"])
        batch_items = item_data.get("batch_items")
        if not item_data.get("is_batch") or not batch_items:
            raise NotABatchChange("This is not a batch operation")
        if index < 0 or index >= len(batch_items):
            raise InvalidBatchIndex(f"Invalid item index {index}")

        inserted: Optional[Dict[str, Any]] = None
        if status == ChangeStatus.APPROVED:
            inserted = _insert_batch_item(conn, batch_items[index])

        statuses = dict(item_data.get("item_statuses") or {})
        statuses[str(index)] = status
        item_data["item_statuses"] = statuses
        update_item_data(change_id, item_data, conn=conn)

    logger.info("review_batch_item: change_id=%s index=%s status=%s by %s", change_id, index, status, approved_by)
    return {"change_id": change_id, "index": index, "status": status, "inventory_item": inserted}
