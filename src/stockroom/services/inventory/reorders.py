"""Reorder (purchase) requests for parts that run low.

A request starts `pending` and is moved through approved / ordered / received,
or denied. `received` and `denied` close the request: after that only its
status notes can change.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from stockroom import db_inventory
from stockroom.db_reorder_requests import (
    ReorderStatus,
    ReorderUrgency,
    create_reorder_request,
    get_reorder_request,
    update_reorder_status,
)
from stockroom.services.inventory.errors import (
    InvalidReorderStatus,
    InventoryItemNotFound,
    ReorderRequestNotFound,
)

logger = logging.getLogger(__name__)

CLOSED_STATUSES = (ReorderStatus.RECEIVED, ReorderStatus.DENIED)


def submit_reorder_request(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Store a new request.

    With `item_id`, part details missing from the payload are taken from the
    inventory row. Urgency defaults to High for an empty bin, Medium otherwise.
    """
    request = dict(payload)
    item_id = request.get("item_id")
    if item_id is not None:
        item = db_inventory.get_item(item_id)
        if not item:
            raise InventoryItemNotFound(f"Inventory item {item_id} not found")
        for field, source in (
            ("part_number", "part_number"),
            ("part_description", "part_description"),
            ("current_qty", "qty"),
            ("reorder_point", "reorder_point"),
            ("supplier", "supplier"),
            ("location", "location"),
        ):
            if request.get(field) in (None, ""):
                request[field] = item[source]

    if not request.get("part_number"):
        raise ValueError("part_number is required")
    if int(request.get("quantity") or 0) <= 0:
        raise ValueError("quantity must be positive")

    urgency = request.get("urgency")
    if not urgency:
        request["urgency"] = ReorderUrgency.for_quantity(int(request.get("current_qty") or 0))
    elif urgency not in ReorderUrgency.all():
        raise ValueError(f"Invalid urgency '{urgency}'. Must be one of: {', '.join(ReorderUrgency.all())}")

    created = create_reorder_request(request)
    logger.info(
        "reorder_request: id=%s part_number=%s quantity=%s urgency=%s by %s",
        created["id"],
        created["part_number"],
        created["quantity"],
        created["urgency"],
        created["requester"],
    )
    return created


def change_reorder_status(request_id: int, status: str, status_notes: Optional[str] = None) -> Dict[str, Any]:
    """Move a request to `status`; returns {"previous_status", "request"}."""
    if status not in ReorderStatus.all():
        raise ValueError(f"Invalid status '{status}'. Must be one of: {', '.join(ReorderStatus.all())}")

    current = get_reorder_request(request_id)
    if not current:
        raise ReorderRequestNotFound(f"Reorder request {request_id} not found")
    if current["status"] in CLOSED_STATUSES and status != current["status"]:
        raise InvalidReorderStatus(f"Reorder request {request_id} is already {current['status']}")

    result = update_reorder_status(request_id, status, status_notes)
    if result is None:
        raise ReorderRequestNotFound(f"Reorder request {request_id} not found")
    logger.info("reorder_status: id=%s %s -> %s", request_id, result["previous_status"], status)
    return result
