"""Database helpers for the `pending_changes` table (approval queue)."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import text

from stockroom.db import engine
from stockroom.db_inventory import as_datetime


class ChangeStatus:
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @classmethod
    def all(cls) -> List[str]:
        return [cls.PENDING, cls.APPROVED, cls.REJECTED]


class ChangeType:
    ADD = "add"
    UPDATE = "update"
    DELETE = "delete"
    UPDATE_QUANTITY = "update_quantity"
    BATCH_ADD = "batch_add"


_SELECT_CHANGE = """
    SELECT id, change_type, status, requested_by, item_data, original_data,
           approved_by, approved_at, created_at
    FROM pending_changes
"""


def _load_json(value: Any) -> Any:
    if value is None or isinstance(value, (dict, list)):
        return value
    return json.loads(value)


def _dump_json(value: Any) -> Optional[str]:
    if value is None:
        return None
    return json.dumps(value, ensure_ascii=False, default=str)


def _row_to_change(row: Any) -> Dict[str, Any]:
    return {
        "id": row["id"],
        "change_type": row["change_type"],
        "status": row["status"],
        "requested_by": row["requested_by"],
        "item_data": _load_json(row["item_data"]) or {},
        "original_data": _load_json(row["original_data"]),
        "approved_by": row["approved_by"],
        "approved_at": as_datetime(row["approved_at"]),
        "created_at": as_datetime(row["created_at"]),
    }


def create_pending_change(
    change_type: str,
    requested_by: str,
    item_data: Dict[str, Any],
    original_data: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    sql = text(
        """
        INSERT INTO pending_changes (
            change_type, status, requested_by, item_data, original_data, created_at
        ) VALUES (
            :change_type, :status, :requested_by, :item_data, :original_data, :now
        )
        RETURNING id, change_type, status, requested_by, item_data, original_data,
                  approved_by, approved_at, created_at
        """
    )
    params = {
        "change_type": change_type,
        "status": ChangeStatus.PENDING,
        "requested_by": requested_by,
        "item_data": _dump_json(item_data),
        "original_data": _dump_json(original_data),
        "now": datetime.now(timezone.utc),
    }
    with engine.begin() as conn:
        row = conn.execute(sql, params).mappings().first()
    return _row_to_change(row)


def list_pending_changes(status: Optional[str] = None) -> List[Dict[str, Any]]:
    """Newest first, optionally filtered by status."""
    sql = _SELECT_CHANGE
    params: Dict[str, Any] = {}
    if status:
        sql += " WHERE status = :status"
        params["status"] = status
    sql += " ORDER BY created_at DESC, id DESC"
    with engine.connect() as conn:
        rows = conn.execute(text(sql), params).mappings().all()
    return [_row_to_change(row) for row in rows]


def get_pending_change(change_id: int, only_pending: bool = False, conn=None) -> Optional[Dict[str, Any]]:
    sql = _SELECT_CHANGE + " WHERE id = :id"
    params: Dict[str, Any] = {"id": change_id}
    if only_pending:
        sql += " AND status = :status"
        params["status"] = ChangeStatus.PENDING

    if conn is not None:
        row = conn.execute(text(sql), params).mappings().first()
        return _row_to_change(row) if row else None
    with engine.connect() as c:
        row = c.execute(text(sql), params).mappings().first()
    return _row_to_change(row) if row else None


def mark_processed(
    change_id: int,
    status: str,
    approved_by: str,
    item_data: Optional[Dict[str, Any]] = None,
    conn=None,
) -> None:
    """Close a change as approved/rejected; optionally persist updated item_data."""
    assignments = "status = :status, approved_by = :approved_by, approved_at = :now"
    params: Dict[str, Any] = {
        "id": change_id,
        "status": status,
        "approved_by": approved_by,
        "now": datetime.now(timezone.utc),
    }
    if item_data is not None:
        assignments += ", item_data = :item_data"
        params["item_data"] = _dump_json(item_data)

    sql = text(f"UPDATE pending_changes SET {assignments} WHERE id = :id")
    if conn is not None:
        conn.execute(sql, params)
        return
    with engine.begin() as c:
        c.execute(sql, params)


def update_item_data(change_id: int, item_data: Dict[str, Any], conn=None) -> None:
    sql = text("UPDATE pending_changes SET item_data = :item_data WHERE id = :id")
    params = {"id": change_id, "item_data": _dump_json(item_data)}
    if conn is not None:
        conn.execute(sql, params)
        return
    with engine.begin() as c:
        c.execute(sql, params)
