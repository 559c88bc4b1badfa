"""Database helpers for the `reorder_requests` table (purchase requests for low stock)."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import text

from stockroom.db import engine
from stockroom.db_inventory import as_datetime


class ReorderStatus:
    PENDING = "pending"
    APPROVED = "approved"
    ORDERED = "ordered"
    RECEIVED = "received"
    DENIED = "denied"

    @classmethod
    def all(cls) -> List[str]:
        return [cls.PENDING, cls.APPROVED, cls.ORDERED, cls.RECEIVED, cls.DENIED]


class ReorderUrgency:
    CRITICAL = "Critical"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"

    @classmethod
    def all(cls) -> List[str]:
        return [cls.CRITICAL, cls.HIGH, cls.MEDIUM, cls.LOW]

    @classmethod
    def for_quantity(cls, current_qty: int) -> str:
        """Out of stock defaults to High, anything else to Medium."""
        return cls.HIGH if current_qty <= 0 else cls.MEDIUM


_COLUMNS = """
    id, item_id, part_number, part_description, current_qty, reorder_point,
    supplier, location, quantity, timeframe, urgency, requester, notes,
    status, status_notes, created_at, updated_at
"""


def _row_to_request(row: Any) -> Dict[str, Any]:
    data = dict(row)
    data["created_at"] = as_datetime(data["created_at"])
    data["updated_at"] = as_datetime(data["updated_at"])
    return data


def create_reorder_request(request: Dict[str, Any]) -> Dict[str, Any]:
    sql = text(
        f"""
        INSERT INTO reorder_requests (
            item_id, part_number, part_description, current_qty, reorder_point,
            supplier, location, quantity, timeframe, urgency, requester, notes,
            status, created_at, updated_at
        ) VALUES (
            :item_id, :part_number, :part_description, :current_qty, :reorder_point,
            :supplier, :location, :quantity, :timeframe, :urgency, :requester, :notes,
            :status, :now, :now
        )
        RETURNING {_COLUMNS}
        """
    )
    params = {
        "item_id": request.get("item_id"),
        "part_number": request["part_number"],
        "part_description": request.get("part_description") or "",
        "current_qty": request.get("current_qty") or 0,
        "reorder_point": request.get("reorder_point"),
        "supplier": request.get("supplier") or "",
        "location": request.get("location") or "",
        "quantity": request["quantity"],
        "timeframe": request.get("timeframe") or "",
        "urgency": request["urgency"],
        "requester": request["requester"],
        "notes": request.get("notes") or "",
        "status": ReorderStatus.PENDING,
        "now": datetime.now(timezone.utc),
    }
    with engine.begin() as conn:
        row = conn.execute(sql, params).mappings().first()
    return _row_to_request(row)


def list_reorder_requests(status: Optional[str] = None) -> List[Dict[str, Any]]:
    """Newest first, optionally filtered by status."""
    sql = f"SELECT {_COLUMNS} FROM reorder_requests"
    params: Dict[str, Any] = {}
    if status:
        sql += " WHERE status = :status"
        params["status"] = status
    sql += " ORDER BY created_at DESC, id DESC"
    with engine.connect() as conn:
        rows = conn.execute(text(sql), params).mappings().all()
    return [_row_to_request(row) for row in rows]


def get_reorder_request(request_id: int, conn=None) -> Optional[Dict[str, Any]]:
    sql = text(f"SELECT {_COLUMNS} FROM reorder_requests WHERE id = :id")
    if conn is not None:
        row = conn.execute(sql, {"id": request_id}).mappings().first()
        return _row_to_request(row) if row else None
    with engine.connect() as c:
        row = c.execute(sql, {"id": request_id}).mappings().first()
    return _row_to_request(row) if row else None


def update_reorder_status(
    request_id: int,
    status: str,
    status_notes: Optional[str] = None,
) -> Optional[Dict[str, Any]]:
    """Set a new status; returns {"previous_status", "request"} or None when missing."""
    with engine.begin() as conn:
        current = get_reorder_request(request_id, conn=conn)
        if not current:
            return None
        conn.execute(
            text(
                """
                UPDATE reorder_requests
                SET status = :status, status_notes = :status_notes, updated_at = :now
                WHERE id = :id
                """
            ),
            {
                "id": request_id,
                "status": status,
                "status_notes": status_notes,
                "now": datetime.now(timezone.utc),
            },
        )
        updated = get_reorder_request(request_id, conn=conn)
    return {"previous_status": current["status"], "request": updated}
