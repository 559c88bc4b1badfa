"""Database helpers for the `inventory` table."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import text

from stockroom.db import engine


ITEM_FIELDS = (
    "part_number",
    "mfg_part_number",
    "qty",
    "part_description",
    "supplier",
    "location",
    "package",
    "reorder_point",
)

_SELECT_ITEM = """
    SELECT id, part_number, mfg_part_number, qty, part_description,
           supplier, location, package, reorder_point,
           created_at, updated_at
    FROM inventory
"""


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def as_datetime(value: Any) -> Optional[datetime]:
    """Timestamps come back as strings from SQLite and as datetimes from Postgres."""
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def _row_to_item(row: Any) -> Dict[str, Any]:
    return {
        "id": row["id"],
        "part_number": row["part_number"],
        "mfg_part_number": row["mfg_part_number"],
        "qty": int(row["qty"] or 0),
        "part_description": row["part_description"],
        "supplier": row["supplier"],
        "location": row["location"],
        "package": row["package"],
        "reorder_point": row["reorder_point"],
        "created_at": as_datetime(row["created_at"]),
        "updated_at": as_datetime(row["updated_at"]),
    }


def list_items(search: Optional[str] = None, conn=None) -> List[Dict[str, Any]]:
    """List inventory ordered by part number, optionally filtered by a search term."""
    sql = _SELECT_ITEM
    params: Dict[str, Any] = {}
    if search:
        sql += """
    WHERE lower(part_number) LIKE :pattern
       OR lower(mfg_part_number) LIKE :pattern
       OR lower(part_description) LIKE :pattern
       OR lower(location) LIKE :pattern
"""
        params["pattern"] = f"%{search.strip().lower()}%"
    sql += " ORDER BY part_number, location, id"

    if conn is not None:
        rows = conn.execute(text(sql), params).mappings().all()
        return [_row_to_item(row) for row in rows]
    with engine.connect() as c:
        rows = c.execute(text(sql), params).mappings().all()
    return [_row_to_item(row) for row in rows]


def get_item(item_id: int, conn=None) -> Optional[Dict[str, Any]]:
    sql = text(_SELECT_ITEM + " WHERE id = :id")
    if conn is not None:
        row = conn.execute(sql, {"id": item_id}).mappings().first()
        return _row_to_item(row) if row else None
    with engine.connect() as c:
        row = c.execute(sql, {"id": item_id}).mappings().first()
    return _row_to_item(row) if row else None


def get_item_by_part_number(part_number: str, conn=None) -> Optional[Dict[str, Any]]:
    sql = text(_SELECT_ITEM + " WHERE part_number = :part_number ORDER BY id LIMIT 1")
    if conn is not None:
        row = conn.execute(sql, {"part_number": part_number}).mappings().first()
        return _row_to_item(row) if row else None
    with engine.connect() as c:
        row = c.execute(sql, {"part_number": part_number}).mappings().first()
    return _row_to_item(row) if row else None


def insert_item(item: Dict[str, Any], conn=None) -> Dict[str, Any]:
    """Insert one inventory row and return it."""
    sql = text(
        """
        INSERT INTO inventory (
            part_number, mfg_part_number, qty, part_description,
            supplier, location, package, reorder_point,
            created_at, updated_at
        ) VALUES (
            :part_number, :mfg_part_number, :qty, :part_description,
            :supplier, :location, :package, :reorder_point,
            :now, :now
        )
        RETURNING id, part_number, mfg_part_number, qty, part_description,
                  supplier, location, package, reorder_point,
                  created_at, updated_at
        """
    )
    params = {field: item.get(field) for field in ITEM_FIELDS}
    params["now"] = _now_utc()
    if conn is not None:
        return _row_to_item(conn.execute(sql, params).mappings().first())
    with engine.begin() as c:
        row = c.execute(sql, params).mappings().first()
    return _row_to_item(row)


def update_item(
    values: Dict[str, Any],
    *,
    item_id: Optional[int] = None,
    part_number: Optional[str] = None,
    location: Optional[str] = None,
    conn=None,
) -> Optional[Dict[str, Any]]:
    """Apply `values` to one item, identified by id or by (part_number, location).

    Returns the updated row or None when nothing matched.
    """
    assignments = {k: v for k, v in values.items() if k in ITEM_FIELDS}
    if item_id is None and part_number is None:
        raise ValueError("item_id or part_number is required")

    def _run(c) -> Optional[Dict[str, Any]]:
        target = (
            get_item(item_id, conn=c)
            if item_id is not None
            else _find_by_part_and_location(c, part_number, location)
        )
        if not target:
            return None
        set_sql = ", ".join(f"{field} = :{field}" for field in assignments)
        set_sql = f"{set_sql}, updated_at = :now" if set_sql else "updated_at = :now"
        c.execute(
            text(f"UPDATE inventory SET {set_sql} WHERE id = :id"),
            {**assignments, "now": _now_utc(), "id": target["id"]},
        )
        return get_item(target["id"], conn=c)

    if conn is not None:
        return _run(conn)
    with engine.begin() as c:
        return _run(c)


def _find_by_part_and_location(conn, part_number: str, location: Optional[str]) -> Optional[Dict[str, Any]]:
    row = conn.execute(
        text(_SELECT_ITEM + " WHERE part_number = :part_number AND location = :location ORDER BY id LIMIT 1"),
        {"part_number": part_number, "location": location or ""},
    ).mappings().first()
    return _row_to_item(row) if row else None


def delete_item(
    *,
    item_id: Optional[int] = None,
    part_number: Optional[str] = None,
    location: Optional[str] = None,
    conn=None,
) -> int:
    """Delete by id, or by (part_number, location). Returns number of rows removed."""
    if item_id is not None:
        sql = text("DELETE FROM inventory WHERE id = :id")
        params: Dict[str, Any] = {"id": item_id}
    elif part_number is not None:
        sql = text("DELETE FROM inventory WHERE part_number = :part_number AND location = :location")
        params = {"part_number": part_number, "location": location or ""}
    else:
        raise ValueError("item_id or part_number is required")

    if conn is not None:
        return conn.execute(sql, params).rowcount
    with engine.begin() as c:
        return c.execute(sql, params).rowcount


def replace_all(items: Iterable[Dict[str, Any]], conn=None) -> int:
    """Replace the whole inventory in one transaction (spreadsheet sync)."""

    def _run(c) -> int:
        c.execute(text("DELETE FROM inventory"))
        count = 0
        for item in items:
            insert_item(item, conn=c)
            count += 1
        return count

    if conn is not None:
        return _run(conn)
    with engine.begin() as c:
        return _run(c)


def list_locations() -> List[str]:
    with engine.connect() as conn:
        rows = conn.execute(
            text("SELECT DISTINCT location FROM inventory WHERE location <> '' ORDER BY location")
        ).fetchall()
    return [row[0] for row in rows]


def list_low_stock(default_reorder_point: int) -> List[Dict[str, Any]]:
    """Items at or below their reorder point (falling back to the default one)."""
    sql = text(
        _SELECT_ITEM
        + """
        WHERE qty <= COALESCE(reorder_point, :default_reorder_point)
        ORDER BY qty, part_number
        """
    )
    with engine.connect() as conn:
        rows = conn.execute(sql, {"default_reorder_point": default_reorder_point}).mappings().all()
    return [_row_to_item(row) for row in rows]
