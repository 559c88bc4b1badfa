"""Key/value application settings stored in `app_settings`."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import text

from stockroom.db import engine


DEFAULT_REORDER_POINT_KEY = "default_reorder_point"


def get_all_settings() -> Dict[str, Any]:
    with engine.connect() as conn:
        rows = conn.execute(text("SELECT key, value FROM app_settings ORDER BY key")).mappings().all()
    return {row["key"]: json.loads(row["value"]) for row in rows}


def get_setting(key: str, default: Any = None) -> Any:
    with engine.connect() as conn:
        value = conn.execute(
            text("SELECT value FROM app_settings WHERE key = :key"),
            {"key": key},
        ).scalar_one_or_none()
    if value is None:
        return default
    return json.loads(value)


def upsert_setting(key: str, value: Any, conn=None) -> None:
    sql = text(
        """
        INSERT INTO app_settings (key, value, updated_at)
        VALUES (:key, :value, :now)
        ON CONFLICT (key)
        DO UPDATE SET
            value = EXCLUDED.value,
            updated_at = EXCLUDED.updated_at
        """
    )
    params = {
        "key": key,
        "value": json.dumps(value, ensure_ascii=False),
        "now": datetime.now(timezone.utc),
    }
    if conn is not None:
        conn.execute(sql, params)
        return
    with engine.begin() as c:
        c.execute(sql, params)


def get_default_reorder_point(fallback: int) -> int:
    """Configured default reorder point, or `fallback` when unset/invalid."""
    value: Optional[Any] = get_setting(DEFAULT_REORDER_POINT_KEY)
    try:
        return int(value) if value is not None else fallback
    except (TypeError, ValueError):
        return fallback
