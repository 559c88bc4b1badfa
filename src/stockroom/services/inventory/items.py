"""Normalization of inventory item payloads coming from forms, batches and files."""

from __future__ import annotations

from typing import Any, Dict, Optional


DEFAULT_ITEM_REORDER_POINT = 10

PACKAGE_EXACT = "EXACT"
PACKAGE_ESTIMATED = "ESTIMATED"
PACKAGE_REEL = "REEL"


def package_for_quantity(qty: int) -> str:
    """Package type implied by a stock count.

    1..100 are counted exactly, 101..500 are estimated, anything above is a reel.
    """
    if 1 <= qty <= 100:
        return PACKAGE_EXACT
    if 101 <= qty <= 500:
        return PACKAGE_ESTIMATED
    if qty > 500:
        return PACKAGE_REEL
    return PACKAGE_EXACT


def to_int(value: Any, default: int = 0) -> int:
    """Lenient int coercion: '12', 12.0 and ' 12 ' become 12; junk becomes `default`."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    try:
        return int(float(str(value).strip().replace(",", "")))
    except (ValueError, OverflowError):
        return default


def _clean(value: Any) -> str:
    return "" if value is None else str(value).strip()


def normalize_item(raw: Dict[str, Any], reorder_default: Optional[int] = DEFAULT_ITEM_REORDER_POINT) -> Dict[str, Any]:
    """Map a raw payload onto inventory columns with trimmed strings and int counts."""
    reorder_point = raw.get("reorder_point")
    return {
        "part_number": _clean(raw.get("part_number")),
        "mfg_part_number": _clean(raw.get("mfg_part_number")),
        "qty": max(to_int(raw.get("qty")), 0),
        "part_description": _clean(raw.get("part_description")),
        "supplier": _clean(raw.get("supplier")),
        "location": _clean(raw.get("location")),
        "package": _clean(raw.get("package")),
        "reorder_point": to_int(reorder_point, reorder_default) if reorder_point not in (None, "") else reorder_default,
    }
