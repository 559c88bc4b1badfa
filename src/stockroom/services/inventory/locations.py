"""Storage location codes such as `H4-122` (shelf prefix, bin number)."""

from __future__ import annotations

import re
from typing import Any, Dict, Iterable, List, Optional, Tuple

LOCATION_RE = re.compile(r"^([A-Z]+\d*)-(\d+)$", re.IGNORECASE)


def parse_location(location: Optional[str]) -> Optional[Tuple[str, int]]:
    """`"h4-122"` -> `("H4", 122)`; None for anything that doesn't look like a bin."""
    if not location:
        return None
    match = LOCATION_RE.match(location.strip())
    if not match:
        return None
    return match.group(1).upper(), int(match.group(2))


def suggest_next_location(locations: Iterable[Optional[str]]) -> Optional[str]:
    """Next free bin after the highest-numbered one, e.g. `H4-123`."""
    best: Optional[Tuple[str, int]] = None
    for location in locations:
        parsed = parse_location(location)
        if parsed and (best is None or parsed[1] > best[1]):
            best = parsed
    if best is None:
        return None
    prefix, number = best
    return f"{prefix}-{number + 1:03d}"


def pending_change_locations(changes: Iterable[Dict[str, Any]]) -> Tuple[List[str], List[str]]:
    """Locations already claimed by queued changes, as (single, batch) lists.

    Bins requested in pending add/edit changes and in pending batches are not in
    the inventory yet but must not be suggested again.
    """
    single: List[str] = []
    batch: List[str] = []
    for change in changes:
        item_data = change.get("item_data") or {}
        if item_data.get("location"):
            single.append(item_data["location"])
        if item_data.get("is_batch"):
            batch.extend(item["location"] for item in item_data.get("batch_items") or [] if item.get("location"))
    return single, batch
