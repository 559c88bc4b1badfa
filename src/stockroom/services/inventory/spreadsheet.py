"""Inventory spreadsheet import/export (XLSX, CSV).

Layout (sheet 1):

  A: Part number   B: MFG Part number   C: QTY   D: Part description
  E: Supplier      F: Location          G: Package

Row 1 is the header. Cell J1 optionally holds a free-text note about package
types; it is carried through import and written back on export.
"""

from __future__ import annotations

import csv
import io
import os
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from openpyxl import Workbook, load_workbook
from openpyxl.styles import Font

from stockroom.services.inventory.errors import InventoryFileError
from stockroom.services.inventory.items import DEFAULT_ITEM_REORDER_POINT, normalize_item


HEADERS = (
    "Part number",
    "MFG Part number",
    "QTY",
    "Part description",
    "Supplier",
    "Location",
    "Package",
)
COLUMN_FIELDS = (
    "part_number",
    "mfg_part_number",
    "qty",
    "part_description",
    "supplier",
    "location",
    "package",
)
PACKAGE_NOTE_COLUMN = 9  # J, zero-based
SUPPORTED_EXTENSIONS = (".xlsx", ".csv")


def is_supported_filename(filename: Optional[str]) -> bool:
    return bool(filename) and os.path.splitext(filename)[1].lower() in SUPPORTED_EXTENSIONS


def _row_is_empty(row: Sequence[Any]) -> bool:
    return all(value is None or str(value).strip() == "" for value in row)


def _rows_to_items(rows: Iterable[Sequence[Any]], reorder_point: int) -> List[Dict[str, Any]]:
    items: List[Dict[str, Any]] = []
    for row in rows:
        cells = list(row[: len(COLUMN_FIELDS)])
        if _row_is_empty(cells):
            continue
        cells += [None] * (len(COLUMN_FIELDS) - len(cells))
        items.append(normalize_item(dict(zip(COLUMN_FIELDS, cells)), reorder_default=reorder_point))
    return items


def _package_note(header: Sequence[Any]) -> str:
    if len(header) <= PACKAGE_NOTE_COLUMN or header[PACKAGE_NOTE_COLUMN] is None:
        return ""
    return str(header[PACKAGE_NOTE_COLUMN]).strip()


def parse_xlsx(data: bytes, reorder_point: int = DEFAULT_ITEM_REORDER_POINT) -> Tuple[List[Dict[str, Any]], str]:
    """Return (items, package_note) from XLSX bytes."""
    try:
        wb = load_workbook(filename=io.BytesIO(data), read_only=True, data_only=True)
    except Exception as exc:  # zipfile, xml and KeyError variants
        raise InventoryFileError(f"Could not read Excel file: {exc}") from exc

    try:
        ws = wb.worksheets[0] if wb.worksheets else None
        if ws is None:
            raise InventoryFileError("No worksheet found in Excel file")
        rows_iter = ws.iter_rows(values_only=True)
        header = next(rows_iter, None)
        if header is None:
            raise InventoryFileError("Excel file is empty or has no data rows")
        items = _rows_to_items(rows_iter, reorder_point)
        note = _package_note(header)
    finally:
        wb.close()

    if not items:
        raise InventoryFileError("Excel file is empty or has no data rows")
    return items, note


def parse_csv(data: bytes, reorder_point: int = DEFAULT_ITEM_REORDER_POINT) -> Tuple[List[Dict[str, Any]], str]:
    """Return (items, package_note) from CSV bytes laid out like the XLSX sheet."""
    try:
        text = data.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise InventoryFileError(f"CSV file is not valid UTF-8: {exc}") from exc

    rows = list(csv.reader(io.StringIO(text, newline="")))
    if not rows:
        raise InventoryFileError("CSV file is empty or has no data rows")
    header, body = rows[0], rows[1:]
    items = _rows_to_items(body, reorder_point)
    if not items:
        raise InventoryFileError("CSV file is empty or has no data rows")
    return items, _package_note(header)


def parse_inventory_file(
    filename: str,
    data: bytes,
    reorder_point: int = DEFAULT_ITEM_REORDER_POINT,
) -> Tuple[List[Dict[str, Any]], str]:
    ext = os.path.splitext(filename or "")[1].lower()
    if ext == ".xlsx":
        return parse_xlsx(data, reorder_point)
    if ext == ".csv":
        return parse_csv(data, reorder_point)
    raise InventoryFileError("Only Excel (.xlsx) or CSV files are supported")


def build_inventory_xlsx(items: Iterable[Dict[str, Any]], package_note: str = "") -> bytes:
    """Render inventory rows into an XLSX workbook with the import layout."""
    wb = Workbook()
    ws = wb.active
    ws.title = "Inventory"
    ws.append(list(HEADERS))
    for cell in ws[1]:
        cell.font = Font(bold=True)
    if package_note:
        ws.cell(row=1, column=PACKAGE_NOTE_COLUMN + 1, value=package_note)

    for item in items:
        ws.append([item.get(field) if field == "qty" else (item.get(field) or "") for field in COLUMN_FIELDS])

    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()
