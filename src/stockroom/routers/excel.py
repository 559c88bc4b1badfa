"""Router for spreadsheet sync: upload replaces the inventory, export downloads it."""

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile, status
from pydantic import BaseModel

from stockroom import db_inventory, db_settings
from stockroom.db import engine
from stockroom.services.inventory.errors import InventoryFileError
from stockroom.services.inventory.spreadsheet import (
    build_inventory_xlsx,
    is_supported_filename,
    parse_inventory_file,
)
from stockroom.settings import Settings, get_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/excel", tags=["excel"])

PACKAGE_NOTE_KEY = "package_note"
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


class UploadResponse(BaseModel):
    item_count: int
    package_note: str
    stored_as: str


def _store_upload(upload_dir: str, filename: str, data: bytes) -> str:
    ts = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    _, ext = os.path.splitext(filename)
    dest_path = os.path.join(upload_dir, f"inventory_{ts}{ext.lower()}")
    try:
        os.makedirs(upload_dir, exist_ok=True)
        with open(dest_path, "wb") as f:
            f.write(data)
    except OSError as exc:
        logger.error("[excel upload] cannot write dest_path=%s error=%s", dest_path, exc, exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Upload storage is not writable. Please contact administrator (check UPLOAD_DIR volume/permissions).",
        ) from exc
    return dest_path


@router.post("/upload", response_model=UploadResponse)
async def upload_inventory_file(
    file: UploadFile = File(...),
    settings: Settings = Depends(get_settings),
):
    """Replace the whole inventory with the rows of an uploaded sheet."""
    if not file.filename:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Filename is required")
    if not is_supported_filename(file.filename):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid file type. Please upload an Excel (.xlsx) or CSV file.",
        )

    data = await file.read()
    if not data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Uploaded file is empty")

    stored_as = _store_upload(settings.upload_dir, file.filename, data)
    reorder_point = db_settings.get_default_reorder_point(settings.default_reorder_point)
    try:
        items, note = parse_inventory_file(file.filename, data, reorder_point)
    except InventoryFileError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    # inventory and its package note change together
    with engine.begin() as conn:
        count = db_inventory.replace_all(items, conn=conn)
        db_settings.upsert_setting(PACKAGE_NOTE_KEY, note, conn=conn)
    logger.info("[excel upload] filename=%s items=%s stored_as=%s", file.filename, count, stored_as)
    return UploadResponse(item_count=count, package_note=note, stored_as=os.path.basename(stored_as))


@router.get("/export")
async def export_inventory_file():
    """Current inventory as an .xlsx in the upload layout."""
    items = db_inventory.list_items()
    note = db_settings.get_setting(PACKAGE_NOTE_KEY, "") or ""
    content = build_inventory_xlsx(items, package_note=note)
    filename = f"inventory_{datetime.now(timezone.utc).strftime('%Y%m%d')}.xlsx"
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
