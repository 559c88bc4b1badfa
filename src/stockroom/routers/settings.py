"""Router for key/value application settings."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, HTTPException, Path, status
from pydantic import BaseModel

from stockroom.db_settings import DEFAULT_REORDER_POINT_KEY, get_all_settings, get_setting, upsert_setting

router = APIRouter(prefix="/api/v1/settings", tags=["settings"])


class SettingUpdate(BaseModel):
    value: Any


@router.get("", response_model=Dict[str, Any])
async def list_settings_endpoint():
    return get_all_settings()


@router.put("/{key}", response_model=Dict[str, Any])
async def update_setting_endpoint(
    body: SettingUpdate,
    key: str = Path(..., min_length=1, max_length=100, description="Setting key"),
):
    if key == DEFAULT_REORDER_POINT_KEY:
        if isinstance(body.value, bool) or not isinstance(body.value, int) or body.value < 0:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"{DEFAULT_REORDER_POINT_KEY} must be a non-negative integer",
            )
    upsert_setting(key, body.value)
    return {"key": key, "value": get_setting(key)}
