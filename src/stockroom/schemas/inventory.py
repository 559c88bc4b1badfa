"""Pydantic schemas for inventory items and change requests."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class InventoryItem(BaseModel):
    """Schema for a single inventory row."""

    id: int = Field(..., description="Item ID")
    part_number: str = Field(..., description="Internal part number")
    mfg_part_number: Optional[str] = Field(None, description="Manufacturer part number")
    qty: int = Field(..., description="Units in stock")
    part_description: Optional[str] = Field(None, description="Free-text description")
    supplier: Optional[str] = Field(None, description="Supplier name")
    location: Optional[str] = Field(None, description="Storage location, e.g. H4-122")
    package: Optional[str] = Field(None, description="EXACT, ESTIMATED or REEL")
    reorder_point: Optional[int] = Field(None, description="Reorder threshold (default applies when empty)")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class InventoryListResponse(BaseModel):
    items: List[InventoryItem]
    total: int


class LowStockResponse(BaseModel):
    items: List[InventoryItem]
    total: int
    default_reorder_point: int


class ItemFields(BaseModel):
    """Fields a requester can set on a new item."""

    part_number: str = Field(..., min_length=1, description="Internal part number")
    mfg_part_number: Optional[str] = None
    qty: int = Field(0, ge=0, description="Units in stock")
    part_description: Optional[str] = None
    supplier: Optional[str] = None
    location: Optional[str] = None
    package: Optional[str] = None
    reorder_point: Optional[int] = Field(None, ge=0)


class AddItemRequest(ItemFields):
    requested_by: str = Field(..., min_length=1, description="Who asked for the change")


class BatchAddRequest(BaseModel):
    items: List[ItemFields] = Field(..., min_length=1, description="Items to add (at least one)")
    requested_by: str = Field(..., min_length=1)


class EditItemRequest(BaseModel):
    """Partial update; unset fields keep their current value."""

    part_number: Optional[str] = Field(None, min_length=1)
    mfg_part_number: Optional[str] = None
    qty: Optional[int] = Field(None, ge=0)
    part_description: Optional[str] = None
    supplier: Optional[str] = None
    location: Optional[str] = None
    package: Optional[str] = None
    reorder_point: Optional[int] = Field(None, ge=0)
    requested_by: str = Field(..., min_length=1)


class QuantityUpdateRequest(BaseModel):
    new_quantity: int = Field(..., ge=0, description="Counted quantity")
    requested_by: str = Field(..., min_length=1)


class DeleteItemRequest(BaseModel):
    requested_by: str = Field(..., min_length=1)


class LocationSuggestionResponse(BaseModel):
    suggested_location: Optional[str] = Field(None, description="Next free bin, or null when none parse")
    known_locations: int = Field(..., description="Locations considered across inventory and pending changes")
    sources: Dict[str, int] = Field(default_factory=dict, description="Location counts per source: inventory, pending, batch")
