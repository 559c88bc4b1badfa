"""Pydantic schemas for reorder (purchase) requests."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class ReorderRequest(BaseModel):
    """Schema for a stored reorder request."""

    id: int
    item_id: Optional[int] = None
    part_number: str
    part_description: str = ""
    current_qty: int = 0
    reorder_point: Optional[int] = None
    supplier: str = ""
    location: str = ""
    quantity: int
    timeframe: str = ""
    urgency: str = Field(..., description="Critical, High, Medium or Low")
    requester: str
    notes: str = ""
    status: str = Field(..., description="pending, approved, ordered, received or denied")
    status_notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ReorderRequestListResponse(BaseModel):
    items: List[ReorderRequest]
    total: int


class CreateReorderRequest(BaseModel):
    item_id: Optional[int] = Field(None, description="Inventory item to prefill part details from")
    part_number: Optional[str] = None
    part_description: Optional[str] = None
    current_qty: Optional[int] = Field(None, ge=0)
    reorder_point: Optional[int] = Field(None, ge=0)
    supplier: Optional[str] = None
    location: Optional[str] = None
    quantity: int = Field(..., gt=0, description="Units to order")
    timeframe: str = Field("", description="ASAP, 1-3 days, 1 week, 2 weeks, 1 month or Standard")
    urgency: Optional[str] = Field(None, description="Defaults to High when out of stock, Medium otherwise")
    requester: str = Field(..., min_length=1)
    notes: str = ""


class ReorderStatusUpdateRequest(BaseModel):
    # Plain str so unknown statuses come back as 400 like other review endpoints
    status: str = Field(..., description="pending, approved, ordered, received or denied")
    status_notes: Optional[str] = None


class ReorderStatusUpdateResponse(BaseModel):
    previous_status: str
    request: ReorderRequest
    notified: bool = Field(..., description="Whether the requester was pinged on Slack")
