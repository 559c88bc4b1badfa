"""Pydantic schemas for the approval queue."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class PendingChange(BaseModel):
    """Schema for a pending (or processed) change request."""

    id: int
    change_type: str = Field(..., description="add, update, delete, update_quantity or batch_add")
    status: str = Field(..., description="pending, approved or rejected")
    requested_by: Optional[str] = None
    item_data: Dict[str, Any] = Field(default_factory=dict)
    original_data: Optional[Dict[str, Any]] = None
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class PendingChangeListResponse(BaseModel):
    items: List[PendingChange]
    total: int


class ReviewRequest(BaseModel):
    # Plain str so unknown actions reach the service and come back as 400
    action: str = Field(..., description="approve or reject")
    approved_by: str = Field(..., min_length=1, description="Reviewer name")


class ReviewResponse(BaseModel):
    change_id: int
    status: str
    message: str
    partial: bool = False
    processed: List[Dict[str, Any]] = Field(default_factory=list)
    failed: List[Dict[str, Any]] = Field(default_factory=list)


class BatchItemReviewRequest(BaseModel):
    status: Literal["approved", "rejected", "pending"]
    approved_by: str = Field(..., min_length=1)


class BatchItemReviewResponse(BaseModel):
    change_id: int
    index: int
    status: str
    inventory_item: Optional[Dict[str, Any]] = None
