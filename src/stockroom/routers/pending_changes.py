"""Router for reviewing queued inventory changes."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Path, Query, status

from stockroom.db_pending_changes import ChangeStatus, get_pending_change, list_pending_changes
from stockroom.schemas.pending_changes import (
    BatchItemReviewRequest,
    BatchItemReviewResponse,
    PendingChange,
    PendingChangeListResponse,
    ReviewRequest,
    ReviewResponse,
)
from stockroom.services.inventory import approvals
from stockroom.services.inventory.errors import (
    DuplicatePartNumber,
    InvalidBatchIndex,
    InvalidChangeAction,
    InventoryItemNotFound,
    NotABatchChange,
    PendingChangeNotFound,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/pending-changes", tags=["pending-changes"])


@router.get("", response_model=PendingChangeListResponse)
async def list_pending_changes_endpoint(
    status_filter: Optional[str] = Query(
        ChangeStatus.PENDING,
        alias="status",
        description="pending, approved, rejected or all",
    ),
):
    if status_filter == "all":
        status_filter = None
    elif status_filter not in ChangeStatus.all():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid status. Must be one of: {', '.join(ChangeStatus.all())}, all",
        )
    changes = list_pending_changes(status=status_filter)
    return PendingChangeListResponse(items=[PendingChange(**c) for c in changes], total=len(changes))


@router.get("/{change_id}", response_model=PendingChange)
async def get_pending_change_endpoint(change_id: int = Path(..., description="Change ID")):
    change = get_pending_change(change_id)
    if not change:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Pending change not found")
    return PendingChange(**change)


@router.post("/{change_id}/review", response_model=ReviewResponse)
async def review_change_endpoint(
    body: ReviewRequest,
    change_id: int = Path(..., description="Change ID"),
):
    """Approve (apply to inventory) or reject a pending change."""
    try:
        result = approvals.review_change(change_id, body.action, body.approved_by)
    except InvalidChangeAction as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except NotABatchChange as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except (PendingChangeNotFound, InventoryItemNotFound) as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except Exception as e:
        logger.exception("review_change: change_id=%s failed", change_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to process change: {e}",
        )

    return ReviewResponse(
        change_id=result.change_id,
        status=result.status,
        message=result.message,
        partial=result.partial,
        processed=result.processed,
        failed=result.failed,
    )


@router.post("/{change_id}/items/{index}", response_model=BatchItemReviewResponse)
async def review_batch_item_endpoint(
    body: BatchItemReviewRequest,
    change_id: int = Path(..., description="Batch change ID"),
    index: int = Path(..., ge=0, description="Zero-based item index within the batch"),
):
    """Approve, reject or reset a single item of a pending batch."""
    try:
        result = approvals.review_batch_item(change_id, index, body.status, body.approved_by)
    except PendingChangeNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except (NotABatchChange, InvalidBatchIndex, InvalidChangeAction, ValueError) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except DuplicatePartNumber as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return BatchItemReviewResponse(**result)
