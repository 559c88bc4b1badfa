"""Router for reorder (purchase) requests and their status lifecycle."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from stockroom.db_reorder_requests import ReorderStatus, get_reorder_request, list_reorder_requests
from stockroom.deps import get_slack_client
from stockroom.schemas.reorder_requests import (
    CreateReorderRequest,
    ReorderRequest,
    ReorderRequestListResponse,
    ReorderStatusUpdateRequest,
    ReorderStatusUpdateResponse,
)
from stockroom.services.alerts import notify_reorder_request, notify_reorder_status
from stockroom.services.inventory.errors import (
    InvalidReorderStatus,
    InventoryItemNotFound,
    ReorderRequestNotFound,
)
from stockroom.services.inventory.reorders import change_reorder_status, submit_reorder_request
from stockroom.services.notifications.slack import SlackClient
from stockroom.settings import Settings, get_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/reorder-requests", tags=["reorder-requests"])


@router.post("", response_model=ReorderRequest, status_code=status.HTTP_201_CREATED)
async def create_reorder_request_endpoint(
    body: CreateReorderRequest,
    settings: Settings = Depends(get_settings),
    client: SlackClient = Depends(get_slack_client),
):
    """Record a purchase request and post it to Slack."""
    try:
        created = submit_reorder_request(body.model_dump())
    except InventoryItemNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    notify_reorder_request(created, client, settings.app_url)
    return ReorderRequest(**created)


@router.get("", response_model=ReorderRequestListResponse)
async def list_reorder_requests_endpoint(
    status_filter: Optional[str] = Query(None, alias="status", description="Filter by status; all when omitted"),
):
    if status_filter is not None and status_filter not in ReorderStatus.all():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid status. Must be one of: {', '.join(ReorderStatus.all())}",
        )
    requests = list_reorder_requests(status=status_filter)
    return ReorderRequestListResponse(items=[ReorderRequest(**r) for r in requests], total=len(requests))


@router.get("/{request_id}", response_model=ReorderRequest)
async def get_reorder_request_endpoint(request_id: int = Path(..., description="Reorder request ID")):
    request = get_reorder_request(request_id)
    if not request:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Reorder request not found")
    return ReorderRequest(**request)


@router.post("/{request_id}/status", response_model=ReorderStatusUpdateResponse)
async def update_reorder_status_endpoint(
    body: ReorderStatusUpdateRequest,
    request_id: int = Path(..., description="Reorder request ID"),
    client: SlackClient = Depends(get_slack_client),
):
    """Move a request along its lifecycle and notify the requester."""
    try:
        result = change_reorder_status(request_id, body.status, body.status_notes)
    except ReorderRequestNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except InvalidReorderStatus as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    notified = notify_reorder_status(result["request"], result["previous_status"], client)
    return ReorderStatusUpdateResponse(
        previous_status=result["previous_status"],
        request=ReorderRequest(**result["request"]),
        notified=notified,
    )
