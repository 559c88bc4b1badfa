"""Router for inventory reads and change requests.

Writes never hit the inventory directly: each endpoint queues a pending change
and pings reviewers on Slack.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from stockroom import db_inventory, db_settings
from stockroom.db_pending_changes import ChangeStatus, list_pending_changes
from stockroom.deps import get_slack_client
from stockroom.schemas.inventory import (
    AddItemRequest,
    BatchAddRequest,
    DeleteItemRequest,
    EditItemRequest,
    InventoryItem,
    InventoryListResponse,
    LocationSuggestionResponse,
    LowStockResponse,
    QuantityUpdateRequest,
)
from stockroom.schemas.pending_changes import PendingChange
from stockroom.services.alerts import notify_approval_request
from stockroom.services.inventory import approvals
from stockroom.services.inventory.errors import InventoryItemNotFound
from stockroom.services.inventory.locations import pending_change_locations, suggest_next_location
from stockroom.services.notifications.slack import SlackClient
from stockroom.settings import Settings, get_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/inventory", tags=["inventory"])


@router.get("", response_model=InventoryListResponse)
async def list_inventory_endpoint(
    q: Optional[str] = Query(None, description="Search part number, MFG part number, description or location"),
):
    items = db_inventory.list_items(search=q)
    return InventoryListResponse(items=[InventoryItem(**row) for row in items], total=len(items))


@router.get("/low-stock", response_model=LowStockResponse)
async def low_stock_endpoint(settings: Settings = Depends(get_settings)):
    """Items at or below their reorder point."""
    default_reorder_point = db_settings.get_default_reorder_point(settings.default_reorder_point)
    items = db_inventory.list_low_stock(default_reorder_point)
    return LowStockResponse(
        items=[InventoryItem(**row) for row in items],
        total=len(items),
        default_reorder_point=default_reorder_point,
    )


@router.get("/suggest-location", response_model=LocationSuggestionResponse)
async def suggest_location_endpoint():
    """Next free bin across the inventory and bins claimed by pending changes."""
    inventory_locations = db_inventory.list_locations()
    pending, batch = pending_change_locations(list_pending_changes(ChangeStatus.PENDING))
    locations = inventory_locations + pending + batch
    return LocationSuggestionResponse(
        suggested_location=suggest_next_location(locations),
        known_locations=len(locations),
        sources={"inventory": len(inventory_locations), "pending": len(pending), "batch": len(batch)},
    )


def _queued(change: dict, client: SlackClient, settings: Settings) -> PendingChange:
    notify_approval_request(change, client, settings.app_url)
    return PendingChange(**change)


@router.post("/add-item", response_model=PendingChange, status_code=status.HTTP_201_CREATED)
async def add_item_endpoint(
    body: AddItemRequest,
    settings: Settings = Depends(get_settings),
    client: SlackClient = Depends(get_slack_client),
):
    """Queue a new item for approval."""
    item = body.model_dump(exclude={"requested_by"})
    if item["reorder_point"] is None:
        item["reorder_point"] = db_settings.get_default_reorder_point(settings.default_reorder_point)
    try:
        change = approvals.request_add(item, body.requested_by)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    logger.info("add_item: queued change_id=%s part_number=%s", change["id"], item["part_number"])
    return _queued(change, client, settings)


@router.post("/batch-add", response_model=PendingChange, status_code=status.HTTP_201_CREATED)
async def batch_add_endpoint(
    body: BatchAddRequest,
    settings: Settings = Depends(get_settings),
    client: SlackClient = Depends(get_slack_client),
):
    """Queue several new items as one batch; reviewers may approve them one by one."""
    default_reorder_point = db_settings.get_default_reorder_point(settings.default_reorder_point)
    items = []
    for entry in body.items:
        item = entry.model_dump()
        if item["reorder_point"] is None:
            item["reorder_point"] = default_reorder_point
        items.append(item)
    try:
        change = approvals.request_batch_add(items, body.requested_by)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    logger.info("batch_add: queued change_id=%s items=%s", change["id"], len(items))
    return _queued(change, client, settings)


@router.post("/{item_id}/edit", response_model=PendingChange, status_code=status.HTTP_201_CREATED)
async def edit_item_endpoint(
    body: EditItemRequest,
    item_id: int = Path(..., description="Inventory item ID"),
    settings: Settings = Depends(get_settings),
    client: SlackClient = Depends(get_slack_client),
):
    changes = body.model_dump(exclude={"requested_by"}, exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")
    try:
        change = approvals.request_edit(item_id, changes, body.requested_by)
    except InventoryItemNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return _queued(change, client, settings)


@router.post("/{item_id}/quantity", response_model=PendingChange, status_code=status.HTTP_201_CREATED)
async def update_quantity_endpoint(
    body: QuantityUpdateRequest,
    item_id: int = Path(..., description="Inventory item ID"),
    settings: Settings = Depends(get_settings),
    client: SlackClient = Depends(get_slack_client),
):
    try:
        change = approvals.request_quantity_update(item_id, body.new_quantity, body.requested_by)
    except InventoryItemNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return _queued(change, client, settings)


@router.post("/{item_id}/delete", response_model=PendingChange, status_code=status.HTTP_201_CREATED)
async def delete_item_endpoint(
    body: DeleteItemRequest,
    item_id: int = Path(..., description="Inventory item ID"),
    settings: Settings = Depends(get_settings),
    client: SlackClient = Depends(get_slack_client),
):
    try:
        change = approvals.request_delete(item_id, body.requested_by)
    except InventoryItemNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return _queued(change, client, settings)
