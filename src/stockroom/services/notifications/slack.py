"""Slack incoming-webhook notifications.

Message builders are pure and return webhook payloads (`text` + optional
`blocks`); `SlackClient` only delivers them.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional

import httpx

from stockroom.services.scheduling.dst import ScheduleConfig, ScheduleUpdateVerdict, describe_weekly_schedule

logger = logging.getLogger(__name__)

MAX_ALERT_ITEMS = 10
SLACK_TIMEOUT_SECONDS = 10.0

STATUS_OUT_OF_STOCK = "OUT OF STOCK"
STATUS_CRITICALLY_LOW = "CRITICALLY LOW"
STATUS_LOW_STOCK = "LOW STOCK"

_STATUS_ICONS = {
    STATUS_OUT_OF_STOCK: ":red_circle:",
    STATUS_CRITICALLY_LOW: ":large_orange_circle:",
    STATUS_LOW_STOCK: ":large_yellow_circle:",
}


class SlackNotConfigured(Exception):
    """Raised when SLACK_WEBHOOK_URL is not set."""


class SlackDeliveryError(Exception):
    """Raised when the webhook call fails or Slack answers non-2xx."""


class SlackClient:
    def __init__(
        self,
        webhook_url: Optional[str],
        channel: Optional[str] = None,
        *,
        transport: Optional[httpx.BaseTransport] = None,
        timeout: float = SLACK_TIMEOUT_SECONDS,
    ):
        self.webhook_url = webhook_url
        self.channel = channel
        self._transport = transport
        self._timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.webhook_url)

    def send(self, payload: Dict[str, Any]) -> None:
        if not self.webhook_url:
            raise SlackNotConfigured("Slack webhook URL is not configured")

        body = dict(payload)
        if self.channel and "channel" not in body:
            body["channel"] = self.channel

        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                response = client.post(self.webhook_url, json=body)
        except httpx.RequestError as exc:
            logger.warning("slack: request failed: %s", type(exc).__name__)
            raise SlackDeliveryError(f"Slack request failed: {type(exc).__name__}") from exc

        if response.status_code >= 300:
            logger.warning("slack: webhook returned status=%s body=%s", response.status_code, response.text[:200])
            raise SlackDeliveryError(f"Slack API error: {response.status_code} {response.text[:200]}")

        logger.info("slack: message delivered (%s)", (body.get("text") or "")[:80])


def stock_status(qty: int, reorder_point: int) -> str:
    if qty == 0:
        return STATUS_OUT_OF_STOCK
    if qty <= reorder_point // 2:
        return STATUS_CRITICALLY_LOW
    return STATUS_LOW_STOCK


def _item_line(item: Dict[str, Any], default_reorder_point: int) -> str:
    qty = int(item.get("qty") or 0)
    reorder_point = item.get("reorder_point")
    if reorder_point is None:
        reorder_point = default_reorder_point
    status = stock_status(qty, reorder_point)
    return (
        f"• *{item.get('part_number')}* - {item.get('part_description') or ''}\n"
        f"  Location: {item.get('location') or 'N/A'} | Qty: {qty} | Reorder at: {reorder_point} | "
        f"{_STATUS_ICONS[status]} {status}"
    )


def build_low_stock_alert(
    items: List[Dict[str, Any]],
    default_reorder_point: int,
    app_url: str,
    today: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Weekly low-stock digest: the first ten items plus a count of the rest."""
    total = len(items)
    item_list = "\n\n".join(_item_line(item, default_reorder_point) for item in items[:MAX_ALERT_ITEMS])
    more = f"\n\n_...and {total - MAX_ALERT_ITEMS} more items_" if total > MAX_ALERT_ITEMS else ""
    noun = "item needs" if total == 1 else "items need"
    date_label = f" - {today.strftime('%m/%d/%Y')}" if today else ""

    return {
        "text": f"Weekly Low Stock Alert{date_label}",
        "blocks": [
            {"type": "header", "text": {"type": "plain_text", "text": "Weekly Low Stock Alert"}},
            {"type": "section", "text": {"type": "mrkdwn", "text": f"*{total} {noun} attention:*\n\n{item_list}{more}"}},
            {"type": "section", "text": {"type": "mrkdwn", "text": f"<{app_url}|View Full Inventory>"}},
        ],
    }


_CHANGE_LABELS = {
    "add": "Add item",
    "update": "Edit item",
    "delete": "Delete item",
    "update_quantity": "Update quantity",
    "batch_add": "Batch add",
}


def build_approval_request(change: Dict[str, Any], app_url: str) -> Dict[str, Any]:
    """Message asking reviewers to look at a newly submitted change."""
    item_data = change.get("item_data") or {}
    label = _CHANGE_LABELS.get(change["change_type"], change["change_type"])

    if change["change_type"] == "batch_add":
        batch_items: Iterable[Dict[str, Any]] = item_data.get("batch_items") or []
        parts = [str(i.get("part_number") or "?") for i in batch_items]
        summary = f"{len(parts)} items: " + ", ".join(parts[:10]) + (" ..." if len(parts) > 10 else "")
    elif change["change_type"] == "update_quantity":
        summary = (
            f"*{item_data.get('part_number')}*: {item_data.get('current_quantity')} -> "
            f"{item_data.get('new_quantity')}"
        )
    else:
        summary = f"*{item_data.get('part_number')}* - {item_data.get('part_description') or ''}"

    text = f"Approval needed: {label} requested by {change.get('requested_by') or 'unknown'}"
    return {
        "text": text,
        "blocks": [
            {"type": "section", "text": {"type": "mrkdwn", "text": f"*{text}*\n{summary}"}},
            {
                "type": "section",
                "text": {"type": "mrkdwn", "text": f"<{app_url}/api/v1/pending-changes/{change['id']}|Review change #{change['id']}>"},
            },
        ],
    }


_REORDER_STATUS_ICONS = {
    "pending": ":hourglass_flowing_sand:",
    "approved": ":white_check_mark:",
    "ordered": ":shopping_trolley:",
    "received": ":package:",
    "denied": ":x:",
}


def build_reorder_request(request: Dict[str, Any], app_url: str) -> Dict[str, Any]:
    """Purchase request for a low or empty part, laid out for copying into a workflow."""
    part_number = request["part_number"]
    current_qty = int(request.get("current_qty") or 0)
    stock_label = "Out of Stock" if current_qty <= 0 else "Low Stock"
    supplier = request.get("supplier") or "TBD"

    details = "\n".join(
        [
            f"*Part Number:* `{part_number}`",
            f"*Description:* {request.get('part_description') or ''}",
            f"*Current Stock:* {current_qty}",
            f"*Reorder Point:* {request.get('reorder_point') if request.get('reorder_point') is not None else 'N/A'}",
            f"*Quantity Requested:* {request['quantity']}",
            f"*Supplier:* {supplier}",
            f"*Needed:* {request.get('timeframe') or 'Standard'}",
            f"*Urgency:* {request['urgency']} ({stock_label})",
            f"*Requested By:* {request.get('requester') or 'System'}",
        ]
    )
    copy_block = "\n".join(
        [
            f"Part Number: {part_number}",
            f"Description: {request.get('part_description') or ''}",
            f"Quantity: {request['quantity']}",
            f"Supplier: {supplier}",
            f"Location: {request.get('location') or 'N/A'}",
            f"Urgency: {request['urgency']}",
            f"Status: {stock_label}",
        ]
    )
    blocks: List[Dict[str, Any]] = [
        {"type": "header", "text": {"type": "plain_text", "text": "Reorder Request"}},
        {"type": "section", "text": {"type": "mrkdwn", "text": details}},
        {"type": "divider"},
        {"type": "section", "text": {"type": "mrkdwn", "text": f"```{copy_block}```"}},
    ]
    if request.get("notes"):
        blocks.append({"type": "section", "text": {"type": "mrkdwn", "text": f"*Notes:*\n{request['notes']}"}})
    blocks.append(
        {
            "type": "section",
            "text": {"type": "mrkdwn", "text": f"<{app_url}/api/v1/reorder-requests/{request['id']}|Reorder request #{request['id']}>"},
        }
    )
    return {"text": f"Reorder request: {part_number} x{request['quantity']} ({request['urgency']})", "blocks": blocks}


def build_reorder_status_update(request: Dict[str, Any], previous_status: str) -> Dict[str, Any]:
    """Tell the requester their reorder request moved to a new status."""
    status = request["status"]
    icon = _REORDER_STATUS_ICONS.get(status, ":clipboard:")
    blocks: List[Dict[str, Any]] = [
        {"type": "header", "text": {"type": "plain_text", "text": "Reorder Request Status Update"}},
        {
            "type": "section",
            "text": {
                "type": "mrkdwn",
                "text": f"*To:* {request['requester']}\n*Re:* Purchase request for {request['part_number']}",
            },
        },
        {"type": "divider"},
        {
            "type": "section",
            "fields": [
                {"type": "mrkdwn", "text": f"*Part Number:*\n{request['part_number']}"},
                {"type": "mrkdwn", "text": f"*Quantity:*\n{request['quantity']} units"},
                {"type": "mrkdwn", "text": f"*Previous Status:*\n{previous_status.capitalize()}"},
                {"type": "mrkdwn", "text": f"*New Status:*\n{icon} {status.capitalize()}"},
            ],
        },
    ]
    if request.get("status_notes"):
        blocks.append({"type": "section", "text": {"type": "mrkdwn", "text": f"*Status Notes:*\n{request['status_notes']}"}})
    return {
        "text": f"Reorder request #{request['id']} for {request['part_number']}: {previous_status} -> {status}",
        "blocks": blocks,
    }


def build_dst_transition_notice(verdict: ScheduleUpdateVerdict, config: ScheduleConfig) -> Dict[str, Any]:
    """Heads-up that the UTC cron for the weekly alert must be switched."""
    instant = verdict.transition_instant
    if instant is None:
        raise ValueError("verdict carries no transition")
    old_abbr = (instant - timedelta(days=1)).tzname()
    new_abbr = (instant + timedelta(days=1)).tzname()
    kind = "Spring Forward" if (verdict.reason or "").startswith("Spring") else "Fall Back"

    text = "\n".join(
        [
            "*DST Transition Detected - Inventory System*",
            "",
            f"*Transition*: {kind} ({old_abbr} -> {new_abbr})",
            f"*Date*: {instant.strftime('%A, %B %d, %Y')} {new_abbr}",
            "",
            "*Action Required*: Update the weekly alert cron to keep local alert time.",
            "",
            f"*New Schedule*: `{verdict.recommended_schedule_expression}`",
            f"*Description*: {describe_weekly_schedule(config, new_abbr)}",
        ]
    )
    return {"text": text}
