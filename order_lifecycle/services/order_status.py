"""Order status mutation helpers."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from order_lifecycle.models.order import Order
from order_lifecycle.models.status import OrderStatus

STAGE_FIELDS: dict[OrderStatus, str | None] = {
    OrderStatus.PENDING: None,
    OrderStatus.ACCEPTED: "accepted_at",
    OrderStatus.PREPARING: "preparing_at",
    OrderStatus.READY: "ready_at",
    OrderStatus.OUT_FOR_DELIVERY: "out_for_delivery_at",
    OrderStatus.COMPLETED: "completed_at",
    OrderStatus.CANCELLED: "cancelled_at",
}


def stage_field(status: OrderStatus) -> str | None:
    """Return the timestamp field owned by a status, if any."""
    return STAGE_FIELDS[status]


def apply_status(order: Order, new_status: OrderStatus, now: datetime, reason: str | None = None) -> None:
    """Set status and the timestamp owned by the destination status.

    No other stage field is touched, so timestamps of stages the order has
    left (including via a reversal) survive as forensic history.
    """
    order.status = new_status
    order.status_updated_at = now

    field_name = stage_field(new_status)
    if field_name is not None:
        setattr(order, field_name, now)

    if new_status == OrderStatus.CANCELLED:
        order.cancellation_reason = reason


def snapshot(order: Order) -> dict[str, Any]:
    """Return a JSON-friendly view of status and stage timestamps."""
    payload: dict[str, Any] = {"status": order.status.value}
    for field_name in STAGE_FIELDS.values():
        if field_name is None:
            continue
        value: datetime | None = getattr(order, field_name)
        payload[field_name] = value.isoformat() if value is not None else None
    return payload
