"""Stage timestamp mutation tests."""

from datetime import datetime, timezone

from order_lifecycle.models import Order
from order_lifecycle.models.status import OrderStatus
from order_lifecycle.services.order_status import apply_status, snapshot, stage_field


def test_stage_field_mapping() -> None:
    assert stage_field(OrderStatus.PENDING) is None
    assert stage_field(OrderStatus.ACCEPTED) == "accepted_at"
    assert stage_field(OrderStatus.OUT_FOR_DELIVERY) == "out_for_delivery_at"
    assert stage_field(OrderStatus.CANCELLED) == "cancelled_at"


def test_apply_status_writes_only_destination_field() -> None:
    earlier = datetime(2026, 1, 5, 12, 0, tzinfo=timezone.utc)
    later = datetime(2026, 1, 5, 12, 30, tzinfo=timezone.utc)
    order = Order(tenant_id="t1", status=OrderStatus.PREPARING, accepted_at=earlier, preparing_at=earlier)

    apply_status(order, OrderStatus.ACCEPTED, later)

    assert order.status == OrderStatus.ACCEPTED
    assert order.accepted_at == later
    assert order.preparing_at == earlier
    assert order.status_updated_at == later
    assert order.cancelled_at is None


def test_reactivation_keeps_cancellation_facts() -> None:
    cancelled = datetime(2026, 1, 5, 12, 0, tzinfo=timezone.utc)
    reopened = datetime(2026, 1, 5, 12, 10, tzinfo=timezone.utc)
    order = Order(tenant_id="t1", status=OrderStatus.PENDING)
    apply_status(order, OrderStatus.CANCELLED, cancelled, "Out of stock")

    apply_status(order, OrderStatus.PENDING, reopened)

    assert order.status == OrderStatus.PENDING
    assert order.cancelled_at == cancelled
    assert order.cancellation_reason == "Out of stock"


def test_snapshot_serializes_stage_fields() -> None:
    moment = datetime(2026, 1, 5, 12, 0, tzinfo=timezone.utc)
    order = Order(tenant_id="t1", status=OrderStatus.READY, ready_at=moment)

    payload = snapshot(order)

    assert payload["status"] == "ready"
    assert payload["ready_at"] == moment.isoformat()
    assert payload["completed_at"] is None
