"""Customer-facing cancellation rules."""

from __future__ import annotations

from order_lifecycle.models.order import Order
from order_lifecycle.models.status import OrderStatus
from order_lifecycle.services import transition_policy

# Status-gated only; no elapsed-time window after acceptance.
CUSTOMER_CANCELLABLE: frozenset[OrderStatus] = frozenset(
    source for source, target in transition_policy.CUSTOMER_EDGES if target == OrderStatus.CANCELLED
)

BLOCKED_REASONS: dict[OrderStatus, str] = {
    OrderStatus.PREPARING: "Your order is already in preparation and can no longer be cancelled.",
    OrderStatus.READY: "Your order is ready and can no longer be cancelled.",
    OrderStatus.OUT_FOR_DELIVERY: "Your order is on its way and can no longer be cancelled.",
}

NOTICES: dict[OrderStatus, str] = {
    OrderStatus.PENDING: "You can cancel your order at any time until it is accepted.",
    OrderStatus.ACCEPTED: "You can still cancel your order. Once preparation starts it can no longer be cancelled.",
}

CANCELLATION_REASONS: dict[str, str] = {
    "changed_mind": "I changed my mind",
    "wrong_order": "I placed the wrong order",
    "taking_too_long": "It is taking too long",
    "price": "The price is too high",
    "other": "Other reason",
}


def can_customer_cancel(order: Order) -> bool:
    return order.status in CUSTOMER_CANCELLABLE


def reason_if_blocked(status: OrderStatus) -> str | None:
    """Explain why a customer cannot cancel; None when not blocked by stage.

    Completed and cancelled orders return None as there is nothing to cancel.
    """
    if status in CUSTOMER_CANCELLABLE:
        return None
    return BLOCKED_REASONS.get(status)


def notice(status: OrderStatus) -> str | None:
    return NOTICES.get(status)


def resolve_reason(value: str | None) -> str | None:
    """Translate a known reason code into its label; pass free text through."""
    if value is None:
        return None
    cleaned = value.strip()
    return CANCELLATION_REASONS.get(cleaned, cleaned) or None
