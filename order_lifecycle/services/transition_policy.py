"""Legal order status transitions and their side-constraints."""

from __future__ import annotations

from order_lifecycle.models.status import OrderStatus

ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.ACCEPTED, OrderStatus.CANCELLED}),
    OrderStatus.ACCEPTED: frozenset({OrderStatus.PENDING, OrderStatus.PREPARING, OrderStatus.CANCELLED}),
    OrderStatus.PREPARING: frozenset({OrderStatus.ACCEPTED, OrderStatus.READY, OrderStatus.CANCELLED}),
    OrderStatus.READY: frozenset({OrderStatus.PREPARING, OrderStatus.OUT_FOR_DELIVERY, OrderStatus.CANCELLED}),
    OrderStatus.OUT_FOR_DELIVERY: frozenset({OrderStatus.READY, OrderStatus.COMPLETED, OrderStatus.CANCELLED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset({OrderStatus.PENDING, OrderStatus.ACCEPTED}),
}

# Every edge moving an order backward or reactivating it needs a justification.
REVERSAL_EDGES: frozenset[tuple[OrderStatus, OrderStatus]] = frozenset(
    {
        (OrderStatus.CANCELLED, OrderStatus.PENDING),
        (OrderStatus.CANCELLED, OrderStatus.ACCEPTED),
        (OrderStatus.ACCEPTED, OrderStatus.PENDING),
        (OrderStatus.PREPARING, OrderStatus.ACCEPTED),
        (OrderStatus.READY, OrderStatus.PREPARING),
        (OrderStatus.OUT_FOR_DELIVERY, OrderStatus.READY),
    }
)

CUSTOMER_EDGES: frozenset[tuple[OrderStatus, OrderStatus]] = frozenset(
    {
        (OrderStatus.PENDING, OrderStatus.CANCELLED),
        (OrderStatus.ACCEPTED, OrderStatus.CANCELLED),
    }
)

TERMINAL_STATUSES: frozenset[OrderStatus] = frozenset(
    status for status, targets in ALLOWED_TRANSITIONS.items() if not targets
)


def _check_table() -> None:
    missing = set(OrderStatus) - set(ALLOWED_TRANSITIONS)
    if missing:
        raise RuntimeError(f"Transition table is missing statuses: {sorted(s.value for s in missing)}")
    for source, target in REVERSAL_EDGES | CUSTOMER_EDGES:
        if target not in ALLOWED_TRANSITIONS[source]:
            raise RuntimeError(f"Side-constraint on unknown edge {source.value} -> {target.value}")


_check_table()


def is_allowed(current: OrderStatus, new: OrderStatus) -> bool:
    """Return whether an order can move from current to new status."""
    return new in ALLOWED_TRANSITIONS[current]


def allowed_targets(current: OrderStatus) -> frozenset[OrderStatus]:
    return ALLOWED_TRANSITIONS[current]


def requires_observation(current: OrderStatus, new: OrderStatus) -> bool:
    """Return whether the edge must carry justification text."""
    return (current, new) in REVERSAL_EDGES


def is_reversal(current: OrderStatus, new: OrderStatus) -> bool:
    return (current, new) in REVERSAL_EDGES


def is_customer_allowed(current: OrderStatus, new: OrderStatus) -> bool:
    """Customers may only cancel, and only before preparation starts."""
    return (current, new) in CUSTOMER_EDGES


def is_terminal(status: OrderStatus) -> bool:
    return status in TERMINAL_STATUSES
