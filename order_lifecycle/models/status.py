"""Closed set of order lifecycle statuses and actor roles."""

from enum import Enum

from sqlalchemy import Enum as SAEnum


class OrderStatus(str, Enum):
    """Lifecycle stage of a delivery order."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    PREPARING = "preparing"
    READY = "ready"
    OUT_FOR_DELIVERY = "out_for_delivery"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def label(self) -> str:
        return STATUS_LABELS[self]


STATUS_LABELS: dict[OrderStatus, str] = {
    OrderStatus.PENDING: "Pending",
    OrderStatus.ACCEPTED: "Accepted",
    OrderStatus.PREPARING: "In preparation",
    OrderStatus.READY: "Ready",
    OrderStatus.OUT_FOR_DELIVERY: "Out for delivery",
    OrderStatus.COMPLETED: "Completed",
    OrderStatus.CANCELLED: "Cancelled",
}


class ActorRole(str, Enum):
    """Role of the identity performing a transition."""

    ADMIN = "admin"
    MANAGER = "manager"
    STAFF = "staff"
    COURIER = "courier"
    CUSTOMER = "customer"


def normalize_status(value: str | OrderStatus) -> OrderStatus:
    """Parse a status value, raising ValueError for unknown strings."""
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(str(value).strip().lower())
    except ValueError as exc:
        raise ValueError(f"Unknown order status: {value}") from exc


def normalize_role(value: str | ActorRole) -> ActorRole:
    """Parse an actor role, raising ValueError for unknown strings."""
    if isinstance(value, ActorRole):
        return value
    try:
        return ActorRole(str(value).strip().lower())
    except ValueError as exc:
        raise ValueError(f"Unknown actor role: {value}") from exc


def order_status_type() -> SAEnum:
    """Column type storing the status value as a plain string."""
    return SAEnum(
        OrderStatus,
        name="order_status",
        native_enum=False,
        length=32,
        values_callable=lambda statuses: [status.value for status in statuses],
        validate_strings=True,
    )
