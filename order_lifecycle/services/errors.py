"""Typed failures raised by the transition service."""

from __future__ import annotations

from order_lifecycle.models.status import OrderStatus


class TransitionError(Exception):
    """Base class for every rejected or failed transition."""

    code: str = "transition_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class OrderNotFoundError(TransitionError):
    code = "not_found"

    def __init__(self, order_id: int) -> None:
        super().__init__("Order not found")
        self.order_id = order_id


class PermissionDeniedError(TransitionError):
    code = "permission_denied"

    def __init__(self, current: OrderStatus, requested: OrderStatus) -> None:
        super().__init__(f"You are not allowed to move this order from {current.label} to {requested.label}.")
        self.current = current
        self.requested = requested


class InvalidTransitionError(TransitionError):
    code = "invalid_transition"

    def __init__(self, current: OrderStatus, requested: OrderStatus) -> None:
        super().__init__(f"Cannot change status from {current.label} to {requested.label}.")
        self.current = current
        self.requested = requested


class CustomerForbiddenError(TransitionError):
    code = "customer_forbidden"

    def __init__(self, current: OrderStatus, requested: OrderStatus) -> None:
        super().__init__(f"Customers cannot change an order from {current.label} to {requested.label}.")
        self.current = current
        self.requested = requested


class ObservationRequiredError(TransitionError):
    """Raised when a reversal edge is attempted without justification text."""

    code = "observation_required"

    def __init__(self, current: OrderStatus, requested: OrderStatus) -> None:
        super().__init__(f"An observation is required to move from {current.label} back to {requested.label}.")
        self.current = current
        self.requested = requested


class ConflictError(TransitionError):
    """Another writer changed the order first; re-read before retrying."""

    code = "conflict"

    def __init__(self, order_id: int) -> None:
        super().__init__("The order was changed by someone else. Reload it and try again.")
        self.order_id = order_id


class StorageFailureError(TransitionError):
    code = "storage_failure"

    def __init__(self, message: str = "Storage is temporarily unavailable.") -> None:
        super().__init__(message)
