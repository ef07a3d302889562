"""Application models package."""

from order_lifecycle.models.order import Order
from order_lifecycle.models.order_history import OrderHistory
from order_lifecycle.models.status import ActorRole, OrderStatus

__all__ = ["Order", "OrderHistory", "OrderStatus", "ActorRole"]
