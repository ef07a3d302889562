"""Actor identity and role checks for order transitions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from order_lifecycle.models.status import ActorRole, OrderStatus

SYSTEM_ACTOR_NAME: str = "system"

COURIER_EDGES: frozenset[tuple[OrderStatus, OrderStatus]] = frozenset(
    {
        (OrderStatus.READY, OrderStatus.OUT_FOR_DELIVERY),
        (OrderStatus.OUT_FOR_DELIVERY, OrderStatus.COMPLETED),
        (OrderStatus.OUT_FOR_DELIVERY, OrderStatus.READY),
    }
)


@dataclass(frozen=True)
class Actor:
    """Identity performing a transition."""

    id: str | None
    name: str
    role: ActorRole
    tenant_id: str | None = None

    @classmethod
    def system(cls) -> "Actor":
        return cls(id=None, name=SYSTEM_ACTOR_NAME, role=ActorRole.ADMIN)

    @property
    def is_customer(self) -> bool:
        return self.role == ActorRole.CUSTOMER

    @property
    def actor_class(self) -> str:
        return "customer" if self.is_customer else "staff"

    @property
    def is_system(self) -> bool:
        return self.id is None


class PermissionGate(Protocol):
    """Role/authorization decision for a single transition."""

    def check(self, actor: Actor, tenant_id: str, current: OrderStatus, target: OrderStatus) -> bool: ...


class RolePermissionGate:
    """Default gate derived from the establishment role matrix.

    Admins and managers may take any edge. Staff run the kitchen flow but
    cannot cancel. Couriers only handle the delivery leg. Customers pass the
    gate here and are narrowed by the customer transition rule afterwards.
    """

    def check(self, actor: Actor, tenant_id: str, current: OrderStatus, target: OrderStatus) -> bool:
        if actor.tenant_id is not None and actor.tenant_id != tenant_id:
            return False
        if actor.role in {ActorRole.ADMIN, ActorRole.MANAGER, ActorRole.CUSTOMER}:
            return True
        if actor.role == ActorRole.STAFF:
            return target != OrderStatus.CANCELLED
        if actor.role == ActorRole.COURIER:
            return (current, target) in COURIER_EDGES
        return False

