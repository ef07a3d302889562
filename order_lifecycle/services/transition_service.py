"""Order lifecycle orchestration: validate, mutate and record transitions."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

from sqlalchemy import select
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from order_lifecycle.core.config import settings
from order_lifecycle.models import Order, OrderHistory
from order_lifecycle.models.status import OrderStatus, normalize_status
from order_lifecycle.services import cancellation_policy, history_service, transition_policy
from order_lifecycle.services.errors import (
    ConflictError,
    CustomerForbiddenError,
    InvalidTransitionError,
    ObservationRequiredError,
    OrderNotFoundError,
    PermissionDeniedError,
    StorageFailureError,
    TransitionError,
)
from order_lifecycle.services.order_status import apply_status, snapshot
from order_lifecycle.services.permissions import Actor, PermissionGate, RolePermissionGate
from order_lifecycle.utils.time import Clock, SystemClock

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Outcome:
    """Result of an applied (or replayed) transition."""

    previous_status: OrderStatus | None
    new_status: OrderStatus
    history_entry_id: int

    @classmethod
    def from_entry(cls, entry: OrderHistory) -> "Outcome":
        return cls(previous_status=entry.prev_status, new_status=entry.new_status, history_entry_id=entry.id)


def _clean_observation(observation: str | None) -> str | None:
    if observation is None:
        return None
    return observation.strip() or None


class TransitionService:
    """Single entry point for changing an order's lifecycle stage.

    Every call is one short unit of work on the given session: the order row
    is read with a row lock (and guarded by its version counter), checked
    against the transition rules and the permission gate, then updated
    together with a new history entry in a single commit.
    """

    def __init__(
        self,
        db: Session,
        *,
        gate: PermissionGate | None = None,
        clock: Clock | None = None,
        max_retries: int | None = None,
        retry_backoff_seconds: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.db = db
        self.gate = gate or RolePermissionGate()
        self.clock = clock or SystemClock()
        self.max_retries = settings.transition_max_retries if max_retries is None else max_retries
        self.retry_backoff_seconds = (
            settings.transition_retry_backoff_seconds if retry_backoff_seconds is None else retry_backoff_seconds
        )
        self._sleep = sleep

    # Queries

    def get_order(self, order_id: int, tenant_id: str) -> Order:
        order = self.db.scalar(select(Order).where(Order.id == order_id, Order.tenant_id == tenant_id).limit(1))
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    def get_history(self, order_id: int, tenant_id: str) -> list[OrderHistory]:
        self.get_order(order_id, tenant_id)
        return history_service.query(self.db, order_id, tenant_id)

    def get_allowed_actions(self, order_id: int, actor: Actor, tenant_id: str) -> frozenset[OrderStatus]:
        """Return the targets this actor could move the order to right now."""
        order = self.get_order(order_id, tenant_id)
        current = order.status
        targets = {
            target
            for target in transition_policy.allowed_targets(current)
            if self.gate.check(actor, tenant_id, current, target)
        }
        if actor.is_customer:
            targets = {target for target in targets if transition_policy.is_customer_allowed(current, target)}
        return frozenset(targets)

    # Commands

    def create_order(self, tenant_id: str, actor: Actor | None = None) -> Order:
        """Insert a pending order together with its seed history entry."""
        creator = actor or Actor.system()

        def _create() -> Order:
            now = self.clock.now()
            order = Order(tenant_id=tenant_id, status=OrderStatus.PENDING, created_at=now, status_updated_at=now)
            self.db.add(order)
            self.db.flush()
            history_service.append(
                self.db,
                order_id=order.id,
                tenant_id=tenant_id,
                prev_status=None,
                new_status=OrderStatus.PENDING,
                actor_id=creator.id,
                actor_name=creator.name,
                observation=None,
                created_at=now,
                metadata={"actor_role": creator.role.value, "reversal": False},
            )
            self.db.commit()
            self.db.refresh(order)
            logger.info("[TRANSITION] order_id=%s created tenant_id=%s", order.id, tenant_id)
            return order

        return self._with_retries("create_order", _create)

    def transition(
        self,
        order_id: int,
        actor: Actor,
        new_status: OrderStatus | str,
        observation: str | None = None,
        idempotency_key: str | None = None,
        *,
        tenant_id: str,
    ) -> Outcome:
        """Move an order to ``new_status`` or raise a TransitionError subclass."""
        target = normalize_status(new_status)
        key = idempotency_key.strip() if idempotency_key else None
        return self._with_retries(
            "transition",
            lambda: self._transition_once(order_id, actor, target, _clean_observation(observation), key or None, tenant_id),
        )

    def accept(self, order_id: int, actor: Actor, *, tenant_id: str, idempotency_key: str | None = None) -> Outcome:
        return self.transition(order_id, actor, OrderStatus.ACCEPTED, idempotency_key=idempotency_key, tenant_id=tenant_id)

    def start_preparing(self, order_id: int, actor: Actor, *, tenant_id: str, idempotency_key: str | None = None) -> Outcome:
        return self.transition(order_id, actor, OrderStatus.PREPARING, idempotency_key=idempotency_key, tenant_id=tenant_id)

    def mark_ready(self, order_id: int, actor: Actor, *, tenant_id: str, idempotency_key: str | None = None) -> Outcome:
        return self.transition(order_id, actor, OrderStatus.READY, idempotency_key=idempotency_key, tenant_id=tenant_id)

    def dispatch(self, order_id: int, actor: Actor, *, tenant_id: str, idempotency_key: str | None = None) -> Outcome:
        return self.transition(
            order_id, actor, OrderStatus.OUT_FOR_DELIVERY, idempotency_key=idempotency_key, tenant_id=tenant_id
        )

    def complete(self, order_id: int, actor: Actor, *, tenant_id: str, idempotency_key: str | None = None) -> Outcome:
        return self.transition(order_id, actor, OrderStatus.COMPLETED, idempotency_key=idempotency_key, tenant_id=tenant_id)

    def cancel(
        self,
        order_id: int,
        actor: Actor,
        reason: str | None = None,
        *,
        tenant_id: str,
        idempotency_key: str | None = None,
    ) -> Outcome:
        return self.transition(
            order_id, actor, OrderStatus.CANCELLED, reason, idempotency_key=idempotency_key, tenant_id=tenant_id
        )

    # Internals

    def _load_for_update(self, order_id: int, tenant_id: str) -> Order:
        order = self.db.scalar(
            select(Order)
            .where(Order.id == order_id, Order.tenant_id == tenant_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    def _ensure_allowed(self, order: Order, actor: Actor, target: OrderStatus, observation: str | None) -> None:
        current = order.status
        if not self.gate.check(actor, order.tenant_id, current, target):
            raise PermissionDeniedError(current, target)
        if actor.is_customer and not transition_policy.is_customer_allowed(current, target):
            raise CustomerForbiddenError(current, target)
        if not transition_policy.is_allowed(current, target):
            raise InvalidTransitionError(current, target)
        if transition_policy.requires_observation(current, target) and observation is None:
            raise ObservationRequiredError(current, target)

    def _transition_once(
        self,
        order_id: int,
        actor: Actor,
        target: OrderStatus,
        observation: str | None,
        idempotency_key: str | None,
        tenant_id: str,
    ) -> Outcome:
        try:
            order = self._load_for_update(order_id, tenant_id)
            if idempotency_key is not None:
                recorded = history_service.find_by_idempotency_key(self.db, order_id, tenant_id, idempotency_key)
                if recorded is not None:
                    outcome = Outcome.from_entry(recorded)
                    self.db.rollback()
                    logger.info("[TRANSITION] order_id=%s replayed idempotency_key=%s", order_id, idempotency_key)
                    return outcome

            self._ensure_allowed(order, actor, target, observation)

            previous = order.status
            now = self.clock.now()
            reason: str | None = None
            if target == OrderStatus.CANCELLED:
                reason = cancellation_policy.resolve_reason(observation) or settings.cancellation_placeholder_reason

            apply_status(order, target, now, reason)
            entry = history_service.append(
                self.db,
                order_id=order.id,
                tenant_id=tenant_id,
                prev_status=previous,
                new_status=target,
                actor_id=actor.id,
                actor_name=actor.name,
                observation=observation,
                created_at=now,
                metadata={
                    "actor_role": actor.role.value,
                    "actor_class": actor.actor_class,
                    "reversal": transition_policy.is_reversal(previous, target),
                    "stages": snapshot(order),
                },
                idempotency_key=idempotency_key,
            )
            self.db.flush()
            outcome = Outcome(previous_status=previous, new_status=target, history_entry_id=entry.id)
            self.db.commit()
        except TransitionError as exc:
            self.db.rollback()
            logger.info("[TRANSITION] order_id=%s rejected code=%s: %s", order_id, exc.code, exc.message)
            raise
        except (StaleDataError, IntegrityError) as exc:
            return self._replay_or_conflict(order_id, tenant_id, idempotency_key, exc)

        logger.info(
            "[TRANSITION] order_id=%s %s -> %s actor=%s role=%s",
            order_id,
            previous.value,
            target.value,
            actor.name,
            actor.role.value,
        )
        return outcome

    def _is_transient(self, exc: DBAPIError) -> bool:
        """Only dropped connections are retried; schema or SQL faults are not."""
        if exc.connection_invalidated:
            return True
        dialect = self.db.get_bind().dialect
        return dialect.is_disconnect(exc.orig, None, None)

    def _replay_or_conflict(self, order_id: int, tenant_id: str, idempotency_key: str | None, exc: Exception) -> Outcome:
        self.db.rollback()
        if idempotency_key is not None:
            recorded = history_service.find_by_idempotency_key(self.db, order_id, tenant_id, idempotency_key)
            if recorded is not None:
                outcome = Outcome.from_entry(recorded)
                self.db.rollback()
                logger.info("[TRANSITION] order_id=%s concurrent duplicate idempotency_key=%s", order_id, idempotency_key)
                return outcome
        logger.warning("[TRANSITION] order_id=%s lost race to a concurrent writer", order_id)
        raise ConflictError(order_id) from exc

    def _with_retries(self, operation: str, func: Callable[[], T]) -> T:
        attempt = 0
        while True:
            try:
                return func()
            except DBAPIError as exc:
                self.db.rollback()
                if not self._is_transient(exc):
                    raise
                if attempt >= self.max_retries:
                    logger.error("[TRANSITION] %s failed after %s retries: %s", operation, attempt, exc)
                    raise StorageFailureError() from exc
                delay = self.retry_backoff_seconds * (2**attempt)
                attempt += 1
                logger.warning(
                    "[TRANSITION] %s hit transient storage error, retry %s/%s in %.2fs",
                    operation,
                    attempt,
                    self.max_retries,
                    delay,
                )
                self._sleep(delay)
