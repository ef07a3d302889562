"""Order history ledger helpers."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from order_lifecycle.models import OrderHistory
from order_lifecycle.models.status import OrderStatus
from order_lifecycle.services import transition_policy
from order_lifecycle.utils.time import ensure_utc

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TimelineEntry:
    """History entry prepared for display."""

    id: int
    prev_status: OrderStatus | None
    prev_label: str | None
    new_status: OrderStatus
    new_label: str
    actor_name: str
    observation: str | None
    created_at: datetime
    reversal: bool


def append(
    db: Session,
    *,
    order_id: int,
    tenant_id: str,
    prev_status: OrderStatus | None,
    new_status: OrderStatus,
    actor_id: str | None,
    actor_name: str,
    observation: str | None,
    created_at: datetime,
    metadata: dict[str, Any] | None = None,
    idempotency_key: str | None = None,
) -> OrderHistory:
    """Stage a new ledger row; the caller owns the transaction."""
    logger.debug(
        "[HISTORY] order_id=%s %s -> %s actor=%s",
        order_id,
        prev_status.value if prev_status is not None else None,
        new_status.value,
        actor_name,
    )
    entry = OrderHistory(
        order_id=order_id,
        tenant_id=tenant_id,
        prev_status=prev_status,
        new_status=new_status,
        actor_id=actor_id,
        actor_name=actor_name,
        observation=observation,
        created_at=created_at,
        metadata_=metadata or {},
        idempotency_key=idempotency_key,
    )
    db.add(entry)
    return entry


def query(db: Session, order_id: int, tenant_id: str) -> list[OrderHistory]:
    """Return the order's entries oldest first."""
    return list(
        db.scalars(
            select(OrderHistory)
            .where(OrderHistory.order_id == order_id, OrderHistory.tenant_id == tenant_id)
            .order_by(OrderHistory.created_at.asc(), OrderHistory.id.asc())
        ).all()
    )


def find_by_idempotency_key(db: Session, order_id: int, tenant_id: str, idempotency_key: str) -> OrderHistory | None:
    return db.scalar(
        select(OrderHistory)
        .where(
            OrderHistory.order_id == order_id,
            OrderHistory.tenant_id == tenant_id,
            OrderHistory.idempotency_key == idempotency_key,
        )
        .limit(1)
    )


def dwell_times(entries: Sequence[OrderHistory], now: datetime) -> dict[OrderStatus, float]:
    """Sum seconds spent in each status across every visit.

    The latest status keeps accruing until ``now`` unless it is terminal.
    """
    totals: dict[OrderStatus, float] = {}
    for current, following in zip(entries, entries[1:]):
        elapsed = (ensure_utc(following.created_at) - ensure_utc(current.created_at)).total_seconds()
        totals[current.new_status] = totals.get(current.new_status, 0.0) + elapsed

    if entries:
        last = entries[-1]
        open_seconds = 0.0
        if not transition_policy.is_terminal(last.new_status):
            open_seconds = max((ensure_utc(now) - ensure_utc(last.created_at)).total_seconds(), 0.0)
        totals[last.new_status] = totals.get(last.new_status, 0.0) + open_seconds
    return totals


def last_reversal(entries: Sequence[OrderHistory]) -> OrderHistory | None:
    """Return the most recent backward or reactivating entry."""
    for entry in reversed(entries):
        if entry.prev_status is not None and transition_policy.is_reversal(entry.prev_status, entry.new_status):
            return entry
    return None


def timeline(entries: Sequence[OrderHistory]) -> list[TimelineEntry]:
    return [
        TimelineEntry(
            id=entry.id,
            prev_status=entry.prev_status,
            prev_label=entry.prev_status.label if entry.prev_status is not None else None,
            new_status=entry.new_status,
            new_label=entry.new_status.label,
            actor_name=entry.actor_name,
            observation=entry.observation,
            created_at=entry.created_at,
            reversal=entry.prev_status is not None and transition_policy.is_reversal(entry.prev_status, entry.new_status),
        )
        for entry in entries
    ]
