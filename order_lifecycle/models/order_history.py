"""Append-only ledger of order status transitions."""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from order_lifecycle.db.base import Base
from order_lifecycle.models.status import OrderStatus, order_status_type


class OrderHistory(Base):
    """One row per applied transition; never updated or deleted."""

    __tablename__ = "order_history"

    id: Mapped[int] = mapped_column(primary_key=True)
    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id"), nullable=False)
    tenant_id: Mapped[str] = mapped_column(String(64), nullable=False)
    prev_status: Mapped[OrderStatus | None] = mapped_column(order_status_type(), nullable=True)
    new_status: Mapped[OrderStatus] = mapped_column(order_status_type(), nullable=False)
    # Null actor_id denotes an automated/system actor.
    actor_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    actor_name: Mapped[str] = mapped_column(String(255), nullable=False)
    observation: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    metadata_: Mapped[dict[str, Any]] = mapped_column("metadata", JSON, nullable=False, default=dict)
    idempotency_key: Mapped[str | None] = mapped_column(String(128), nullable=True)

    __table_args__ = (
        Index("ix_order_history_order_created", "order_id", "created_at"),
        Index("uq_order_history_order_idempotency", "order_id", "idempotency_key", unique=True),
    )
