"""Order lifecycle API schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from order_lifecycle.models.status import OrderStatus


class TransitionRequest(BaseModel):
    """Requested status change."""

    new_status: OrderStatus
    observation: str | None = Field(default=None, max_length=2000)
    idempotency_key: str | None = Field(default=None, max_length=128)


class OutcomeResponse(BaseModel):
    """Applied transition."""

    previous_status: OrderStatus | None
    new_status: OrderStatus
    history_entry_id: int

    model_config = ConfigDict(from_attributes=True)


class OrderResponse(BaseModel):
    """Serialized order with its stage timestamps."""

    id: int
    tenant_id: str
    status: OrderStatus
    created_at: datetime
    status_updated_at: datetime | None
    accepted_at: datetime | None
    preparing_at: datetime | None
    ready_at: datetime | None
    out_for_delivery_at: datetime | None
    completed_at: datetime | None
    cancelled_at: datetime | None
    cancellation_reason: str | None

    model_config = ConfigDict(from_attributes=True)


class HistoryEntryResponse(BaseModel):
    """Serialized history ledger row."""

    id: int
    order_id: int
    prev_status: OrderStatus | None
    new_status: OrderStatus
    actor_id: str | None
    actor_name: str
    observation: str | None
    created_at: datetime
    metadata: dict[str, Any] = Field(default_factory=dict, validation_alias="metadata_")

    model_config = ConfigDict(from_attributes=True)


class TimelineEntryResponse(BaseModel):
    """History entry with display labels."""

    id: int
    prev_status: OrderStatus | None
    prev_label: str | None
    new_status: OrderStatus
    new_label: str
    actor_name: str
    observation: str | None
    created_at: datetime
    reversal: bool

    model_config = ConfigDict(from_attributes=True)


class TimelineResponse(BaseModel):
    """Order timeline, time spent per status and latest reversal note."""

    order_id: int
    status: OrderStatus
    entries: list[TimelineEntryResponse]
    dwell_seconds: dict[OrderStatus, float]
    last_reversal_observation: str | None


class AllowedActionsResponse(BaseModel):
    order_id: int
    status: OrderStatus
    allowed: list[OrderStatus]


class CancellationStatusResponse(BaseModel):
    """Whether the customer may still cancel, with display hints."""

    order_id: int
    status: OrderStatus
    can_cancel: bool
    reason: str | None
    notice: str | None
