"""Schema exports."""

from order_lifecycle.schemas.order import (
    AllowedActionsResponse,
    CancellationStatusResponse,
    HistoryEntryResponse,
    OrderResponse,
    OutcomeResponse,
    TimelineEntryResponse,
    TimelineResponse,
    TransitionRequest,
)

__all__ = [
    "AllowedActionsResponse",
    "CancellationStatusResponse",
    "HistoryEntryResponse",
    "OrderResponse",
    "OutcomeResponse",
    "TimelineEntryResponse",
    "TimelineResponse",
    "TransitionRequest",
]
