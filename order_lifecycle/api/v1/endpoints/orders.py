"""Order lifecycle endpoints."""

from fastapi import APIRouter, Depends, Header, HTTPException
from sqlalchemy.orm import Session

from order_lifecycle.core.security import get_current_actor
from order_lifecycle.db.session import get_db
from order_lifecycle.models import Order
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
from order_lifecycle.services import cancellation_policy, history_service
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
from order_lifecycle.services.permissions import Actor
from order_lifecycle.services.transition_service import TransitionService

router: APIRouter = APIRouter()

ERROR_STATUS_CODES: dict[type[TransitionError], int] = {
    OrderNotFoundError: 404,
    PermissionDeniedError: 403,
    CustomerForbiddenError: 403,
    InvalidTransitionError: 409,
    ObservationRequiredError: 422,
    ConflictError: 409,
    StorageFailureError: 503,
}


def get_transition_service(db: Session = Depends(get_db)) -> TransitionService:
    return TransitionService(db)


def _to_http(exc: TransitionError) -> HTTPException:
    """Translate a service failure into a response the caller can render."""
    current = getattr(exc, "current", None)
    requested = getattr(exc, "requested", None)
    return HTTPException(
        status_code=ERROR_STATUS_CODES.get(type(exc), 400),
        detail={
            "code": exc.code,
            "message": exc.message,
            "current_status": current.value if current is not None else None,
            "requested_status": requested.value if requested is not None else None,
        },
    )


def _tenant(actor: Actor) -> str:
    # Tokens without a tenant are rejected during authentication.
    return str(actor.tenant_id)


@router.post("", response_model=OrderResponse, status_code=201)
def create_order(
    actor: Actor = Depends(get_current_actor),
    service: TransitionService = Depends(get_transition_service),
) -> Order:
    try:
        return service.create_order(_tenant(actor), actor=actor)
    except TransitionError as exc:
        raise _to_http(exc) from exc


@router.get("/{order_id}", response_model=OrderResponse)
def get_order(
    order_id: int,
    actor: Actor = Depends(get_current_actor),
    service: TransitionService = Depends(get_transition_service),
) -> Order:
    try:
        return service.get_order(order_id, _tenant(actor))
    except TransitionError as exc:
        raise _to_http(exc) from exc


@router.post("/{order_id}/transitions", response_model=OutcomeResponse)
def transition_order(
    order_id: int,
    payload: TransitionRequest,
    idempotency_key: str | None = Header(default=None, alias="Idempotency-Key"),
    actor: Actor = Depends(get_current_actor),
    service: TransitionService = Depends(get_transition_service),
) -> OutcomeResponse:
    try:
        outcome = service.transition(
            order_id,
            actor,
            payload.new_status,
            payload.observation,
            payload.idempotency_key or idempotency_key,
            tenant_id=_tenant(actor),
        )
    except TransitionError as exc:
        raise _to_http(exc) from exc
    return OutcomeResponse.model_validate(outcome)


@router.get("/{order_id}/history", response_model=list[HistoryEntryResponse])
def get_order_history(
    order_id: int,
    actor: Actor = Depends(get_current_actor),
    service: TransitionService = Depends(get_transition_service),
) -> list[HistoryEntryResponse]:
    try:
        entries = service.get_history(order_id, _tenant(actor))
    except TransitionError as exc:
        raise _to_http(exc) from exc
    return [HistoryEntryResponse.model_validate(entry) for entry in entries]


@router.get("/{order_id}/allowed-actions", response_model=AllowedActionsResponse)
def get_allowed_actions(
    order_id: int,
    actor: Actor = Depends(get_current_actor),
    service: TransitionService = Depends(get_transition_service),
) -> AllowedActionsResponse:
    try:
        order = service.get_order(order_id, _tenant(actor))
        allowed = service.get_allowed_actions(order_id, actor, _tenant(actor))
    except TransitionError as exc:
        raise _to_http(exc) from exc
    return AllowedActionsResponse(
        order_id=order.id,
        status=order.status,
        allowed=sorted(allowed, key=lambda target: target.value),
    )


@router.get("/{order_id}/timeline", response_model=TimelineResponse)
def get_order_timeline(
    order_id: int,
    actor: Actor = Depends(get_current_actor),
    service: TransitionService = Depends(get_transition_service),
) -> TimelineResponse:
    try:
        order = service.get_order(order_id, _tenant(actor))
        entries = service.get_history(order_id, _tenant(actor))
    except TransitionError as exc:
        raise _to_http(exc) from exc
    reversal = history_service.last_reversal(entries)
    return TimelineResponse(
        order_id=order.id,
        status=order.status,
        entries=[TimelineEntryResponse.model_validate(item) for item in history_service.timeline(entries)],
        dwell_seconds=history_service.dwell_times(entries, service.clock.now()),
        last_reversal_observation=reversal.observation if reversal is not None else None,
    )


@router.get("/{order_id}/cancellation", response_model=CancellationStatusResponse)
def get_cancellation_status(
    order_id: int,
    actor: Actor = Depends(get_current_actor),
    service: TransitionService = Depends(get_transition_service),
) -> CancellationStatusResponse:
    try:
        order = service.get_order(order_id, _tenant(actor))
    except TransitionError as exc:
        raise _to_http(exc) from exc
    return CancellationStatusResponse(
        order_id=order.id,
        status=order.status,
        can_cancel=cancellation_policy.can_customer_cancel(order),
        reason=cancellation_policy.reason_if_blocked(order.status),
        notice=cancellation_policy.notice(order.status),
    )
