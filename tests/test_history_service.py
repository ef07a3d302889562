"""History ledger query helper tests."""

from datetime import datetime, timedelta, timezone

from order_lifecycle.models import OrderHistory
from order_lifecycle.models.status import OrderStatus
from order_lifecycle.services import history_service

START = datetime(2026, 3, 1, 18, 0, tzinfo=timezone.utc)


def _entry(entry_id: int, prev: OrderStatus | None, new: OrderStatus, minutes: int, observation: str | None = None) -> OrderHistory:
    return OrderHistory(
        id=entry_id,
        order_id=1,
        tenant_id="t1",
        prev_status=prev,
        new_status=new,
        actor_id="u1",
        actor_name="Alice",
        observation=observation,
        created_at=START + timedelta(minutes=minutes),
        metadata_={},
    )


def test_dwell_times_sum_repeated_visits() -> None:
    entries = [
        _entry(1, None, OrderStatus.PENDING, 0),
        _entry(2, OrderStatus.PENDING, OrderStatus.ACCEPTED, 5),
        _entry(3, OrderStatus.ACCEPTED, OrderStatus.PENDING, 7, "wrong address"),
        _entry(4, OrderStatus.PENDING, OrderStatus.ACCEPTED, 10),
    ]

    totals = history_service.dwell_times(entries, START + timedelta(minutes=20))

    assert totals[OrderStatus.PENDING] == 8 * 60
    assert totals[OrderStatus.ACCEPTED] == 2 * 60 + 10 * 60


def test_dwell_times_stop_at_terminal_status() -> None:
    entries = [
        _entry(1, None, OrderStatus.PENDING, 0),
        _entry(2, OrderStatus.PENDING, OrderStatus.ACCEPTED, 1),
        _entry(3, OrderStatus.ACCEPTED, OrderStatus.PREPARING, 2),
        _entry(4, OrderStatus.PREPARING, OrderStatus.READY, 12),
        _entry(5, OrderStatus.READY, OrderStatus.OUT_FOR_DELIVERY, 15),
        _entry(6, OrderStatus.OUT_FOR_DELIVERY, OrderStatus.COMPLETED, 40),
    ]

    totals = history_service.dwell_times(entries, START + timedelta(hours=5))

    assert totals[OrderStatus.PREPARING] == 10 * 60
    assert totals[OrderStatus.OUT_FOR_DELIVERY] == 25 * 60
    assert totals[OrderStatus.COMPLETED] == 0


def test_dwell_times_accept_naive_timestamps() -> None:
    entry = _entry(1, None, OrderStatus.PENDING, 0)
    entry.created_at = entry.created_at.replace(tzinfo=None)

    totals = history_service.dwell_times([entry], START + timedelta(minutes=3))

    assert totals == {OrderStatus.PENDING: 180}


def test_dwell_times_empty_history() -> None:
    assert history_service.dwell_times([], START) == {}


def test_last_reversal_returns_latest_justification() -> None:
    entries = [
        _entry(1, None, OrderStatus.PENDING, 0),
        _entry(2, OrderStatus.PENDING, OrderStatus.CANCELLED, 1, "changed my mind"),
        _entry(3, OrderStatus.CANCELLED, OrderStatus.PENDING, 2, "customer called back"),
        _entry(4, OrderStatus.PENDING, OrderStatus.ACCEPTED, 3),
        _entry(5, OrderStatus.ACCEPTED, OrderStatus.PENDING, 4, "payment not confirmed"),
        _entry(6, OrderStatus.PENDING, OrderStatus.ACCEPTED, 5),
    ]

    reversal = history_service.last_reversal(entries)

    assert reversal is not None
    assert reversal.id == 5
    assert reversal.observation == "payment not confirmed"


def test_last_reversal_none_for_forward_only_history() -> None:
    entries = [_entry(1, None, OrderStatus.PENDING, 0), _entry(2, OrderStatus.PENDING, OrderStatus.ACCEPTED, 1)]

    assert history_service.last_reversal(entries) is None


def test_timeline_labels_entries() -> None:
    entries = [
        _entry(1, None, OrderStatus.PENDING, 0),
        _entry(2, OrderStatus.OUT_FOR_DELIVERY, OrderStatus.READY, 1, "wrong bag"),
    ]

    items = history_service.timeline(entries)

    assert items[0].prev_label is None
    assert items[0].new_label == "Pending"
    assert items[0].reversal is False
    assert items[1].prev_label == "Out for delivery"
    assert items[1].new_label == "Ready"
    assert items[1].reversal is True
