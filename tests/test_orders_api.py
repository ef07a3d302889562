"""HTTP tests for the order lifecycle endpoints."""

from pathlib import Path

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from order_lifecycle.core.security import create_access_token
from order_lifecycle.db import session as db_session
from order_lifecycle.db.base import Base
from order_lifecycle.main import app

TENANT = "sushi-7"


def _build_test_engine(db_file: Path) -> Engine:
    return create_engine(
        f"sqlite:///{db_file}",
        connect_args={"check_same_thread": False},
    )


def _prepare_db(tmp_path: Path, monkeypatch) -> None:
    engine = _build_test_engine(tmp_path / "test_orders_api.db")
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)
    monkeypatch.setattr(db_session, "engine", engine)
    monkeypatch.setattr(db_session, "SessionLocal", testing_session_local)


def _headers(role: str, sub: str = "u-1", name: str = "Nina", tenant_id: str = TENANT) -> dict[str, str]:
    token = create_access_token({"sub": sub, "name": name, "role": role, "tenant_id": tenant_id})
    return {"Authorization": f"Bearer {token}"}


def _create_order(client: TestClient) -> int:
    response = client.post("/api/v1/orders", headers=_headers("manager"))
    assert response.status_code == 201
    return response.json()["id"]


def test_manager_moves_order_forward(tmp_path: Path, monkeypatch) -> None:
    _prepare_db(tmp_path, monkeypatch)

    with TestClient(app) as client:
        order_id = _create_order(client)
        response = client.post(
            f"/api/v1/orders/{order_id}/transitions",
            json={"new_status": "accepted"},
            headers=_headers("manager"),
        )
        order_response = client.get(f"/api/v1/orders/{order_id}", headers=_headers("staff", sub="u-2"))

    assert response.status_code == 200
    body = response.json()
    assert body["previous_status"] == "pending"
    assert body["new_status"] == "accepted"
    assert isinstance(body["history_entry_id"], int)

    order = order_response.json()
    assert order["status"] == "accepted"
    assert order["accepted_at"] is not None
    assert order["cancelled_at"] is None


def test_reversal_without_observation_is_distinct_error(tmp_path: Path, monkeypatch) -> None:
    _prepare_db(tmp_path, monkeypatch)

    with TestClient(app) as client:
        order_id = _create_order(client)
        client.post(f"/api/v1/orders/{order_id}/transitions", json={"new_status": "accepted"}, headers=_headers("manager"))
        response = client.post(
            f"/api/v1/orders/{order_id}/transitions",
            json={"new_status": "pending", "observation": "  "},
            headers=_headers("manager"),
        )

    assert response.status_code == 422
    detail = response.json()["detail"]
    assert detail["code"] == "observation_required"
    assert detail["current_status"] == "accepted"
    assert detail["requested_status"] == "pending"


def test_invalid_transition_reports_both_statuses(tmp_path: Path, monkeypatch) -> None:
    _prepare_db(tmp_path, monkeypatch)

    with TestClient(app) as client:
        order_id = _create_order(client)
        response = client.post(
            f"/api/v1/orders/{order_id}/transitions",
            json={"new_status": "completed"},
            headers=_headers("manager"),
        )
        history = client.get(f"/api/v1/orders/{order_id}/history", headers=_headers("manager"))

    assert response.status_code == 409
    detail = response.json()["detail"]
    assert detail["code"] == "invalid_transition"
    assert detail["current_status"] == "pending"
    assert detail["requested_status"] == "completed"
    assert len(history.json()) == 1


def test_customer_forbidden_from_kitchen_transitions(tmp_path: Path, monkeypatch) -> None:
    _prepare_db(tmp_path, monkeypatch)

    with TestClient(app) as client:
        order_id = _create_order(client)
        response = client.post(
            f"/api/v1/orders/{order_id}/transitions",
            json={"new_status": "accepted"},
            headers=_headers("customer", sub="cust-1"),
        )

    assert response.status_code == 403
    detail = response.json()["detail"]
    assert detail["code"] == "customer_forbidden"
    assert detail["current_status"] == "pending"
    assert detail["requested_status"] == "accepted"


def test_customer_cancel_flow_and_allowed_actions(tmp_path: Path, monkeypatch) -> None:
    _prepare_db(tmp_path, monkeypatch)
    customer = _headers("customer", sub="cust-1", name="Kenji")

    with TestClient(app) as client:
        order_id = _create_order(client)
        allowed = client.get(f"/api/v1/orders/{order_id}/allowed-actions", headers=customer)
        before = client.get(f"/api/v1/orders/{order_id}/cancellation", headers=customer)
        cancel = client.post(
            f"/api/v1/orders/{order_id}/transitions",
            json={"new_status": "cancelled", "observation": "changed_mind"},
            headers=customer,
        )
        allowed_after = client.get(f"/api/v1/orders/{order_id}/allowed-actions", headers=customer)
        order = client.get(f"/api/v1/orders/{order_id}", headers=customer)

    assert allowed.json()["allowed"] == ["cancelled"]
    assert before.json()["can_cancel"] is True
    assert before.json()["notice"] is not None
    assert cancel.status_code == 200
    assert allowed_after.json()["allowed"] == []
    assert order.json()["cancellation_reason"] == "I changed my mind"


def test_cancellation_status_blocked_during_preparation(tmp_path: Path, monkeypatch) -> None:
    _prepare_db(tmp_path, monkeypatch)

    with TestClient(app) as client:
        order_id = _create_order(client)
        for target in ("accepted", "preparing"):
            client.post(f"/api/v1/orders/{order_id}/transitions", json={"new_status": target}, headers=_headers("staff"))
        response = client.get(f"/api/v1/orders/{order_id}/cancellation", headers=_headers("customer", sub="cust-1"))

    body = response.json()
    assert body["status"] == "preparing"
    assert body["can_cancel"] is False
    assert "in preparation" in body["reason"]


def test_idempotency_header_replays_outcome(tmp_path: Path, monkeypatch) -> None:
    _prepare_db(tmp_path, monkeypatch)
    headers = {**_headers("manager"), "Idempotency-Key": "retry-1"}

    with TestClient(app) as client:
        order_id = _create_order(client)
        first = client.post(f"/api/v1/orders/{order_id}/transitions", json={"new_status": "accepted"}, headers=headers)
        second = client.post(f"/api/v1/orders/{order_id}/transitions", json={"new_status": "accepted"}, headers=headers)
        history = client.get(f"/api/v1/orders/{order_id}/history", headers=headers)

    assert first.status_code == 200
    assert second.status_code == 200
    assert first.json() == second.json()
    assert len(history.json()) == 2


def test_history_and_timeline(tmp_path: Path, monkeypatch) -> None:
    _prepare_db(tmp_path, monkeypatch)
    manager = _headers("manager", name="Marta")

    with TestClient(app) as client:
        order_id = _create_order(client)
        client.post(f"/api/v1/orders/{order_id}/transitions", json={"new_status": "accepted"}, headers=manager)
        client.post(
            f"/api/v1/orders/{order_id}/transitions",
            json={"new_status": "pending", "observation": "address unclear"},
            headers=manager,
        )
        history = client.get(f"/api/v1/orders/{order_id}/history", headers=manager)
        timeline = client.get(f"/api/v1/orders/{order_id}/timeline", headers=manager)

    entries = history.json()
    assert [entry["new_status"] for entry in entries] == ["pending", "accepted", "pending"]
    assert entries[0]["prev_status"] is None
    assert entries[2]["observation"] == "address unclear"
    assert entries[2]["actor_name"] == "Marta"
    assert entries[2]["metadata"]["reversal"] is True

    body = timeline.json()
    assert body["status"] == "pending"
    assert body["last_reversal_observation"] == "address unclear"
    assert body["entries"][1]["new_label"] == "Accepted"
    assert set(body["dwell_seconds"]) == {"pending", "accepted"}


def test_other_tenant_cannot_see_order(tmp_path: Path, monkeypatch) -> None:
    _prepare_db(tmp_path, monkeypatch)

    with TestClient(app) as client:
        order_id = _create_order(client)
        response = client.get(f"/api/v1/orders/{order_id}", headers=_headers("manager", tenant_id="ramen-3"))
        transition = client.post(
            f"/api/v1/orders/{order_id}/transitions",
            json={"new_status": "accepted"},
            headers=_headers("manager", tenant_id="ramen-3"),
        )

    assert response.status_code == 404
    assert transition.status_code == 404
    assert transition.json()["detail"]["code"] == "not_found"


def test_requests_require_valid_token(tmp_path: Path, monkeypatch) -> None:
    _prepare_db(tmp_path, monkeypatch)

    with TestClient(app) as client:
        missing = client.post("/api/v1/orders")
        garbage = client.post("/api/v1/orders", headers={"Authorization": "Bearer not-a-token"})
        unknown_role = client.post("/api/v1/orders", headers=_headers("chef"))

    assert missing.status_code in {401, 403}
    assert garbage.status_code == 401
    assert unknown_role.status_code == 401


def test_unknown_status_is_rejected_by_validation(tmp_path: Path, monkeypatch) -> None:
    _prepare_db(tmp_path, monkeypatch)

    with TestClient(app) as client:
        order_id = _create_order(client)
        response = client.post(
            f"/api/v1/orders/{order_id}/transitions",
            json={"new_status": "teleported"},
            headers=_headers("manager"),
        )

    assert response.status_code == 422
