"""Integration tests for control-plane endpoints"""

import time
from decimal import Decimal
from unittest.mock import AsyncMock
import pytest
from fastapi.testclient import TestClient
from volume_guard.api.main import create_app
from volume_guard.domain.exceptions import TickInProgressError
from volume_guard.services.guard import VolumeGuard


@pytest.fixture
def guard(guard_config, store, notifier, transfer_log) -> VolumeGuard:
    return VolumeGuard(guard_config, store, notifier, transfer_log)


@pytest.fixture
def client(guard: VolumeGuard) -> TestClient:
    """Create FastAPI test client around a guard with fake collaborators"""
    app = create_app(guard=guard, start_scheduler=False, gateway_secret="")
    return TestClient(app)


@pytest.fixture
def secured_client(guard: VolumeGuard) -> TestClient:
    app = create_app(guard=guard, start_scheduler=False, gateway_secret="gw-secret")
    return TestClient(app)


def test_health_endpoint(client: TestClient):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["current_limit"] == 30.0


def test_metrics_endpoint(client: TestClient):
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "volume_guard_daily_limit" in response.text


def test_request_id_is_echoed(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"


def test_update_limit(client: TestClient, guard: VolumeGuard):
    """Test the new limit is visible to the next tick without restart"""
    response = client.post("/v1/limit", json={"new_limit": 50})

    assert response.status_code == 200
    assert response.json() == {"success": True, "new_limit": 50.0}
    assert guard.config.daily_limit == Decimal("50")


@pytest.mark.parametrize("payload", [{"new_limit": 0}, {"new_limit": -5}, {"new_limit": "abc"}, {}])
def test_update_limit_rejects_invalid_values(client: TestClient, guard: VolumeGuard, payload):
    response = client.post("/v1/limit", json=payload)

    assert response.status_code == 422
    assert guard.config.daily_limit == Decimal("30")


def test_gateway_token_required_when_configured(secured_client: TestClient):
    assert secured_client.post("/v1/limit", json={"new_limit": 40}).status_code == 403
    assert secured_client.post(
        "/v1/limit", json={"new_limit": 40}, headers={"Authorization": "Bearer wrong"}
    ).status_code == 403

    response = secured_client.post(
        "/v1/limit", json={"new_limit": 40}, headers={"Authorization": "Bearer gw-secret"}
    )
    assert response.status_code == 200


def test_stats_reports_live_volume(client: TestClient, store):
    store.add_charge("ch_1", 4200, created=int(time.time()))

    response = client.get("/v1/stats")

    assert response.status_code == 200
    data = response.json()
    assert data["gross_volume"] == 42.0
    assert data["currency"] == "aed"
    assert data["current_daily_limit"] == 30.0
    assert data["rescheduled_today"] == 0
    assert data["notified_today"] is False
    assert data["last_tick"] is None


def test_stats_unavailable_when_stripe_fails(client: TestClient, store):
    store.fail_events = True

    response = client.get("/v1/stats")

    assert response.status_code == 503


def test_run_tick_on_demand(client: TestClient, store, notifier):
    store.add_charge("ch_1", 4200, created=int(time.time()))

    response = client.post("/v1/ticks")

    assert response.status_code == 200
    data = response.json()
    assert data["breached"] is True
    assert data["gross_volume"] == 42.0
    assert data["batch"] == {"attempted": 0, "succeeded": 0, "failed": 0, "skipped": 0}
    assert len(notifier.messages) == 1

    stats = client.get("/v1/stats").json()
    assert stats["notified_today"] is True
    assert stats["last_tick"]["breached"] is True


def test_run_tick_conflict_when_busy(client: TestClient, guard: VolumeGuard):
    guard.run_tick = AsyncMock(side_effect=TickInProgressError("An evaluation tick is already running"))

    response = client.post("/v1/ticks")

    assert response.status_code == 409
