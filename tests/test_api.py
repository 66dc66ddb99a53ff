from __future__ import annotations

import threading
from datetime import datetime, timedelta

from fastapi.testclient import TestClient

from device_approval.api.app import create_app
from device_approval.sweeper import ExpirationSweeper

AID = "AID1234567890"


class _BlockingEngine:
    def __init__(self) -> None:
        self.entered = threading.Event()
        self.release = threading.Event()
        self.calls = 0

    def process_expired_devices(self):
        self.calls += 1
        self.entered.set()
        self.release.wait(timeout=5)
        return []


def _register(client, android_id: str = AID, email: str = "a@x.com"):
    return client.post("/api/v1/devices/register", json={"email": email, "android_id": android_id})


def test_register_returns_pending_device(client) -> None:
    response = _register(client)

    assert response.status_code == 201
    body = response.json()
    assert body["android_id"] == AID
    assert body["email"] == "a@x.com"
    assert body["is_approved"] is False
    assert body["expires_at"] is None


def test_register_duplicate_is_bad_request(client) -> None:
    _register(client)

    response = _register(client, email="b@x.com")

    assert response.status_code == 400
    assert "already exists" in response.json()["detail"]


def test_register_validates_input(client) -> None:
    assert _register(client, email="not-an-email").status_code == 422
    assert _register(client, android_id="short").status_code == 422


def test_approve_and_extend(client, clock) -> None:
    _register(client)

    response = client.patch(f"/api/v1/devices/{AID}/approve", json={"action_by": "alice"})
    assert response.status_code == 200
    approved = response.json()
    assert approved["is_approved"] is True
    assert datetime.fromisoformat(approved["expires_at"]) == clock.now + timedelta(days=3)

    response = client.patch(f"/api/v1/devices/{AID}/extend", json={"additional_days": 2})
    assert response.status_code == 200
    assert datetime.fromisoformat(response.json()["expires_at"]) == clock.now + timedelta(days=5)


def test_extend_pending_device_is_bad_request(client) -> None:
    _register(client)

    response = client.patch(f"/api/v1/devices/{AID}/extend", json={})

    assert response.status_code == 400
    assert response.json()["detail"] == "Cannot extend approval for non-approved device"


def test_extend_validates_days(client) -> None:
    _register(client)

    response = client.patch(f"/api/v1/devices/{AID}/extend", json={"additional_days": 400})

    assert response.status_code == 422


def test_approve_unknown_device_is_bad_request(client) -> None:
    response = client.patch(f"/api/v1/devices/{AID}/approve", json={})

    assert response.status_code == 400
    assert response.json()["detail"] == "Device not found"


def test_disable_returns_snapshot(client) -> None:
    _register(client)
    client.patch(f"/api/v1/devices/{AID}/approve", json={})

    response = client.patch(f"/api/v1/devices/{AID}/disable", json={"action_by": "alice", "notes": "stolen"})

    assert response.status_code == 200
    body = response.json()
    assert body["was_approved"] is True
    assert body["disabled_by"] == "alice"
    assert body["disable_reason"] == "stolen"

    assert client.get(f"/api/v1/devices/{AID}").status_code == 404
    disabled = client.get("/api/v1/devices/disabled").json()
    assert disabled["total"] == 1
    assert disabled["items"][0]["android_id"] == AID


def test_reject_approved_device_is_bad_request(client) -> None:
    _register(client)
    client.patch(f"/api/v1/devices/{AID}/approve", json={})

    response = client.patch(f"/api/v1/devices/{AID}/reject", json={})

    assert response.status_code == 400
    assert "Please disable it instead" in response.json()["detail"]


def test_reject_then_register_again(client) -> None:
    _register(client)

    response = client.patch(f"/api/v1/devices/{AID}/reject", json={"notes": "unknown"})
    assert response.status_code == 200
    assert response.json()["rejection_reason"] == "unknown"

    rejected = client.get("/api/v1/devices/rejected").json()
    assert [d["android_id"] for d in rejected["items"]] == [AID]

    response = _register(client, email="other@x.com")
    assert response.status_code == 400
    assert "previously rejected" in response.json()["detail"]


def test_reapprove_disabled_device(client) -> None:
    registered = _register(client).json()
    client.patch(f"/api/v1/devices/{AID}/disable", json={})

    response = client.patch(f"/api/v1/devices/disabled/{AID}/approve", json={"action_by": "alice"})

    assert response.status_code == 200
    body = response.json()
    assert body["is_approved"] is True
    assert body["created_at"] == registered["created_at"]

    response = client.patch(f"/api/v1/devices/disabled/{AID}/approve", json={})
    assert response.status_code == 400


def test_status_check_expires_lazily(client, clock) -> None:
    _register(client)
    client.patch(f"/api/v1/devices/{AID}/approve", json={})

    response = client.get(f"/api/v1/devices/{AID}/status")
    assert response.status_code == 200
    assert response.json()["is_approved"] is True

    clock.advance(days=4)
    response = client.get(f"/api/v1/devices/{AID}/approved")
    assert response.status_code == 200
    assert response.json()["is_approved"] is False
    assert response.json()["message"] == "Device is not approved"

    body = client.get(f"/api/v1/devices/{AID}/status").json()
    assert body["status"] == "disabled"
    disabled = client.get("/api/v1/devices/disabled").json()["items"]
    assert "expiration" in disabled[0]["disable_reason"]


def test_status_check_unknown_device(client) -> None:
    assert client.get(f"/api/v1/devices/{AID}/status").status_code == 404
    assert client.get(f"/api/v1/devices/{AID}/approved").status_code == 404


def test_history_is_kept_after_disable(client) -> None:
    _register(client)
    client.patch(f"/api/v1/devices/{AID}/approve", json={})
    client.patch(f"/api/v1/devices/{AID}/disable", json={})

    response = client.get(f"/api/v1/devices/{AID}/history")

    assert response.status_code == 200
    assert [h["action"] for h in response.json()] == ["registered", "approved", "disabled"]
    assert client.get("/api/v1/devices/AIDMISSING000/history").status_code == 404


def test_process_expired_endpoint(client, clock) -> None:
    _register(client)
    _register(client, android_id="AID0987654321", email="b@x.com")
    client.patch(f"/api/v1/devices/{AID}/approve", json={})
    clock.advance(days=3, minutes=1)

    response = client.post("/api/v1/devices/process-expired")

    assert response.status_code == 200
    assert response.json() == {
        "processed": 1,
        "results": [{"android_id": AID, "status": "disabled", "error": None}],
    }


def test_process_expired_endpoint_runs_through_sweeper(facade, engine, clock) -> None:
    client = TestClient(create_app(facade, ExpirationSweeper(engine)))
    _register(client)
    client.patch(f"/api/v1/devices/{AID}/approve", json={})
    clock.advance(days=3, minutes=1)

    response = client.post("/api/v1/devices/process-expired")

    assert response.status_code == 200
    assert response.json()["results"] == [{"android_id": AID, "status": "disabled", "error": None}]


def test_process_expired_endpoint_conflicts_with_running_sweep(facade) -> None:
    sweep_engine = _BlockingEngine()
    sweeper = ExpirationSweeper(sweep_engine)
    client = TestClient(create_app(facade, sweeper))
    background = threading.Thread(target=sweeper.run_once)
    background.start()
    try:
        assert sweep_engine.entered.wait(timeout=5)

        response = client.post("/api/v1/devices/process-expired")
    finally:
        sweep_engine.release.set()
        background.join(timeout=5)

    assert response.status_code == 409
    assert response.json()["detail"] == "Expiration sweep already running"
    assert sweep_engine.calls == 1


def test_path_android_id_length_is_validated(client) -> None:
    assert client.get("/api/v1/devices/short/status").status_code == 422
    assert client.get("/api/v1/devices/short/history").status_code == 422
    assert client.patch("/api/v1/devices/short/approve", json={}).status_code == 422
    assert client.get(f"/api/v1/devices/{'A' * 101}").status_code == 422


def test_list_devices_and_stats(client) -> None:
    _register(client)
    _register(client, android_id="AID0987654321", email="b@x.com")
    client.patch("/api/v1/devices/AID0987654321/approve", json={})

    listing = client.get("/api/v1/devices", params={"limit": 1}).json()
    assert listing["total"] == 2
    assert listing["limit"] == 1
    assert [d["android_id"] for d in listing["items"]] == [AID]

    stats = client.get("/api/v1/stats").json()
    assert stats == {
        "pending_devices": 1,
        "approved_devices": 1,
        "disabled_devices": 0,
        "rejected_devices": 0,
    }


def test_health(client) -> None:
    response = client.get("/api/v1/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["service"] == "device-approval"
