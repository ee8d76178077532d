"""
API tests for the tracking service, run in-process against a SQLite database
"""

import pytest
from fastapi.testclient import TestClient
from tracking_service.main import app
from tracking_service.api.auth import create_access_token
from tracking_service.core_settings import get_settings

ADMIN_TOKEN = "test-admin-token"

def test_root_and_health():
    client = TestClient(app)
    assert client.get('/').json()["service"] == "tracking-service"
    resp = client.get('/health')
    assert resp.status_code == 200
    assert resp.json()["status"] == "pass"
    assert client.get('/health/live').json() == {"status": "alive"}
    ready = client.get('/health/ready')
    assert ready.status_code in [200, 503]
    assert ready.json()["checks"]["database:connectivity"]["status"] == "pass"

class TestTrackingApi:
    """End-to-end flows through the HTTP layer"""

    def setup_method(self):
        self.client = TestClient(app)

    def auth(self, username: str) -> dict:
        resp = self.client.post("/auth/token", json={"username": username})
        assert resp.status_code == 200
        return {"Authorization": f"Bearer {resp.json()['access_token']}"}

    def bootstrap_admin(self, username: str = "admin") -> dict:
        headers = self.auth(username)
        resp = self.client.post("/users/bootstrap-admin", json={"token": ADMIN_TOKEN}, headers=headers)
        assert resp.status_code == 204
        return headers

    def test_anonymous_role_is_guest(self):
        resp = self.client.get("/users/me/role")
        assert resp.status_code == 200
        assert resp.json() == {"identity": "anonymous", "role": "guest"}
        assert self.client.get("/users/me/is-admin").json()["is_admin"] is False

    def test_invalid_bearer_token_is_rejected(self):
        resp = self.client.get("/users/me/role", headers={"Authorization": "Bearer not-a-jwt"})
        assert resp.status_code == 401

    def test_reserved_username(self):
        for username in ["anonymous", "me"]:
            resp = self.client.post("/auth/token", json={"username": username})
            assert resp.status_code == 422

    def test_token_issuer_disabled_by_default(self, monkeypatch):
        admin = {"Authorization": f"Bearer {create_access_token('alice')}"}
        resp = self.client.post("/users/bootstrap-admin", json={"token": ADMIN_TOKEN}, headers=admin)
        assert resp.status_code == 204

        monkeypatch.setattr(get_settings(), "ENABLE_DEV_TOKENS", False)
        resp = self.client.post("/auth/token", json={"username": "alice"})
        assert resp.status_code == 404
        assert "access_token" not in resp.json()
        resp = self.client.put("/users/mallory/role", json={"role": "admin"})
        assert resp.status_code == 403
        assert self.client.get("/users/roles", headers=admin).json() == [{"identity": "alice", "role": "admin"}]

    def test_bootstrap_flow(self):
        headers = self.auth("first")
        resp = self.client.post("/users/bootstrap-admin", json={"token": "wrong"}, headers=headers)
        assert resp.status_code == 403
        assert resp.json()["code"] == "invalid_token"

        resp = self.client.post("/users/bootstrap-admin", json={"token": ADMIN_TOKEN}, headers=headers)
        assert resp.status_code == 204
        assert self.client.get("/users/me/is-admin", headers=headers).json()["is_admin"] is True

        resp = self.client.post("/users/bootstrap-admin", json={"token": ADMIN_TOKEN}, headers=self.auth("second"))
        assert resp.status_code == 409
        assert resp.json()["code"] == "already_bootstrapped"

    def test_shipment_lifecycle(self):
        admin = self.bootstrap_admin()

        resp = self.client.post("/shipments/", json={"tracking_number": "TRK-1", "origin": "A", "destination": "B"}, headers=admin)
        assert resp.status_code == 201
        body = resp.json()
        assert body["tracking_number"] == "TRK-1"
        assert body["events"] == []
        assert body["recipient"] is None

        resp = self.client.post("/shipments/", json={"tracking_number": "TRK-1", "origin": "A", "destination": "B"}, headers=admin)
        assert resp.status_code == 409

        resp = self.client.get("/shipments/TRK-1/events/latest")
        assert resp.status_code == 404
        assert resp.json()["code"] == "no_events"

        for status, ts in [("Picked Up", 100), ("In Transit", 200)]:
            resp = self.client.post(
                "/shipments/TRK-1/events",
                json={"status": status, "location": "Hub", "date": "2024-01-01", "time": "10:00", "timestamp": ts},
                headers=admin,
            )
            assert resp.status_code == 201

        latest = self.client.get("/shipments/TRK-1/events/latest").json()
        assert latest["status"] == "In Transit"
        shipment = self.client.get("/shipments/TRK-1").json()
        assert [e["status"] for e in shipment["events"]] == ["Picked Up", "In Transit"]
        timeline = self.client.get("/shipments/TRK-1/timeline").json()
        assert [e["status"] for e in timeline] == ["In Transit", "Picked Up"]

    def test_missing_shipment(self):
        resp = self.client.get("/shipments/NOPE")
        assert resp.status_code == 404
        assert resp.json()["code"] == "not_found"

    def test_guest_is_forbidden_until_promoted(self):
        admin = self.bootstrap_admin()
        guest = self.auth("guest")
        payload = {"origin": "A", "destination": "B"}

        resp = self.client.post("/shipments/", json=payload, headers=guest)
        assert resp.status_code == 403
        assert self.client.get("/shipments/", headers=guest).status_code == 403

        resp = self.client.put("/users/guest/role", json={"role": "admin"}, headers=admin)
        assert resp.status_code == 204

        resp = self.client.post("/shipments/", json=payload, headers=guest)
        assert resp.status_code == 201
        assert resp.json()["tracking_number"] == "TRK-000001"

        roles = self.client.get("/users/roles", headers=admin).json()
        assert {"identity": "guest", "role": "admin"} in roles

    def test_generate_and_seed(self):
        admin = self.bootstrap_admin()
        resp = self.client.post("/shipments/generate", headers=admin)
        assert resp.status_code == 200
        assert resp.json()["tracking_number"] == "TRK-000001"

        resp = self.client.post("/shipments/seed", headers=admin)
        assert resp.status_code == 201
        seeded = [s["tracking_number"] for s in resp.json()]
        assert "TRK-000001" not in seeded
        assert len(self.client.get("/shipments/", headers=admin).json()) == len(seeded)

    def test_profiles(self):
        admin = self.bootstrap_admin()
        user = self.auth("ivy")
        assert self.client.get("/users/me/profile", headers=user).status_code == 403
        self.client.put("/users/ivy/role", json={"role": "user"}, headers=admin)

        assert self.client.get("/users/me/profile", headers=user).json() is None
        resp = self.client.put("/users/me/profile", json={"name": "Ivy", "email": "ivy@example.com"}, headers=user)
        assert resp.status_code == 200
        assert self.client.get("/users/me/profile", headers=user).json()["name"] == "Ivy"
        assert self.client.get("/users/ivy/profile", headers=admin).json()["email"] == "ivy@example.com"
        assert self.client.get("/users/admin/profile", headers=user).status_code == 403

    def test_invalid_payload(self):
        admin = self.bootstrap_admin()
        resp = self.client.post("/shipments/", json={"origin": "", "destination": "B"}, headers=admin)
        assert resp.status_code == 422
        resp = self.client.put("/users/x/role", json={"role": "superuser"}, headers=admin)
        assert resp.status_code == 422

    def test_event_timestamp_out_of_range(self):
        admin = self.bootstrap_admin()
        self.client.post("/shipments/", json={"tracking_number": "TRK-1", "origin": "A", "destination": "B"}, headers=admin)
        event = {"status": "Picked Up", "location": "A", "date": "2024-01-01", "time": "09:00", "timestamp": 2**70}
        resp = self.client.post("/shipments/TRK-1/events", json=event, headers=admin)
        assert resp.status_code == 422
        assert self.client.get("/shipments/TRK-1/timeline", headers=admin).json() == []
