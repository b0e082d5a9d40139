"""Tests for app factory and role-based routing."""

import os
from unittest.mock import patch

from fastapi.testclient import TestClient

from staybook.api.factory import create_app


class TestPublicRole:
    """Tests for APP_ROLE=public."""

    def test_health_available(self):
        client = TestClient(create_app(role="public"))
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_tasks_not_mounted(self):
        client = TestClient(create_app(role="public"))
        response = client.get("/tasks/health")
        assert response.status_code == 404

    def test_reconcile_not_mounted(self):
        """Worker task routes should NOT be available in public."""
        client = TestClient(create_app(role="public"))
        response = client.post("/tasks/reservation-requests/reconcile-terms", json={})
        assert response.status_code == 404


class TestWorkerRole:
    """Tests for APP_ROLE=worker."""

    def test_health_available(self):
        client = TestClient(create_app(role="worker"))
        assert client.get("/health").status_code == 200

    def test_tasks_mounted(self):
        client = TestClient(create_app(role="worker"))
        response = client.get("/tasks/health")
        assert response.status_code == 200
        assert response.json()["subsystem"] == "tasks"


class TestRoleFromEnv:
    def test_defaults_to_public(self):
        with patch.dict(os.environ, {}, clear=True):
            client = TestClient(create_app())
        assert client.get("/tasks/health").status_code == 404

    def test_reads_app_role(self):
        with patch.dict(os.environ, {"APP_ROLE": "worker"}):
            client = TestClient(create_app())
        assert client.get("/tasks/health").status_code == 200


class TestAsgiEntryPoint:
    def test_module_app_serves_public_routes(self):
        from staybook.api.app import app

        client = TestClient(app)
        assert client.get("/health").json() == {"status": "ok"}
        assert client.get("/api/reservationRequest/guest/20").status_code == 401


class TestCorrelationMiddleware:
    def test_malformed_inbound_id_is_replaced(self):
        client = TestClient(create_app(role="public"))

        response = client.get("/health", headers={"X-Correlation-ID": "not a valid id"})

        echoed = response.headers["X-Correlation-ID"]
        assert echoed
        assert echoed != "not a valid id"
