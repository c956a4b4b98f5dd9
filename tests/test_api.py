"""Tests for API endpoints."""

import os
import pytest
from fastapi.testclient import TestClient

# Set environment variables before importing app
os.environ.setdefault("API_KEY", "test_api_key_12345")

from payments_sync.api import app
from payments_sync.auth import limiter
from payments_sync.database import Language, PluginSettings, RefundMirror, TransactionMirror, get_db_context
from payments_sync.provider import SimulatorConfig, SimulatorProviderClient, TransactionState
from payments_sync.reconciliation.api import get_client_factory, get_media_downloader

API_SPACE_ID = 31


@pytest.fixture
def api_simulator(make_configuration, fulfilled_transaction):
    simulator = SimulatorProviderClient()
    simulator.set_configurations(API_SPACE_ID, [
        make_configuration(1, sort_order=120).model_copy(update={"space_id": API_SPACE_ID}),
        make_configuration(2, sort_order=110).model_copy(update={"space_id": API_SPACE_ID}),
    ])
    simulator.add_transaction(fulfilled_transaction)
    return simulator


@pytest.fixture
def client(monkeypatch, api_simulator, downloader):
    """Create test client backed by a fresh in-memory database and the simulator."""
    monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
    app.dependency_overrides[get_client_factory] = lambda: (lambda settings: api_simulator)
    app.dependency_overrides[get_media_downloader] = lambda: downloader
    limiter.enabled = False
    with TestClient(app) as test_client:
        yield test_client
    limiter.enabled = True
    app.dependency_overrides.clear()


@pytest.fixture
def seed(client, transaction_id):
    """Insert settings, languages and a transaction mirror through the app's database."""
    async def _seed(with_settings=True):
        async with get_db_context() as session:
            session.add(Language(name="English", locale_code="en-GB"))
            session.add(TransactionMirror(
                transaction_id=transaction_id,
                space_id=API_SPACE_ID,
                state=TransactionState.FULFILL.value,
            ))
            if with_settings:
                session.add(PluginSettings(
                    sales_channel_id=None,
                    space_id=API_SPACE_ID,
                    user_id=1,
                    application_key="a2V5",
                ))

    def _run(with_settings=True):
        client.portal.call(_seed, with_settings)

    return _run


@pytest.fixture
def auth_headers():
    """Return authenticated headers."""
    return {"Authorization": "Bearer test_api_key_12345"}


class TestHealthEndpoint:
    """Tests for the health check."""

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestAuthentication:
    """Tests for bearer key authentication."""

    def test_invalid_api_key(self, client):
        response = client.post(
            "/payment-method-configurations/synchronize",
            json={},
            headers={"Authorization": "Bearer wrong_key"},
        )

        assert response.status_code == 401

    def test_rotated_key_accepted(self, client, seed, monkeypatch):
        seed()
        monkeypatch.setenv("API_KEYS", "old_key, next_key")

        response = client.get("/refunds/1", headers={"Authorization": "Bearer next_key"})

        assert response.status_code == 404


class TestSynchronizeEndpoint:
    """Tests for POST /payment-method-configurations/synchronize."""

    def test_synchronize(self, client, seed, auth_headers):
        seed()

        response = client.post("/payment-method-configurations/synchronize", json={}, headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["space_id"] == API_SPACE_ID
        assert len(data["activated"]) == 2
        assert data["failed"] == []

    def test_synchronize_twice(self, client, seed, auth_headers):
        seed()

        first = client.post("/payment-method-configurations/synchronize", json={}, headers=auth_headers).json()
        second = client.post("/payment-method-configurations/synchronize", json={}, headers=auth_headers).json()

        assert first["activated"] == second["activated"]
        assert sorted(second["deactivated"]) == sorted(first["activated"])

    def test_synchronize_without_settings(self, client, seed, auth_headers):
        seed(with_settings=False)

        response = client.post("/payment-method-configurations/synchronize", json={}, headers=auth_headers)

        assert response.status_code == 400

    def test_synchronize_provider_unavailable(self, client, seed, auth_headers, api_simulator):
        seed()
        api_simulator.config = SimulatorConfig(unavailable=True)

        response = client.post("/payment-method-configurations/synchronize", json={}, headers=auth_headers)

        assert response.status_code == 502


class TestRefundEndpoints:
    """Tests for refund creation and lookup."""

    def test_create_and_get_refund(self, client, seed, auth_headers, transaction_id):
        seed()

        response = client.post(
            "/refunds",
            json={"transaction_id": transaction_id, "amount": 15.0},
            headers=auth_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["refund_id"] == 1
        assert data["space_id"] == API_SPACE_ID
        assert data["state"] == "SUCCESSFUL"
        assert data["transaction_id"] == transaction_id

        lookup = client.get("/refunds/1", headers=auth_headers)
        assert lookup.status_code == 200
        assert lookup.json()["id"] == data["id"]

    def test_refund_over_balance(self, client, seed, auth_headers, transaction_id, api_simulator):
        seed()

        response = client.post(
            "/refunds",
            json={"transaction_id": transaction_id, "amount": 1000.0},
            headers=auth_headers,
        )

        assert response.status_code == 422
        assert api_simulator.calls["refund"] == 0

    def test_refund_unknown_transaction(self, client, seed, auth_headers):
        seed()

        response = client.post("/refunds", json={"transaction_id": 123, "amount": 5.0}, headers=auth_headers)

        assert response.status_code == 404

    def test_refund_invalid_amount(self, client, auth_headers, transaction_id):
        response = client.post(
            "/refunds",
            json={"transaction_id": transaction_id, "amount": 0},
            headers=auth_headers,
        )

        assert response.status_code == 422

    def test_get_refund_is_scoped_to_space(self, client, seed, auth_headers):
        seed()

        async def _add_foreign_refund():
            async with get_db_context() as session:
                session.add(RefundMirror(refund_id=55, space_id=API_SPACE_ID + 1, state="SUCCESSFUL"))

        client.portal.call(_add_foreign_refund)

        assert client.get("/refunds/55", headers=auth_headers).status_code == 404
        response = client.get(f"/refunds/55?space_id={API_SPACE_ID + 1}", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["space_id"] == API_SPACE_ID + 1

    def test_get_refund_without_settings(self, client, seed, auth_headers):
        seed(with_settings=False)

        response = client.get("/refunds/1", headers=auth_headers)

        assert response.status_code == 400

    def test_get_unknown_refund(self, client, seed, auth_headers):
        seed()

        response = client.get("/refunds/999", headers=auth_headers)

        assert response.status_code == 404
