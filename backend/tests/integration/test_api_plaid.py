"""Integration tests for Plaid API endpoints."""

import pytest
from fastapi.testclient import TestClient

from api.helpers import get_plaid_client
from main import app
from models import Account, LinkedConnection, Transaction, TripAssignment
from tests.fixtures.mocks import MockPlaidClient, rejected, unavailable


@pytest.fixture
def override_plaid(client):
    """Swap the Plaid client injected into the app for the current test."""

    def _override(mock: MockPlaidClient) -> TestClient:
        app.dependency_overrides[get_plaid_client] = lambda: mock
        return client

    return _override


class TestCreateLinkToken:
    def test_creates_link_token(self, client, mock_plaid):
        response = client.post("/api/plaid/link-token")
        assert response.status_code == 200
        assert response.json() == {"link_token": "link-sandbox-test-user"}
        assert mock_plaid.link_users == ["test-user"]

    def test_returns_400_when_not_configured(self, override_plaid):
        client = override_plaid(MockPlaidClient(configured=False))

        response = client.post("/api/plaid/link-token")

        assert response.status_code == 400
        assert "not configured" in response.json()["detail"]

    def test_invalid_api_keys_hint(self, override_plaid):
        client = override_plaid(
            MockPlaidClient(fail_on_call={"link": rejected("INVALID_API_KEYS")})
        )

        response = client.post("/api/plaid/link-token")

        assert response.status_code == 400
        assert "PLAID_ENVIRONMENT" in response.json()["detail"]

    def test_provider_outage_is_bad_gateway(self, override_plaid):
        client = override_plaid(MockPlaidClient(fail_on_call={"link": unavailable()}))

        response = client.post("/api/plaid/link-token")

        assert response.status_code == 502


class TestExchangeToken:
    def test_exchange_creates_connection_and_accounts(self, client, db):
        response = client.post(
            "/api/plaid/exchange-token",
            json={
                "public_token": "public-sandbox-abc",
                "institution_id": "ins_109508",
                "institution_name": "First Platypus Bank",
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["item_id"] == "item_001"
        assert data["institution_name"] == "First Platypus Bank"
        assert data["account_count"] == 2

        connection = db.get(LinkedConnection, data["connection_id"])
        assert connection.user_id == "test-user"
        assert connection.cursor is None
        assert db.query(Account).filter_by(connection_id=connection.id).count() == 2

    def test_exchange_requires_public_token(self, client):
        response = client.post("/api/plaid/exchange-token", json={})
        assert response.status_code == 422

    def test_exchange_failure_stores_nothing(self, override_plaid, db):
        client = override_plaid(MockPlaidClient(fail_on_call={"exchange": unavailable()}))

        response = client.post(
            "/api/plaid/exchange-token", json={"public_token": "public-sandbox-abc"}
        )

        assert response.status_code == 502
        assert db.query(LinkedConnection).count() == 0


class TestListItems:
    def test_lists_connections_with_account_counts(self, client, account, credit_account):
        response = client.get("/api/plaid/items")

        assert response.status_code == 200
        items = response.json()
        assert len(items) == 1
        assert items[0]["item_id"] == "item_001"
        assert items[0]["institution_name"] == "First Platypus Bank"
        assert items[0]["account_count"] == 2
        assert items[0]["last_synced_at"] is None

    def test_empty(self, client):
        assert client.get("/api/plaid/items").json() == []


class TestRemoveItem:
    def test_remove_cascades(self, client, db, mock_plaid, connection, assignment):
        response = client.delete(f"/api/plaid/items/{connection.id}")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "connection_id": connection.id}
        assert mock_plaid.removed_tokens == ["access-sandbox-001"]
        db.expire_all()
        assert db.query(LinkedConnection).count() == 0
        assert db.query(Account).count() == 0
        assert db.query(Transaction).count() == 0
        assert db.query(TripAssignment).count() == 0

    def test_remove_unknown_is_404(self, client):
        response = client.delete("/api/plaid/items/does-not-exist")
        assert response.status_code == 404
