"""Unit tests for PlaidClient provider protocol implementation."""

from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest
from urllib3.exceptions import ReadTimeoutError

from integrations.exceptions import (
    ProviderAPIError,
    ProviderDataError,
    ProviderRejectedError,
    ProviderUnavailableError,
)
from integrations.plaid_client import PlaidClient


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


def _configure(ms, client_id="test-client-id", secret="test-secret"):
    ms.PLAID_CLIENT_ID = client_id
    ms.PLAID_SECRET = secret
    ms.PLAID_ENVIRONMENT = "sandbox"
    ms.PLAID_CLIENT_NAME = "Trip Ledger"
    ms.PLAID_COUNTRY_CODES = ["US"]
    ms.PLAID_SYNC_PAGE_SIZE = 100
    ms.PLAID_REQUEST_TIMEOUT = 30.0


@pytest.fixture
def mock_settings():
    """Fixture that mocks settings with configured Plaid credentials."""
    with patch("integrations.plaid_client.settings") as ms:
        _configure(ms)
        yield ms


@pytest.fixture
def mock_empty_settings():
    """Fixture that mocks settings with empty Plaid credentials."""
    with patch("integrations.plaid_client.settings") as ms:
        _configure(ms, client_id="", secret="")
        yield ms


@pytest.fixture
def mock_plaid_api():
    """Fixture that provides a mocked PlaidApi."""
    with patch("integrations.plaid_client.PlaidApi") as MockCls:
        api_instance = MagicMock()
        MockCls.return_value = api_instance
        yield api_instance


@pytest.fixture
def client(mock_settings, mock_plaid_api):
    with patch("integrations.plaid_client.ApiClient"):
        yield PlaidClient()


def _api_exception(status: int, body: str = "{}"):
    from plaid import ApiException

    exc = ApiException(status=status, reason="Error")
    exc.body = body
    return exc


def _plaid_txn(**overrides) -> dict:
    txn = {
        "transaction_id": "txn_001",
        "account_id": "acc_checking",
        "amount": 42.0,
        "iso_currency_code": "EUR",
        "unofficial_currency_code": None,
        "date": date(2025, 12, 3),
        "authorized_date": date(2025, 12, 2),
        "name": "CAFE DE FLORE PARIS",
        "merchant_name": "Café de Flore",
        "pending": False,
        "personal_finance_category": {
            "primary": "FOOD_AND_DRINK",
            "detailed": "FOOD_AND_DRINK_RESTAURANT",
        },
        "category": ["Food and Drink", "Restaurants"],
    }
    txn.update(overrides)
    return txn


# ---------------------------------------------------------------------------
# Tests: Configuration
# ---------------------------------------------------------------------------


class TestPlaidClientConfig:
    def test_is_configured_with_credentials(self, mock_settings):
        client = PlaidClient()
        assert client.is_configured() is True

    def test_is_not_configured_without_credentials(self, mock_empty_settings):
        client = PlaidClient()
        assert client.is_configured() is False

    def test_explicit_credentials_override_settings(self, mock_empty_settings):
        client = PlaidClient(client_id="id", secret="secret", environment="production")
        assert client.is_configured() is True

    def test_provider_name(self, mock_settings):
        client = PlaidClient()
        assert client.provider_name == "Plaid"


# ---------------------------------------------------------------------------
# Tests: Balances
# ---------------------------------------------------------------------------


class TestFetchAccountBalances:
    def test_maps_accounts(self, client, mock_plaid_api):
        mock_plaid_api.accounts_get.return_value = {
            "accounts": [
                {
                    "account_id": "acc_checking",
                    "name": "Plaid Checking",
                    "official_name": "Plaid Gold Standard",
                    "mask": "0000",
                    "type": "depository",
                    "subtype": "checking",
                    "balances": {
                        "current": 110.0,
                        "available": 100.0,
                        "iso_currency_code": "usd",
                    },
                },
            ]
        }

        balances = client.fetch_account_balances("access-token")

        assert len(balances) == 1
        bal = balances[0]
        assert bal.account_id == "acc_checking"
        assert bal.type == "depository"
        assert bal.subtype == "checking"
        assert bal.current == Decimal("110.0")
        assert bal.available == Decimal("100.0")
        assert bal.currency_code == "USD"

    def test_missing_balances_are_none(self, client, mock_plaid_api):
        mock_plaid_api.accounts_get.return_value = {
            "accounts": [
                {"account_id": "acc_credit", "name": "Card", "type": "credit", "balances": {}},
            ]
        }

        bal = client.fetch_account_balances("access-token")[0]

        assert bal.current is None
        assert bal.available is None
        assert bal.currency_code is None

    def test_account_without_id_is_data_error(self, client, mock_plaid_api):
        mock_plaid_api.accounts_get.return_value = {"accounts": [{"name": "???"}]}

        with pytest.raises(ProviderDataError):
            client.fetch_account_balances("access-token")

    def test_request_is_bounded_by_timeout(self, client, mock_plaid_api):
        mock_plaid_api.accounts_get.return_value = {"accounts": []}

        client.fetch_account_balances("access-token")

        _, kwargs = mock_plaid_api.accounts_get.call_args
        assert kwargs["_request_timeout"] == 30.0


# ---------------------------------------------------------------------------
# Tests: Transaction change feed
# ---------------------------------------------------------------------------


class TestFetchTransactionDelta:
    def test_maps_page(self, client, mock_plaid_api):
        mock_plaid_api.transactions_sync.return_value = {
            "added": [_plaid_txn()],
            "modified": [_plaid_txn(transaction_id="txn_002", amount=-5.5)],
            "removed": [{"transaction_id": "txn_gone"}],
            "next_cursor": "cursor-abc",
            "has_more": True,
        }

        delta = client.fetch_transaction_delta("access-token", "cursor-prev")

        assert delta.next_cursor == "cursor-abc"
        assert delta.has_more is True
        assert delta.removed == ["txn_gone"]
        added = delta.added[0]
        assert added.id == "txn_001"
        assert added.amount == Decimal("42.0")
        assert added.currency_code == "EUR"
        assert added.category_primary == "FOOD_AND_DRINK"
        assert added.category_detailed == "FOOD_AND_DRINK_RESTAURANT"
        assert added.authorized_date == date(2025, 12, 2)
        assert delta.modified[0].amount == Decimal("-5.5")

    def test_cursor_is_passed_through_verbatim(self, client, mock_plaid_api):
        mock_plaid_api.transactions_sync.return_value = {"next_cursor": "next"}

        client.fetch_transaction_delta("access-token", "opaque+/==cursor")

        request = mock_plaid_api.transactions_sync.call_args[0][0]
        assert request.cursor == "opaque+/==cursor"
        assert request.count == 100

    def test_first_page_omits_cursor(self, client, mock_plaid_api):
        mock_plaid_api.transactions_sync.return_value = {"next_cursor": "first"}

        delta = client.fetch_transaction_delta("access-token")

        request = mock_plaid_api.transactions_sync.call_args[0][0]
        assert "cursor" not in request.to_dict()
        assert delta.next_cursor == "first"
        assert delta.added == []
        assert delta.has_more is False

    def test_missing_next_cursor_is_data_error(self, client, mock_plaid_api):
        mock_plaid_api.transactions_sync.return_value = {"added": [], "has_more": False}

        with pytest.raises(ProviderDataError):
            client.fetch_transaction_delta("access-token")

    def test_legacy_category_fallback(self, client, mock_plaid_api):
        mock_plaid_api.transactions_sync.return_value = {
            "added": [_plaid_txn(personal_finance_category=None, category=["Travel", "Airlines"])],
            "next_cursor": "c",
        }

        txn = client.fetch_transaction_delta("access-token").added[0]

        assert txn.category_primary == "Travel"
        assert txn.category_detailed == "Airlines"

    def test_name_falls_back_to_merchant(self, client, mock_plaid_api):
        mock_plaid_api.transactions_sync.return_value = {
            "added": [_plaid_txn(name=None)],
            "next_cursor": "c",
        }

        txn = client.fetch_transaction_delta("access-token").added[0]

        assert txn.name == "Café de Flore"

    def test_iso_string_dates(self, client, mock_plaid_api):
        mock_plaid_api.transactions_sync.return_value = {
            "added": [_plaid_txn(date="2025-12-03", authorized_date=None)],
            "next_cursor": "c",
        }

        txn = client.fetch_transaction_delta("access-token").added[0]

        assert txn.date == date(2025, 12, 3)
        assert txn.authorized_date is None

    def test_malformed_transaction_is_data_error(self, client, mock_plaid_api):
        mock_plaid_api.transactions_sync.return_value = {
            "added": [_plaid_txn(date=None)],
            "next_cursor": "c",
        }

        with pytest.raises(ProviderDataError):
            client.fetch_transaction_delta("access-token")


# ---------------------------------------------------------------------------
# Tests: Error mapping
# ---------------------------------------------------------------------------


class TestErrorMapping:
    def test_auth_error_401(self, mock_settings):
        exc = _api_exception(401, '{"error_code": "INVALID_ACCESS_TOKEN", "error_message": "invalid token"}')

        error = PlaidClient._map_plaid_error(exc, "transactions_sync")

        assert isinstance(error, ProviderRejectedError)
        assert error.error_code == "INVALID_ACCESS_TOKEN"
        assert not error.retriable

    def test_item_login_required(self, mock_settings):
        exc = _api_exception(400, '{"error_code": "ITEM_LOGIN_REQUIRED", "error_message": "login needed"}')

        error = PlaidClient._map_plaid_error(exc, "accounts_get")

        assert isinstance(error, ProviderRejectedError)
        assert "login needed" in str(error)

    def test_rate_limit_429(self, mock_settings):
        error = PlaidClient._map_plaid_error(_api_exception(429), "transactions_sync")

        assert isinstance(error, ProviderUnavailableError)
        assert error.retriable is True
        assert error.status_code == 429

    def test_server_error_500(self, mock_settings):
        error = PlaidClient._map_plaid_error(_api_exception(500, "not json"), "accounts_get")

        assert isinstance(error, ProviderUnavailableError)
        assert error.retriable is True

    def test_mutation_during_pagination_is_retriable(self, mock_settings):
        exc = _api_exception(400, '{"error_code": "TRANSACTIONS_SYNC_MUTATION_DURING_PAGINATION"}')

        error = PlaidClient._map_plaid_error(exc, "transactions_sync")

        assert isinstance(error, ProviderUnavailableError)

    def test_other_4xx_is_api_error(self, mock_settings):
        exc = _api_exception(400, '{"error_code": "INVALID_FIELD", "error_message": "bad count"}')

        error = PlaidClient._map_plaid_error(exc, "transactions_sync")

        assert isinstance(error, ProviderAPIError)
        assert error.retriable is False
        assert error.error_code == "INVALID_FIELD"

    def test_sdk_exception_is_mapped_on_call(self, client, mock_plaid_api):
        mock_plaid_api.transactions_sync.side_effect = _api_exception(503)

        with pytest.raises(ProviderUnavailableError):
            client.fetch_transaction_delta("access-token")

    def test_timeout_is_unavailable(self, client, mock_plaid_api):
        mock_plaid_api.accounts_get.side_effect = ReadTimeoutError(None, "/accounts/get", "timed out")

        with pytest.raises(ProviderUnavailableError):
            client.fetch_account_balances("access-token")


# ---------------------------------------------------------------------------
# Tests: Link flow
# ---------------------------------------------------------------------------


class TestLinkFlow:
    def test_create_link_token(self, client, mock_plaid_api):
        mock_plaid_api.link_token_create.return_value = {
            "link_token": "link-sandbox-abc123",
        }

        token = client.create_link_token("user-1")

        assert token == "link-sandbox-abc123"
        request = mock_plaid_api.link_token_create.call_args[0][0]
        assert request.user.client_user_id == "user-1"
        assert request.client_name == "Trip Ledger"
        assert [p.value for p in request.products] == ["transactions"]

    def test_exchange_public_token(self, client, mock_plaid_api):
        mock_plaid_api.item_public_token_exchange.return_value = {
            "access_token": "access-sandbox-xyz",
            "item_id": "item-sandbox-xyz",
        }

        result = client.exchange_public_token("public-sandbox-test")

        assert result["access_token"] == "access-sandbox-xyz"
        assert result["item_id"] == "item-sandbox-xyz"

    def test_remove_item(self, client, mock_plaid_api):
        mock_plaid_api.item_remove.return_value = {"status_code": 200}

        client.remove_item("access-sandbox-xyz")

        mock_plaid_api.item_remove.assert_called_once()
        call_args = mock_plaid_api.item_remove.call_args[0][0]
        assert call_args.access_token == "access-sandbox-xyz"
