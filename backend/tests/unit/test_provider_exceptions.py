"""Unit tests for the provider exception hierarchy."""

import pytest

from integrations.exceptions import (
    ProviderAPIError,
    ProviderDataError,
    ProviderError,
    ProviderRejectedError,
    ProviderUnavailableError,
)


class TestExceptionHierarchy:
    """All provider exceptions are caught by except ProviderError."""

    def test_catch_all_provider_errors(self):
        """A single except ProviderError catches all subtypes."""
        exceptions = [
            ProviderUnavailableError("timeout", provider_name="Plaid"),
            ProviderRejectedError("login required", provider_name="Plaid"),
            ProviderAPIError("api", provider_name="Plaid", status_code=400),
            ProviderDataError("data", provider_name="Plaid"),
        ]
        for exc in exceptions:
            with pytest.raises(ProviderError):
                raise exc

    def test_provider_errors_are_not_value_errors(self):
        """Service-layer handlers catch ValueError; provider errors must not collide."""
        assert not issubclass(ProviderError, ValueError)


class TestRetriable:
    """Only transport-level unavailability is retriable."""

    def test_unavailable_is_retriable(self):
        assert ProviderUnavailableError("timeout").retriable is True

    def test_rejected_is_not_retriable(self):
        assert ProviderRejectedError("revoked").retriable is False

    def test_api_error_is_not_retriable(self):
        assert ProviderAPIError("bad request", status_code=400).retriable is False

    def test_data_error_is_not_retriable(self):
        assert ProviderDataError("bad json").retriable is False


class TestExceptionAttributes:
    def test_str_is_message(self):
        exc = ProviderAPIError("HTTP 400", provider_name="Plaid", status_code=400)
        assert str(exc) == "HTTP 400"

    def test_provider_name_stored(self):
        exc = ProviderError("msg", provider_name="Plaid")
        assert exc.provider_name == "Plaid"

    def test_rejected_error_code(self):
        exc = ProviderRejectedError("msg", error_code="ITEM_LOGIN_REQUIRED")
        assert exc.error_code == "ITEM_LOGIN_REQUIRED"

    def test_unavailable_status_code(self):
        exc = ProviderUnavailableError("rate limited", status_code=429)
        assert exc.status_code == 429

    def test_api_error_defaults(self):
        exc = ProviderAPIError("error")
        assert exc.status_code is None
        assert exc.error_code == ""
