"""Typed exception hierarchy for provider errors.

Provides structured exceptions for differentiated error handling
(reconnect-required vs transient transport errors vs data issues).
Retry policy belongs to the caller: nothing in the sync engine retries.
"""


class ProviderError(Exception):
    """Base exception for all provider-related errors.

    Carries the provider name so callers can identify which provider failed.
    """

    retriable: bool = False

    def __init__(self, message: str, provider_name: str = ""):
        self.provider_name = provider_name
        super().__init__(message)


class ProviderUnavailableError(ProviderError):
    """Transport failures, timeouts, rate limiting and 5xx responses.

    Retriable by the caller.
    """

    retriable = True

    def __init__(
        self,
        message: str,
        provider_name: str = "",
        status_code: int | None = None,
    ):
        self.status_code = status_code
        super().__init__(message, provider_name)


class ProviderRejectedError(ProviderError):
    """Credential invalid or consent revoked; the user must reconnect."""

    def __init__(self, message: str, provider_name: str = "", error_code: str = ""):
        self.error_code = error_code
        super().__init__(message, provider_name)


class ProviderAPIError(ProviderError):
    """Non-retriable 4xx response that is not a credential problem."""

    def __init__(
        self,
        message: str,
        provider_name: str = "",
        status_code: int | None = None,
        error_code: str = "",
    ):
        self.status_code = status_code
        self.error_code = error_code
        super().__init__(message, provider_name)


class ProviderDataError(ProviderError):
    """Malformed or unparseable response from the provider."""

    pass
