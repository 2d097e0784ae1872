"""Shared API helpers for route handlers.

Principal resolution, provider-client injection and the translation of
service/provider errors into HTTP responses.
"""

import logging

from fastapi import HTTPException

from config import settings
from integrations.exceptions import ProviderError, ProviderRejectedError
from integrations.plaid_client import PlaidClient
from services.exceptions import ConflictError, InvalidRequestError, NotFoundError

logger = logging.getLogger(__name__)


def get_current_user_id() -> str:
    """Dependency resolving the principal (overridable in tests).

    Authentication lives outside this service; every core operation takes
    the resolved user id explicitly.
    """
    return settings.DEFAULT_USER_ID


def get_plaid_client() -> PlaidClient:
    """Dependency for injecting the Plaid client (overridable in tests)."""
    return PlaidClient()


def to_http_exception(exc: Exception, action: str) -> HTTPException:
    """Map a service or provider exception to an HTTPException.

    Args:
        exc: The exception raised by the service layer.
        action: Short description of what failed, used in 5xx messages.

    Returns:
        The HTTPException to raise. Unexpected errors never expose ``str(exc)``.
    """
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, InvalidRequestError):
        return HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, ConflictError):
        return HTTPException(status_code=409, detail=str(exc))
    if isinstance(exc, ProviderRejectedError):
        logger.warning("Provider rejected credentials while trying to %s: %s", action, exc)
        return HTTPException(
            status_code=502,
            detail=(
                f"{exc.provider_name or 'The provider'} rejected the connection "
                "credentials. Reconnect required."
            ),
        )
    if isinstance(exc, ProviderError):
        logger.warning("Provider error while trying to %s: %s", action, exc)
        return HTTPException(
            status_code=502,
            detail=f"A provider error occurred while trying to {action}.",
        )

    logger.error("Unexpected error while trying to %s", action, exc_info=exc)
    return HTTPException(
        status_code=500,
        detail=f"An unexpected error occurred while trying to {action}.",
    )
