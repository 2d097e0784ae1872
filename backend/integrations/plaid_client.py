"""Plaid API client.

This module implements the TransactionProvider protocol for Plaid via the
plaid-python SDK: Link token creation, public-token exchange, account
balances (``/accounts/get``) and the cursor-based transaction change feed
(``/transactions/sync``).

Every SDK call is bounded by ``PLAID_REQUEST_TIMEOUT`` and every failure
is translated into the typed exceptions in :mod:`integrations.exceptions`.
Nothing here retries; retry policy belongs to the caller.
"""

import json
import logging
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from plaid import ApiException, Environment
from plaid.api.plaid_api import PlaidApi
from plaid.api_client import ApiClient
from plaid.configuration import Configuration
from plaid.model.accounts_get_request import AccountsGetRequest
from plaid.model.country_code import CountryCode
from plaid.model.item_public_token_exchange_request import ItemPublicTokenExchangeRequest
from plaid.model.item_remove_request import ItemRemoveRequest
from plaid.model.link_token_create_request import LinkTokenCreateRequest
from plaid.model.link_token_create_request_user import LinkTokenCreateRequestUser
from plaid.model.products import Products
from plaid.model.transactions_sync_request import TransactionsSyncRequest
from urllib3.exceptions import HTTPError as TransportError

from config import settings
from integrations.exceptions import (
    ProviderAPIError,
    ProviderDataError,
    ProviderError,
    ProviderRejectedError,
    ProviderUnavailableError,
)
from integrations.provider_protocol import (
    ProviderAccountBalance,
    ProviderTransaction,
    TransactionDelta,
)

logger = logging.getLogger(__name__)

PROVIDER_NAME = "Plaid"

# Map PLAID_ENVIRONMENT setting to SDK host URLs.
# Plaid's Development environment is deprecated; only sandbox and production
# are supported.
_ENVIRONMENT_MAP: dict[str, str] = {
    "sandbox": Environment.Sandbox,
    "production": Environment.Production,
}

# Plaid error codes that mean the user has to go back through Link.
REJECTED_ERROR_CODES: frozenset[str] = frozenset(
    {
        "INVALID_ACCESS_TOKEN",
        "ITEM_LOGIN_REQUIRED",
        "ITEM_NOT_FOUND",
        "ACCESS_NOT_GRANTED",
        "USER_PERMISSION_REVOKED",
        "INVALID_API_KEYS",
    }
)

# Error codes that are safe to retry from the last persisted cursor.
RETRIABLE_ERROR_CODES: frozenset[str] = frozenset(
    {
        "TRANSACTIONS_SYNC_MUTATION_DURING_PAGINATION",
        "PRODUCT_NOT_READY",
        "INSTITUTION_DOWN",
        "INSTITUTION_NOT_RESPONDING",
        "RATE_LIMIT_EXCEEDED",
    }
)


class PlaidClient:
    """Wrapper around the Plaid API.

    Implements the TransactionProvider protocol.
    """

    def __init__(
        self,
        client_id: str | None = None,
        secret: str | None = None,
        environment: str | None = None,
        timeout: float | None = None,
    ):
        self._client_id = client_id or settings.PLAID_CLIENT_ID
        self._secret = secret or settings.PLAID_SECRET
        self._environment = environment or settings.PLAID_ENVIRONMENT
        self._timeout = timeout or settings.PLAID_REQUEST_TIMEOUT

        # Lazily created on first use
        self._api: PlaidApi | None = None

    def _get_api(self) -> PlaidApi:
        """Return (and cache) a PlaidApi instance."""
        if self._api is None:
            env_key = self._environment.lower()
            host = _ENVIRONMENT_MAP.get(env_key)
            if host is None:
                logger.warning(
                    "Unknown PLAID_ENVIRONMENT=%r, falling back to sandbox. "
                    "Valid values: sandbox, production",
                    self._environment,
                )
                host = Environment.Sandbox
            logger.info(
                "Plaid API client: environment=%s, host=%s, client_id=<configured>",
                env_key,
                host,
            )
            configuration = Configuration(
                host=host,
                api_key={
                    "clientId": self._client_id,
                    "secret": self._secret,
                },
            )
            api_client = ApiClient(configuration)
            self._api = PlaidApi(api_client)
        return self._api

    @property
    def provider_name(self) -> str:
        """Return the provider name for database storage."""
        return PROVIDER_NAME

    def is_configured(self) -> bool:
        """Check if Plaid credentials are configured."""
        return bool(self._client_id) and bool(self._secret)

    def _call(self, operation: str, func, request):
        """Invoke an SDK endpoint with the request timeout and mapped errors."""
        try:
            return func(request, _request_timeout=self._timeout)
        except ApiException as e:
            raise self._map_plaid_error(e, operation) from e
        except (TransportError, OSError) as e:
            raise ProviderUnavailableError(
                f"Plaid {operation} failed: {e}", provider_name=PROVIDER_NAME
            ) from e

    # ------------------------------------------------------------------
    # Link Token & Token Exchange
    # ------------------------------------------------------------------

    def create_link_token(self, user_id: str) -> str:
        """Create a Plaid Link token for the browser-based auth flow.

        Args:
            user_id: The principal the link session is created for.

        Returns:
            The link_token string to be passed to Plaid Link.
        """
        api = self._get_api()
        request = LinkTokenCreateRequest(
            user=LinkTokenCreateRequestUser(client_user_id=user_id),
            client_name=settings.PLAID_CLIENT_NAME,
            products=[Products("transactions")],
            country_codes=[CountryCode(code) for code in settings.PLAID_COUNTRY_CODES],
            language="en",
        )
        response = self._call("link_token_create", api.link_token_create, request)
        return response["link_token"]

    def exchange_public_token(self, public_token: str) -> dict:
        """Exchange a Plaid Link public_token for a permanent access_token.

        Returns:
            Dict with ``access_token`` and ``item_id``.
        """
        api = self._get_api()
        request = ItemPublicTokenExchangeRequest(public_token=public_token)
        response = self._call(
            "item_public_token_exchange", api.item_public_token_exchange, request
        )
        return {
            "access_token": response["access_token"],
            "item_id": response["item_id"],
        }

    def remove_item(self, access_token: str) -> None:
        """Revoke an access token by calling Plaid's /item/remove endpoint."""
        api = self._get_api()
        self._call("item_remove", api.item_remove, ItemRemoveRequest(access_token=access_token))

    # ------------------------------------------------------------------
    # Balances
    # ------------------------------------------------------------------

    def fetch_account_balances(self, access_token: str) -> list[ProviderAccountBalance]:
        """Fetch the current account snapshot for one Item."""
        api = self._get_api()
        response = self._call(
            "accounts_get", api.accounts_get, AccountsGetRequest(access_token=access_token)
        )

        balances: list[ProviderAccountBalance] = []
        for acct in response.get("accounts", []) or []:
            account_id = acct.get("account_id")
            if not account_id:
                raise ProviderDataError(
                    "Plaid account without account_id", provider_name=PROVIDER_NAME
                )
            raw_balances = acct.get("balances") or {}
            currency = raw_balances.get("iso_currency_code") or raw_balances.get(
                "unofficial_currency_code"
            )
            subtype = acct.get("subtype")
            balances.append(ProviderAccountBalance(
                account_id=account_id,
                name=acct.get("name") or acct.get("official_name") or "Plaid Account",
                official_name=acct.get("official_name"),
                mask=acct.get("mask"),
                type=str(acct.get("type") or "other").lower(),
                subtype=str(subtype).lower() if subtype else None,
                current=self._to_decimal(raw_balances.get("current")),
                available=self._to_decimal(raw_balances.get("available")),
                currency_code=currency.upper() if currency else None,
            ))
        return balances

    # ------------------------------------------------------------------
    # Transaction change feed
    # ------------------------------------------------------------------

    def fetch_transaction_delta(
        self, access_token: str, cursor: str | None = None
    ) -> TransactionDelta:
        """Fetch one ``/transactions/sync`` page.

        The cursor is passed through untouched; ``None`` requests the
        feed from the beginning of the Item's history.
        """
        api = self._get_api()
        if cursor is None:
            request = TransactionsSyncRequest(
                access_token=access_token,
                count=settings.PLAID_SYNC_PAGE_SIZE,
            )
        else:
            request = TransactionsSyncRequest(
                access_token=access_token,
                cursor=cursor,
                count=settings.PLAID_SYNC_PAGE_SIZE,
            )
        response = self._call("transactions_sync", api.transactions_sync, request)

        next_cursor = response.get("next_cursor")
        if next_cursor is None:
            raise ProviderDataError(
                "Plaid transactions_sync response missing next_cursor",
                provider_name=PROVIDER_NAME,
            )

        removed: list[str] = []
        for item in response.get("removed", []) or []:
            txn_id = item.get("transaction_id")
            if txn_id:
                removed.append(txn_id)

        return TransactionDelta(
            added=[self._map_transaction(t) for t in response.get("added", []) or []],
            modified=[self._map_transaction(t) for t in response.get("modified", []) or []],
            removed=removed,
            next_cursor=next_cursor,
            has_more=bool(response.get("has_more")),
        )

    def _map_transaction(self, txn: dict) -> ProviderTransaction:
        """Map a Plaid transaction to a ProviderTransaction.

        Category prefers ``personal_finance_category`` and falls back to
        the legacy ``category`` hierarchy.
        """
        txn_id = txn.get("transaction_id")
        account_id = txn.get("account_id")
        amount = self._to_decimal(txn.get("amount"))
        txn_date = self._to_date(txn.get("date"))
        if not txn_id or not account_id or amount is None or txn_date is None:
            raise ProviderDataError(
                f"Malformed Plaid transaction: {txn_id or '<no id>'}",
                provider_name=PROVIDER_NAME,
            )

        pfc = txn.get("personal_finance_category") or {}
        legacy = txn.get("category") or []
        primary = pfc.get("primary") or (legacy[0] if len(legacy) > 0 else None)
        detailed = pfc.get("detailed") or (legacy[1] if len(legacy) > 1 else None)

        currency = txn.get("iso_currency_code") or txn.get("unofficial_currency_code")
        merchant_name = txn.get("merchant_name")

        return ProviderTransaction(
            id=txn_id,
            account_id=account_id,
            amount=amount,
            date=txn_date,
            name=txn.get("name") or merchant_name or "Unknown",
            pending=bool(txn.get("pending")),
            currency_code=currency.upper() if currency else None,
            merchant_name=merchant_name,
            category_primary=primary,
            category_detailed=detailed,
            authorized_date=self._to_date(txn.get("authorized_date")),
        )

    # ------------------------------------------------------------------
    # Error mapping
    # ------------------------------------------------------------------

    @staticmethod
    def _map_plaid_error(exc: ApiException, operation: str) -> ProviderError:
        """Map a Plaid ApiException to a typed ProviderError."""
        status = exc.status or 0
        message = f"Plaid {operation} failed (HTTP {status})"

        # Try to extract error_code from the body
        error_code = ""
        try:
            body = json.loads(exc.body) if exc.body else {}
            error_code = body.get("error_code", "") or ""
            error_message = body.get("error_message", "")
            if error_message:
                message = f"Plaid error ({error_code}): {error_message}"
        except (TypeError, ValueError, AttributeError):
            logger.debug("Unparseable Plaid error body for %s", operation)

        if status in (401, 403) or error_code in REJECTED_ERROR_CODES:
            return ProviderRejectedError(
                message, provider_name=PROVIDER_NAME, error_code=error_code
            )
        if status == 429 or status >= 500 or error_code in RETRIABLE_ERROR_CODES:
            return ProviderUnavailableError(
                message, provider_name=PROVIDER_NAME, status_code=status or None
            )
        return ProviderAPIError(
            message,
            provider_name=PROVIDER_NAME,
            status_code=status or None,
            error_code=error_code,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _to_decimal(value) -> Decimal | None:
        """Convert a value to Decimal, returning None on failure."""
        if value is None:
            return None
        try:
            return Decimal(str(value))
        except (InvalidOperation, ValueError):
            return None

    @staticmethod
    def _to_date(value) -> date | None:
        """Coerce an SDK date, datetime or ISO string to a calendar date."""
        if value is None:
            return None
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        try:
            return date.fromisoformat(str(value)[:10])
        except ValueError:
            return None
