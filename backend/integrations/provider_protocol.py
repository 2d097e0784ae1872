"""Provider contract for the account-aggregation upstream.

Provider clients normalize their SDK payloads into these dataclasses so
the sync coordinator never touches provider-specific shapes.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Protocol


@dataclass
class ProviderAccountBalance:
    """Current balance snapshot for one upstream account."""

    account_id: str  # Provider's account_id
    name: str
    type: str  # e.g., "depository", "credit"
    official_name: str | None = None
    mask: str | None = None  # Last 4 digits
    subtype: str | None = None
    current: Decimal | None = None
    available: Decimal | None = None
    currency_code: str | None = None


@dataclass
class ProviderTransaction:
    """A transaction as delivered in a delta page."""

    id: str  # Provider's transaction_id (immutable, globally unique)
    account_id: str
    amount: Decimal  # Provider sign convention: positive = outflow
    date: date
    name: str
    pending: bool = False
    currency_code: str | None = None
    merchant_name: str | None = None
    category_primary: str | None = None
    category_detailed: str | None = None
    authorized_date: date | None = None


@dataclass
class TransactionDelta:
    """One page of the provider's transaction change feed."""

    next_cursor: str
    has_more: bool
    added: list[ProviderTransaction] = field(default_factory=list)
    modified: list[ProviderTransaction] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)  # transaction ids


class TransactionProvider(Protocol):
    """Protocol that the aggregation client must implement."""

    @property
    def provider_name(self) -> str:
        """Return the provider name (e.g., 'Plaid')."""
        ...

    def is_configured(self) -> bool:
        """Return True if API credentials are present."""
        ...

    def create_link_token(self, user_id: str) -> str:
        """Create a link session token for the browser-based link flow."""
        ...

    def exchange_public_token(self, public_token: str) -> dict:
        """Exchange a link public token for ``{"access_token", "item_id"}``."""
        ...

    def fetch_account_balances(self, access_token: str) -> list[ProviderAccountBalance]:
        """Fetch the current account snapshot for one connection."""
        ...

    def fetch_transaction_delta(
        self, access_token: str, cursor: str | None = None
    ) -> TransactionDelta:
        """Fetch the next change-feed page after ``cursor`` (None = from the start)."""
        ...

    def remove_item(self, access_token: str) -> None:
        """Revoke the connection upstream."""
        ...
