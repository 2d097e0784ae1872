"""Connection service - linking, listing and revoking upstream connections."""

import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from integrations.exceptions import ProviderError
from integrations.provider_protocol import ProviderAccountBalance, TransactionProvider
from models import Account, LinkedConnection
from services.exceptions import NotFoundError

logger = logging.getLogger(__name__)


class ConnectionService:
    """Service for managing LinkedConnection records and their accounts."""

    @staticmethod
    def link_connection(
        db: Session,
        provider: TransactionProvider,
        user_id: str,
        public_token: str,
        institution_id: str | None = None,
        institution_name: str | None = None,
    ) -> tuple[LinkedConnection, int]:
        """Exchange a public token and persist the connection with its accounts.

        Re-linking an Item that is already stored updates its access token
        and institution details and keeps its sync cursor.

        Returns:
            Tuple of (connection, number of accounts discovered).
        """
        result = provider.exchange_public_token(public_token)
        item_id = result["item_id"]
        access_token = result["access_token"]

        connection = (
            db.query(LinkedConnection)
            .filter(LinkedConnection.item_id == item_id)
            .first()
        )
        if connection:
            connection.access_token = access_token
            if institution_id:
                connection.institution_id = institution_id
            if institution_name:
                connection.institution_name = institution_name
            logger.info("Updated connection for item %s", item_id)
        else:
            connection = LinkedConnection(
                user_id=user_id,
                item_id=item_id,
                access_token=access_token,
                institution_id=institution_id or "unknown",
                institution_name=institution_name or "Unknown Institution",
            )
            db.add(connection)
            logger.info(
                "Created connection for item %s (%s)",
                item_id, connection.institution_name,
            )
        db.flush()

        balances = provider.fetch_account_balances(access_token)
        ConnectionService._upsert_accounts(db, connection, balances)
        return connection, len(balances)

    @staticmethod
    def _upsert_accounts(
        db: Session,
        connection: LinkedConnection,
        balances: list[ProviderAccountBalance],
    ) -> None:
        """Create or refresh the accounts reported at link time."""
        new_count = 0
        for remote in balances:
            account = db.get(Account, remote.account_id)
            if account is None:
                account = Account(
                    id=remote.account_id,
                    connection_id=connection.id,
                    user_id=connection.user_id,
                )
                db.add(account)
                new_count += 1
            account.name = remote.name
            account.official_name = remote.official_name
            account.mask = remote.mask
            account.type = remote.type
            account.subtype = remote.subtype
            account.current_balance = remote.current
            account.available_balance = remote.available
            account.currency_code = remote.currency_code or "USD"
            account.is_active = True

        db.flush()
        logger.info(
            "Connection %s: accounts upserted (%d new, %d existing)",
            connection.id, new_count, len(balances) - new_count,
        )

    @staticmethod
    def list_connections(db: Session, user_id: str) -> list[LinkedConnection]:
        """List a user's connections, newest first."""
        return (
            db.query(LinkedConnection)
            .filter(LinkedConnection.user_id == user_id)
            .order_by(LinkedConnection.created_at.desc())
            .all()
        )

    @staticmethod
    def account_counts(db: Session, user_id: str) -> dict[str, int]:
        """Map connection id to its number of accounts."""
        rows = (
            db.query(Account.connection_id, func.count(Account.id))
            .filter(Account.user_id == user_id)
            .group_by(Account.connection_id)
            .all()
        )
        return {connection_id: count for connection_id, count in rows}

    @staticmethod
    def get_connection(db: Session, user_id: str, connection_id: str) -> LinkedConnection:
        """Fetch a connection owned by ``user_id``.

        Raises:
            NotFoundError: If no such connection exists for the user.
        """
        connection = (
            db.query(LinkedConnection)
            .filter(
                LinkedConnection.id == connection_id,
                LinkedConnection.user_id == user_id,
            )
            .first()
        )
        if connection is None:
            raise NotFoundError(f"Connection not found: {connection_id}")
        return connection

    @staticmethod
    def revoke_connection(
        db: Session,
        provider: TransactionProvider,
        user_id: str,
        connection_id: str,
    ) -> None:
        """Revoke upstream (best-effort) and delete the connection locally.

        Deleting cascades to the connection's accounts, their transactions,
        and any trip assignments and overrides on those transactions.
        """
        connection = ConnectionService.get_connection(db, user_id, connection_id)

        try:
            provider.remove_item(connection.access_token)
        except ProviderError as e:
            logger.warning(
                "Failed to revoke connection %s upstream (removing locally anyway): %s",
                connection_id, e,
            )

        db.delete(connection)
        db.flush()
        logger.info("Deleted connection %s", connection_id)
