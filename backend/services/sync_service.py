"""Sync service - cursor-driven incremental transaction sync per connection."""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from integrations.exceptions import ProviderError, ProviderRejectedError
from integrations.provider_protocol import TransactionDelta, TransactionProvider
from models import LinkedConnection
from models.sync_log import SyncLogEntry
from services.connection_service import ConnectionService
from services.exceptions import ConflictError, NotFoundError
from services.transaction_service import TransactionService

logger = logging.getLogger(__name__)


class SyncStatus(str, Enum):
    """Outcome of syncing one connection."""

    SUCCESS = "success"
    FAILED = "failed"
    RECONNECT_REQUIRED = "reconnect_required"
    CANCELLED = "cancelled"


@dataclass
class BatchCounts:
    """Records applied from a single delta page."""

    added: int = 0
    modified: int = 0
    removed: int = 0
    skipped: int = 0


@dataclass
class ConnectionSyncResult:
    """Per-connection result reported back to the caller.

    ``cursor`` is always the last durably persisted cursor, so a failed or
    cancelled run can be resumed by simply syncing again.
    """

    connection_id: str
    institution_name: str | None = None
    status: SyncStatus = SyncStatus.SUCCESS
    added: int = 0
    modified: int = 0
    removed: int = 0
    skipped: int = 0
    batches: int = 0
    accounts_refreshed: int = 0
    cursor: str | None = None
    error: str | None = None
    retriable: bool = False
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def add_batch(self, counts: BatchCounts) -> None:
        self.batches += 1
        self.added += counts.added
        self.modified += counts.modified
        self.removed += counts.removed
        self.skipped += counts.skipped


class SyncService:
    """Service for bringing local accounts and transactions to parity upstream."""

    # Per-connection locks so the delta loop of one connection never runs
    # twice at once in this process. Different connections sync freely.
    # An entry exists only while its sync runs.
    _locks_guard = threading.Lock()
    _connection_locks: dict[str, threading.Lock] = {}

    def __init__(self, provider: Optional[TransactionProvider] = None):
        """Initialize with an optional provider client for dependency injection.

        Args:
            provider: Aggregation client. If None, a PlaidClient is created
                      on first use.
        """
        self._provider = provider

    @property
    def provider(self) -> TransactionProvider:
        """Get the provider client, creating the default if not provided."""
        if self._provider is None:
            from integrations.plaid_client import PlaidClient

            self._provider = PlaidClient()
        return self._provider

    @classmethod
    def _try_acquire(cls, connection_id: str) -> bool:
        with cls._locks_guard:
            lock = cls._connection_locks.get(connection_id)
            if lock is None:
                lock = threading.Lock()
                cls._connection_locks[connection_id] = lock
            return lock.acquire(blocking=False)

    @classmethod
    def _release(cls, connection_id: str) -> None:
        with cls._locks_guard:
            lock = cls._connection_locks.pop(connection_id)
            lock.release()

    @classmethod
    def is_sync_in_progress(cls, connection_id: str) -> bool:
        """Check if a sync for this connection is currently running."""
        with cls._locks_guard:
            lock = cls._connection_locks.get(connection_id)
            return lock is not None and lock.locked()

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def sync_user(
        self,
        db: Session,
        user_id: str,
        connection_id: str | None = None,
        cancel_event: threading.Event | None = None,
    ) -> dict[str, ConnectionSyncResult]:
        """Sync one connection, or every connection the user owns.

        A failure on one connection is recorded in its result slot and
        never stops the remaining connections.

        Raises:
            NotFoundError: If ``connection_id`` is unknown or the user has
                no connections at all.
            ConflictError: If the single requested connection is already
                being synced.
        """
        if connection_id:
            connections = [ConnectionService.get_connection(db, user_id, connection_id)]
        else:
            connections = ConnectionService.list_connections(db, user_id)
        if not connections:
            raise NotFoundError("No connected accounts found")

        results: dict[str, ConnectionSyncResult] = {}
        for connection in connections:
            # Cache for error handler, accessible even if session is tainted
            conn_id = connection.id
            institution_name = connection.institution_name
            try:
                results[conn_id] = self.sync_connection(db, connection, cancel_event)
            except ConflictError as e:
                if connection_id:
                    raise
                logger.warning("Skipping connection %s: %s", conn_id, e)
                results[conn_id] = ConnectionSyncResult(
                    connection_id=conn_id,
                    institution_name=institution_name,
                    status=SyncStatus.FAILED,
                    error=str(e),
                    retriable=True,
                )
            except Exception as e:
                # Safety net: store failures are isolated to this connection
                logger.error(
                    "Unexpected error syncing connection %s (%s): %s",
                    conn_id, institution_name, e, exc_info=True,
                )
                db.rollback()
                result = ConnectionSyncResult(
                    connection_id=conn_id,
                    institution_name=institution_name,
                    status=SyncStatus.FAILED,
                    cursor=connection.cursor,
                    error=f"Store error on connection {conn_id}: {e}",
                    retriable=True,
                )
                self._record_log(db, connection, result)
                results[conn_id] = result

        return results

    def sync_connection(
        self,
        db: Session,
        connection: LinkedConnection,
        cancel_event: threading.Event | None = None,
    ) -> ConnectionSyncResult:
        """Refresh balances and drain the delta feed for one connection.

        Provider failures are reported in the returned result (the cursor
        stays at the last applied batch). Store failures are rolled back
        and re-raised.

        Raises:
            ConflictError: If this connection is already being synced.
            SQLAlchemyError: On store failures.
        """
        if not self._try_acquire(connection.id):
            raise ConflictError(f"Sync already in progress for connection {connection.id}")
        try:
            return self._run(db, connection, cancel_event)
        finally:
            self._release(connection.id)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _run(
        self,
        db: Session,
        connection: LinkedConnection,
        cancel_event: threading.Event | None,
    ) -> ConnectionSyncResult:
        # The persisted row is the only source of truth for the cursor
        db.refresh(connection)
        result = ConnectionSyncResult(
            connection_id=connection.id,
            institution_name=connection.institution_name,
            cursor=connection.cursor,
        )
        logger.info(
            "Sync started for connection %s (%s), cursor=%s",
            connection.id, connection.institution_name,
            "set" if connection.cursor else "none",
        )

        try:
            result.accounts_refreshed = self._refresh_balances(db, connection)
            db.commit()
            self._pull_deltas(db, connection, result, cancel_event)

        except ProviderRejectedError as e:
            db.rollback()
            result.status = SyncStatus.RECONNECT_REQUIRED
            result.error = str(e)
            result.retriable = False
            logger.warning(
                "Connection %s (%s) needs to be reconnected: %s",
                result.connection_id, result.institution_name, e,
            )

        except ProviderError as e:
            db.rollback()
            result.status = SyncStatus.FAILED
            result.error = str(e)
            result.retriable = e.retriable
            logger.warning(
                "Provider error for connection %s (%s) after %d batches: %s",
                result.connection_id, result.institution_name, result.batches, e,
            )

        except SQLAlchemyError:
            db.rollback()
            logger.error(
                "Store error syncing connection %s at batch %d",
                result.connection_id, result.batches + 1, exc_info=True,
            )
            raise

        self._record_log(db, connection, result)
        logger.info(
            "Sync finished for connection %s: status=%s, %d added, %d modified, "
            "%d removed, %d skipped in %d batches",
            result.connection_id, result.status.value, result.added,
            result.modified, result.removed, result.skipped, result.batches,
        )
        return result

    def _refresh_balances(self, db: Session, connection: LinkedConnection) -> int:
        """Update balances of known accounts in place.

        Accounts the provider reports but that were not discovered at link
        time are ignored.

        Returns:
            Number of accounts refreshed.
        """
        remote_balances = self.provider.fetch_account_balances(connection.access_token)
        known = {account.id: account for account in connection.accounts}

        refreshed = 0
        for remote in remote_balances:
            account = known.get(remote.account_id)
            if account is None:
                logger.debug(
                    "Connection %s: ignoring balance for unknown account %s",
                    connection.id, remote.account_id,
                )
                continue
            account.current_balance = remote.current
            account.available_balance = remote.available
            refreshed += 1

        db.flush()
        return refreshed

    def _pull_deltas(
        self,
        db: Session,
        connection: LinkedConnection,
        result: ConnectionSyncResult,
        cancel_event: threading.Event | None,
    ) -> None:
        """Drain the change feed, committing each batch together with its cursor."""
        account_ids = {account.id for account in connection.accounts}
        cursor = connection.cursor

        while True:
            if cancel_event is not None and cancel_event.is_set():
                result.status = SyncStatus.CANCELLED
                logger.info(
                    "Sync cancelled for connection %s after %d batches",
                    connection.id, result.batches,
                )
                return

            delta = self.provider.fetch_transaction_delta(connection.access_token, cursor)
            counts = self._apply_delta(db, connection, account_ids, delta)

            # Batch writes and the cursor become durable in the same commit
            connection.cursor = delta.next_cursor
            db.commit()

            cursor = delta.next_cursor
            result.cursor = cursor
            result.add_batch(counts)
            logger.info(
                "Connection %s batch %d: %d added, %d modified, %d removed, %d skipped",
                connection.id, result.batches, counts.added, counts.modified,
                counts.removed, counts.skipped,
            )

            if not delta.has_more:
                return

    @staticmethod
    def _apply_delta(
        db: Session,
        connection: LinkedConnection,
        account_ids: set[str],
        delta: TransactionDelta,
    ) -> BatchCounts:
        """Apply one delta page.

        Order within the page: added, then modified, then removed. A record
        present in both ``added`` and ``modified`` is applied once, as
        modified; a record that is modified and removed ends up removed.
        """
        counts = BatchCounts()
        user_id = connection.user_id
        modified_ids = {remote.id for remote in delta.modified}

        for remote in delta.added:
            if remote.id in modified_ids:
                continue
            if remote.account_id not in account_ids:
                logger.warning(
                    "Connection %s: skipping transaction %s for unknown account %s",
                    connection.id, remote.id, remote.account_id,
                )
                counts.skipped += 1
                continue
            TransactionService.insert_if_absent(db, user_id, remote)
            counts.added += 1

        for remote in delta.modified:
            if remote.account_id not in account_ids:
                logger.warning(
                    "Connection %s: skipping transaction %s for unknown account %s",
                    connection.id, remote.id, remote.account_id,
                )
                counts.skipped += 1
                continue
            TransactionService.apply_modified(db, user_id, remote)
            counts.modified += 1

        for transaction_id in delta.removed:
            TransactionService.delete_by_id(db, user_id, transaction_id)
            counts.removed += 1

        db.flush()
        return counts

    @staticmethod
    def _record_log(
        db: Session,
        connection: LinkedConnection,
        result: ConnectionSyncResult,
    ) -> None:
        """Persist a SyncLogEntry for this run."""
        db.add(SyncLogEntry(
            connection_id=result.connection_id,
            user_id=connection.user_id,
            status=result.status.value,
            added=result.added,
            modified=result.modified,
            removed=result.removed,
            skipped=result.skipped,
            batches=result.batches,
            error_message=result.error,
        ))
        if result.status == SyncStatus.SUCCESS:
            connection.last_synced_at = datetime.now(timezone.utc)
        db.commit()

    @staticmethod
    def list_log(db: Session, user_id: str, limit: int = 50) -> list[SyncLogEntry]:
        """Most recent sync log entries for a user."""
        return (
            db.query(SyncLogEntry)
            .filter(SyncLogEntry.user_id == user_id)
            .order_by(SyncLogEntry.created_at.desc())
            .limit(limit)
            .all()
        )
