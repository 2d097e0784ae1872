"""Transaction service - canonical transaction store and reconciliation helpers."""

import logging
from datetime import date

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from integrations.provider_protocol import ProviderTransaction
from models import Account, Transaction

logger = logging.getLogger(__name__)


class TransactionService:
    """Idempotent writes keyed by the provider transaction id, plus reads."""

    @staticmethod
    def _fields(remote: ProviderTransaction) -> dict:
        """Column values for a transaction, excluding its identity."""
        return {
            "account_id": remote.account_id,
            "amount": remote.amount,
            "currency_code": remote.currency_code or "USD",
            "description": remote.name or remote.merchant_name or "Unknown",
            "merchant_name": remote.merchant_name,
            "category": remote.category_primary,
            "subcategory": remote.category_detailed,
            "date": remote.date,
            "authorized_date": remote.authorized_date,
            "pending": remote.pending,
        }

    @staticmethod
    def insert_if_absent(db: Session, user_id: str, remote: ProviderTransaction) -> bool:
        """Insert a transaction; a duplicate key counts as already applied.

        The insert runs in a savepoint and a unique-key violation is
        treated as success, so redelivery of a batch is a no-op on any
        backend.

        Returns:
            True if a row was inserted, False if the id already existed.
        """
        if db.get(Transaction, remote.id) is not None:
            return False

        txn = Transaction(id=remote.id, user_id=user_id, **TransactionService._fields(remote))
        try:
            with db.begin_nested():
                db.add(txn)
        except IntegrityError:
            logger.debug("Transaction %s already stored, skipping insert", remote.id)
            return False
        return True

    @staticmethod
    def apply_modified(db: Session, user_id: str, remote: ProviderTransaction) -> bool:
        """Update a transaction in place, inserting it if it is unknown locally.

        Returns:
            True if an existing row was updated, False if it was inserted.
        """
        existing = db.get(Transaction, remote.id)
        if existing is None:
            logger.info(
                "Modified transaction %s not found locally, inserting", remote.id
            )
            TransactionService.insert_if_absent(db, user_id, remote)
            return False

        for column, value in TransactionService._fields(remote).items():
            setattr(existing, column, value)
        return True

    @staticmethod
    def delete_by_id(db: Session, user_id: str, transaction_id: str) -> bool:
        """Delete a transaction (and its trip assignments) if present.

        Returns:
            True if a row was deleted; absence is not an error.
        """
        existing = db.get(Transaction, transaction_id)
        if existing is None or existing.user_id != user_id:
            return False
        db.delete(existing)
        return True

    @staticmethod
    def get_owned_ids(db: Session, user_id: str, transaction_ids: list[str]) -> set[str]:
        """Return the subset of ``transaction_ids`` that belong to ``user_id``."""
        if not transaction_ids:
            return set()
        rows = (
            db.query(Transaction.id)
            .filter(
                Transaction.user_id == user_id,
                Transaction.id.in_(transaction_ids),
            )
            .all()
        )
        return {row[0] for row in rows}

    @staticmethod
    def list_transactions(
        db: Session,
        user_id: str,
        start_date: date | None = None,
        end_date: date | None = None,
        account_id: str | None = None,
        search: str | None = None,
        category: str | None = None,
        limit: int | None = None,
    ) -> list[Transaction]:
        """List a user's transactions, newest first, with optional filters."""
        query = (
            db.query(Transaction)
            .options(joinedload(Transaction.account).joinedload(Account.connection))
            .filter(Transaction.user_id == user_id)
        )
        if start_date is not None:
            query = query.filter(Transaction.date >= start_date)
        if end_date is not None:
            query = query.filter(Transaction.date <= end_date)
        if account_id:
            query = query.filter(Transaction.account_id == account_id)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(
                or_(
                    Transaction.description.ilike(pattern),
                    Transaction.merchant_name.ilike(pattern),
                )
            )
        if category:
            query = query.filter(func.upper(Transaction.category) == category.strip().upper())

        query = query.order_by(Transaction.date.desc(), Transaction.id)
        if limit is not None:
            query = query.limit(limit)
        return query.all()
