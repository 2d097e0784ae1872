"""Trip service - trip CRUD, assignment listing and trip-scoped overrides."""

import logging
from datetime import date
from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from models import Account, Transaction, Trip, TripAssignment, TripOverride
from services.exceptions import InvalidRequestError, NotFoundError

logger = logging.getLogger(__name__)

DEFAULT_HOME_CURRENCY = "USD"


def _validate_range(start_date: date, end_date: date) -> None:
    if start_date > end_date:
        raise InvalidRequestError(
            f"Start date {start_date.isoformat()} is after end date {end_date.isoformat()}"
        )


def _normalize_currency(code: str | None) -> str:
    code = (code or "").strip().upper()
    if not code:
        return DEFAULT_HOME_CURRENCY
    if len(code) != 3 or not (code.isascii() and code.isalpha()):
        raise InvalidRequestError(f"Invalid currency code: {code!r}")
    return code


class TripService:
    """Service for managing trips owned by a user."""

    @staticmethod
    def create_trip(
        db: Session,
        user_id: str,
        name: str,
        start_date: date,
        end_date: date,
        description: str | None = None,
        home_currency: str | None = None,
    ) -> Trip:
        """Create a trip.

        Raises:
            InvalidRequestError: If the name is blank, the range is inverted or
                the currency is not a three-letter code.
        """
        if not name or not name.strip():
            raise InvalidRequestError("Trip name is required")
        _validate_range(start_date, end_date)

        trip = Trip(
            user_id=user_id,
            name=name.strip(),
            description=description,
            start_date=start_date,
            end_date=end_date,
            home_currency=_normalize_currency(home_currency),
        )
        db.add(trip)
        db.flush()
        logger.info("Created trip %s (%s to %s)", trip.id, start_date, end_date)
        return trip

    @staticmethod
    def list_trips(db: Session, user_id: str) -> list[Trip]:
        return (
            db.query(Trip)
            .filter(Trip.user_id == user_id)
            .order_by(Trip.start_date.desc(), Trip.created_at.desc())
            .all()
        )

    @staticmethod
    def get_trip(db: Session, user_id: str, trip_id: str) -> Trip:
        """Fetch a trip owned by ``user_id``.

        Raises:
            NotFoundError: If the trip does not exist for this user.
        """
        trip = (
            db.query(Trip)
            .filter(Trip.id == trip_id, Trip.user_id == user_id)
            .first()
        )
        if trip is None:
            raise NotFoundError(f"Trip not found: {trip_id}")
        return trip

    @staticmethod
    def update_trip(db: Session, user_id: str, trip_id: str, **changes) -> Trip:
        """Apply a partial update; the merged date range must stay valid."""
        trip = TripService.get_trip(db, user_id, trip_id)

        if "name" in changes:
            name = changes["name"]
            if not name or not name.strip():
                raise InvalidRequestError("Trip name is required")
            changes["name"] = name.strip()
        if changes.get("home_currency") is not None:
            changes["home_currency"] = _normalize_currency(changes["home_currency"])

        start_date = changes.get("start_date") or trip.start_date
        end_date = changes.get("end_date") or trip.end_date
        _validate_range(start_date, end_date)

        for field_name in ("name", "description", "start_date", "end_date", "home_currency", "is_active"):
            if field_name in changes and changes[field_name] is not None:
                setattr(trip, field_name, changes[field_name])
        if "description" in changes and changes["description"] is None:
            trip.description = None

        db.flush()
        return trip

    @staticmethod
    def delete_trip(db: Session, user_id: str, trip_id: str) -> None:
        """Delete a trip with its assignments and overrides."""
        trip = TripService.get_trip(db, user_id, trip_id)
        db.delete(trip)
        db.flush()
        logger.info("Deleted trip %s", trip_id)

    @staticmethod
    def get_trip_stats(db: Session, trip_ids: list[str]) -> dict[str, tuple[int, Decimal]]:
        """Map trip id to (transaction count, total spend) in a single query."""
        if not trip_ids:
            return {}
        rows = (
            db.query(
                TripAssignment.trip_id,
                func.count(TripAssignment.id),
                func.coalesce(func.sum(Transaction.amount), 0),
            )
            .join(Transaction, Transaction.id == TripAssignment.transaction_id)
            .filter(TripAssignment.trip_id.in_(trip_ids))
            .group_by(TripAssignment.trip_id)
            .all()
        )
        return {
            trip_id: (count, Decimal(str(total)))
            for trip_id, count, total in rows
        }

    @staticmethod
    def list_assignments(db: Session, trip: Trip) -> list[TripAssignment]:
        """Assignments of a trip with transaction, account and override loaded."""
        return (
            db.query(TripAssignment)
            .join(Transaction, Transaction.id == TripAssignment.transaction_id)
            .options(
                joinedload(TripAssignment.transaction)
                .joinedload(Transaction.account)
                .joinedload(Account.connection),
                joinedload(TripAssignment.override),
            )
            .filter(TripAssignment.trip_id == trip.id)
            .order_by(Transaction.date.desc(), Transaction.id)
            .all()
        )

    @staticmethod
    def _get_assignment(db: Session, trip: Trip, transaction_id: str) -> TripAssignment:
        assignment = (
            db.query(TripAssignment)
            .filter(
                TripAssignment.trip_id == trip.id,
                TripAssignment.transaction_id == transaction_id,
            )
            .first()
        )
        if assignment is None:
            raise NotFoundError(
                f"Transaction {transaction_id} is not assigned to trip {trip.id}"
            )
        return assignment

    @staticmethod
    def set_override(
        db: Session,
        trip: Trip,
        transaction_id: str,
        category_override: str | None = None,
        subcategory_override: str | None = None,
        notes: str | None = None,
    ) -> TripOverride:
        """Create or replace the override on one assignment."""
        assignment = TripService._get_assignment(db, trip, transaction_id)
        override = assignment.override
        if override is None:
            override = TripOverride(trip_assignment_id=assignment.id)
            db.add(override)
            assignment.override = override

        override.category_override = category_override
        override.subcategory_override = subcategory_override
        override.notes = notes
        db.flush()
        return override

    @staticmethod
    def clear_override(db: Session, trip: Trip, transaction_id: str) -> bool:
        """Remove the override on one assignment.

        Returns:
            True if an override was deleted, False if there was none.
        """
        assignment = TripService._get_assignment(db, trip, transaction_id)
        if assignment.override is None:
            return False
        assignment.override = None  # delete-orphan removes the row
        db.flush()
        return True
