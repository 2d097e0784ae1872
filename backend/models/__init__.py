"""SQLAlchemy ORM models."""

from .account import Account
from .linked_connection import LinkedConnection
from .sync_log import SyncLogEntry
from .transaction import Transaction
from .trip import Trip
from .trip_assignment import TripAssignment
from .trip_override import TripOverride
from .utils import generate_uuid

__all__ = ["Account", "LinkedConnection", "SyncLogEntry", "Transaction", "Trip", "TripAssignment", "TripOverride", "generate_uuid"]
