"""API route handlers."""
from . import plaid, sync, transactions, trips

__all__ = ["plaid", "sync", "transactions", "trips"]
