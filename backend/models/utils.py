"""Shared utilities for ORM models."""

import uuid


def generate_uuid() -> str:
    """Local primary key for connections, trips, assignments, overrides and log rows.

    Accounts and transactions are keyed by their provider ids instead.
    """
    return str(uuid.uuid4())
