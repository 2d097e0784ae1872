"""Service-level error types.

All subclass ``ValueError`` so route handlers can translate them to HTTP
status codes without importing SQLAlchemy or provider internals.
"""


class NotFoundError(ValueError):
    """Unknown trip, connection or transaction id for the principal."""

    pass


class InvalidRequestError(ValueError):
    """Malformed input: empty id list, bad date range, missing fields."""

    pass


class ConflictError(ValueError):
    """The requested operation collides with one already running."""

    pass
