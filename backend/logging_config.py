"""Centralized logging configuration for the API server and the sync CLI."""

import logging

from config import settings

# Chatty below WARNING: SQL echo, connection pool, HTTP transport and the Plaid SDK
QUIET_LOGGERS = (
    "sqlalchemy.engine",
    "sqlalchemy.pool",
    "httpx",
    "httpcore",
    "urllib3",
    "plaid",
)


def setup_logging(level: str | None = None) -> None:
    """Configure logging for the application.

    Args:
        level: Root level name overriding ``settings.LOG_LEVEL`` (the sync
            CLI passes ``DEBUG`` for ``--verbose``).
    """
    logging.basicConfig(
        format="%(asctime)s %(levelname)-8s %(name)s  %(message)s",
        datefmt="%H:%M:%S",
        level=getattr(logging, (level or settings.LOG_LEVEL).upper()),
        force=True,
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
