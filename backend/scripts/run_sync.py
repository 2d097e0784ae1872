#!/usr/bin/env python
"""On-demand sync for cron or manual runs.

Syncs every connection of a user (or a single connection), prints one line
per connection and exits non-zero if any connection did not finish cleanly.
Retry policy belongs to whatever schedules this script.

Usage:
    python -m scripts.run_sync
    python -m scripts.run_sync --user local-user
    python -m scripts.run_sync --connection 3f2c...
    python -m scripts.run_sync --verbose
"""

import argparse
import sys

from config import settings
from database import get_session_local
from logging_config import setup_logging
from services.exceptions import ConflictError, NotFoundError
from services.sync_service import ConnectionSyncResult, SyncService, SyncStatus


def format_result(result: ConnectionSyncResult) -> str:
    """One-line summary of a connection result."""
    name = result.institution_name or result.connection_id
    line = (
        f"{name:<30} {result.status.value:<18} "
        f"+{result.added} ~{result.modified} -{result.removed}"
    )
    if result.skipped:
        line += f" skipped={result.skipped}"
    if result.error:
        hint = " (retry later)" if result.retriable else ""
        line += f"  error: {result.error}{hint}"
    return line


def main(argv: list[str] | None = None, sync_service: SyncService | None = None) -> int:
    """Entry point: parse args, run the sync, return the exit code."""
    parser = argparse.ArgumentParser(
        description="Sync linked connections with the aggregation provider.",
    )
    parser.add_argument(
        "--user",
        default=settings.DEFAULT_USER_ID,
        help=f"User id to sync (default: {settings.DEFAULT_USER_ID})",
    )
    parser.add_argument(
        "--connection",
        default=None,
        help="Sync only this connection id",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log at DEBUG level",
    )
    args = parser.parse_args(argv)

    setup_logging("DEBUG" if args.verbose else None)
    sync_service = sync_service or SyncService()

    SessionLocal = get_session_local()
    db = SessionLocal()
    try:
        try:
            results = sync_service.sync_user(db, args.user, connection_id=args.connection)
        except (NotFoundError, ConflictError) as e:
            print(f"Error: {e}")
            return 1

        for result in results.values():
            print(format_result(result))

        failed = [r for r in results.values() if r.status != SyncStatus.SUCCESS]
        print("-" * 60)
        print(
            f"{len(results)} connection(s): "
            f"{len(results) - len(failed)} ok, {len(failed)} not ok"
        )
        return 1 if failed else 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
