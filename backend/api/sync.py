"""Sync API endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from api.helpers import get_current_user_id, get_plaid_client, to_http_exception
from database import get_db
from integrations.plaid_client import PlaidClient
from schemas import ConnectionSyncResponse, SyncLogEntryResponse, SyncRequest, SyncResponse
from services.sync_service import ConnectionSyncResult, SyncService, SyncStatus

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sync", tags=["sync"])


def get_sync_service(client: PlaidClient = Depends(get_plaid_client)) -> SyncService:
    """Dependency building the SyncService around the injected provider client."""
    return SyncService(provider=client)


def _result_response(result: ConnectionSyncResult) -> ConnectionSyncResponse:
    return ConnectionSyncResponse(
        connection_id=result.connection_id,
        institution_name=result.institution_name,
        status=result.status.value,
        added=result.added,
        modified=result.modified,
        removed=result.removed,
        skipped=result.skipped,
        batches=result.batches,
        accounts_refreshed=result.accounts_refreshed,
        error=result.error,
        retriable=result.retriable,
        reconnect_required=result.status == SyncStatus.RECONNECT_REQUIRED,
    )


@router.post("", response_model=SyncResponse)
def trigger_sync(
    body: Optional[SyncRequest] = Body(default=None),
    db: Session = Depends(get_db),
    sync_service: SyncService = Depends(get_sync_service),
    user_id: str = Depends(get_current_user_id),
):
    """Sync one connection, or every connection of the principal.

    Always returns 200 once at least one connection was attempted.
    Per-connection failures (provider unavailable, reconnect required) are
    reported in that connection's result slot.

    Raises:
        HTTPException:
            - 404 Not Found: Unknown connection id, or no connections
            - 409 Conflict: The requested connection is already syncing
            - 500 Internal Server Error: Unexpected sync error
    """
    connection_id = body.connection_id if body else None

    if connection_id and SyncService.is_sync_in_progress(connection_id):
        raise HTTPException(
            status_code=409,
            detail="Sync already in progress. Please wait for the current sync to complete.",
        )

    try:
        results = sync_service.sync_user(db, user_id, connection_id=connection_id)
    except Exception as e:
        # NotFound -> 404, Conflict -> 409, anything else -> 500 without str(e)
        raise to_http_exception(e, "sync")

    return SyncResponse(
        results={conn_id: _result_response(r) for conn_id, r in results.items()},
        added=sum(r.added for r in results.values()),
        modified=sum(r.modified for r in results.values()),
        removed=sum(r.removed for r in results.values()),
    )


@router.get("/log", response_model=list[SyncLogEntryResponse])
def get_sync_log(
    limit: int = Query(default=50, ge=1, le=500),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Most recent sync log entries for the principal, newest first."""
    return SyncService.list_log(db, user_id, limit=limit)
