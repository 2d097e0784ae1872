"""Pydantic schemas for sync requests, results and the sync log."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class SyncRequest(BaseModel):
    """Body for POST /api/sync. Omit connection_id to sync every connection."""

    connection_id: Optional[str] = None


class ConnectionSyncResponse(BaseModel):
    """Outcome for one connection."""

    connection_id: str
    institution_name: Optional[str] = None
    status: str
    added: int
    modified: int
    removed: int
    skipped: int
    batches: int
    accounts_refreshed: int
    error: Optional[str] = None
    retriable: bool = False
    reconnect_required: bool = False


class SyncResponse(BaseModel):
    """Per-connection results plus totals across the run."""

    results: dict[str, ConnectionSyncResponse]
    added: int
    modified: int
    removed: int


class SyncLogEntryResponse(BaseModel):
    id: str
    connection_id: str
    status: str
    added: int
    modified: int
    removed: int
    skipped: int
    batches: int
    error_message: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
