"""Pydantic schemas for API request/response validation."""

from .sync import ConnectionSyncResponse, SyncLogEntryResponse, SyncRequest, SyncResponse
from .transaction import TransactionResponse
from .trip import (
    ManualAddResponse,
    MatchCandidateResponse,
    MatchExecuteResponse,
    MatchPreviewResponse,
    MatchRequest,
    MatchResponse,
    OverrideRequest,
    OverrideResponse,
    RemoveResponse,
    TierBreakdownResponse,
    TransactionIdsRequest,
    TripCreate,
    TripResponse,
    TripSummaryResponse,
    TripTransactionResponse,
    TripTransactionsResponse,
    TripUpdate,
)

__all__ = [
    "ConnectionSyncResponse",
    "ManualAddResponse",
    "MatchCandidateResponse",
    "MatchExecuteResponse",
    "MatchPreviewResponse",
    "MatchRequest",
    "MatchResponse",
    "OverrideRequest",
    "OverrideResponse",
    "RemoveResponse",
    "SyncLogEntryResponse",
    "SyncRequest",
    "SyncResponse",
    "TierBreakdownResponse",
    "TransactionIdsRequest",
    "TransactionResponse",
    "TripCreate",
    "TripResponse",
    "TripSummaryResponse",
    "TripTransactionResponse",
    "TripTransactionsResponse",
    "TripUpdate",
]
