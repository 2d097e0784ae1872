"""Pydantic schemas for trips, trip assignments and matching."""

from datetime import date, datetime
from decimal import Decimal
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict


class TripCreate(BaseModel):
    """Schema for creating a Trip."""

    name: str
    description: Optional[str] = None
    start_date: date
    end_date: date
    home_currency: str = "USD"


class TripUpdate(BaseModel):
    """Schema for updating a Trip. Only provided fields are changed."""

    name: Optional[str] = None
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    home_currency: Optional[str] = None
    is_active: Optional[bool] = None


class TripResponse(BaseModel):
    """Schema for Trip API response."""

    id: str
    name: str
    description: Optional[str] = None
    start_date: date
    end_date: date
    home_currency: str
    is_active: bool
    created_at: datetime
    updated_at: datetime
    transaction_count: int = 0
    total_spend: Decimal = Decimal("0")

    model_config = ConfigDict(from_attributes=True)


class MatchRequest(BaseModel):
    """Body for POST /api/trips/{id}/match."""

    mode: Literal["preview", "execute"] = "preview"
    include_foreign_currency: bool = True
    merchant_patterns: list[str] = []


class TierBreakdownResponse(BaseModel):
    high: int = 0
    medium: int = 0
    low: int = 0


class MatchCandidateResponse(BaseModel):
    transaction_id: str
    date: date
    description: str
    merchant_name: Optional[str] = None
    amount: Decimal
    currency_code: str
    category: Optional[str] = None
    confidence: Decimal
    tier: Literal["high", "medium", "low"]


class MatchPreviewResponse(BaseModel):
    mode: Literal["preview"] = "preview"
    eligible_count: int
    tier_breakdown: TierBreakdownResponse
    sample: list[MatchCandidateResponse]


class MatchExecuteResponse(BaseModel):
    mode: Literal["execute"] = "execute"
    assigned_count: int
    tier_breakdown: TierBreakdownResponse


MatchResponse = Union[MatchPreviewResponse, MatchExecuteResponse]


class TransactionIdsRequest(BaseModel):
    """Body for manual add / remove of trip transactions."""

    transaction_ids: list[str]


class ManualAddResponse(BaseModel):
    added: int
    skipped: int
    transaction_ids: list[str]


class RemoveResponse(BaseModel):
    removed: int


class OverrideRequest(BaseModel):
    category_override: Optional[str] = None
    subcategory_override: Optional[str] = None
    notes: Optional[str] = None


class OverrideResponse(BaseModel):
    trip_assignment_id: str
    category_override: Optional[str] = None
    subcategory_override: Optional[str] = None
    notes: Optional[str] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class TripTransactionResponse(BaseModel):
    """A trip assignment joined with its transaction and override."""

    assignment_id: str
    transaction_id: str
    date: date
    amount: Decimal
    currency_code: str
    description: str
    merchant_name: Optional[str] = None
    category: Optional[str] = None
    subcategory: Optional[str] = None
    pending: bool
    account_name: Optional[str] = None
    institution_name: Optional[str] = None
    confidence: Decimal
    is_manual: bool
    category_override: Optional[str] = None
    subcategory_override: Optional[str] = None
    notes: Optional[str] = None
    effective_category: str


class TripSummaryResponse(BaseModel):
    total_spend: Decimal
    transaction_count: int
    category_breakdown: dict[str, Decimal]
    needs_review: int
    reviewed: int


class TripTransactionsResponse(BaseModel):
    items: list[TripTransactionResponse]
    summary: TripSummaryResponse
