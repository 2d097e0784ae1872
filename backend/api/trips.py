"""Trip API endpoints: CRUD, auto-matching, manual assignment and overrides."""

import logging
from decimal import Decimal

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from api.helpers import get_current_user_id, to_http_exception
from database import get_db
from models import Trip, TripAssignment
from schemas import (
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
from services.exceptions import InvalidRequestError, NotFoundError
from services.trip_matcher import MatchMode, MatchOptions, MatchResult, TripMatcher
from services.trip_service import TripService
from services.trip_summary import effective_category, summarize

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/trips", tags=["trips"])


def _trip_or_404(db: Session, user_id: str, trip_id: str) -> Trip:
    try:
        return TripService.get_trip(db, user_id, trip_id)
    except NotFoundError as e:
        raise to_http_exception(e, "load the trip")


def _trip_response(trip: Trip, stats: dict) -> TripResponse:
    count, total = stats.get(trip.id, (0, Decimal("0")))
    response = TripResponse.model_validate(trip)
    response.transaction_count = count
    response.total_spend = total
    return response


def _assignment_response(assignment: TripAssignment) -> TripTransactionResponse:
    txn = assignment.transaction
    account = txn.account
    override = assignment.override
    return TripTransactionResponse(
        assignment_id=assignment.id,
        transaction_id=txn.id,
        date=txn.date,
        amount=txn.amount,
        currency_code=txn.currency_code,
        description=txn.description,
        merchant_name=txn.merchant_name,
        category=txn.category,
        subcategory=txn.subcategory,
        pending=txn.pending,
        account_name=account.name if account else None,
        institution_name=account.connection.institution_name if account and account.connection else None,
        confidence=assignment.confidence,
        is_manual=assignment.is_manual,
        category_override=override.category_override if override else None,
        subcategory_override=override.subcategory_override if override else None,
        notes=override.notes if override else None,
        effective_category=effective_category(assignment),
    )


def _tier_response(result: MatchResult) -> TierBreakdownResponse:
    tiers = result.tier_breakdown
    return TierBreakdownResponse(high=tiers.high, medium=tiers.medium, low=tiers.low)


# ------------------------------------------------------------------
# CRUD
# ------------------------------------------------------------------


@router.get("", response_model=list[TripResponse])
def list_trips(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """List trips, most recent start date first."""
    trips = TripService.list_trips(db, user_id)
    stats = TripService.get_trip_stats(db, [trip.id for trip in trips])
    return [_trip_response(trip, stats) for trip in trips]


@router.post("", response_model=TripResponse, status_code=201)
def create_trip(
    body: TripCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Create a trip. The start date must not be after the end date."""
    try:
        trip = TripService.create_trip(
            db,
            user_id,
            name=body.name,
            description=body.description,
            start_date=body.start_date,
            end_date=body.end_date,
            home_currency=body.home_currency,
        )
    except InvalidRequestError as e:
        raise to_http_exception(e, "create the trip")

    db.commit()
    db.refresh(trip)
    return _trip_response(trip, {})


@router.get("/{trip_id}", response_model=TripResponse)
def get_trip(
    trip_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    trip = _trip_or_404(db, user_id, trip_id)
    return _trip_response(trip, TripService.get_trip_stats(db, [trip.id]))


@router.patch("/{trip_id}", response_model=TripResponse)
def update_trip(
    trip_id: str,
    body: TripUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Update a trip. The merged date range is validated."""
    try:
        trip = TripService.update_trip(
            db, user_id, trip_id, **body.model_dump(exclude_unset=True)
        )
    except (NotFoundError, InvalidRequestError) as e:
        raise to_http_exception(e, "update the trip")

    db.commit()
    db.refresh(trip)
    return _trip_response(trip, TripService.get_trip_stats(db, [trip.id]))


@router.delete("/{trip_id}")
def delete_trip(
    trip_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Delete a trip along with its assignments and overrides."""
    try:
        TripService.delete_trip(db, user_id, trip_id)
    except NotFoundError as e:
        raise to_http_exception(e, "delete the trip")

    db.commit()
    return {"status": "ok", "trip_id": trip_id}


# ------------------------------------------------------------------
# Matching
# ------------------------------------------------------------------


@router.post("/{trip_id}/match", response_model=MatchResponse)
def match_trip(
    trip_id: str,
    body: MatchRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Preview or execute auto-matching of transactions to a trip.

    Preview performs no writes and returns a capped sample. Execute assigns
    every eligible unassigned transaction and is safe to repeat.
    """
    trip = _trip_or_404(db, user_id, trip_id)
    options = MatchOptions(
        include_foreign_currency=body.include_foreign_currency,
        merchant_patterns=body.merchant_patterns,
    )
    mode = MatchMode(body.mode)
    result = TripMatcher.match(db, trip, mode, options)

    if mode == MatchMode.PREVIEW:
        return MatchPreviewResponse(
            eligible_count=result.eligible_count,
            tier_breakdown=_tier_response(result),
            sample=[
                MatchCandidateResponse(
                    transaction_id=c.transaction_id,
                    date=c.date,
                    description=c.description,
                    merchant_name=c.merchant_name,
                    amount=c.amount,
                    currency_code=c.currency_code,
                    category=c.category,
                    confidence=c.confidence,
                    tier=c.tier.value,
                )
                for c in result.sample
            ],
        )

    db.commit()
    return MatchExecuteResponse(
        assigned_count=result.assigned_count,
        tier_breakdown=_tier_response(result),
    )


# ------------------------------------------------------------------
# Trip transactions
# ------------------------------------------------------------------


@router.get("/{trip_id}/transactions", response_model=TripTransactionsResponse)
def list_trip_transactions(
    trip_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Assigned transactions (newest first) with the trip summary."""
    trip = _trip_or_404(db, user_id, trip_id)
    assignments = TripService.list_assignments(db, trip)
    summary = summarize(assignments)
    return TripTransactionsResponse(
        items=[_assignment_response(a) for a in assignments],
        summary=TripSummaryResponse(
            total_spend=summary.total_spend,
            transaction_count=summary.transaction_count,
            category_breakdown=summary.category_breakdown,
            needs_review=summary.needs_review,
            reviewed=summary.reviewed,
        ),
    )


@router.post("/{trip_id}/transactions", response_model=ManualAddResponse)
def add_trip_transactions(
    trip_id: str,
    body: TransactionIdsRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Manually assign transactions (confidence 1.0)."""
    trip = _trip_or_404(db, user_id, trip_id)
    try:
        result = TripMatcher.add_manual(db, user_id, trip, body.transaction_ids)
    except InvalidRequestError as e:
        raise to_http_exception(e, "add transactions to the trip")

    db.commit()
    return ManualAddResponse(
        added=result.added,
        skipped=result.skipped,
        transaction_ids=result.transaction_ids,
    )


@router.delete("/{trip_id}/transactions", response_model=RemoveResponse)
def remove_trip_transactions(
    trip_id: str,
    body: TransactionIdsRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Unassign transactions. Ids that are not assigned are ignored."""
    trip = _trip_or_404(db, user_id, trip_id)
    try:
        removed = TripMatcher.remove(db, trip, body.transaction_ids)
    except InvalidRequestError as e:
        raise to_http_exception(e, "remove transactions from the trip")

    db.commit()
    return RemoveResponse(removed=removed)


@router.put(
    "/{trip_id}/transactions/{transaction_id}/override",
    response_model=OverrideResponse,
)
def set_override(
    trip_id: str,
    transaction_id: str,
    body: OverrideRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Create or replace the trip-scoped category override of a transaction."""
    trip = _trip_or_404(db, user_id, trip_id)
    try:
        override = TripService.set_override(
            db,
            trip,
            transaction_id,
            category_override=body.category_override,
            subcategory_override=body.subcategory_override,
            notes=body.notes,
        )
    except NotFoundError as e:
        raise to_http_exception(e, "set the override")

    db.commit()
    db.refresh(override)
    return override


@router.delete("/{trip_id}/transactions/{transaction_id}/override")
def clear_override(
    trip_id: str,
    transaction_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    trip = _trip_or_404(db, user_id, trip_id)
    try:
        deleted = TripService.clear_override(db, trip, transaction_id)
    except NotFoundError as e:
        raise to_http_exception(e, "clear the override")

    db.commit()
    return {"status": "ok", "deleted": deleted}
