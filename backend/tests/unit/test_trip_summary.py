"""Unit tests for the trip summary projection."""

from datetime import date
from decimal import Decimal

from models import TripAssignment, TripOverride
from services.trip_service import TripService
from services.trip_summary import summarize
from tests.fixtures import add_transaction


def _assign(db, trip, txn, confidence="1.00", is_manual=False, category_override=None):
    a = TripAssignment(
        trip_id=trip.id,
        transaction_id=txn.id,
        confidence=Decimal(confidence),
        is_manual=is_manual,
    )
    db.add(a)
    db.flush()
    if category_override:
        db.add(TripOverride(trip_assignment_id=a.id, category_override=category_override))
        db.flush()
    return a


def test_empty_trip_summary():
    summary = summarize([])

    assert summary.total_spend == Decimal("0")
    assert summary.transaction_count == 0
    assert summary.category_breakdown == {}
    assert summary.needs_review == 0
    assert summary.reviewed == 0


def test_summary_totals_and_breakdown(db, trip, account):
    hotel = add_transaction(db, account, "hotel", amount="300.00", category="TRAVEL")
    dinner = add_transaction(db, account, "dinner", amount="42.50", category="FOOD_AND_DRINK")
    refund = add_transaction(db, account, "refund", amount="-20.00", category="TRAVEL")
    misc = add_transaction(db, account, "misc", amount="7.25", category=None)
    _assign(db, trip, hotel)
    _assign(db, trip, dinner, category_override="BUSINESS_MEALS")
    _assign(db, trip, refund)
    _assign(db, trip, misc)
    db.commit()

    summary = summarize(TripService.list_assignments(db, trip))

    assert summary.total_spend == Decimal("329.75")
    assert summary.transaction_count == 4
    assert summary.category_breakdown == {
        "BUSINESS_MEALS": Decimal("42.50"),
        "TRAVEL": Decimal("280.00"),
        "Uncategorized": Decimal("7.25"),
    }


def test_needs_review_excludes_manual_and_confident(db, trip, account):
    low = add_transaction(db, account, "low", txn_date=date(2025, 12, 2))
    medium = add_transaction(db, account, "medium", txn_date=date(2025, 12, 2))
    high = add_transaction(db, account, "high", txn_date=date(2025, 12, 2))
    manual = add_transaction(db, account, "manual", txn_date=date(2025, 12, 2))
    _assign(db, trip, low, confidence="0.30")
    _assign(db, trip, medium, confidence="0.59")
    _assign(db, trip, high, confidence="0.60")
    _assign(db, trip, manual, confidence="1.00", is_manual=True)
    db.commit()

    summary = summarize(TripService.list_assignments(db, trip))

    assert summary.needs_review == 2
    assert summary.reviewed == 2


def test_summary_is_recomputable(db, trip, assignment):
    first = summarize(TripService.list_assignments(db, trip))
    second = summarize(TripService.list_assignments(db, trip))

    assert first == second
