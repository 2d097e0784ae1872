"""Trip matcher - confidence-scored auto-assignment of transactions to trips.

Scoring is a pure function of (date match, currency, merchant patterns,
category) so it can be exercised without a database. Every transaction
inside the trip window starts at the base confidence; bonuses only move it
between tiers.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config import settings
from models import Transaction, Trip, TripAssignment
from services.exceptions import InvalidRequestError
from services.transaction_service import TransactionService

logger = logging.getLogger(__name__)

BASE_CONFIDENCE = Decimal("0.3")
FOREIGN_CURRENCY_BONUS = Decimal("0.4")
MERCHANT_PATTERN_BONUS = Decimal("0.2")
TRAVEL_CATEGORY_BONUS = Decimal("0.1")
MAX_CONFIDENCE = Decimal("1.0")
MANUAL_CONFIDENCE = Decimal("1.00")

ELIGIBILITY_THRESHOLD = Decimal("0.3")
HIGH_TIER_MIN = Decimal("0.6")
MEDIUM_TIER_MIN = Decimal("0.4")

TRAVEL_CATEGORIES = (
    "TRAVEL",
    "AIRLINES",
    "LODGING",
    "RENTAL",
    "TAXI",
    "TRANSPORTATION",
    "FOOD_AND_DRINK",
    "RESTAURANTS",
)

_CENT = Decimal("0.01")


class MatchMode(str, Enum):
    PREVIEW = "preview"
    EXECUTE = "execute"


class ConfidenceTier(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass
class MatchOptions:
    include_foreign_currency: bool = True
    merchant_patterns: list[str] = field(default_factory=list)


@dataclass
class TierBreakdown:
    high: int = 0
    medium: int = 0
    low: int = 0

    def add(self, tier: ConfidenceTier) -> None:
        setattr(self, tier.value, getattr(self, tier.value) + 1)


@dataclass
class ScoredCandidate:
    transaction_id: str
    date: date
    description: str
    merchant_name: str | None
    amount: Decimal
    currency_code: str
    category: str | None
    confidence: Decimal
    tier: ConfidenceTier


@dataclass
class MatchResult:
    mode: MatchMode
    eligible_count: int = 0
    assigned_count: int = 0
    tier_breakdown: TierBreakdown = field(default_factory=TierBreakdown)
    sample: list[ScoredCandidate] = field(default_factory=list)


@dataclass
class ManualAddResult:
    added: int = 0
    skipped: int = 0
    transaction_ids: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Pure scoring
# ---------------------------------------------------------------------------


def _matches_any_pattern(patterns: list[str], *fields: str | None) -> bool:
    haystacks = [f.casefold() for f in fields if f]
    for pattern in patterns:
        needle = (pattern or "").strip().casefold()
        if not needle:
            continue
        if any(needle in haystack for haystack in haystacks):
            return True
    return False


def is_travel_category(category: str | None) -> bool:
    if not category:
        return False
    upper = category.upper()
    return any(travel in upper for travel in TRAVEL_CATEGORIES)


def score_transaction(
    currency_code: str | None,
    merchant_name: str | None,
    description: str | None,
    category: str | None,
    home_currency: str,
    options: MatchOptions,
) -> Decimal:
    """Confidence for a transaction already known to fall inside the trip window.

    Always within ``[BASE_CONFIDENCE, MAX_CONFIDENCE]``.
    """
    score = BASE_CONFIDENCE

    if options.include_foreign_currency and currency_code:
        if currency_code.strip().upper() != (home_currency or "").strip().upper():
            score += FOREIGN_CURRENCY_BONUS

    if _matches_any_pattern(options.merchant_patterns, merchant_name, description):
        score += MERCHANT_PATTERN_BONUS

    if is_travel_category(category):
        score += TRAVEL_CATEGORY_BONUS

    return min(score, MAX_CONFIDENCE)


def classify_tier(confidence: Decimal) -> ConfidenceTier:
    if confidence >= HIGH_TIER_MIN:
        return ConfidenceTier.HIGH
    if confidence >= MEDIUM_TIER_MIN:
        return ConfidenceTier.MEDIUM
    return ConfidenceTier.LOW


def round_confidence(confidence: Decimal) -> Decimal:
    return confidence.quantize(_CENT, rounding=ROUND_HALF_UP)


# ---------------------------------------------------------------------------
# Store-backed operations
# ---------------------------------------------------------------------------


class TripMatcher:
    """Candidate selection, preview/execute matching, manual add and removal."""

    @staticmethod
    def _assigned_ids(db: Session, trip: Trip) -> set[str]:
        rows = (
            db.query(TripAssignment.transaction_id)
            .filter(TripAssignment.trip_id == trip.id)
            .all()
        )
        return {row[0] for row in rows}

    @staticmethod
    def find_candidates(db: Session, trip: Trip) -> list[Transaction]:
        """The user's unassigned transactions dated inside the trip window (inclusive)."""
        assigned = TripMatcher._assigned_ids(db, trip)
        transactions = (
            db.query(Transaction)
            .filter(
                Transaction.user_id == trip.user_id,
                Transaction.date >= trip.start_date,
                Transaction.date <= trip.end_date,
            )
            .order_by(Transaction.date, Transaction.id)
            .all()
        )
        return [txn for txn in transactions if txn.id not in assigned]

    @staticmethod
    def score_candidates(
        trip: Trip, candidates: list[Transaction], options: MatchOptions
    ) -> list[ScoredCandidate]:
        scored = []
        for txn in candidates:
            confidence = round_confidence(score_transaction(
                currency_code=txn.currency_code,
                merchant_name=txn.merchant_name,
                description=txn.description,
                category=txn.category,
                home_currency=trip.home_currency,
                options=options,
            ))
            if confidence < ELIGIBILITY_THRESHOLD:
                continue
            scored.append(ScoredCandidate(
                transaction_id=txn.id,
                date=txn.date,
                description=txn.description,
                merchant_name=txn.merchant_name,
                amount=Decimal(str(txn.amount)),
                currency_code=txn.currency_code,
                category=txn.category,
                confidence=confidence,
                tier=classify_tier(confidence),
            ))
        return scored

    @staticmethod
    def match(
        db: Session,
        trip: Trip,
        mode: MatchMode,
        options: MatchOptions | None = None,
    ) -> MatchResult:
        """Preview or execute auto-matching for a trip.

        Preview performs no writes. Execute inserts one auto assignment per
        eligible candidate; a candidate assigned concurrently is skipped.
        """
        options = options or MatchOptions()
        candidates = TripMatcher.find_candidates(db, trip)
        scored = TripMatcher.score_candidates(trip, candidates, options)

        result = MatchResult(mode=mode, eligible_count=len(scored))
        for candidate in scored:
            result.tier_breakdown.add(candidate.tier)

        if mode == MatchMode.PREVIEW:
            result.sample = scored[: settings.MATCH_PREVIEW_LIMIT]
            return result

        for candidate in scored:
            if TripMatcher._insert_assignment(
                db, trip, candidate.transaction_id, candidate.confidence, is_manual=False
            ):
                result.assigned_count += 1
        db.flush()

        logger.info(
            "Trip %s: auto-assigned %d of %d eligible transactions",
            trip.id, result.assigned_count, result.eligible_count,
        )
        return result

    @staticmethod
    def _insert_assignment(
        db: Session,
        trip: Trip,
        transaction_id: str,
        confidence: Decimal,
        is_manual: bool,
    ) -> bool:
        """Insert one assignment; a duplicate (trip, transaction) pair is skipped.

        Returns:
            True if inserted, False if the pair already existed.
        """
        try:
            with db.begin_nested():
                db.add(TripAssignment(
                    trip_id=trip.id,
                    transaction_id=transaction_id,
                    confidence=confidence,
                    is_manual=is_manual,
                ))
        except IntegrityError:
            logger.debug(
                "Transaction %s already assigned to trip %s, skipping",
                transaction_id, trip.id,
            )
            return False
        return True

    @staticmethod
    def add_manual(
        db: Session, user_id: str, trip: Trip, transaction_ids: list[str]
    ) -> ManualAddResult:
        """Manually assign transactions at confidence 1.0.

        Ids not owned by the user, or already assigned to this trip, are
        counted as skipped.

        Raises:
            InvalidRequestError: If ``transaction_ids`` is empty.
        """
        requested = list(dict.fromkeys(tid for tid in transaction_ids if tid))
        if not requested:
            raise InvalidRequestError("transaction_ids must not be empty")

        owned = TransactionService.get_owned_ids(db, user_id, requested)
        assigned = TripMatcher._assigned_ids(db, trip)

        result = ManualAddResult()
        for transaction_id in requested:
            if transaction_id not in owned or transaction_id in assigned:
                result.skipped += 1
                continue
            if TripMatcher._insert_assignment(
                db, trip, transaction_id, MANUAL_CONFIDENCE, is_manual=True
            ):
                result.added += 1
                result.transaction_ids.append(transaction_id)
            else:
                result.skipped += 1
        result.skipped += len(transaction_ids) - len(requested)

        db.flush()
        logger.info(
            "Trip %s: manually added %d transactions (%d skipped)",
            trip.id, result.added, result.skipped,
        )
        return result

    @staticmethod
    def remove(db: Session, trip: Trip, transaction_ids: list[str]) -> int:
        """Unassign transactions from a trip; overrides go with them.

        Returns:
            Number of assignments removed. Unknown ids are ignored.

        Raises:
            InvalidRequestError: If ``transaction_ids`` is empty.
        """
        if not transaction_ids:
            raise InvalidRequestError("transaction_ids must not be empty")

        assignments = (
            db.query(TripAssignment)
            .filter(
                TripAssignment.trip_id == trip.id,
                TripAssignment.transaction_id.in_(transaction_ids),
            )
            .all()
        )
        for assignment in assignments:
            db.delete(assignment)
        db.flush()

        if assignments:
            logger.info("Trip %s: removed %d assignments", trip.id, len(assignments))
        return len(assignments)
