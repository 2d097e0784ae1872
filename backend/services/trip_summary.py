"""Trip summary projection, computed on demand from stored assignments."""

from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal

from models import TripAssignment

UNCATEGORIZED = "Uncategorized"
NEEDS_REVIEW_BELOW = Decimal("0.6")


@dataclass
class TripSummary:
    total_spend: Decimal = Decimal("0")
    transaction_count: int = 0
    category_breakdown: dict[str, Decimal] = field(default_factory=dict)
    needs_review: int = 0
    reviewed: int = 0


def effective_category(assignment: TripAssignment) -> str:
    """Override category if present, else the transaction's own, else Uncategorized."""
    override = assignment.override
    if override is not None and override.category_override:
        return override.category_override
    return assignment.transaction.category or UNCATEGORIZED


def needs_review(assignment: TripAssignment) -> bool:
    if assignment.is_manual:
        return False
    return Decimal(str(assignment.confidence)) < NEEDS_REVIEW_BELOW


def summarize(assignments: list[TripAssignment]) -> TripSummary:
    """Project a list of assignments (with transaction and override loaded).

    Pure: no writes, and the same stored state always yields the same summary.
    """
    total = Decimal("0")
    breakdown: dict[str, Decimal] = defaultdict(lambda: Decimal("0"))
    review_count = 0

    for assignment in assignments:
        amount = Decimal(str(assignment.transaction.amount))
        total += amount
        breakdown[effective_category(assignment)] += amount
        if needs_review(assignment):
            review_count += 1

    count = len(assignments)
    return TripSummary(
        total_spend=total,
        transaction_count=count,
        category_breakdown=dict(sorted(breakdown.items())),
        needs_review=review_count,
        reviewed=count - review_count,
    )
