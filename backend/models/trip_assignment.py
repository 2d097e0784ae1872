"""TripAssignment model - links a transaction to a trip."""

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Numeric, String, UniqueConstraint
from sqlalchemy.orm import relationship

from database import Base
from models.utils import generate_uuid


class TripAssignment(Base):
    """Assignment of one transaction to one trip.

    A transaction appears at most once per trip (it may belong to several
    trips). Auto-matched rows carry the matcher's confidence; manual rows
    are always ``confidence=1.00, is_manual=True``.
    """

    __tablename__ = "trip_assignments"
    __table_args__ = (
        UniqueConstraint(
            "trip_id", "transaction_id",
            name="uix_trip_assignment_trip_transaction",
        ),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    trip_id = Column(
        String(36), ForeignKey("trips.id", ondelete="CASCADE"), nullable=False, index=True
    )
    transaction_id = Column(
        String, ForeignKey("transactions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    confidence = Column(Numeric(3, 2), nullable=False, default=Decimal("1.00"))
    is_manual = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    # Relationships
    trip = relationship("Trip", back_populates="assignments")
    transaction = relationship("Transaction", back_populates="trip_assignments")
    override = relationship(
        "TripOverride",
        back_populates="assignment",
        uselist=False,
        cascade="all, delete-orphan",
    )
