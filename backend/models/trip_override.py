"""TripOverride model - trip-scoped category annotations."""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from database import Base
from models.utils import generate_uuid


class TripOverride(Base):
    """Layered categorization for a trip assignment.

    Never mutates the underlying Transaction; at most one per assignment.
    """

    __tablename__ = "trip_overrides"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    trip_assignment_id = Column(
        String(36),
        ForeignKey("trip_assignments.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )
    category_override = Column(String, nullable=True)
    subcategory_override = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    assignment = relationship("TripAssignment", back_populates="override")
