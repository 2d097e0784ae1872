"""Trip model - a user-defined, date-bounded grouping of transactions."""

from datetime import datetime, timezone

from sqlalchemy import Boolean, CheckConstraint, Column, Date, DateTime, String, Text
from sqlalchemy.orm import relationship

from database import Base
from models.utils import generate_uuid


class Trip(Base):
    """A trip window used to group transactions for expense consolidation."""

    __tablename__ = "trips"
    __table_args__ = (
        CheckConstraint("start_date <= end_date", name="ck_trip_date_range"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)  # e.g., "Peru - Dec 2025"
    description = Column(Text, nullable=True)
    start_date = Column(Date, nullable=False, index=True)
    end_date = Column(Date, nullable=False, index=True)
    home_currency = Column(String(3), nullable=False, default="USD")
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    assignments = relationship(
        "TripAssignment", back_populates="trip", cascade="all, delete-orphan"
    )
