"""Transaction model - canonical record of a provider transaction."""

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Numeric, String
from sqlalchemy.orm import relationship

from database import Base


class Transaction(Base):
    """A transaction keyed by the provider-issued ``transaction_id``.

    The id is immutable and doubles as the idempotency key for sync
    upserts. Amounts follow the provider sign convention (positive =
    money leaving the account, negative = inflow).
    """

    __tablename__ = "transactions"

    id = Column(String, primary_key=True)  # Provider's transaction_id
    account_id = Column(
        String, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(String, nullable=False, index=True)
    amount = Column(Numeric(15, 2), nullable=False)
    currency_code = Column(String(3), nullable=False, default="USD")
    description = Column(String, nullable=False, default="Unknown")
    merchant_name = Column(String, nullable=True)
    category = Column(String, nullable=True, index=True)
    subcategory = Column(String, nullable=True)
    date = Column(Date, nullable=False, index=True)
    authorized_date = Column(Date, nullable=True)
    pending = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    account = relationship("Account", back_populates="transactions")
    trip_assignments = relationship(
        "TripAssignment", back_populates="transaction", cascade="all, delete-orphan"
    )
