"""Account model - a depository/credit account under a linked connection."""

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Numeric, String
from sqlalchemy.orm import relationship

from database import Base


class Account(Base):
    """An account discovered when its connection was linked.

    The primary key is the provider-issued ``account_id``. Balances are
    refreshed in place by each sync; accounts are never created by sync.
    """

    __tablename__ = "accounts"

    id = Column(String, primary_key=True)  # Provider's account_id
    connection_id = Column(
        String(36),
        ForeignKey("linked_connections.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    official_name = Column(String, nullable=True)
    mask = Column(String(4), nullable=True)
    type = Column(String, nullable=False)  # e.g., "depository", "credit"
    subtype = Column(String, nullable=True)  # e.g., "checking", "credit card"
    current_balance = Column(Numeric(15, 2), nullable=True)
    available_balance = Column(Numeric(15, 2), nullable=True)
    currency_code = Column(String(3), nullable=False, default="USD")
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    connection = relationship("LinkedConnection", back_populates="accounts")
    transactions = relationship(
        "Transaction", back_populates="account", cascade="all, delete-orphan"
    )
