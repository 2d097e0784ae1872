"""LinkedConnection model - one upstream aggregation link per institution."""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.orm import relationship

from database import Base
from models.utils import generate_uuid


class LinkedConnection(Base):
    """A Plaid Item linked by a user.

    Holds the access token used for every provider call and the opaque
    ``/transactions/sync`` cursor. The cursor is written only by
    ``SyncService`` and is stored and echoed back verbatim.
    """

    __tablename__ = "linked_connections"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String, nullable=False, index=True)
    item_id = Column(String, unique=True, index=True, nullable=False)  # Plaid item_id
    access_token = Column(String, nullable=False)
    institution_id = Column(String, nullable=False, default="unknown")
    institution_name = Column(String, nullable=True)
    cursor = Column(Text, nullable=True)
    last_synced_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    accounts = relationship(
        "Account", back_populates="connection", cascade="all, delete-orphan"
    )
    sync_log_entries = relationship(
        "SyncLogEntry", back_populates="connection", cascade="all, delete-orphan"
    )
