"""SyncLogEntry model - records the outcome of each connection sync."""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from database import Base
from models.utils import generate_uuid


class SyncLogEntry(Base):
    """A log entry recording the result of syncing a single connection."""

    __tablename__ = "sync_log_entries"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    connection_id = Column(
        String(36),
        ForeignKey("linked_connections.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(String, nullable=False, index=True)
    status = Column(String, nullable=False)  # "success" | "failed" | "reconnect_required" | "cancelled"
    added = Column(Integer, default=0, nullable=False)
    modified = Column(Integer, default=0, nullable=False)
    removed = Column(Integer, default=0, nullable=False)
    skipped = Column(Integer, default=0, nullable=False)
    batches = Column(Integer, default=0, nullable=False)
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    # Relationships
    connection = relationship("LinkedConnection", back_populates="sync_log_entries")
