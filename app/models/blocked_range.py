"""Provider-declared unavailability windows."""

from sqlalchemy import Column, String, DateTime, Integer, Date, ForeignKey, Index
from sqlalchemy.dialects.postgresql import UUID
import uuid
from datetime import datetime
from app.core.database import Base


class BlockedRange(Base):
    __tablename__ = "blocked_ranges"
    __table_args__ = (
        Index("ix_blocked_ranges_provider_date", "provider_id", "blocked_date"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    provider_id = Column(UUID(as_uuid=True), ForeignKey("providers.id", ondelete="CASCADE"), nullable=False)
    blocked_date = Column(Date, nullable=False)
    start_minute = Column(Integer, nullable=False)
    end_minute = Column(Integer, nullable=False)
    reason = Column(String, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
