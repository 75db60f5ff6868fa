"""Provider (stylist) model and weekly operating hours.

Providers are never deleted while bookings reference them; deactivation sets
is_active=False, which removes all availability.
"""

from sqlalchemy import Column, String, DateTime, Boolean, Integer, Numeric, ForeignKey, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
import uuid
from datetime import datetime
from app.core.database import Base


class Provider(Base):
    __tablename__ = "providers"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    phone = Column(String, nullable=True)
    timezone = Column(String, nullable=False, default="Africa/Johannesburg")
    commission_rate = Column(Numeric(5, 4), nullable=False, default=0.15)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    operating_hours = relationship(
        "OperatingHours",
        back_populates="provider",
        cascade="all, delete-orphan",
        order_by="OperatingHours.weekday",
        lazy="selectin",
    )


class OperatingHours(Base):
    """One row per weekday (0=Mon .. 6=Sun); times are minutes since midnight."""

    __tablename__ = "operating_hours"
    __table_args__ = (
        UniqueConstraint("provider_id", "weekday", name="uq_operating_hours_provider_weekday"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    provider_id = Column(UUID(as_uuid=True), ForeignKey("providers.id", ondelete="CASCADE"), nullable=False, index=True)
    weekday = Column(Integer, nullable=False)
    is_open = Column(Boolean, nullable=False, default=False)
    open_minute = Column(Integer, nullable=True)  # 540 == 09:00
    close_minute = Column(Integer, nullable=True)

    provider = relationship("Provider", back_populates="operating_hours")
