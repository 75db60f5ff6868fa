"""Booking model.

Bookings are never deleted: cancelled and no-show rows stay for history and
customer risk scoring. Only the reservation service inserts rows and only the
booking state machine changes ``status``.
"""

from sqlalchemy import Column, String, DateTime, Integer, Date, Numeric, ForeignKey, Text, Index, Enum as SQLEnum
from sqlalchemy.dialects.postgresql import UUID
import uuid
from datetime import datetime
import enum
from app.core.database import Base
from app.services.fees import PaymentMethod


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"
    COMPLETED = "completed"


# Statuses whose time window is held against other bookings
ACTIVE_STATUSES = (BookingStatus.PENDING, BookingStatus.CONFIRMED)


class BookingActor(str, enum.Enum):
    CUSTOMER = "customer"
    PROVIDER = "provider"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        Index("ix_bookings_provider_date_status", "provider_id", "booking_date", "status"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    reference_number = Column(String, unique=True, nullable=False)
    provider_id = Column(UUID(as_uuid=True), ForeignKey("providers.id"), nullable=False)
    service_id = Column(UUID(as_uuid=True), ForeignKey("services.id"), nullable=False)
    customer_id = Column(UUID(as_uuid=True), ForeignKey("customer_profiles.id"), nullable=False, index=True)

    # Slot
    booking_date = Column(Date, nullable=False)
    start_minute = Column(Integer, nullable=False)
    end_minute = Column(Integer, nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    status = Column(
        SQLEnum(BookingStatus, name="booking_status", values_callable=_enum_values),
        default=BookingStatus.PENDING,
        nullable=False,
    )

    # Money (2dp fixed point)
    cost = Column(Numeric(10, 2), nullable=False)
    commission = Column(Numeric(10, 2), nullable=True)  # set on completion
    cancellation_fee = Column(Numeric(10, 2), nullable=True)
    processing_fee = Column(Numeric(10, 2), nullable=False, default=0)
    payment_method = Column(
        SQLEnum(PaymentMethod, name="payment_method", values_callable=_enum_values),
        default=PaymentMethod.PAY_ON_ARRIVAL,
        nullable=False,
    )

    # Lifecycle
    cancelled_by = Column(SQLEnum(BookingActor, name="booking_actor", values_callable=_enum_values), nullable=True)
    cancellation_reason = Column(String(500), nullable=True)
    special_requests = Column(Text, nullable=True)
    confirmed_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
