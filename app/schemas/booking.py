"""Pydantic schemas for bookings and reviews."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID
from pydantic import BaseModel, Field
from typing import Optional

from app.models.booking import Booking, BookingActor, BookingStatus
from app.services.fees import PaymentMethod, round2
from app.utils.time_model import format_time


class BookingCreate(BaseModel):
    provider_id: UUID
    service_id: UUID
    customer_id: UUID
    start: str  # "10:00" or "10:00 AM"
    payment_method: PaymentMethod = PaymentMethod.PAY_ON_ARRIVAL
    special_requests: Optional[str] = Field(default=None, max_length=1000)
    date: date


class BookingAction(str, Enum):
    CONFIRM = "confirm"
    CANCEL = "cancel"
    NO_SHOW = "no_show"
    COMPLETE = "complete"
    CHARGE_FEE = "charge_fee"


class BookingUpdate(BaseModel):
    """PATCH body. ``fee`` applies to cancel/charge_fee, ``rating`` to complete."""
    action: BookingAction
    actor: BookingActor = BookingActor.PROVIDER
    fee: Optional[Decimal] = None
    rating: Optional[int] = None
    comment: Optional[str] = None
    reason: Optional[str] = Field(default=None, max_length=500)


class ReviewCreate(BaseModel):
    rating: int
    comment: Optional[str] = None


class ReviewOut(BaseModel):
    id: UUID
    booking_id: UUID
    rating: int
    comment: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BookingOut(BaseModel):
    id: UUID
    reference_number: str
    provider_id: UUID
    service_id: UUID
    customer_id: UUID
    start: str
    end: str
    duration_minutes: int
    status: BookingStatus
    cost: Decimal
    commission: Optional[Decimal] = None
    cancellation_fee: Optional[Decimal] = None
    processing_fee: Decimal
    total: Decimal
    payment_method: PaymentMethod
    cancelled_by: Optional[BookingActor] = None
    cancellation_reason: Optional[str] = None
    special_requests: Optional[str] = None
    confirmed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    date: date

    @classmethod
    def from_booking(cls, booking: Booking) -> "BookingOut":
        return cls(
            id=booking.id,
            reference_number=booking.reference_number,
            provider_id=booking.provider_id,
            service_id=booking.service_id,
            customer_id=booking.customer_id,
            date=booking.booking_date,
            start=format_time(booking.start_minute),
            end=format_time(booking.end_minute),
            duration_minutes=booking.duration_minutes,
            status=booking.status,
            cost=round2(booking.cost),
            commission=round2(booking.commission) if booking.commission is not None else None,
            cancellation_fee=round2(booking.cancellation_fee) if booking.cancellation_fee is not None else None,
            processing_fee=round2(booking.processing_fee),
            total=round2(booking.cost) + round2(booking.processing_fee),
            payment_method=booking.payment_method,
            cancelled_by=booking.cancelled_by,
            cancellation_reason=booking.cancellation_reason,
            special_requests=booking.special_requests,
            confirmed_at=booking.confirmed_at,
            created_at=booking.created_at,
            updated_at=booking.updated_at,
        )
