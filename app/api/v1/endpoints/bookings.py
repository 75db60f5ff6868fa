"""Booking endpoints: reserve, look up, and move bookings through their lifecycle."""

from datetime import date
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.models.booking import Booking
from app.schemas.booking import (
    BookingAction,
    BookingCreate,
    BookingOut,
    BookingUpdate,
    ReviewCreate,
    ReviewOut,
)
from app.services import booking_state
from app.services.booking_lock import reserve
from app.services.notifications import BookingEvent, notify

router = APIRouter()


@router.post("", response_model=BookingOut, status_code=201)
async def create_booking(data: BookingCreate, db: AsyncSession = Depends(get_db)):
    """Reserve a slot. Answers 409 if the time was taken in the meantime."""
    booking = await reserve(
        db,
        provider_id=data.provider_id,
        service_id=data.service_id,
        customer_id=data.customer_id,
        booking_date=data.date,
        start=data.start,
        payment_method=data.payment_method,
        special_requests=data.special_requests,
    )
    await notify(db, BookingEvent.REQUESTED, booking)
    return BookingOut.from_booking(booking)


@router.get("", response_model=list[BookingOut])
async def list_bookings(
    provider_id: Optional[UUID] = Query(None),
    customer_id: Optional[UUID] = Query(None),
    booking_date: Optional[date] = Query(None, alias="date"),
    db: AsyncSession = Depends(get_db),
):
    """Bookings for a provider (optionally one date) or for a customer."""
    if not provider_id and not customer_id:
        raise HTTPException(status_code=400, detail="provider_id or customer_id is required")

    query = select(Booking)
    if provider_id:
        query = query.where(Booking.provider_id == provider_id)
    if customer_id:
        query = query.where(Booking.customer_id == customer_id)
    if booking_date:
        query = query.where(Booking.booking_date == booking_date)
    query = query.order_by(Booking.booking_date, Booking.start_minute)

    result = await db.execute(query)
    return [BookingOut.from_booking(b) for b in result.scalars().all()]


@router.get("/{booking_id}", response_model=BookingOut)
async def get_booking(booking_id: UUID, db: AsyncSession = Depends(get_db)):
    booking = await booking_state.get_booking(db, booking_id)
    return BookingOut.from_booking(booking)


@router.patch("/{booking_id}", response_model=BookingOut)
async def update_booking(booking_id: UUID, data: BookingUpdate, db: AsyncSession = Depends(get_db)):
    """Apply one lifecycle action to a booking."""
    booking = await booking_state.get_booking(db, booking_id, for_update=True)

    if data.action == BookingAction.CONFIRM:
        booking = await booking_state.confirm(db, booking)
    elif data.action == BookingAction.CANCEL:
        booking = await booking_state.cancel(db, booking, data.actor, fee=data.fee, reason=data.reason)
    elif data.action == BookingAction.NO_SHOW:
        booking = await booking_state.mark_no_show(db, booking)
    elif data.action == BookingAction.COMPLETE:
        booking = await booking_state.complete(db, booking, rating=data.rating, comment=data.comment)
    elif data.action == BookingAction.CHARGE_FEE:
        if data.fee is None:
            raise HTTPException(status_code=422, detail="fee is required to charge a cancellation fee")
        booking = await booking_state.charge_cancellation_fee(db, booking, data.fee)

    return BookingOut.from_booking(booking)


@router.post("/{booking_id}/review", response_model=ReviewOut, status_code=201)
async def review_booking(booking_id: UUID, data: ReviewCreate, db: AsyncSession = Depends(get_db)):
    booking = await booking_state.get_booking(db, booking_id)
    return await booking_state.add_review(db, booking, data.rating, data.comment)


@router.get("/{booking_id}/review", response_model=ReviewOut)
async def get_booking_review(booking_id: UUID, db: AsyncSession = Depends(get_db)):
    review = await booking_state.get_review(db, booking_id)
    if not review:
        raise HTTPException(status_code=404, detail="Review not found")
    return review
