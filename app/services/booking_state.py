"""Booking state machine.

    pending   -> confirmed | cancelled
    confirmed -> completed | cancelled | no_show

completed, cancelled and no_show are terminal. This module is the only writer
of ``Booking.status`` after the initial ``pending`` insert; cancelled and
no-show bookings stop occupying their slot as soon as the change commits.

Every write is a conditional UPDATE on the status the caller read, so of two
requests racing on the same booking only the first one wins.
"""

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AlreadyReviewed, InvalidTransition, NotFoundError, ValidationError
from app.models.booking import Booking, BookingStatus, BookingActor
from app.models.provider import Provider
from app.models.review import Review
from app.services import fees
from app.services.customers import record_cancellation, record_no_show
from app.services.notifications import BookingEvent, notify

logger = logging.getLogger(__name__)

TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({
        BookingStatus.COMPLETED,
        BookingStatus.CANCELLED,
        BookingStatus.NO_SHOW,
    }),
}

TERMINAL_STATUSES = frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED, BookingStatus.NO_SHOW})


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    return target in TRANSITIONS.get(current, frozenset())


def _check_transition(booking: Booking, target: BookingStatus) -> None:
    if not can_transition(booking.status, target):
        raise InvalidTransition(
            f"Booking {booking.reference_number} cannot go from "
            f"{booking.status.value} to {target.value}"
        )


MAX_REASON_LENGTH = 500


async def _write_if_unchanged(db: AsyncSession, booking: Booking, values: dict, *conditions) -> None:
    """Write ``values`` only if the row still has the status ``booking`` was read with."""
    result = await db.execute(
        update(Booking)
        .where(Booking.id == booking.id, Booking.status == booking.status, *conditions)
        .values(updated_at=datetime.utcnow(), **values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        reference = booking.reference_number
        await db.rollback()
        logger.warning("Booking %s changed concurrently; update rejected", reference)
        raise InvalidTransition(f"Booking {reference} was changed by another request. Reload it and try again.")


def _validate_rating(rating) -> int:
    if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
        raise ValidationError(f"Rating must be a whole number from 1 to 5, got {rating!r}")
    return rating


async def get_booking(db: AsyncSession, booking_id: UUID, for_update: bool = False) -> Booking:
    query = select(Booking).where(Booking.id == booking_id)
    if for_update:
        query = query.with_for_update()
    result = await db.execute(query)
    booking = result.scalar_one_or_none()
    if not booking:
        raise NotFoundError("Booking not found")
    return booking


async def get_review(db: AsyncSession, booking_id: UUID) -> Optional[Review]:
    result = await db.execute(select(Review).where(Review.booking_id == booking_id))
    return result.scalar_one_or_none()


async def confirm(db: AsyncSession, booking: Booking) -> Booking:
    """pending -> confirmed. No fee logic."""
    _check_transition(booking, BookingStatus.CONFIRMED)
    await _write_if_unchanged(
        db, booking, {"status": BookingStatus.CONFIRMED, "confirmed_at": datetime.utcnow()}
    )
    await db.commit()
    await db.refresh(booking)

    logger.info("Booking %s confirmed", booking.reference_number)
    await notify(db, BookingEvent.CONFIRMED, booking)
    return booking


async def cancel(
    db: AsyncSession,
    booking: Booking,
    actor: BookingActor,
    fee=None,
    reason: Optional[str] = None,
) -> Booking:
    """pending|confirmed -> cancelled.

    Only a provider cancelling a confirmed booking may attach a fee; pending
    bookings never carry one.
    """
    actor = BookingActor(actor)
    _check_transition(booking, BookingStatus.CANCELLED)

    fee_amount = None
    if fee is not None:
        if actor != BookingActor.PROVIDER:
            raise ValidationError("Only the provider can charge a cancellation fee")
        if booking.status != BookingStatus.CONFIRMED:
            raise ValidationError("Cancelling a pending booking never carries a fee")
        fee_amount = fees.cancellation_fee(fee)
    if reason and len(reason) > MAX_REASON_LENGTH:
        raise ValidationError(f"Cancellation reason must be at most {MAX_REASON_LENGTH} characters")

    await _write_if_unchanged(db, booking, {
        "status": BookingStatus.CANCELLED,
        "cancelled_by": actor,
        "cancellation_reason": reason or None,
        "cancellation_fee": fee_amount,
    })
    if actor == BookingActor.CUSTOMER:
        await record_cancellation(db, booking.customer_id)
    await db.commit()
    await db.refresh(booking)

    logger.info(
        "Booking %s cancelled by %s (fee=%s)",
        booking.reference_number,
        actor.value,
        booking.cancellation_fee,
    )
    await notify(db, BookingEvent.CANCELLED, booking)
    return booking


async def mark_no_show(db: AsyncSession, booking: Booking) -> Booking:
    """confirmed -> no_show. Counts against the customer; charges nothing."""
    _check_transition(booking, BookingStatus.NO_SHOW)
    await _write_if_unchanged(db, booking, {"status": BookingStatus.NO_SHOW})
    await record_no_show(db, booking.customer_id)
    await db.commit()
    await db.refresh(booking)

    logger.info("Booking %s marked as no-show", booking.reference_number)
    await notify(db, BookingEvent.NO_SHOW, booking)
    return booking


async def charge_cancellation_fee(db: AsyncSession, booking: Booking, fee) -> Booking:
    """Charge a fee on a no-show, or on a cancelled booking that had been confirmed.

    A booking is charged at most once.
    """
    was_committed = booking.status == BookingStatus.NO_SHOW or (
        booking.status == BookingStatus.CANCELLED and booking.confirmed_at is not None
    )
    if not was_committed:
        raise InvalidTransition(
            f"Booking {booking.reference_number} ({booking.status.value}) cannot be charged a cancellation fee"
        )
    if booking.cancellation_fee is not None:
        raise InvalidTransition(f"Booking {booking.reference_number} has already been charged a cancellation fee")

    amount = fees.cancellation_fee(fee)
    await _write_if_unchanged(
        db, booking, {"cancellation_fee": amount}, Booking.cancellation_fee.is_(None)
    )
    await db.commit()
    await db.refresh(booking)

    logger.info("Cancellation fee %s charged on booking %s", booking.cancellation_fee, booking.reference_number)
    await notify(db, BookingEvent.FEE_CHARGED, booking)
    return booking


async def complete(
    db: AsyncSession,
    booking: Booking,
    rating: Optional[int] = None,
    comment: Optional[str] = None,
) -> Booking:
    """confirmed -> completed. Books the platform commission and, optionally, the review."""
    _check_transition(booking, BookingStatus.COMPLETED)
    if rating is not None:
        rating = _validate_rating(rating)

    provider = await db.get(Provider, booking.provider_id)
    commission = fees.commission(booking.cost, provider.commission_rate)
    await _write_if_unchanged(db, booking, {"status": BookingStatus.COMPLETED, "commission": commission})
    if rating is not None:
        db.add(Review(booking_id=booking.id, rating=rating, comment=comment))
    await db.commit()
    await db.refresh(booking)

    logger.info("Booking %s completed (commission=%s)", booking.reference_number, booking.commission)
    await notify(db, BookingEvent.COMPLETED, booking)
    return booking


async def add_review(db: AsyncSession, booking: Booking, rating: int, comment: Optional[str] = None) -> Review:
    """Attach the one review a completed booking may have."""
    if booking.status != BookingStatus.COMPLETED:
        raise InvalidTransition("Only completed bookings can be reviewed")
    rating = _validate_rating(rating)
    if await get_review(db, booking.id):
        raise AlreadyReviewed("You've already reviewed this booking")

    review = Review(booking_id=booking.id, rating=rating, comment=comment)
    db.add(review)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise AlreadyReviewed("You've already reviewed this booking")
    await db.refresh(review)

    logger.info("Review (%d stars) added to booking %s", rating, booking.reference_number)
    return review
