"""Conflict detector and booking lock.

Reservations are linearizable per (provider_id, date). Two layers enforce it:

1. an in-process ``asyncio.Lock`` per key, acquired with a timeout;
2. on PostgreSQL, a transaction-scoped advisory lock on the same key, so
   several API workers sharing one database are serialized too.

Inside both locks the overlap invariant is re-checked against freshly loaded
bookings and blocked ranges, and the booking row is inserted and committed
before either lock is released. A slot list the client fetched earlier is
never trusted on its own.
"""

import asyncio
import hashlib
import logging
import uuid
from contextlib import asynccontextmanager
from datetime import date
from typing import Optional
from uuid import UUID

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import SchedulingError, SlotUnavailable, ValidationError
from app.models.booking import Booking, BookingStatus
from app.services import fees
from app.services.availability import find_conflict, load_day_schedule, open_window, provider_today
from app.services.customers import get_customer_profile
from app.services.providers import get_provider, get_service
from app.utils.time_model import TimeInterval, contains, format_time, parse_time

logger = logging.getLogger(__name__)

LockKey = tuple[UUID, date]


class DayLockRegistry:
    """Per-(provider, date) asyncio locks.

    Entries are dropped once no task holds or waits on them, so the registry
    only grows with the number of keys under contention.
    """

    def __init__(self):
        self._locks: dict[LockKey, asyncio.Lock] = {}
        self._users: dict[LockKey, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, key: LockKey, timeout: float):
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            try:
                await asyncio.wait_for(lock.acquire(), timeout)
            except asyncio.TimeoutError:
                logger.warning("Reservation lock timeout for provider %s on %s", key[0], key[1])
                raise SlotUnavailable("This time is being booked by someone else. Please pick another time.")
            try:
                yield
            finally:
                lock.release()
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]


day_locks = DayLockRegistry()


def advisory_lock_key(provider_id: UUID, booking_date: date) -> int:
    """Stable signed 64-bit key for pg_advisory_xact_lock."""
    digest = hashlib.blake2b(
        f"{provider_id}:{booking_date.isoformat()}".encode(),
        digest_size=8,
    ).digest()
    return int.from_bytes(digest, "big", signed=True)


async def _acquire_store_lock(db: AsyncSession, provider_id: UUID, booking_date: date, timeout: float) -> None:
    """Take the cross-process advisory lock; released on commit/rollback."""
    if db.get_bind().dialect.name != "postgresql":
        return
    try:
        await db.execute(text(f"SET LOCAL lock_timeout = '{int(timeout * 1000)}ms'"))
        await db.execute(
            text("SELECT pg_advisory_xact_lock(:key)"),
            {"key": advisory_lock_key(provider_id, booking_date)},
        )
    except DBAPIError as e:
        logger.warning("Advisory lock not acquired for provider %s on %s: %s", provider_id, booking_date, e)
        raise SlotUnavailable("This time is being booked by someone else. Please pick another time.")


@asynccontextmanager
async def locked_day(db: AsyncSession, provider_id: UUID, booking_date: date):
    """Critical section for writes that must keep one provider-day consistent.

    Domain errors raised inside roll the session back before the locks go.
    The rollback expires every instance loaded in the session, so callers that
    keep going after a failure should hold ids and reload.
    """
    timeout = settings.RESERVATION_LOCK_TIMEOUT_SECONDS
    async with day_locks.hold((provider_id, booking_date), timeout):
        try:
            await _acquire_store_lock(db, provider_id, booking_date, timeout)
            yield
        except SchedulingError:
            await db.rollback()
            raise


def generate_reference_number() -> str:
    return f"BK-{uuid.uuid4().hex[:8].upper()}"


async def reserve(
    db: AsyncSession,
    provider_id: UUID,
    service_id: UUID,
    customer_id: UUID,
    booking_date: date,
    start,
    payment_method: fees.PaymentMethod = fees.PaymentMethod.PAY_ON_ARRIVAL,
    special_requests: Optional[str] = None,
    today: Optional[date] = None,
) -> Booking:
    """Atomically check a slot and create a ``pending`` booking for it.

    ``start`` is a time string ("10:00", "10:00 AM") or minutes since midnight.
    Raises SlotUnavailable if the window overlaps an active booking or blocked
    range, or if the lock cannot be taken in time. On failure the session is
    rolled back and objects already loaded through it are expired.
    """
    start_minute = parse_time(start) if isinstance(start, str) else start

    async with locked_day(db, provider_id, booking_date):
        booking = await _check_and_insert(
            db,
            provider_id=provider_id,
            service_id=service_id,
            customer_id=customer_id,
            booking_date=booking_date,
            start_minute=start_minute,
            payment_method=fees.PaymentMethod(payment_method),
            special_requests=special_requests,
            today=today,
        )

    logger.info(
        "Reserved %s: provider=%s date=%s window=%s-%s",
        booking.reference_number,
        provider_id,
        booking_date,
        format_time(booking.start_minute),
        format_time(booking.end_minute),
    )
    return booking


async def _check_and_insert(
    db: AsyncSession,
    provider_id: UUID,
    service_id: UUID,
    customer_id: UUID,
    booking_date: date,
    start_minute: int,
    payment_method: fees.PaymentMethod,
    special_requests: Optional[str],
    today: Optional[date],
) -> Booking:
    provider = await get_provider(db, provider_id)
    service = await get_service(db, service_id)
    await get_customer_profile(db, customer_id)

    if service.provider_id != provider.id:
        raise ValidationError("Service does not belong to this provider")
    if not service.is_active:
        raise ValidationError("Service is no longer offered")

    hours = open_window(provider, booking_date, today or provider_today(provider))
    window = TimeInterval.from_duration(start_minute, service.duration_minutes)
    if not contains(hours, window):
        raise ValidationError(f"{window} is outside operating hours {hours}")

    schedule = await load_day_schedule(db, provider_id, booking_date)
    conflict = find_conflict(window, schedule)
    if conflict:
        logger.warning(
            "Slot %s on %s for provider %s unavailable (%s)",
            window,
            booking_date,
            provider_id,
            conflict,
        )
        raise SlotUnavailable(f"{format_time(window.start)} on {booking_date.isoformat()} is no longer available")

    cost = fees.round2(service.price)
    total = fees.payment_total(cost, payment_method)
    booking = Booking(
        reference_number=generate_reference_number(),
        provider_id=provider_id,
        service_id=service_id,
        customer_id=customer_id,
        booking_date=booking_date,
        start_minute=window.start,
        end_minute=window.end,
        duration_minutes=service.duration_minutes,
        status=BookingStatus.PENDING,
        cost=cost,
        processing_fee=total - cost,
        payment_method=payment_method,
        special_requests=special_requests,
    )
    db.add(booking)
    await db.commit()
    await db.refresh(booking)
    return booking
