"""Availability calculator.

``compute_available_slots`` is a pure function of its inputs (operating hours,
blocked ranges, bookings, today's date). ``get_available_slots`` loads those
inputs for one provider/date and calls it; nothing is cached between calls.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Optional
from uuid import UUID
from zoneinfo import ZoneInfo

from sqlalchemy import select, and_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import AvailabilityUnknown, ProviderClosed, ValidationError
from app.models.blocked_range import BlockedRange
from app.models.booking import Booking, ACTIVE_STATUSES
from app.models.provider import Provider, OperatingHours
from app.models.service import Service
from app.utils.time_model import TimeInterval, overlaps, format_time

logger = logging.getLogger(__name__)

WEEKDAY_NAMES = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]


@dataclass(frozen=True)
class Slot:
    start: int
    end: int
    available: bool

    def as_dict(self) -> dict:
        return {"start": format_time(self.start), "end": format_time(self.end)}


@dataclass(frozen=True)
class DaySchedule:
    """Everything that occupies a provider's day."""

    blocked: list[TimeInterval]
    booked: list[TimeInterval]

    @property
    def occupied(self) -> list[TimeInterval]:
        return sorted(self.blocked + self.booked)


def provider_today(provider: Provider) -> date:
    """Today's date in the provider's local calendar."""
    return datetime.now(ZoneInfo(provider.timezone or settings.DEFAULT_TIMEZONE)).date()


def hours_for_weekday(provider: Provider, weekday: int) -> Optional[OperatingHours]:
    for hours in provider.operating_hours:
        if hours.weekday == weekday:
            return hours
    return None


def open_window(provider: Provider, target_date: date, today: date) -> TimeInterval:
    """Operating window for ``target_date``.

    Raises ProviderClosed for past dates, closed weekdays and inactive providers.
    """
    if not provider.is_active:
        raise ProviderClosed("Provider is not accepting bookings")
    if target_date < today:
        raise ProviderClosed(f"{target_date.isoformat()} is in the past")

    hours = hours_for_weekday(provider, target_date.weekday())
    if hours is None or not hours.is_open or hours.open_minute is None or hours.close_minute is None:
        raise ProviderClosed(f"Provider is closed on {WEEKDAY_NAMES[target_date.weekday()].capitalize()}s")
    return TimeInterval(hours.open_minute, hours.close_minute)


def find_conflict(window: TimeInterval, schedule: DaySchedule) -> Optional[str]:
    """Describe the first blocked range or active booking ``window`` overlaps."""
    for blocked in schedule.blocked:
        if overlaps(window, blocked):
            return f"blocked {blocked}"
    for booked in schedule.booked:
        if overlaps(window, booked):
            return f"booked {booked}"
    return None


def walk_slots(
    window: TimeInterval,
    duration_minutes: int,
    occupied: Iterable[TimeInterval],
    granularity: int,
) -> list[Slot]:
    """Walk candidate start times across ``window``.

    A candidate is available only if its whole [start, start+duration) window
    is free. Candidates stay on the ``granularity`` grid anchored at the window
    start. After an available slot the walk resumes at the first grid point at
    or after that slot's end, so offered slots never overlap; after an
    unavailable one it advances by ``granularity``.
    """
    if duration_minutes <= 0:
        raise ValidationError(f"Service duration must be positive, got {duration_minutes}")
    occupied = list(occupied)

    slots = []
    current = window.start
    while current + duration_minutes <= window.end:
        candidate = TimeInterval(current, current + duration_minutes)
        if any(overlaps(candidate, busy) for busy in occupied):
            slots.append(Slot(candidate.start, candidate.end, False))
            current += granularity
        else:
            slots.append(Slot(candidate.start, candidate.end, True))
            steps = -(-(candidate.end - window.start) // granularity)
            current = window.start + steps * granularity
    return slots


def compute_available_slots(
    provider: Provider,
    service: Service,
    target_date: date,
    schedule: DaySchedule,
    today: date,
    granularity: int | None = None,
) -> list[Slot]:
    """Ordered bookable slots for ``service`` with ``provider`` on ``target_date``.

    A service longer than the open window yields an empty list.
    """
    if service.provider_id != provider.id:
        raise ValidationError("Service does not belong to this provider")
    if not service.is_active:
        raise ValidationError("Service is no longer offered")

    window = open_window(provider, target_date, today)
    slots = walk_slots(
        window,
        service.duration_minutes,
        schedule.occupied,
        granularity or settings.SLOT_GRANULARITY_MINUTES,
    )
    return [slot for slot in slots if slot.available]


async def load_day_schedule(db: AsyncSession, provider_id: UUID, target_date: date) -> DaySchedule:
    """Load blocked ranges and active bookings for one provider/date.

    Any failure raises AvailabilityUnknown; a partial load is never treated
    as a free day.
    """
    try:
        blocked_result = await db.execute(
            select(BlockedRange).where(
                and_(
                    BlockedRange.provider_id == provider_id,
                    BlockedRange.blocked_date == target_date,
                )
            )
        )
        blocked = blocked_result.scalars().all()

        booking_result = await db.execute(
            select(Booking).where(
                and_(
                    Booking.provider_id == provider_id,
                    Booking.booking_date == target_date,
                    Booking.status.in_(ACTIVE_STATUSES),
                )
            )
        )
        bookings = booking_result.scalars().all()
    except SQLAlchemyError as e:
        logger.error("Failed to load schedule for provider %s on %s: %s", provider_id, target_date, e)
        raise AvailabilityUnknown("Availability could not be determined. Please try again.")

    return DaySchedule(
        blocked=[TimeInterval(b.start_minute, b.end_minute) for b in blocked],
        booked=[TimeInterval(b.start_minute, b.end_minute) for b in bookings],
    )


async def get_available_slots(
    db: AsyncSession,
    provider: Provider,
    service: Service,
    target_date: date,
) -> list[Slot]:
    schedule = await load_day_schedule(db, provider.id, target_date)
    slots = compute_available_slots(provider, service, target_date, schedule, provider_today(provider))
    logger.debug(
        "Provider %s on %s: %d slots for %d-minute service",
        provider.id,
        target_date,
        len(slots),
        service.duration_minutes,
    )
    return slots
