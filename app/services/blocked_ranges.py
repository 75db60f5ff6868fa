"""Blocked time management.

Overlapping ranges are rejected, never merged, so the provider sees and fixes
the conflict. A range over an active booking is rejected too. Inserts run
under the same per-day lock as reservations.
"""

import logging
from datetime import date
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, ValidationError
from app.models.blocked_range import BlockedRange
from app.services.availability import load_day_schedule
from app.services.booking_lock import locked_day
from app.services.providers import get_provider
from app.utils.time_model import TimeInterval, overlaps, parse_time

logger = logging.getLogger(__name__)


async def create_blocked_range(
    db: AsyncSession,
    provider_id: UUID,
    blocked_date: date,
    start: str,
    end: str,
    reason: Optional[str] = None,
) -> BlockedRange:
    window = TimeInterval(parse_time(start), parse_time(end))

    async with locked_day(db, provider_id, blocked_date):
        await get_provider(db, provider_id)
        schedule = await load_day_schedule(db, provider_id, blocked_date)

        for existing in schedule.blocked:
            if overlaps(window, existing):
                raise ValidationError(f"{window} overlaps the blocked time {existing} on {blocked_date.isoformat()}")
        for booked in schedule.booked:
            if overlaps(window, booked):
                raise ValidationError(
                    f"{window} overlaps a booking at {booked} on {blocked_date.isoformat()}; "
                    f"cancel or reschedule it first"
                )

        blocked = BlockedRange(
            provider_id=provider_id,
            blocked_date=blocked_date,
            start_minute=window.start,
            end_minute=window.end,
            reason=reason or None,
        )
        db.add(blocked)
        await db.commit()
        await db.refresh(blocked)

    logger.info("Blocked %s on %s for provider %s", window, blocked_date, provider_id)
    return blocked


async def list_blocked_ranges(
    db: AsyncSession,
    provider_id: UUID,
    blocked_date: Optional[date] = None,
) -> list[BlockedRange]:
    query = select(BlockedRange).where(BlockedRange.provider_id == provider_id)
    if blocked_date:
        query = query.where(BlockedRange.blocked_date == blocked_date)
    query = query.order_by(BlockedRange.blocked_date, BlockedRange.start_minute)
    result = await db.execute(query)
    return result.scalars().all()


async def delete_blocked_range(db: AsyncSession, blocked_range_id: UUID) -> None:
    """Removing a block only frees time, so it needs no day lock."""
    result = await db.execute(select(BlockedRange).where(BlockedRange.id == blocked_range_id))
    blocked = result.scalar_one_or_none()
    if not blocked:
        raise NotFoundError("Blocked time not found")

    description = f"{TimeInterval(blocked.start_minute, blocked.end_minute)} on {blocked.blocked_date}"
    provider_id = blocked.provider_id
    await db.delete(blocked)
    await db.commit()
    logger.info("Removed blocked time %s for provider %s", description, provider_id)
