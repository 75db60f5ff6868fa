"""Monthly commission summary per provider, over completed bookings."""

import calendar
import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ValidationError
from app.models.booking import Booking, BookingStatus
from app.services.fees import ZERO, round2
from app.services.providers import get_provider

logger = logging.getLogger(__name__)


@dataclass
class CommissionLine:
    reference_number: str
    booking_date: date
    cost: Decimal
    commission: Decimal


@dataclass
class CommissionSummary:
    provider_id: UUID
    year: int
    month: int
    commission_rate: Decimal
    total_bookings: int = 0
    total_revenue: Decimal = ZERO
    total_commission: Decimal = ZERO
    lines: list[CommissionLine] = field(default_factory=list)


async def monthly_commission_summary(db: AsyncSession, provider_id: UUID, year: int, month: int) -> CommissionSummary:
    if not 1 <= month <= 12:
        raise ValidationError(f"Month must be between 1 and 12, got {month}")
    provider = await get_provider(db, provider_id)

    first_day = date(year, month, 1)
    last_day = date(year, month, calendar.monthrange(year, month)[1])
    result = await db.execute(
        select(Booking)
        .where(
            and_(
                Booking.provider_id == provider_id,
                Booking.status == BookingStatus.COMPLETED,
                Booking.booking_date >= first_day,
                Booking.booking_date <= last_day,
            )
        )
        .order_by(Booking.booking_date, Booking.start_minute)
    )
    bookings = result.scalars().all()

    summary = CommissionSummary(
        provider_id=provider_id,
        year=year,
        month=month,
        commission_rate=provider.commission_rate,
    )
    for booking in bookings:
        commission = round2(booking.commission or 0)
        summary.lines.append(
            CommissionLine(
                reference_number=booking.reference_number,
                booking_date=booking.booking_date,
                cost=round2(booking.cost),
                commission=commission,
            )
        )
        summary.total_revenue += round2(booking.cost)
        summary.total_commission += commission
    summary.total_bookings = len(summary.lines)

    logger.info(
        "Commission summary for provider %s %04d-%02d: %d bookings, %s commission",
        provider_id,
        year,
        month,
        summary.total_bookings,
        summary.total_commission,
    )
    return summary
