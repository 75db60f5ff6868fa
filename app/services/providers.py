"""Provider and service lookup and management."""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import NotFoundError, ValidationError
from app.models.provider import Provider, OperatingHours
from app.models.service import Service
from app.services.fees import round2, to_decimal
from app.utils.time_model import TimeInterval, parse_time

logger = logging.getLogger(__name__)

WEEKDAY_KEYS = ["mon", "tue", "wed", "thu", "fri", "sat", "sun"]


async def get_provider(db: AsyncSession, provider_id: UUID) -> Provider:
    result = await db.execute(select(Provider).where(Provider.id == provider_id))
    provider = result.scalar_one_or_none()
    if not provider:
        raise NotFoundError("Provider not found")
    return provider


async def get_service(db: AsyncSession, service_id: UUID) -> Service:
    result = await db.execute(select(Service).where(Service.id == service_id))
    service = result.scalar_one_or_none()
    if not service:
        raise NotFoundError("Service not found")
    return service


def _validate_timezone(name: str) -> str:
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValidationError(f"Unknown timezone: {name!r}")
    return name


def _validate_commission_rate(rate) -> Decimal:
    rate = to_decimal(rate)
    if rate < 0 or rate > 1:
        raise ValidationError(f"Commission rate must be between 0 and 1, got {rate}")
    return rate


def build_operating_hours(weekly_hours: dict) -> list[OperatingHours]:
    """Turn {"mon": {"open": "09:00", "close": "17:00"}, "sun": None, ...} into rows.

    Weekdays that are missing or None are closed.
    """
    unknown = set(weekly_hours) - set(WEEKDAY_KEYS)
    if unknown:
        raise ValidationError(f"Unknown weekday keys: {', '.join(sorted(unknown))}")

    rows = []
    for weekday, key in enumerate(WEEKDAY_KEYS):
        day = weekly_hours.get(key)
        if not day or day.get("is_open") is False:
            rows.append(OperatingHours(weekday=weekday, is_open=False))
            continue
        window = TimeInterval(parse_time(day["open"]), parse_time(day["close"]))
        rows.append(
            OperatingHours(
                weekday=weekday,
                is_open=True,
                open_minute=window.start,
                close_minute=window.end,
            )
        )
    return rows


async def create_provider(
    db: AsyncSession,
    name: str,
    weekly_hours: dict,
    phone: Optional[str] = None,
    timezone: Optional[str] = None,
    commission_rate=None,
) -> Provider:
    provider = Provider(
        name=name,
        phone=phone,
        timezone=_validate_timezone(timezone or settings.DEFAULT_TIMEZONE),
        commission_rate=_validate_commission_rate(
            settings.DEFAULT_COMMISSION_RATE if commission_rate is None else commission_rate
        ),
        is_active=True,
        operating_hours=build_operating_hours(weekly_hours),
    )
    db.add(provider)
    await db.commit()
    await db.refresh(provider, attribute_names=["operating_hours"])
    logger.info("Provider created: %s (%s)", provider.id, provider.name)
    return provider


async def replace_operating_hours(db: AsyncSession, provider_id: UUID, weekly_hours: dict) -> Provider:
    """Replace the weekly template. Existing bookings are left untouched."""
    provider = await get_provider(db, provider_id)
    existing = {row.weekday: row for row in provider.operating_hours}
    # update in place; (provider_id, weekday) is unique
    for row in build_operating_hours(weekly_hours):
        current = existing.get(row.weekday)
        if current is None:
            provider.operating_hours.append(row)
            continue
        current.is_open = row.is_open
        current.open_minute = row.open_minute
        current.close_minute = row.close_minute
    provider.updated_at = datetime.utcnow()
    await db.commit()
    await db.refresh(provider, attribute_names=["operating_hours"])
    logger.info("Operating hours updated for provider %s", provider_id)
    return provider


async def update_provider(db: AsyncSession, provider_id: UUID, updates: dict) -> Provider:
    provider = await get_provider(db, provider_id)
    if "timezone" in updates and updates["timezone"] is not None:
        updates["timezone"] = _validate_timezone(updates["timezone"])
    if "commission_rate" in updates and updates["commission_rate"] is not None:
        updates["commission_rate"] = _validate_commission_rate(updates["commission_rate"])
    for key, value in updates.items():
        if value is not None:
            setattr(provider, key, value)
    await db.commit()
    await db.refresh(provider)
    return provider


async def deactivate_provider(db: AsyncSession, provider_id: UUID) -> Provider:
    """Soft-delete: bookings keep referencing the row, availability disappears."""
    provider = await get_provider(db, provider_id)
    provider.is_active = False
    await db.commit()
    await db.refresh(provider)
    logger.info("Provider %s deactivated", provider_id)
    return provider


def _validate_service_fields(duration_minutes: Optional[int], price) -> Optional[Decimal]:
    if duration_minutes is not None and duration_minutes <= 0:
        raise ValidationError(f"Service duration must be positive, got {duration_minutes}")
    if price is None:
        return None
    price = round2(price)
    if price < 0:
        raise ValidationError(f"Service price cannot be negative, got {price}")
    return price


async def create_service(
    db: AsyncSession,
    provider_id: UUID,
    name: str,
    duration_minutes: int,
    price,
) -> Service:
    await get_provider(db, provider_id)
    price = _validate_service_fields(duration_minutes, price)
    service = Service(
        provider_id=provider_id,
        name=name,
        duration_minutes=duration_minutes,
        price=price,
        is_active=True,
    )
    db.add(service)
    await db.commit()
    await db.refresh(service)
    logger.info("Service %s created for provider %s", service.id, provider_id)
    return service


async def update_service(db: AsyncSession, service_id: UUID, updates: dict) -> Service:
    """Edit a service. Bookings already made keep the price/duration they copied."""
    service = await get_service(db, service_id)
    price = _validate_service_fields(updates.get("duration_minutes"), updates.get("price"))
    if price is not None:
        updates["price"] = price
    for key, value in updates.items():
        if value is not None:
            setattr(service, key, value)
    await db.commit()
    await db.refresh(service)
    return service
