"""Pydantic schemas for providers and their services."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID
from pydantic import BaseModel, Field
from typing import Optional

from app.models.provider import Provider
from app.services.providers import WEEKDAY_KEYS
from app.utils.time_model import format_time


class DayHours(BaseModel):
    open: str  # "09:00" or "9:00 AM"
    close: str  # "17:00"


class WeeklyHours(BaseModel):
    """Weekdays left out (or null) are closed."""
    mon: Optional[DayHours] = None
    tue: Optional[DayHours] = None
    wed: Optional[DayHours] = None
    thu: Optional[DayHours] = None
    fri: Optional[DayHours] = None
    sat: Optional[DayHours] = None
    sun: Optional[DayHours] = None

    def as_dict(self) -> dict:
        return self.model_dump(exclude_none=True)


class ProviderCreate(BaseModel):
    name: str
    phone: Optional[str] = None
    timezone: Optional[str] = None  # "Africa/Johannesburg"
    commission_rate: Optional[Decimal] = Field(default=None, ge=0, le=1)
    hours: WeeklyHours


class ProviderUpdate(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    timezone: Optional[str] = None
    commission_rate: Optional[Decimal] = Field(default=None, ge=0, le=1)


class OperatingHoursOut(BaseModel):
    day: str
    is_open: bool
    open: Optional[str] = None
    close: Optional[str] = None


class ProviderOut(BaseModel):
    id: UUID
    name: str
    phone: Optional[str] = None
    timezone: str
    commission_rate: Decimal
    is_active: bool
    hours: list[OperatingHoursOut]
    created_at: Optional[datetime] = None

    @classmethod
    def from_provider(cls, provider: Provider) -> "ProviderOut":
        hours = []
        for row in provider.operating_hours:
            hours.append(OperatingHoursOut(
                day=WEEKDAY_KEYS[row.weekday],
                is_open=row.is_open,
                open=format_time(row.open_minute) if row.is_open else None,
                close=format_time(row.close_minute) if row.is_open else None,
            ))
        return cls(
            id=provider.id,
            name=provider.name,
            phone=provider.phone,
            timezone=provider.timezone,
            commission_rate=provider.commission_rate,
            is_active=provider.is_active,
            hours=hours,
            created_at=provider.created_at,
        )


class ServiceCreate(BaseModel):
    name: str
    duration_minutes: int = Field(gt=0)
    price: Decimal = Field(ge=0)


class ServiceUpdate(BaseModel):
    """Edits apply to future bookings only."""
    name: Optional[str] = None
    duration_minutes: Optional[int] = Field(default=None, gt=0)
    price: Optional[Decimal] = Field(default=None, ge=0)
    is_active: Optional[bool] = None


class ServiceOut(BaseModel):
    id: UUID
    provider_id: UUID
    name: str
    duration_minutes: int
    price: Decimal
    is_active: bool

    class Config:
        from_attributes = True


class CommissionLineOut(BaseModel):
    reference_number: str
    booking_date: date
    cost: Decimal
    commission: Decimal

    class Config:
        from_attributes = True


class CommissionSummaryOut(BaseModel):
    provider_id: UUID
    year: int
    month: int
    commission_rate: Decimal
    total_bookings: int
    total_revenue: Decimal
    total_commission: Decimal
    lines: list[CommissionLineOut]

    class Config:
        from_attributes = True
