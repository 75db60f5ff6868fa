"""Pydantic schemas for availability and blocked time."""

from datetime import date, datetime
from uuid import UUID
from pydantic import BaseModel
from typing import Optional

from app.models.blocked_range import BlockedRange
from app.utils.time_model import format_time


class SlotOut(BaseModel):
    start: str  # "09:00"
    end: str  # "10:00"


class AvailableSlotsResponse(BaseModel):
    provider_id: UUID
    service_id: UUID
    slots: list[SlotOut]
    date: date


class BlockedRangeCreate(BaseModel):
    provider_id: UUID
    start: str  # "12:00" or "12:00 PM"
    end: str
    reason: Optional[str] = None
    date: date


class BlockedRangeOut(BaseModel):
    id: UUID
    provider_id: UUID
    start: str
    end: str
    reason: Optional[str] = None
    created_at: Optional[datetime] = None
    date: date

    @classmethod
    def from_blocked_range(cls, blocked: BlockedRange) -> "BlockedRangeOut":
        return cls(
            id=blocked.id,
            provider_id=blocked.provider_id,
            date=blocked.blocked_date,
            start=format_time(blocked.start_minute),
            end=format_time(blocked.end_minute),
            reason=blocked.reason,
            created_at=blocked.created_at,
        )
