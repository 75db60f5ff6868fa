"""Availability endpoint."""

from datetime import date
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.schemas.availability import AvailableSlotsResponse, SlotOut
from app.services.availability import get_available_slots
from app.services.providers import get_provider, get_service

router = APIRouter()


@router.get("", response_model=AvailableSlotsResponse)
async def available_slots(
    provider_id: UUID = Query(...),
    service_id: UUID = Query(...),
    target_date: date = Query(..., alias="date", description="Date in YYYY-MM-DD format"),
    db: AsyncSession = Depends(get_db),
):
    """Bookable start times for a service on a date.

    The list is advisory: a slot shown here can still be taken before the
    booking request arrives, in which case POST /bookings answers 409.
    """
    provider = await get_provider(db, provider_id)
    service = await get_service(db, service_id)
    slots = await get_available_slots(db, provider, service, target_date)

    return AvailableSlotsResponse(
        provider_id=provider_id,
        service_id=service_id,
        date=target_date,
        slots=[SlotOut(**slot.as_dict()) for slot in slots],
    )
