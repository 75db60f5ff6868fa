"""Provider, weekly hours and commission report endpoints."""

from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.models.service import Service
from app.schemas.provider import (
    CommissionSummaryOut,
    ProviderCreate,
    ProviderOut,
    ProviderUpdate,
    ServiceCreate,
    ServiceOut,
    WeeklyHours,
)
from app.services import providers
from app.services.commission_report import monthly_commission_summary

router = APIRouter()


@router.post("", response_model=ProviderOut, status_code=201)
async def create_provider(data: ProviderCreate, db: AsyncSession = Depends(get_db)):
    provider = await providers.create_provider(
        db,
        name=data.name,
        weekly_hours=data.hours.as_dict(),
        phone=data.phone,
        timezone=data.timezone,
        commission_rate=data.commission_rate,
    )
    return ProviderOut.from_provider(provider)


@router.get("/{provider_id}", response_model=ProviderOut)
async def get_provider(provider_id: UUID, db: AsyncSession = Depends(get_db)):
    provider = await providers.get_provider(db, provider_id)
    return ProviderOut.from_provider(provider)


@router.patch("/{provider_id}", response_model=ProviderOut)
async def update_provider(provider_id: UUID, data: ProviderUpdate, db: AsyncSession = Depends(get_db)):
    provider = await providers.update_provider(db, provider_id, data.model_dump(exclude_unset=True))
    return ProviderOut.from_provider(provider)


@router.put("/{provider_id}/hours", response_model=ProviderOut)
async def replace_hours(provider_id: UUID, data: WeeklyHours, db: AsyncSession = Depends(get_db)):
    """Replace the weekly template. Bookings already made are kept."""
    provider = await providers.replace_operating_hours(db, provider_id, data.as_dict())
    return ProviderOut.from_provider(provider)


@router.delete("/{provider_id}", response_model=ProviderOut)
async def deactivate_provider(provider_id: UUID, db: AsyncSession = Depends(get_db)):
    provider = await providers.deactivate_provider(db, provider_id)
    return ProviderOut.from_provider(provider)


@router.post("/{provider_id}/services", response_model=ServiceOut, status_code=201)
async def create_service(provider_id: UUID, data: ServiceCreate, db: AsyncSession = Depends(get_db)):
    return await providers.create_service(
        db,
        provider_id=provider_id,
        name=data.name,
        duration_minutes=data.duration_minutes,
        price=data.price,
    )


@router.get("/{provider_id}/services", response_model=list[ServiceOut])
async def list_services(provider_id: UUID, db: AsyncSession = Depends(get_db)):
    await providers.get_provider(db, provider_id)
    result = await db.execute(
        select(Service)
        .where(Service.provider_id == provider_id, Service.is_active == True)  # noqa: E712
        .order_by(Service.name)
    )
    return result.scalars().all()


@router.get("/{provider_id}/commission", response_model=CommissionSummaryOut)
async def commission_report(
    provider_id: UUID,
    year: int = Query(..., ge=2000),
    month: int = Query(..., ge=1, le=12),
    db: AsyncSession = Depends(get_db),
):
    """Monthly platform commission over completed bookings."""
    return await monthly_commission_summary(db, provider_id, year, month)
