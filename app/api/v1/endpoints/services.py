"""Service catalogue edits."""

from uuid import UUID
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.schemas.provider import ServiceOut, ServiceUpdate
from app.services import providers

router = APIRouter()


@router.get("/{service_id}", response_model=ServiceOut)
async def get_service(service_id: UUID, db: AsyncSession = Depends(get_db)):
    return await providers.get_service(db, service_id)


@router.patch("/{service_id}", response_model=ServiceOut)
async def update_service(service_id: UUID, data: ServiceUpdate, db: AsyncSession = Depends(get_db)):
    """Price and duration edits apply to new bookings only."""
    return await providers.update_service(db, service_id, data.model_dump(exclude_unset=True))
