"""Blocked time endpoints (breaks, leave, personal time)."""

from datetime import date
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.schemas.availability import BlockedRangeCreate, BlockedRangeOut
from app.services.blocked_ranges import create_blocked_range, delete_blocked_range, list_blocked_ranges

router = APIRouter()


@router.post("", response_model=BlockedRangeOut, status_code=201)
async def block_time(data: BlockedRangeCreate, db: AsyncSession = Depends(get_db)):
    blocked = await create_blocked_range(
        db,
        provider_id=data.provider_id,
        blocked_date=data.date,
        start=data.start,
        end=data.end,
        reason=data.reason,
    )
    return BlockedRangeOut.from_blocked_range(blocked)


@router.get("", response_model=list[BlockedRangeOut])
async def get_blocked_ranges(
    provider_id: UUID = Query(...),
    blocked_date: Optional[date] = Query(None, alias="date"),
    db: AsyncSession = Depends(get_db),
):
    blocked = await list_blocked_ranges(db, provider_id, blocked_date)
    return [BlockedRangeOut.from_blocked_range(b) for b in blocked]


@router.delete("/{blocked_range_id}", status_code=204)
async def unblock_time(blocked_range_id: UUID, db: AsyncSession = Depends(get_db)):
    await delete_blocked_range(db, blocked_range_id)
