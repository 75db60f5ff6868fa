"""Customer profile endpoints."""

from uuid import UUID
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.schemas.customer import CustomerCreate, CustomerOut
from app.services.customers import create_customer_profile, get_customer_profile

router = APIRouter()


@router.post("", response_model=CustomerOut, status_code=201)
async def create_customer(data: CustomerCreate, db: AsyncSession = Depends(get_db)):
    customer = await create_customer_profile(db, name=data.name, phone=data.phone, email=data.email)
    return CustomerOut.from_profile(customer)


@router.get("/{customer_id}", response_model=CustomerOut)
async def get_customer(customer_id: UUID, db: AsyncSession = Depends(get_db)):
    """Profile with risk flags, as shown on the provider's booking view."""
    customer = await get_customer_profile(db, customer_id)
    return CustomerOut.from_profile(customer)
