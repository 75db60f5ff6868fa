"""Pydantic schemas for customer profiles."""

from uuid import UUID
from pydantic import BaseModel, EmailStr
from typing import Optional

from app.models.customer import CustomerProfile
from app.services.customers import risk_flags


class CustomerCreate(BaseModel):
    name: str
    phone: Optional[str] = None
    email: Optional[EmailStr] = None


class CustomerOut(BaseModel):
    id: UUID
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    no_show_count: int
    cancellation_count: int
    risk_flags: list[str]

    @classmethod
    def from_profile(cls, customer: CustomerProfile) -> "CustomerOut":
        return cls(
            id=customer.id,
            name=customer.name,
            phone=customer.phone,
            email=customer.email,
            no_show_count=customer.no_show_count,
            cancellation_count=customer.cancellation_count,
            risk_flags=risk_flags(customer),
        )
