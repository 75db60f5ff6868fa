"""Customer risk profiles.

No-shows and customer cancellations are counted here; the counters surface
as risk flags on the provider's booking views.
"""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import NotFoundError
from app.models.customer import CustomerProfile

logger = logging.getLogger(__name__)


def risk_flags(customer: CustomerProfile) -> list[str]:
    flags = []
    if customer.no_show_count > 0:
        flags.append("no_show_history")
    if customer.no_show_count > settings.HIGH_RISK_NO_SHOW_THRESHOLD:
        flags.append("high_risk")
    return flags


async def create_customer_profile(
    db: AsyncSession,
    name: str,
    phone: Optional[str] = None,
    email: Optional[str] = None,
) -> CustomerProfile:
    customer = CustomerProfile(name=name, phone=phone, email=email)
    db.add(customer)
    await db.commit()
    await db.refresh(customer)
    return customer


async def get_customer_profile(db: AsyncSession, customer_id: UUID) -> CustomerProfile:
    result = await db.execute(select(CustomerProfile).where(CustomerProfile.id == customer_id))
    customer = result.scalar_one_or_none()
    if not customer:
        raise NotFoundError("Customer not found")
    return customer


async def record_no_show(db: AsyncSession, customer_id: UUID) -> None:
    """Increment the no-show counter. Runs inside the caller's transaction."""
    await db.execute(
        update(CustomerProfile)
        .where(CustomerProfile.id == customer_id)
        .values(no_show_count=CustomerProfile.no_show_count + 1)
    )
    logger.info("No-show recorded for customer %s", customer_id)


async def record_cancellation(db: AsyncSession, customer_id: UUID) -> None:
    await db.execute(
        update(CustomerProfile)
        .where(CustomerProfile.id == customer_id)
        .values(cancellation_count=CustomerProfile.cancellation_count + 1)
    )
