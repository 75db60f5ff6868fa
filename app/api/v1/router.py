from fastapi import APIRouter
from app.api.v1.endpoints import availability, bookings, blocked_ranges, providers, services, customers

api_router = APIRouter()
api_router.include_router(availability.router, prefix="/availability", tags=["availability"])
api_router.include_router(bookings.router, prefix="/bookings", tags=["bookings"])
api_router.include_router(blocked_ranges.router, prefix="/blocked-ranges", tags=["blocked-ranges"])
api_router.include_router(providers.router, prefix="/providers", tags=["providers"])
api_router.include_router(services.router, prefix="/services", tags=["services"])
api_router.include_router(customers.router, prefix="/customers", tags=["customers"])
