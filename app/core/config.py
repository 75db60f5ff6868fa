"""
Application configuration.
Values come from environment variables or a local .env file. Scheduling
constants (slot granularity, default commission, processing surcharge and the
reservation lock timeout) live here so every component reads the same values.
"""
import logging
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    APP_ENV: str = "development"
    DATABASE_URL: str = "sqlite+aiosqlite:///./scheduling.db"
    LOG_LEVEL: str = "INFO"

    # Availability
    SLOT_GRANULARITY_MINUTES: int = 30
    DEFAULT_TIMEZONE: str = "Africa/Johannesburg"

    # Fees
    DEFAULT_COMMISSION_RATE: float = 0.15
    PROCESSING_FEE_RATE: float = 0.029

    # Reservation lock: seconds to wait for the (provider, date) lock
    RESERVATION_LOCK_TIMEOUT_SECONDS: float = 5.0

    # Customer risk
    HIGH_RISK_NO_SHOW_THRESHOLD: int = 2

    # Twilio SMS
    NOTIFICATIONS_ENABLED: bool = True
    TWILIO_ACCOUNT_SID: str = ""
    TWILIO_AUTH_TOKEN: str = ""
    TWILIO_PHONE_NUMBER: str = ""

    class Config:
        env_file = ".env"


settings = Settings()

if settings.SLOT_GRANULARITY_MINUTES <= 0:
    raise ValueError(
        f"SLOT_GRANULARITY_MINUTES must be positive, got {settings.SLOT_GRANULARITY_MINUTES}"
    )

if not 0 <= settings.DEFAULT_COMMISSION_RATE <= 1:
    raise ValueError(
        f"DEFAULT_COMMISSION_RATE must be between 0 and 1, got {settings.DEFAULT_COMMISSION_RATE}"
    )
