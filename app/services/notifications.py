"""Booking notifications over Twilio SMS.

``notify`` is fire-and-forget: it runs after the booking change has been
committed and never raises, so a failed SMS cannot roll back a booking.
"""

import logging
from enum import Enum
from twilio.rest import Client
from twilio.base.exceptions import TwilioRestException
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.models.booking import Booking
from app.models.customer import CustomerProfile
from app.utils.time_model import format_time_12h

logger = logging.getLogger(__name__)


class BookingEvent(str, Enum):
    REQUESTED = "booking_requested"
    CONFIRMED = "booking_confirmed"
    CANCELLED = "booking_cancelled"
    NO_SHOW = "booking_no_show"
    COMPLETED = "booking_completed"
    FEE_CHARGED = "cancellation_fee_charged"


def _get_twilio_client() -> Client:
    return Client(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN)


def render_message(event: BookingEvent, booking: Booking) -> str:
    when = f"{booking.booking_date.strftime('%a %d %b %Y')} at {format_time_12h(booking.start_minute)}"
    ref = booking.reference_number
    if event == BookingEvent.REQUESTED:
        return f"Booking {ref} for {when} received. We'll let you know once it's confirmed."
    if event == BookingEvent.CONFIRMED:
        return f"Your booking {ref} on {when} is confirmed. See you then!"
    if event == BookingEvent.CANCELLED:
        text = f"Your booking {ref} on {when} has been cancelled."
        if booking.cancellation_fee:
            text += f" A cancellation fee of R{booking.cancellation_fee} applies."
        return text
    if event == BookingEvent.NO_SHOW:
        return f"You missed your booking {ref} on {when}. Please contact us to rebook."
    if event == BookingEvent.FEE_CHARGED:
        return f"A cancellation fee of R{booking.cancellation_fee} was charged for booking {ref}."
    return f"Thanks for visiting! Booking {ref} is complete. We'd love a review."


async def notify(db: AsyncSession, event: BookingEvent, booking: Booking) -> bool:
    """Send the customer an SMS about ``event``. Returns True on success."""
    if not settings.NOTIFICATIONS_ENABLED:
        return False

    try:
        customer = await db.get(CustomerProfile, booking.customer_id)
        if not customer or not customer.phone:
            logger.info("No phone on file for customer %s; skipping %s", booking.customer_id, event.value)
            return False
        return await send_sms(customer.phone, render_message(event, booking))
    except Exception as e:
        logger.error("Notification %s for booking %s failed: %s", event.value, booking.id, e)
        return False


async def send_sms(to: str, body: str) -> bool:
    """Send an SMS via Twilio. Returns True on success."""
    if not all([settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN, settings.TWILIO_PHONE_NUMBER]):
        logger.warning("Twilio credentials not configured; skipping SMS to %s", to)
        return False

    try:
        client = _get_twilio_client()
        message = client.messages.create(
            body=body,
            from_=settings.TWILIO_PHONE_NUMBER,
            to=to,
        )
        logger.info("SMS sent to %s, SID: %s", to, message.sid)
        return True
    except TwilioRestException as e:
        logger.error("Twilio error sending SMS to %s: %s", to, e)
        return False
    except Exception as e:
        logger.error("Unexpected error sending SMS to %s: %s", to, e)
        return False
