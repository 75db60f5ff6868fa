"""Tests for booking SMS notifications; verifies behavior with and without Twilio."""

from datetime import date
from unittest.mock import MagicMock, patch

import pytest
from twilio.base.exceptions import TwilioRestException

from app.core.config import settings
from app.services import booking_state
from app.services.booking_lock import reserve
from app.services.notifications import BookingEvent, notify, render_message, send_sms

FUTURE_MONDAY = date(2099, 1, 5)


@pytest.fixture
def twilio_configured(monkeypatch):
    monkeypatch.setattr(settings, "NOTIFICATIONS_ENABLED", True)
    monkeypatch.setattr(settings, "TWILIO_ACCOUNT_SID", "AC123")
    monkeypatch.setattr(settings, "TWILIO_AUTH_TOKEN", "secret")
    monkeypatch.setattr(settings, "TWILIO_PHONE_NUMBER", "+27100000000")


@pytest.mark.asyncio
async def test_sms_skipped_when_no_credentials(monkeypatch):
    """SMS should gracefully return False when Twilio creds are empty."""
    monkeypatch.setattr(settings, "TWILIO_ACCOUNT_SID", "")
    result = await send_sms("+27820000002", "hello")
    assert result is False


@pytest.mark.asyncio
async def test_sms_sent_through_twilio(twilio_configured):
    client = MagicMock()
    client.messages.create.return_value = MagicMock(sid="SM1")

    with patch("app.services.notifications._get_twilio_client", return_value=client):
        result = await send_sms("+27820000002", "hello")

    assert result is True
    client.messages.create.assert_called_once_with(body="hello", from_="+27100000000", to="+27820000002")


@pytest.mark.asyncio
async def test_twilio_error_is_swallowed(twilio_configured):
    client = MagicMock()
    client.messages.create.side_effect = TwilioRestException(400, "https://api.twilio.com", "bad number")

    with patch("app.services.notifications._get_twilio_client", return_value=client):
        assert await send_sms("+27820000002", "hello") is False


@pytest.mark.asyncio
async def test_notify_is_disabled_by_setting(db, provider, service, customer):
    booking = await reserve(db, provider.id, service.id, customer.id, FUTURE_MONDAY, "10:00")
    with patch("app.services.notifications.send_sms") as mock_send:
        assert await notify(db, BookingEvent.REQUESTED, booking) is False
    mock_send.assert_not_called()


@pytest.mark.asyncio
async def test_confirm_texts_the_customer(db, provider, service, customer, twilio_configured):
    booking = await reserve(db, provider.id, service.id, customer.id, FUTURE_MONDAY, "10:00")
    client = MagicMock()

    with patch("app.services.notifications._get_twilio_client", return_value=client):
        await booking_state.confirm(db, booking)

    kwargs = client.messages.create.call_args.kwargs
    assert kwargs["to"] == "+27820000002"
    assert booking.reference_number in kwargs["body"]
    assert "10:00 AM" in kwargs["body"]
    assert "confirmed" in kwargs["body"]


@pytest.mark.asyncio
async def test_failed_sms_does_not_undo_cancellation(db, provider, service, customer, twilio_configured):
    booking = await reserve(db, provider.id, service.id, customer.id, FUTURE_MONDAY, "10:00")

    with patch("app.services.notifications._get_twilio_client", side_effect=RuntimeError("network down")):
        booking = await booking_state.cancel(db, booking, "customer")

    await db.refresh(booking)
    assert booking.status.value == "cancelled"


@pytest.mark.asyncio
async def test_render_cancellation_with_fee(db, provider, service, customer):
    booking = await reserve(db, provider.id, service.id, customer.id, FUTURE_MONDAY, "16:00")
    booking = await booking_state.confirm(db, booking)
    booking = await booking_state.cancel(db, booking, "provider", fee=80)

    text = render_message(BookingEvent.CANCELLED, booking)
    assert "Mon 05 Jan 2099 at 4:00 PM" in text
    assert "R80.00" in text
