"""Tests for the booking state machine, cancellation fees and reviews."""

from datetime import date
from decimal import Decimal

import pytest

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from app.core.database import Base
from app.core.exceptions import AlreadyReviewed, InvalidFee, InvalidTransition, ValidationError
from app.models.booking import BookingActor, BookingStatus
from app.services import booking_state
from app.services.booking_lock import reserve
from app.services.customers import create_customer_profile, get_customer_profile, risk_flags
from app.services.providers import WEEKDAY_KEYS, create_provider, create_service

FUTURE_MONDAY = date(2099, 1, 5)


@pytest.fixture
def book(db, provider, service, customer):
    async def _book(start="10:00"):
        return await reserve(db, provider.id, service.id, customer.id, FUTURE_MONDAY, start)
    return _book


def test_transition_table():
    assert booking_state.can_transition(BookingStatus.PENDING, BookingStatus.CONFIRMED)
    assert booking_state.can_transition(BookingStatus.PENDING, BookingStatus.CANCELLED)
    assert not booking_state.can_transition(BookingStatus.PENDING, BookingStatus.COMPLETED)
    assert not booking_state.can_transition(BookingStatus.PENDING, BookingStatus.NO_SHOW)
    assert booking_state.can_transition(BookingStatus.CONFIRMED, BookingStatus.NO_SHOW)
    for terminal in booking_state.TERMINAL_STATUSES:
        for target in BookingStatus:
            assert not booking_state.can_transition(terminal, target)


@pytest.mark.asyncio
async def test_confirm_sets_confirmed_at(db, book):
    booking = await book()
    booking = await booking_state.confirm(db, booking)
    assert booking.status == BookingStatus.CONFIRMED
    assert booking.confirmed_at is not None

    with pytest.raises(InvalidTransition):
        await booking_state.confirm(db, booking)


@pytest.mark.asyncio
async def test_customer_cancels_pending_without_fee(db, book, customer):
    booking = await book()
    booking = await booking_state.cancel(db, booking, BookingActor.CUSTOMER, reason="Running late")

    assert booking.status == BookingStatus.CANCELLED
    assert booking.cancelled_by == BookingActor.CUSTOMER
    assert booking.cancellation_fee is None
    assert booking.cancellation_reason == "Running late"

    profile = await get_customer_profile(db, customer.id)
    await db.refresh(profile)
    assert profile.cancellation_count == 1


@pytest.mark.asyncio
async def test_fee_on_pending_cancellation_is_rejected(db, book):
    booking = await book()
    with pytest.raises(ValidationError):
        await booking_state.cancel(db, booking, BookingActor.PROVIDER, fee=Decimal("50"))
    await db.refresh(booking)
    assert booking.status == BookingStatus.PENDING


@pytest.mark.asyncio
async def test_customer_cannot_attach_fee(db, book):
    booking = await booking_state.confirm(db, await book())
    with pytest.raises(ValidationError):
        await booking_state.cancel(db, booking, BookingActor.CUSTOMER, fee=Decimal("50"))


@pytest.mark.asyncio
async def test_provider_cancels_confirmed_with_fee(db, book):
    booking = await booking_state.confirm(db, await book())
    booking = await booking_state.cancel(db, booking, BookingActor.PROVIDER, fee="75.5")

    assert booking.status == BookingStatus.CANCELLED
    assert booking.cancellation_fee == Decimal("75.50")


@pytest.mark.asyncio
async def test_zero_or_negative_fee_is_rejected(db, book):
    booking = await booking_state.confirm(db, await book())
    with pytest.raises(InvalidFee):
        await booking_state.cancel(db, booking, BookingActor.PROVIDER, fee=0)
    with pytest.raises(InvalidFee):
        await booking_state.cancel(db, booking, BookingActor.PROVIDER, fee=-5)
    assert booking.status == BookingStatus.CONFIRMED


@pytest.mark.asyncio
async def test_cancelling_twice_is_rejected_and_fee_unchanged(db, book):
    booking = await booking_state.confirm(db, await book())
    booking = await booking_state.cancel(db, booking, BookingActor.PROVIDER, fee=50)

    with pytest.raises(InvalidTransition):
        await booking_state.cancel(db, booking, BookingActor.PROVIDER, fee=80)
    await db.refresh(booking)
    assert booking.cancellation_fee == Decimal("50.00")


@pytest.mark.asyncio
async def test_cancellation_reason_over_limit_is_rejected(db, book):
    booking = await book()
    with pytest.raises(ValidationError):
        await booking_state.cancel(db, booking, BookingActor.CUSTOMER, reason="x" * 501)
    assert booking.status == BookingStatus.PENDING

    booking = await booking_state.cancel(db, booking, BookingActor.CUSTOMER, reason="y" * 500)
    assert booking.cancellation_reason == "y" * 500


@pytest.mark.asyncio
async def test_no_show_counts_against_customer(db, book, customer):
    booking = await booking_state.confirm(db, await book())
    booking = await booking_state.mark_no_show(db, booking)
    assert booking.status == BookingStatus.NO_SHOW
    assert booking.cancellation_fee is None

    profile = await get_customer_profile(db, customer.id)
    await db.refresh(profile)
    assert profile.no_show_count == 1
    assert risk_flags(profile) == ["no_show_history"]


@pytest.mark.asyncio
async def test_no_show_requires_confirmation(db, book):
    with pytest.raises(InvalidTransition):
        await booking_state.mark_no_show(db, await book())


@pytest.mark.asyncio
async def test_repeat_no_shows_flag_high_risk(db, book, customer):
    for start in ["09:00", "10:00", "11:00"]:
        booking = await booking_state.confirm(db, await book(start))
        await booking_state.mark_no_show(db, booking)

    profile = await get_customer_profile(db, customer.id)
    await db.refresh(profile)
    assert profile.no_show_count == 3
    assert "high_risk" in risk_flags(profile)


@pytest.mark.asyncio
async def test_charge_fee_after_no_show_only_once(db, book):
    booking = await booking_state.confirm(db, await book())
    booking = await booking_state.mark_no_show(db, booking)

    booking = await booking_state.charge_cancellation_fee(db, booking, 100)
    assert booking.cancellation_fee == Decimal("100.00")
    assert booking.status == BookingStatus.NO_SHOW

    with pytest.raises(InvalidTransition):
        await booking_state.charge_cancellation_fee(db, booking, 100)


@pytest.mark.asyncio
async def test_charge_fee_on_cancelled_pending_booking_is_rejected(db, book):
    booking = await booking_state.cancel(db, await book(), BookingActor.CUSTOMER)
    with pytest.raises(InvalidTransition):
        await booking_state.charge_cancellation_fee(db, booking, 50)


@pytest.mark.asyncio
async def test_charge_fee_on_late_customer_cancellation(db, book):
    booking = await booking_state.confirm(db, await book())
    booking = await booking_state.cancel(db, booking, BookingActor.CUSTOMER)

    booking = await booking_state.charge_cancellation_fee(db, booking, "40")
    assert booking.cancellation_fee == Decimal("40.00")


@pytest.mark.asyncio
async def test_complete_books_commission_and_review(db, book):
    booking = await booking_state.confirm(db, await book())
    booking = await booking_state.complete(db, booking, rating=5, comment="Lovely")

    assert booking.status == BookingStatus.COMPLETED
    assert booking.commission == Decimal("15.00")
    review = await booking_state.get_review(db, booking.id)
    assert review.rating == 5
    assert review.comment == "Lovely"

    with pytest.raises(AlreadyReviewed):
        await booking_state.add_review(db, booking, 4)


@pytest.mark.asyncio
async def test_complete_requires_confirmation(db, book):
    with pytest.raises(InvalidTransition):
        await booking_state.complete(db, await book())


@pytest.mark.asyncio
async def test_complete_rejects_bad_rating(db, book):
    booking = await booking_state.confirm(db, await book())
    with pytest.raises(ValidationError):
        await booking_state.complete(db, booking, rating=6)
    assert booking.status == BookingStatus.CONFIRMED


@pytest.mark.asyncio
async def test_review_after_completion(db, book):
    booking = await booking_state.confirm(db, await book())
    booking = await booking_state.complete(db, booking)

    review = await booking_state.add_review(db, booking, 4, "Good")
    assert review.rating == 4
    with pytest.raises(AlreadyReviewed):
        await booking_state.add_review(db, booking, 5)


@pytest.mark.asyncio
async def test_review_before_completion_is_rejected(db, book):
    booking = await booking_state.confirm(db, await book())
    with pytest.raises(InvalidTransition):
        await booking_state.add_review(db, booking, 5)


async def _confirmed_booking_in(tmp_path):
    """File-backed database so two sessions see each other's commits."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'state.db'}")
    Session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with Session() as setup:
        hours = {key: {"open": "09:00", "close": "17:00"} for key in WEEKDAY_KEYS}
        provider = await create_provider(setup, name="Busy Salon", weekly_hours=hours)
        service = await create_service(setup, provider.id, name="Cut", duration_minutes=60, price=100)
        customer = await create_customer_profile(setup, name="Sipho")
        booking = await reserve(setup, provider.id, service.id, customer.id, FUTURE_MONDAY, "10:00")
        booking = await booking_state.confirm(setup, booking)
    return engine, Session, booking.id


@pytest.mark.asyncio
async def test_stale_cancel_loses_to_first_cancel(tmp_path):
    engine, Session, booking_id = await _confirmed_booking_in(tmp_path)

    async with Session() as first, Session() as second:
        mine = await booking_state.get_booking(first, booking_id)
        theirs = await booking_state.get_booking(second, booking_id)

        await booking_state.cancel(first, mine, BookingActor.PROVIDER, fee=50)
        with pytest.raises(InvalidTransition):
            await booking_state.cancel(second, theirs, BookingActor.PROVIDER, fee=80)

    async with Session() as check:
        booking = await booking_state.get_booking(check, booking_id)
        assert booking.status == BookingStatus.CANCELLED
        assert booking.cancellation_fee == Decimal("50.00")
    await engine.dispose()


@pytest.mark.asyncio
async def test_stale_fee_charge_is_rejected(tmp_path):
    engine, Session, booking_id = await _confirmed_booking_in(tmp_path)
    async with Session() as session:
        await booking_state.mark_no_show(session, await booking_state.get_booking(session, booking_id))

    async with Session() as first, Session() as second:
        mine = await booking_state.get_booking(first, booking_id)
        theirs = await booking_state.get_booking(second, booking_id)

        await booking_state.charge_cancellation_fee(first, mine, 100)
        with pytest.raises(InvalidTransition):
            await booking_state.charge_cancellation_fee(second, theirs, 60)

    async with Session() as check:
        booking = await booking_state.get_booking(check, booking_id)
        assert booking.status == BookingStatus.NO_SHOW
        assert booking.cancellation_fee == Decimal("100.00")
    await engine.dispose()


@pytest.mark.asyncio
async def test_stale_complete_after_no_show_is_rejected(tmp_path):
    engine, Session, booking_id = await _confirmed_booking_in(tmp_path)

    async with Session() as first, Session() as second:
        mine = await booking_state.get_booking(first, booking_id)
        theirs = await booking_state.get_booking(second, booking_id)

        await booking_state.mark_no_show(first, mine)
        with pytest.raises(InvalidTransition):
            await booking_state.complete(second, theirs)

    async with Session() as check:
        booking = await booking_state.get_booking(check, booking_id)
        assert booking.status == BookingStatus.NO_SHOW
        assert booking.commission is None
    await engine.dispose()
