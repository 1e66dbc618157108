"""Booking and payment status transitions on the aggregate."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from apps.bookings.domain.entities import (
    Booking,
    BookingStatus,
    GuestContact,
    PaymentStatus,
    can_transition_booking,
    can_transition_payment,
)
from apps.bookings.domain.events import BookingStatusChanged, PaymentStatusChanged
from shared.domain.exceptions import Conflict, InvalidInput, InvalidTransition
from shared.domain.value_objects import DateRange, Money


def make_booking(**overrides) -> Booking:
    fields = dict(
        reference="VM123456ABCD",
        cottage_id=uuid4(),
        cottage_type="glass-cottage",
        dates=DateRange(date(2024, 4, 1), date(2024, 4, 3)),
        adults=2,
        total_amount=Money(Decimal("36900")),
        guest=GuestContact(name="Asha Rao", email="asha@example.com"),
    )
    fields.update(overrides)
    return Booking(**fields)


@pytest.mark.parametrize("current, requested, allowed", [
    (BookingStatus.PENDING, BookingStatus.CONFIRMED, True),
    (BookingStatus.PENDING, BookingStatus.CANCELLED, True),
    (BookingStatus.PENDING, BookingStatus.COMPLETED, False),
    (BookingStatus.CONFIRMED, BookingStatus.COMPLETED, True),
    (BookingStatus.CONFIRMED, BookingStatus.CANCELLED, True),
    (BookingStatus.CANCELLED, BookingStatus.CONFIRMED, False),
    (BookingStatus.COMPLETED, BookingStatus.CANCELLED, False),
    (BookingStatus.CONFIRMED, BookingStatus.CONFIRMED, False),
])
def test_booking_transitions(current, requested, allowed):
    assert can_transition_booking(current, requested) is allowed


@pytest.mark.parametrize("current, requested, allowed", [
    (PaymentStatus.PENDING, PaymentStatus.PAID, True),
    (PaymentStatus.PENDING, PaymentStatus.FAILED, True),
    (PaymentStatus.FAILED, PaymentStatus.PENDING, True),
    (PaymentStatus.PAID, PaymentStatus.REFUNDED, True),
    (PaymentStatus.PAID, PaymentStatus.PENDING, False),
    (PaymentStatus.REFUNDED, PaymentStatus.PAID, False),
    (PaymentStatus.FAILED, PaymentStatus.PAID, False),
])
def test_payment_transitions(current, requested, allowed):
    assert can_transition_payment(current, requested) is allowed


def test_cancelled_booking_cannot_be_confirmed():
    booking = make_booking(status=BookingStatus.CANCELLED)

    with pytest.raises(InvalidTransition) as exc:
        booking.transition_to(BookingStatus.CONFIRMED)

    assert exc.value.details == {"current": "cancelled", "requested": "confirmed"}
    assert booking.status == BookingStatus.CANCELLED
    assert booking.events == []


def test_transition_records_event_with_previous_status():
    booking = make_booking()

    previous = booking.transition_to(BookingStatus.CONFIRMED, admin_notes="Called guest")

    assert previous == BookingStatus.PENDING
    assert booking.admin_notes == "Called guest"
    [event] = booking.events
    assert isinstance(event, BookingStatusChanged)
    assert event.previous_status == "pending"
    assert event.booking["status"] == "confirmed"


def test_payment_change_sets_method():
    booking = make_booking()

    booking.change_payment_status(PaymentStatus.PAID, method="upi")

    assert booking.payment_method == "upi"
    assert isinstance(booking.events[0], PaymentStatusChanged)


def test_total_cannot_change_after_payment():
    booking = make_booking(payment_status=PaymentStatus.PAID)

    with pytest.raises(Conflict):
        booking.override_total(Money(Decimal("100")))


def test_booking_requires_an_adult():
    with pytest.raises(InvalidInput):
        make_booking(adults=0)


def test_guest_contact_requires_email():
    with pytest.raises(InvalidInput):
        GuestContact(name="Asha", email="not-an-email")


def test_snapshot_is_json_ready():
    snapshot = make_booking().snapshot()

    assert snapshot["check_in"] == "2024-04-01"
    assert snapshot["nights"] == 2
    assert snapshot["total_amount"] == "36900"
    assert snapshot["guest"]["email"] == "asha@example.com"
