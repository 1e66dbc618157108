"""Overlap rules for cottage stays and booking references."""

from __future__ import annotations

from datetime import date
from uuid import uuid4

from apps.bookings.domain.availability import OccupiedPeriod, evaluate_availability
from apps.bookings.domain.entities import BookingStatus
from apps.bookings.domain.reference import REFERENCE_LENGTH, generate_reference, is_valid_reference
from shared.domain.value_objects import DateRange


def period(start, end, status=BookingStatus.CONFIRMED) -> OccupiedPeriod:
    return OccupiedPeriod(booking_id=uuid4(), reference="VM000000TEST", dates=DateRange(start, end), status=status)


def test_back_to_back_stays_do_not_conflict():
    existing = period(date(2024, 4, 1), date(2024, 4, 3))
    requested = DateRange(date(2024, 4, 3), date(2024, 4, 5))

    assert evaluate_availability(requested, [existing]).available


def test_overlapping_confirmed_booking_conflicts():
    existing = period(date(2024, 4, 1), date(2024, 4, 4))
    result = evaluate_availability(DateRange(date(2024, 4, 3), date(2024, 4, 6)), [existing])

    assert not result.available
    assert result.conflicts == (existing,)


def test_cancelled_and_completed_bookings_do_not_block():
    requested = DateRange(date(2024, 4, 1), date(2024, 4, 3))
    occupied = [
        period(date(2024, 4, 1), date(2024, 4, 3), BookingStatus.CANCELLED),
        period(date(2024, 4, 1), date(2024, 4, 3), BookingStatus.COMPLETED),
    ]

    assert evaluate_availability(requested, occupied).available


def test_same_answer_on_repeat():
    requested = DateRange(date(2024, 4, 1), date(2024, 4, 3))
    occupied = [period(date(2024, 4, 2), date(2024, 4, 5), BookingStatus.PENDING)]

    assert evaluate_availability(requested, occupied) == evaluate_availability(requested, occupied)


def test_reference_format():
    reference = generate_reference(now_ms=1712000123456)

    assert len(reference) == REFERENCE_LENGTH
    assert reference.startswith("VM123456")
    assert is_valid_reference(reference)


def test_reference_validation_rejects_lowercase():
    assert not is_valid_reference("VM123456abcd")
    assert not is_valid_reference("XX123456ABCD")
