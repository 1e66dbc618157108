"""Tests for Money, DateRange and display rounding."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from shared.domain.value_objects import DateRange, Money, round_display


@pytest.mark.parametrize("value, expected", [
    ("2.5", 3),
    ("2.4999", 2),
    ("-2.5", -2),
    ("36900.0000", 36900),
])
def test_round_display(value, expected):
    assert round_display(Decimal(value)) == expected


def test_date_range_is_half_open():
    stay = DateRange(date(2024, 4, 1), date(2024, 4, 3))

    assert stay.nights == 2
    assert not stay.contains(date(2024, 4, 3))
    assert not stay.overlaps_with(DateRange(date(2024, 4, 3), date(2024, 4, 4)))
    assert stay.overlaps_with(DateRange(date(2024, 3, 30), date(2024, 4, 2)))


def test_date_range_rejects_empty_stay():
    with pytest.raises(ValueError):
        DateRange(date(2024, 4, 3), date(2024, 4, 3))


def test_money_arithmetic_keeps_currency():
    total = Money(Decimal("100")) + Money(Decimal("50.50"))

    assert total == Money(Decimal("150.50"), "INR")
    with pytest.raises(ValueError):
        total + Money(Decimal("1"), "USD")


def test_money_is_never_negative():
    with pytest.raises(ValueError):
        Money(Decimal("-1"))


@pytest.mark.parametrize("currency", ["INR", "GBP", "AED"])
def test_money_accepts_any_iso_code(currency):
    assert Money(Decimal("10"), currency).currency == currency


@pytest.mark.parametrize("currency", ["inr", "RUPEE", "", None])
def test_money_rejects_malformed_currency(currency):
    with pytest.raises(ValueError):
        Money(Decimal("10"), currency)
