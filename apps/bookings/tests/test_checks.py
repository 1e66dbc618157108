"""RESORT_CURRENCY is validated when Django starts."""

from __future__ import annotations

from apps.bookings.checks import check_resort_currency


def test_valid_currency_passes(settings):
    settings.RESORT_CURRENCY = "GBP"

    assert check_resort_currency() == []


def test_malformed_currency_is_reported(settings):
    settings.RESORT_CURRENCY = "rupees"

    errors = check_resort_currency()

    assert [error.id for error in errors] == ["bookings.E001"]
