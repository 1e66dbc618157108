"""Startup checks for the booking settings."""

from django.conf import settings
from django.core.checks import Error, register

from shared.domain.value_objects import is_currency_code


@register()
def check_resort_currency(app_configs=None, **kwargs):
    currency = getattr(settings, 'RESORT_CURRENCY', 'INR')
    if is_currency_code(currency):
        return []
    return [
        Error(
            f"RESORT_CURRENCY must be a three letter ISO 4217 code, got {currency!r}.",
            hint="Set RESORT_CURRENCY to a code such as 'INR'.",
            id='bookings.E001',
        )
    ]
