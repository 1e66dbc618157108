"""
Common Value Objects

- Money: A monetary amount with currency
- DateRange: A half-open stay period, check-in inclusive, check-out exclusive
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal, ROUND_FLOOR

from shared.domain.base import ValueObject


def is_currency_code(value) -> bool:
    """Three upper-case letters, as in ISO 4217"""
    return isinstance(value, str) and len(value) == 3 and value.isalpha() and value.isupper()


def round_display(value: Decimal) -> int:
    """
    Round to a whole currency unit the way the booking widget does.

    Halves go towards positive infinity, so -2.5 becomes -2 and 2.5 becomes 3.
    """
    return int((Decimal(value) + Decimal('0.5')).to_integral_value(rounding=ROUND_FLOOR))


@dataclass(frozen=True)
class Money(ValueObject):
    """
    Money value object

    Non-negative, immutable, arithmetic only between equal currencies.
    """
    amount: Decimal
    currency: str = 'INR'

    def __post_init__(self):
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, 'amount', Decimal(str(self.amount)))
        if self.amount < 0:
            raise ValueError("Amount cannot be negative")
        if not is_currency_code(self.currency):
            raise ValueError(f"Invalid currency code: {self.currency!r}")

    def __add__(self, other: 'Money') -> 'Money':
        if not isinstance(other, Money):
            raise TypeError("Can only add Money to Money")
        if self.currency != other.currency:
            raise ValueError(f"Cannot add different currencies: {self.currency} and {other.currency}")
        return Money(self.amount + other.amount, self.currency)

    @property
    def rounded(self) -> int:
        return round_display(self.amount)

    def __str__(self):
        return f"{self.amount:,.2f} {self.currency}"

    def __repr__(self):
        return f"Money({self.amount}, '{self.currency}')"


@dataclass(frozen=True)
class DateRange(ValueObject):
    """
    Stay period from start_date (inclusive) to end_date (exclusive).

    A guest checking out on the 3rd frees the cottage for a guest checking
    in on the 3rd.
    """
    start_date: date
    end_date: date

    def __post_init__(self):
        if self.start_date >= self.end_date:
            raise ValueError(f"Start date ({self.start_date}) must be before end date ({self.end_date})")

    def overlaps_with(self, other: 'DateRange') -> bool:
        """
        Half-open overlap: start1 < end2 AND start2 < end1

        Examples:
            - DateRange(1, 3) overlaps with DateRange(2, 5) -> True
            - DateRange(1, 3) overlaps with DateRange(3, 5) -> False (back-to-back)
        """
        if not isinstance(other, DateRange):
            raise TypeError("Can only check overlap with another DateRange")
        return self.start_date < other.end_date and other.start_date < self.end_date

    def contains(self, check_date: date) -> bool:
        return self.start_date <= check_date < self.end_date

    @property
    def nights(self) -> int:
        return (self.end_date - self.start_date).days

    def __len__(self) -> int:
        return self.nights

    def __str__(self):
        return f"{self.start_date.isoformat()} - {self.end_date.isoformat()}"

    def __repr__(self):
        return f"DateRange({self.start_date}, {self.end_date})"
