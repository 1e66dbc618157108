"""
Booking Domain Entities

Core business entities for the booking domain:
- Booking: Aggregate root for one cottage stay with its safaris and payments
- BookingStatus / PaymentStatus: the two state machines a booking moves through
- SafariBooking: Seats reserved in one safari time slot
- Payment: One payment attempt against a booking
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import List
from uuid import UUID

from shared.domain.base import Aggregate, Entity, ValueObject
from shared.domain.exceptions import Conflict, InvalidInput, InvalidTransition
from shared.domain.value_objects import DateRange, Money


class BookingStatus(Enum):
    """
    Booking Status Finite State Machine

    State transitions:
    - PENDING -> CONFIRMED (paid, or accepted for payment at the property)
    - PENDING -> CANCELLED
    - CONFIRMED -> COMPLETED (guest checked out)
    - CONFIRMED -> CANCELLED
    CANCELLED and COMPLETED are terminal.
    """
    PENDING = 'pending'
    CONFIRMED = 'confirmed'
    CANCELLED = 'cancelled'
    COMPLETED = 'completed'


class PaymentStatus(Enum):
    """
    Payment status of a booking

    State transitions:
    - PENDING -> PAID, PENDING -> FAILED
    - FAILED -> PENDING (guest retries)
    - PAID -> REFUNDED
    REFUNDED is terminal.
    """
    PENDING = 'pending'
    PAID = 'paid'
    FAILED = 'failed'
    REFUNDED = 'refunded'


class PaymentAttemptStatus(Enum):
    """Status of a single Payment row"""
    PENDING = 'pending'
    SUCCESSFUL = 'successful'
    FAILED = 'failed'
    REFUNDED = 'refunded'


BOOKING_TRANSITIONS = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED}),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.COMPLETED: frozenset(),
}

PAYMENT_TRANSITIONS = {
    PaymentStatus.PENDING: frozenset({PaymentStatus.PAID, PaymentStatus.FAILED}),
    PaymentStatus.FAILED: frozenset({PaymentStatus.PENDING}),
    PaymentStatus.PAID: frozenset({PaymentStatus.REFUNDED}),
    PaymentStatus.REFUNDED: frozenset(),
}

# Statuses that occupy the cottage for their dates
BLOCKING_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED})

PAY_AT_PROPERTY = 'pay_at_property'
ONLINE = 'online'


def can_transition_booking(current: BookingStatus, requested: BookingStatus) -> bool:
    return requested in BOOKING_TRANSITIONS[current]


def can_transition_payment(current: PaymentStatus, requested: PaymentStatus) -> bool:
    return requested in PAYMENT_TRANSITIONS[current]


@dataclass(frozen=True)
class GuestContact(ValueObject):
    """Guest contact details as captured by the booking form"""
    name: str
    email: str
    phone: str = ''

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise InvalidInput("Guest name is required")
        if not self.email or '@' not in self.email:
            raise InvalidInput("A valid guest email is required")

    @classmethod
    def from_dict(cls, data) -> 'GuestContact':
        data = data or {}
        return cls(
            name=str(data.get('name', '')).strip(),
            email=str(data.get('email', '')).strip(),
            phone=str(data.get('phone', '') or '').strip(),
        )

    def to_dict(self) -> dict:
        return {'name': self.name, 'email': self.email, 'phone': self.phone}


@dataclass(kw_only=True, eq=False)
class SafariBooking(Entity):
    """Seats in one safari time slot, owned by a booking"""
    booking_id: UUID
    safari_type_id: UUID
    safari_name: str = ''
    date: date
    time_slot: str
    participants: int
    unit_price: Decimal = Decimal('0')

    def __post_init__(self):
        if self.participants < 1:
            raise InvalidInput("Safari participants must be at least 1")

    def to_dict(self) -> dict:
        return {
            'id': str(self.id),
            'safari_type_id': str(self.safari_type_id),
            'safari_name': self.safari_name,
            'date': self.date.isoformat(),
            'time_slot': self.time_slot,
            'participants': self.participants,
        }


@dataclass(kw_only=True, eq=False)
class Payment(Entity):
    """A payment attempt. A booking holds at most one SUCCESSFUL attempt."""
    booking_id: UUID
    amount: Money
    method: str = ONLINE
    status: PaymentAttemptStatus = PaymentAttemptStatus.PENDING
    external_order_id: str = ''
    external_payment_id: str = ''
    failure_reason: str = ''

    @property
    def is_successful(self) -> bool:
        return self.status == PaymentAttemptStatus.SUCCESSFUL


@dataclass(kw_only=True, eq=False)
class Booking(Aggregate):
    """
    Booking Aggregate Root

    Key invariants:
    - check_out is after check_in (DateRange enforces it)
    - at least one adult, no negative children
    - total_amount is fixed at creation; only an admin override changes it,
      and never after the booking has been paid
    - confirmed + paid implies a successful Payment exists
    """

    reference: str

    cottage_id: UUID
    cottage_type: str = ''
    cottage_name: str = ''
    package_id: UUID | None = None
    package_name: str = ''

    dates: DateRange
    adults: int
    children: int = 0

    total_amount: Money

    status: BookingStatus = BookingStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_method: str = ''

    guest: GuestContact
    special_requests: str = ''
    admin_notes: str = ''

    safaris: List[SafariBooking] = field(default_factory=list)
    payments: List[Payment] = field(default_factory=list)

    def __post_init__(self):
        if self.adults < 1:
            raise InvalidInput("At least one adult is required")
        if self.children < 0:
            raise InvalidInput("Children cannot be negative")

    @property
    def check_in(self) -> date:
        return self.dates.start_date

    @property
    def check_out(self) -> date:
        return self.dates.end_date

    @property
    def nights(self) -> int:
        return self.dates.nights

    @property
    def guests(self) -> int:
        return self.adults + self.children

    @property
    def is_blocking(self) -> bool:
        return self.status in BLOCKING_STATUSES

    @property
    def successful_payment(self) -> Payment | None:
        return next((p for p in self.payments if p.is_successful), None)

    def record_created(self):
        from apps.bookings.domain.events import BookingCreated

        self.add_event(BookingCreated(
            aggregate_id=self.id,
            booking=self.snapshot(),
            safaris=[s.to_dict() for s in self.safaris],
        ))

    def transition_to(self, requested: BookingStatus, admin_notes: str | None = None) -> BookingStatus:
        """
        Move the booking status along the state machine.

        Returns the previous status. Events: BookingStatusChanged
        """
        if not can_transition_booking(self.status, requested):
            raise InvalidTransition('booking', self.status.value, requested.value)

        from apps.bookings.domain.events import BookingStatusChanged

        previous = self.status
        self.status = requested
        if admin_notes is not None:
            self.admin_notes = admin_notes
        self.touch()

        self.add_event(BookingStatusChanged(
            aggregate_id=self.id,
            booking=self.snapshot(),
            previous_status=previous.value,
        ))
        return previous

    def change_payment_status(self, requested: PaymentStatus, method: str | None = None) -> PaymentStatus:
        """
        Move the payment status along the state machine.

        Returns the previous status. Events: PaymentStatusChanged
        """
        if not can_transition_payment(self.payment_status, requested):
            raise InvalidTransition('payment', self.payment_status.value, requested.value)

        from apps.bookings.domain.events import PaymentStatusChanged

        previous = self.payment_status
        self.payment_status = requested
        if method:
            self.payment_method = method
        self.touch()

        self.add_event(PaymentStatusChanged(
            aggregate_id=self.id,
            booking=self.snapshot(),
            previous_status=previous.value,
        ))
        return previous

    def override_total(self, amount: Money, admin_notes: str | None = None):
        if self.payment_status in (PaymentStatus.PAID, PaymentStatus.REFUNDED):
            raise Conflict(
                f"Total of booking {self.reference} cannot change after payment",
                details={'payment_status': self.payment_status.value},
            )
        if amount.currency != self.total_amount.currency:
            raise InvalidInput(f"Total must be in {self.total_amount.currency}")
        self.total_amount = amount
        if admin_notes is not None:
            self.admin_notes = admin_notes
        self.touch()

    def snapshot(self) -> dict:
        """JSON-safe summary handed to event subscribers"""
        return {
            'id': str(self.id),
            'reference': self.reference,
            'cottage_id': str(self.cottage_id),
            'cottage_type': self.cottage_type,
            'cottage_name': self.cottage_name,
            'package_id': str(self.package_id) if self.package_id else None,
            'package_name': self.package_name,
            'check_in': self.check_in.isoformat(),
            'check_out': self.check_out.isoformat(),
            'nights': self.nights,
            'adults': self.adults,
            'children': self.children,
            'total_amount': str(self.total_amount.amount),
            'currency': self.total_amount.currency,
            'status': self.status.value,
            'payment_status': self.payment_status.value,
            'payment_method': self.payment_method,
            'guest': self.guest.to_dict(),
            'special_requests': self.special_requests,
        }

    def __str__(self):
        return f"Booking({self.reference}, {self.cottage_type}, {self.dates}, {self.status.value})"
