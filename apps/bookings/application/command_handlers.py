"""
Booking Command Handlers

These are the use cases for the booking domain.
They orchestrate catalog reads, pricing and ledger writes within transactions.

Commands:
- CheckAvailabilityCommand: Is a cottage free for a stay (read only)
- QuotePriceCommand: Price a stay without booking it (read only)
- CreateBookingCommand: Create a new booking with its safaris
- UpdateBookingStatusCommand: Admin booking status transition
- UpdatePaymentStatusCommand: Admin payment status transition
- ConfirmPaymentCommand: Gateway callback for a verified payment
- PaymentFailedCommand: Gateway callback for a failed payment
- OfflinePaymentCommand: Guest chose to pay at the property
- OverrideTotalCommand: Admin correction of a booking total
- CompleteFinishedBookingsCommand: Periodic checkout sweep
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional
from uuid import UUID
import logging

from django.conf import settings

from apps.bookings.domain.availability import AvailabilityResult, evaluate_availability
from apps.bookings.domain.entities import (
    ONLINE,
    PAY_AT_PROPERTY,
    Booking,
    BookingStatus,
    GuestContact,
    Payment,
    PaymentAttemptStatus,
    PaymentStatus,
    SafariBooking,
)
from apps.bookings.domain.pricing import PriceBreakdown, compute_price
from apps.bookings.domain.reference import generate_reference
from apps.bookings.repositories import ReferenceCollision
from apps.catalog.domain.entities import Cottage, Package, SafariType
from shared.application.uow import DjangoUnitOfWork
from shared.domain.exceptions import (
    BookingDomainError,
    Conflict,
    InvalidInput,
    NotFound,
    TransientStoreFailure,
)
from shared.domain.value_objects import DateRange, Money

logger = logging.getLogger(__name__)

MAX_REFERENCE_ATTEMPTS = 5
# Largest accepted gap between the client-echoed total and the server total
CLIENT_TOTAL_TOLERANCE = Decimal('1')


# ===== Commands =====

@dataclass
class SafariSelection:
    safari_type_id: UUID
    date: date
    time_slot: str
    participants: int


@dataclass
class CheckAvailabilityCommand:
    cottage_type: str
    check_in: date
    check_out: date
    guests: Optional[int] = None
    package_id: Optional[UUID] = None


@dataclass
class QuotePriceCommand:
    cottage_type: str
    check_in: date
    check_out: date
    adults: int
    children: int = 0
    package_id: Optional[UUID] = None
    safaris: List[SafariSelection] = field(default_factory=list)


@dataclass
class CreateBookingCommand:
    """
    Command to create a new booking

    ``total_amount`` is the total the guest was shown. It is checked against
    the server price, never stored as is.
    """
    cottage_type: str
    check_in: date
    check_out: date
    adults: int
    guest: GuestContact
    total_amount: Decimal
    children: int = 0
    package_id: Optional[UUID] = None
    safaris: List[SafariSelection] = field(default_factory=list)
    special_requests: str = ''
    payment_method: str = ''


@dataclass
class UpdateBookingStatusCommand:
    booking_id: UUID
    status: BookingStatus
    admin_notes: Optional[str] = None


@dataclass
class UpdatePaymentStatusCommand:
    booking_id: UUID
    payment_status: PaymentStatus
    payment_method: str = ''
    external_order_id: str = ''
    external_payment_id: str = ''
    reason: str = ''


@dataclass
class ConfirmPaymentCommand:
    """Verified gateway callback. Signature checks happen before this point."""
    booking_reference: str
    external_order_id: str
    external_payment_id: str
    verified_signature_ok: bool
    payment_method: str = ONLINE


@dataclass
class PaymentFailedCommand:
    booking_reference: str
    external_order_id: str = ''
    reason: str = ''


@dataclass
class OfflinePaymentCommand:
    booking_reference: str


@dataclass
class OverrideTotalCommand:
    booking_id: UUID
    total_amount: Decimal
    admin_notes: Optional[str] = None


@dataclass
class CompleteFinishedBookingsCommand:
    today: date


@dataclass
class ValidateSafariSelectionCommand:
    """Safari lines checked before a booking is submitted. Nothing is held."""
    safaris: List[SafariSelection]
    today: Optional[date] = None


# ===== Results =====

@dataclass(frozen=True)
class AvailabilityReport:
    cottage: Cottage
    dates: DateRange
    result: AvailabilityResult
    price: Optional[PriceBreakdown] = None

    @property
    def available(self) -> bool:
        return self.result.available


@dataclass(frozen=True)
class Quote:
    cottage: Cottage
    dates: DateRange
    price: PriceBreakdown
    package: Optional[Package] = None


@dataclass(frozen=True)
class SafariSelectionReport:
    results: List[dict]

    @property
    def all_valid(self) -> bool:
        return all(result['valid'] for result in self.results)

    @property
    def total_price(self) -> Decimal:
        return sum(
            (Decimal(result['total_price']) for result in self.results if result['valid']),
            Decimal('0'),
        )


# ===== Helpers =====

def resort_currency() -> str:
    return getattr(settings, 'RESORT_CURRENCY', 'INR')


def stay_dates(check_in: date, check_out: date) -> DateRange:
    if check_in is None or check_out is None:
        raise InvalidInput("Check-in and check-out dates are required")
    if check_out <= check_in:
        raise InvalidInput(
            "Check-out must be after check-in",
            details={'check_in': check_in.isoformat(), 'check_out': check_out.isoformat()},
        )
    return DateRange(check_in, check_out)


def validate_party(adults: int, children: int) -> int:
    if adults is None or adults < 1:
        raise InvalidInput("At least one adult is required")
    if children < 0:
        raise InvalidInput("Children cannot be negative")
    return adults + children


def validate_selections(selections: List[SafariSelection]):
    for selection in selections:
        if selection.participants < 1:
            raise InvalidInput(
                "Safari participants must be at least 1",
                details={'safari_type_id': str(selection.safari_type_id)},
            )
        if not selection.time_slot:
            raise InvalidInput(
                "Safari time slot is required",
                details={'safari_type_id': str(selection.safari_type_id)},
            )


def assess_safari_selections(
    ledger,
    selections: List[SafariSelection],
    safari_types: Dict[UUID, SafariType],
    today: Optional[date] = None,
) -> List[dict]:
    """
    One result per selection, in request order.

    Earlier selections in the same request count against the slot, so two
    lines for the same slot cannot together exceed its capacity. Selections
    whose safari is missing from ``safari_types`` are reported as invalid.
    Past dates are only rejected when ``today`` is given.
    """
    requested = defaultdict(int)
    booked_cache = {}
    results = []

    for index, selection in enumerate(selections):
        result = {
            'index': index,
            'safari_type_id': str(selection.safari_type_id),
            'date': selection.date.isoformat(),
            'time_slot': selection.time_slot,
            'participants': selection.participants,
            'valid': False,
        }
        results.append(result)

        safari = safari_types.get(selection.safari_type_id)
        if safari is None:
            result['error'] = 'Safari type not found'
            continue
        result['safari_name'] = safari.name
        if today is not None and selection.date < today:
            result['error'] = 'Cannot book safari for past dates'
            continue
        if not safari.offers_slot(selection.time_slot):
            result['error'] = 'Time slot is not offered for this safari'
            continue

        key = (safari.id, selection.date, selection.time_slot)
        if key not in booked_cache:
            booked_cache[key] = ledger.sum_safari_participants(*key)
        remaining = max(safari.max_guests - booked_cache[key] - requested[key], 0)
        result['available_spots'] = remaining
        if selection.participants > remaining:
            result['error'] = f"Only {remaining} spots available for this time slot"
            continue

        requested[key] += selection.participants
        result.update(
            valid=True,
            unit_price=str(safari.price),
            total_price=str(safari.price * selection.participants),
        )

    return results


class CatalogLookupMixin:
    """Resolves catalog references, raising NotFound for missing or inactive rows"""

    catalog = None

    def _resolve_cottage(self, cottage_type: str) -> Cottage:
        cottage = self.catalog.get_cottage_by_type(cottage_type)
        if cottage is None:
            raise NotFound(f"Cottage '{cottage_type}' not found", details={'cottage_type': cottage_type})
        return cottage

    def _resolve_package(self, package_id: Optional[UUID]) -> Optional[Package]:
        if package_id is None:
            return None
        package = self.catalog.get_package(package_id)
        if package is None:
            raise NotFound(f"Package {package_id} not found", details={'package_id': str(package_id)})
        return package

    def _resolve_safaris(self, selections: List[SafariSelection]) -> Dict[UUID, SafariType]:
        found = {}
        for selection in selections:
            if selection.safari_type_id in found:
                continue
            safari = self.catalog.get_safari_type(selection.safari_type_id)
            if safari is None:
                raise NotFound(
                    f"Safari {selection.safari_type_id} not found",
                    details={'safari_type_id': str(selection.safari_type_id)},
                )
            found[selection.safari_type_id] = safari
        return found

    @staticmethod
    def _check_capacity(cottage: Cottage, guests: int):
        if guests > cottage.max_guests:
            raise InvalidInput(
                f"This cottage can only accommodate {cottage.max_guests} guests",
                details={'max_guests': cottage.max_guests, 'guests': guests},
            )


# ===== Command Handlers =====

class CheckAvailabilityHandler(CatalogLookupMixin):
    """
    Pure read. Repeating it never changes the outcome, and booking creation
    re-checks inside its own transaction anyway.
    """

    def __init__(self, catalog, ledger):
        self.catalog = catalog
        self.ledger = ledger

    def handle(self, command: CheckAvailabilityCommand) -> AvailabilityReport:
        dates = stay_dates(command.check_in, command.check_out)
        cottage = self._resolve_cottage(command.cottage_type)
        if command.guests is not None:
            if command.guests < 1:
                raise InvalidInput("At least one guest is required")
            self._check_capacity(cottage, command.guests)

        occupied = self.ledger.find_overlapping_bookings(cottage.id, dates.start_date, dates.end_date)
        result = evaluate_availability(dates, occupied)

        price = None
        if result.available and command.guests is not None:
            package = self._resolve_package(command.package_id)
            price = compute_price(cottage, dates.nights, command.guests, package)

        logger.debug(f"Availability for {cottage.type} {dates}: {result.available}")
        return AvailabilityReport(cottage=cottage, dates=dates, result=result, price=price)


class QuotePriceHandler(CatalogLookupMixin):
    """Prices a stay with the same calculator booking creation uses"""

    def __init__(self, catalog):
        self.catalog = catalog

    def handle(self, command: QuotePriceCommand) -> Quote:
        dates = stay_dates(command.check_in, command.check_out)
        guests = validate_party(command.adults, command.children)
        validate_selections(command.safaris)

        cottage = self._resolve_cottage(command.cottage_type)
        self._check_capacity(cottage, guests)
        package = self._resolve_package(command.package_id)
        safari_types = self._resolve_safaris(command.safaris)

        price = compute_price(
            cottage,
            dates.nights,
            guests,
            package,
            [(safari_types[s.safari_type_id], s.participants) for s in command.safaris],
        )
        return Quote(cottage=cottage, dates=dates, price=price, package=package)


class CreateBookingHandler(CatalogLookupMixin):
    """
    Handler for CreateBooking command

    Strategy:
    1. Validate the request shape before touching the store
    2. Start the unit of work (one atomic transaction)
    3. Read catalog rows inside it so pricing and availability see one snapshot
    4. Lock the cottage row (SELECT FOR UPDATE) and re-check availability
    5. Lock safari types in id order and check slot capacity
    6. Issue a unique reference and insert the booking with its safaris
    7. BookingCreated is published by the unit of work after commit
    """

    def __init__(self, catalog, ledger, uow_factory=DjangoUnitOfWork):
        self.catalog = catalog
        self.ledger = ledger
        self.uow_factory = uow_factory

    def handle(self, command: CreateBookingCommand) -> Booking:
        dates = stay_dates(command.check_in, command.check_out)
        guests = validate_party(command.adults, command.children)
        validate_selections(command.safaris)
        client_total = self._parse_total(command.total_amount)

        logger.info(
            f"Creating booking for cottage {command.cottage_type}, "
            f"dates {dates}, guests {guests}, safaris {len(command.safaris)}"
        )

        with self.uow_factory() as uow:
            cottage = self._resolve_cottage(command.cottage_type)
            self._check_capacity(cottage, guests)
            package = self._resolve_package(command.package_id)
            safari_types = self._resolve_safaris(command.safaris)

            price = compute_price(
                cottage,
                dates.nights,
                guests,
                package,
                [(safari_types[s.safari_type_id], s.participants) for s in command.safaris],
            )
            self._check_client_total(client_total, price)

            self.ledger.lock_cottage(cottage.id)
            occupied = self.ledger.find_overlapping_bookings(cottage.id, dates.start_date, dates.end_date)
            availability = evaluate_availability(dates, occupied)
            if not availability.available:
                raise Conflict(
                    "Cottage is no longer available for the selected dates",
                    details={'conflicts': [c.to_dict() for c in availability.conflicts]},
                )

            self.ledger.lock_safari_types(safari_types.keys())
            self._check_safari_capacity(command.safaris, safari_types)

            booking = Booking(
                reference=self._issue_reference(),
                cottage_id=cottage.id,
                cottage_type=cottage.type,
                cottage_name=cottage.name,
                package_id=package.id if package else None,
                package_name=package.name if package else '',
                dates=dates,
                adults=command.adults,
                children=command.children,
                total_amount=Money(Decimal(price.display_total), resort_currency()),
                payment_method=command.payment_method,
                guest=command.guest,
                special_requests=command.special_requests,
            )
            booking.safaris = [
                SafariBooking(
                    booking_id=booking.id,
                    safari_type_id=selection.safari_type_id,
                    safari_name=safari_types[selection.safari_type_id].name,
                    date=selection.date,
                    time_slot=selection.time_slot,
                    participants=selection.participants,
                    unit_price=safari_types[selection.safari_type_id].price,
                )
                for selection in command.safaris
            ]
            self._insert_booking(booking)
            for safari in booking.safaris:
                self.ledger.insert_safari_booking(safari)
            booking.record_created()

            uow.collect_events(booking)

        logger.info(
            f"Booking created successfully: {booking.reference} "
            f"(ID: {booking.id}, total {booking.total_amount})"
        )
        return booking

    @staticmethod
    def _parse_total(value) -> Decimal:
        try:
            total = Decimal(str(value))
        except (InvalidOperation, TypeError, ValueError):
            raise InvalidInput("Total amount must be a number")
        if not total.is_finite() or total <= 0:
            raise InvalidInput("Total amount must be positive")
        return total

    @staticmethod
    def _check_client_total(client_total: Decimal, price: PriceBreakdown):
        server_total = Decimal(price.display_total)
        if abs(client_total - server_total) > CLIENT_TOTAL_TOLERANCE:
            raise Conflict(
                "Price has changed since the quote was shown, please review the new total",
                details={'expected_total': price.display_total, 'submitted_total': str(client_total)},
            )

    def _check_safari_capacity(self, selections: List[SafariSelection], safari_types: Dict[UUID, SafariType]):
        results = assess_safari_selections(self.ledger, selections, safari_types)
        invalid = [result for result in results if not result['valid']]
        if invalid:
            raise Conflict("Safari selection is not available", details={'invalid_selections': invalid})

    def _issue_reference(self) -> str:
        for attempt in range(1, MAX_REFERENCE_ATTEMPTS + 1):
            reference = generate_reference()
            if not self.ledger.reference_exists(reference):
                return reference
            logger.warning(f"Booking reference collision on attempt {attempt}: {reference}")
        raise TransientStoreFailure("Could not allocate a unique booking reference")

    def _insert_booking(self, booking: Booking):
        """Draws a fresh reference when a concurrent insert took the checked one"""
        for attempt in range(1, MAX_REFERENCE_ATTEMPTS + 1):
            try:
                self.ledger.insert_booking(booking)
                return
            except ReferenceCollision as e:
                logger.warning(f"Booking reference {e.reference} taken concurrently on attempt {attempt}")
                booking.reference = self._issue_reference()
        raise TransientStoreFailure("Could not allocate a unique booking reference")


class ValidateSafariSelectionHandler:
    """
    Reports, per selection, whether the slot can take the party.

    Reads only: no locks are taken, so booking creation checks again.
    Unknown safaris are reported on their line instead of failing the
    whole request.
    """

    def __init__(self, catalog, ledger):
        self.catalog = catalog
        self.ledger = ledger

    def handle(self, command: ValidateSafariSelectionCommand) -> SafariSelectionReport:
        if not command.safaris:
            raise InvalidInput("At least one safari selection is required")
        validate_selections(command.safaris)

        safari_types = {}
        for selection in command.safaris:
            if selection.safari_type_id in safari_types:
                continue
            safari = self.catalog.get_safari_type(selection.safari_type_id)
            if safari is not None:
                safari_types[selection.safari_type_id] = safari

        report = SafariSelectionReport(
            assess_safari_selections(self.ledger, command.safaris, safari_types, today=command.today)
        )
        logger.info(
            f"Validated {len(report.results)} safari selections, "
            f"{sum(1 for r in report.results if not r['valid'])} invalid"
        )
        return report


class BookingLoaderMixin:
    ledger = None

    def _load_by_id(self, booking_id: UUID) -> Booking:
        booking = self.ledger.get_booking(booking_id, lock=True)
        if booking is None:
            raise NotFound(f"Booking {booking_id} not found", details={'booking_id': str(booking_id)})
        return booking

    def _load_by_reference(self, reference: str) -> Booking:
        booking = self.ledger.get_booking_by_reference(reference, lock=True)
        if booking is None:
            raise NotFound(f"Booking {reference} not found", details={'reference': reference})
        return booking


class UpdateBookingStatusHandler(BookingLoaderMixin):
    """Admin booking transition; the state machine lives on the aggregate"""

    def __init__(self, ledger, uow_factory=DjangoUnitOfWork):
        self.ledger = ledger
        self.uow_factory = uow_factory

    def handle(self, command: UpdateBookingStatusCommand) -> Booking:
        with self.uow_factory() as uow:
            booking = self._load_by_id(command.booking_id)
            previous = booking.transition_to(command.status, admin_notes=command.admin_notes)
            self.ledger.update_booking_status(booking)
            uow.collect_events(booking)

        logger.info(f"Booking {booking.reference} status {previous.value} -> {booking.status.value}")
        return booking


class PaymentTransitionMixin(BookingLoaderMixin):
    """
    Payment state changes plus the Payment rows and booking status that go
    with them. Must be called inside a unit of work.
    """

    def _apply_payment_transition(
        self,
        booking: Booking,
        requested: PaymentStatus,
        *,
        method: str = '',
        external_order_id: str = '',
        external_payment_id: str = '',
        reason: str = '',
    ) -> PaymentStatus:
        previous = booking.change_payment_status(requested, method=method or None)

        if requested == PaymentStatus.PAID:
            self._record_success(booking, method, external_order_id, external_payment_id)
            if booking.status == BookingStatus.PENDING:
                booking.transition_to(BookingStatus.CONFIRMED)
                self.ledger.update_booking_status(booking)
        elif requested == PaymentStatus.FAILED:
            self._record_failure(booking, external_order_id, reason)
        elif requested == PaymentStatus.REFUNDED:
            payment = booking.successful_payment
            if payment is not None:
                payment.status = PaymentAttemptStatus.REFUNDED
                payment.touch()
                self.ledger.update_payment(payment)

        self.ledger.update_payment_status(booking)
        return previous

    def _record_success(self, booking: Booking, method: str, order_id: str, payment_id: str):
        if booking.successful_payment is not None:
            raise Conflict(f"Booking {booking.reference} already has a successful payment")

        attempt = None
        if order_id:
            attempt = next(
                (p for p in booking.payments
                 if p.status == PaymentAttemptStatus.PENDING and p.external_order_id == order_id),
                None,
            )

        if attempt is not None:
            attempt.status = PaymentAttemptStatus.SUCCESSFUL
            attempt.external_payment_id = payment_id or attempt.external_payment_id
            attempt.method = method or attempt.method
            attempt.touch()
            self.ledger.update_payment(attempt)
            return attempt

        payment = Payment(
            booking_id=booking.id,
            amount=booking.total_amount,
            method=method or booking.payment_method or ONLINE,
            status=PaymentAttemptStatus.SUCCESSFUL,
            external_order_id=order_id,
            external_payment_id=payment_id,
        )
        self.ledger.insert_payment(payment)
        booking.payments.append(payment)
        return payment

    def _record_failure(self, booking: Booking, order_id: str, reason: str):
        pending = [p for p in booking.payments if p.status == PaymentAttemptStatus.PENDING]
        for payment in pending:
            payment.status = PaymentAttemptStatus.FAILED
            payment.failure_reason = reason[:255]
            payment.touch()
            self.ledger.update_payment(payment)

        if order_id and not any(p.external_order_id == order_id for p in pending):
            payment = Payment(
                booking_id=booking.id,
                amount=booking.total_amount,
                method=booking.payment_method or ONLINE,
                status=PaymentAttemptStatus.FAILED,
                external_order_id=order_id,
                failure_reason=reason[:255],
            )
            self.ledger.insert_payment(payment)
            booking.payments.append(payment)


class UpdatePaymentStatusHandler(PaymentTransitionMixin):
    def __init__(self, ledger, uow_factory=DjangoUnitOfWork):
        self.ledger = ledger
        self.uow_factory = uow_factory

    def handle(self, command: UpdatePaymentStatusCommand) -> Booking:
        with self.uow_factory() as uow:
            booking = self._load_by_id(command.booking_id)
            previous = self._apply_payment_transition(
                booking,
                command.payment_status,
                method=command.payment_method,
                external_order_id=command.external_order_id,
                external_payment_id=command.external_payment_id,
                reason=command.reason,
            )
            uow.collect_events(booking)

        logger.info(
            f"Booking {booking.reference} payment {previous.value} -> {booking.payment_status.value}"
        )
        return booking


class ConfirmPaymentHandler(PaymentTransitionMixin):
    """
    Gateway confirmation. Repeating a callback for an already recorded
    payment id returns the booking unchanged. A booking whose last attempt
    failed is moved back to pending and then to paid in the same transaction.
    """

    def __init__(self, ledger, uow_factory=DjangoUnitOfWork):
        self.ledger = ledger
        self.uow_factory = uow_factory

    def handle(self, command: ConfirmPaymentCommand) -> Booking:
        if not command.verified_signature_ok:
            logger.warning(f"Rejected unverified payment callback for {command.booking_reference}")
            raise InvalidInput("Payment signature could not be verified")

        with self.uow_factory() as uow:
            booking = self._load_by_reference(command.booking_reference)
            existing = booking.successful_payment
            if (
                booking.payment_status == PaymentStatus.PAID
                and existing is not None
                and command.external_payment_id
                and existing.external_payment_id == command.external_payment_id
            ):
                logger.info(f"Duplicate payment callback for {booking.reference} ignored")
                return booking

            if booking.payment_status == PaymentStatus.FAILED:
                # A retry after a failed attempt goes through pending first
                booking.change_payment_status(PaymentStatus.PENDING)
                logger.info(f"Payment retry succeeded for {booking.reference} after an earlier failure")

            self._apply_payment_transition(
                booking,
                PaymentStatus.PAID,
                method=command.payment_method,
                external_order_id=command.external_order_id,
                external_payment_id=command.external_payment_id,
            )
            uow.collect_events(booking)

        logger.info(f"Payment confirmed for booking {booking.reference}")
        return booking


class PaymentFailedHandler(PaymentTransitionMixin):
    def __init__(self, ledger, uow_factory=DjangoUnitOfWork):
        self.ledger = ledger
        self.uow_factory = uow_factory

    def handle(self, command: PaymentFailedCommand) -> Booking:
        with self.uow_factory() as uow:
            booking = self._load_by_reference(command.booking_reference)
            self._apply_payment_transition(
                booking,
                PaymentStatus.FAILED,
                external_order_id=command.external_order_id,
                reason=command.reason,
            )
            uow.collect_events(booking)

        logger.info(f"Payment failed for booking {booking.reference}: {command.reason}")
        return booking


class OfflinePaymentHandler(PaymentTransitionMixin):
    """
    Pay at property: the booking is confirmed now and the money is collected
    on arrival, so the payment stays pending with a pending attempt on record.
    """

    def __init__(self, ledger, uow_factory=DjangoUnitOfWork):
        self.ledger = ledger
        self.uow_factory = uow_factory

    def handle(self, command: OfflinePaymentCommand) -> Booking:
        with self.uow_factory() as uow:
            booking = self._load_by_reference(command.booking_reference)
            booking.transition_to(BookingStatus.CONFIRMED)

            if booking.payment_status == PaymentStatus.FAILED:
                booking.change_payment_status(PaymentStatus.PENDING, method=PAY_AT_PROPERTY)
            else:
                booking.payment_method = PAY_AT_PROPERTY

            payment = Payment(
                booking_id=booking.id,
                amount=booking.total_amount,
                method=PAY_AT_PROPERTY,
                status=PaymentAttemptStatus.PENDING,
            )
            self.ledger.insert_payment(payment)
            booking.payments.append(payment)

            self.ledger.update_booking_status(booking)
            self.ledger.update_payment_status(booking)
            uow.collect_events(booking)

        logger.info(f"Booking {booking.reference} confirmed for payment at property")
        return booking


class OverrideTotalHandler(BookingLoaderMixin):
    """The only way to change a stored total; refused once paid"""

    def __init__(self, ledger, uow_factory=DjangoUnitOfWork):
        self.ledger = ledger
        self.uow_factory = uow_factory

    def handle(self, command: OverrideTotalCommand) -> Booking:
        try:
            amount = Decimal(str(command.total_amount))
        except (InvalidOperation, TypeError, ValueError):
            raise InvalidInput("Total amount must be a number")
        if not amount.is_finite() or amount < 0:
            raise InvalidInput("Total amount cannot be negative")

        with self.uow_factory() as uow:
            booking = self._load_by_id(command.booking_id)
            previous = booking.total_amount
            booking.override_total(
                Money(amount.quantize(Decimal('0.01')), booking.total_amount.currency),
                admin_notes=command.admin_notes,
            )
            self.ledger.update_total_amount(booking)
            uow.collect_events(booking)

        logger.info(f"Booking {booking.reference} total overridden: {previous} -> {booking.total_amount}")
        return booking


class CompleteFinishedBookingsHandler(BookingLoaderMixin):
    """Moves confirmed bookings past their check-out day to completed"""

    def __init__(self, ledger, uow_factory=DjangoUnitOfWork):
        self.ledger = ledger
        self.uow_factory = uow_factory

    def handle(self, command: CompleteFinishedBookingsCommand) -> int:
        completed = 0
        for booking_id in self.ledger.find_finished_bookings(command.today):
            try:
                with self.uow_factory() as uow:
                    booking = self._load_by_id(booking_id)
                    if booking.status != BookingStatus.CONFIRMED:
                        continue
                    booking.transition_to(BookingStatus.COMPLETED)
                    self.ledger.update_booking_status(booking)
                    uow.collect_events(booking)
                completed += 1
                logger.info(f"Booking {booking.reference} completed")
            except BookingDomainError as e:
                logger.error(f"Error completing booking {booking_id}: {e.message}")

        if completed:
            logger.info(f"Completed {completed} bookings")
        return completed
