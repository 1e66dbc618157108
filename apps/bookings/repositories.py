"""
Reservation Ledger

Repository over bookings, safari bookings and payments. Every write method
is meant to run inside a ``DjangoUnitOfWork`` so one booking and all of its
child rows commit together.
"""

from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional
from uuid import UUID
import logging

from django.db import IntegrityError, connection, transaction
from django.db.models import Sum

from apps.bookings import models
from apps.bookings.domain.availability import OccupiedPeriod
from apps.bookings.domain.entities import (
    BLOCKING_STATUSES,
    Booking,
    BookingStatus,
    GuestContact,
    Payment,
    PaymentAttemptStatus,
    PaymentStatus,
    SafariBooking,
)
from apps.catalog.models import Cottage as CottageModel, SafariType as SafariTypeModel
from apps.finances.models import Payment as PaymentModel
from shared.domain.value_objects import DateRange, Money

logger = logging.getLogger(__name__)


class ReferenceCollision(Exception):
    """Another transaction committed a booking with the same reference first"""

    def __init__(self, reference: str):
        super().__init__(f"Booking reference {reference} is already taken")
        self.reference = reference


class AbstractLedger(ABC):
    """Reservation ledger interface used by the booking command handlers"""

    # ----- locks -----

    @abstractmethod
    def lock_cottage(self, cottage_id: UUID) -> None:
        """Serialise writers for one cottage until the transaction ends"""

    @abstractmethod
    def lock_safari_types(self, safari_type_ids: Iterable[UUID]) -> None:
        """Lock safari types in a deterministic order"""

    # ----- reads -----

    @abstractmethod
    def find_overlapping_bookings(
        self,
        cottage_id: UUID,
        check_in: date,
        check_out: date,
        statuses=BLOCKING_STATUSES,
    ) -> List[OccupiedPeriod]:
        raise NotImplementedError

    @abstractmethod
    def sum_safari_participants(self, safari_type_id: UUID, on_date: date, time_slot: str) -> int:
        raise NotImplementedError

    @abstractmethod
    def reference_exists(self, reference: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def get_booking(self, booking_id: UUID, lock: bool = False) -> Optional[Booking]:
        raise NotImplementedError

    @abstractmethod
    def get_booking_by_reference(self, reference: str, lock: bool = False) -> Optional[Booking]:
        raise NotImplementedError

    @abstractmethod
    def find_finished_bookings(self, on_or_before: date) -> List[UUID]:
        """Confirmed bookings whose check-out day has arrived"""

    # ----- writes -----

    @abstractmethod
    def insert_booking(self, booking: Booking) -> None:
        """Raises ReferenceCollision when the reference was taken concurrently"""

    @abstractmethod
    def insert_safari_booking(self, safari: SafariBooking) -> None:
        raise NotImplementedError

    @abstractmethod
    def update_booking_status(self, booking: Booking) -> None:
        raise NotImplementedError

    @abstractmethod
    def update_payment_status(self, booking: Booking) -> None:
        raise NotImplementedError

    @abstractmethod
    def update_total_amount(self, booking: Booking) -> None:
        raise NotImplementedError

    @abstractmethod
    def insert_payment(self, payment: Payment) -> None:
        raise NotImplementedError

    @abstractmethod
    def update_payment(self, payment: Payment) -> None:
        raise NotImplementedError


# ===== ORM mapping =====

def safari_from_model(obj: models.SafariBooking) -> SafariBooking:
    return SafariBooking(
        id=obj.id,
        booking_id=obj.booking_id,
        safari_type_id=obj.safari_type_id,
        safari_name=obj.safari_type.name,
        date=obj.date,
        time_slot=obj.time_slot,
        participants=obj.participants,
        unit_price=Decimal(obj.unit_price),
        created_at=obj.created_at,
        updated_at=obj.created_at,
    )


def payment_from_model(obj: PaymentModel) -> Payment:
    return Payment(
        id=obj.id,
        booking_id=obj.booking_id,
        amount=Money(obj.amount, obj.currency),
        method=obj.method,
        status=PaymentAttemptStatus(obj.status),
        external_order_id=obj.external_order_id,
        external_payment_id=obj.external_payment_id,
        failure_reason=obj.failure_reason,
        created_at=obj.created_at,
        updated_at=obj.updated_at,
    )


def booking_from_model(obj: models.Booking) -> Booking:
    return Booking(
        id=obj.id,
        reference=obj.reference,
        cottage_id=obj.cottage_id,
        cottage_type=obj.cottage.type,
        cottage_name=obj.cottage.name,
        package_id=obj.package_id,
        package_name=obj.package.name if obj.package_id else '',
        dates=DateRange(obj.check_in, obj.check_out),
        adults=obj.adults,
        children=obj.children,
        total_amount=Money(obj.total_amount, obj.currency),
        status=BookingStatus(obj.status),
        payment_status=PaymentStatus(obj.payment_status),
        payment_method=obj.payment_method,
        guest=GuestContact.from_dict(obj.guest_details),
        special_requests=obj.special_requests,
        admin_notes=obj.admin_notes,
        safaris=[safari_from_model(s) for s in obj.safari_bookings.select_related('safari_type')],
        payments=[payment_from_model(p) for p in obj.payments.all()],
        created_at=obj.created_at,
        updated_at=obj.updated_at,
    )


class DjangoLedger(AbstractLedger):
    """Django ORM implementation of the reservation ledger"""

    def lock_cottage(self, cottage_id: UUID) -> None:
        # Evaluating the queryset issues SELECT ... FOR UPDATE
        list(CottageModel.objects.select_for_update().filter(pk=cottage_id).values_list('pk', flat=True))

    def lock_safari_types(self, safari_type_ids: Iterable[UUID]) -> None:
        ids = sorted(set(safari_type_ids), key=str)
        if not ids:
            return
        list(
            SafariTypeModel.objects.select_for_update()
            .filter(pk__in=ids)
            .order_by('pk')
            .values_list('pk', flat=True)
        )

    def find_overlapping_bookings(
        self,
        cottage_id: UUID,
        check_in: date,
        check_out: date,
        statuses=BLOCKING_STATUSES,
    ) -> List[OccupiedPeriod]:
        rows = (
            models.Booking.objects.filter(
                cottage_id=cottage_id,
                status__in=[s.value for s in statuses],
                check_in__lt=check_out,
                check_out__gt=check_in,
            )
            .order_by('check_in')
            .values('id', 'reference', 'check_in', 'check_out', 'status')
        )
        return [
            OccupiedPeriod(
                booking_id=row['id'],
                reference=row['reference'],
                dates=DateRange(row['check_in'], row['check_out']),
                status=BookingStatus(row['status']),
            )
            for row in rows
        ]

    def sum_safari_participants(self, safari_type_id: UUID, on_date: date, time_slot: str) -> int:
        total = (
            models.SafariBooking.objects.filter(
                safari_type_id=safari_type_id,
                date=on_date,
                time_slot=time_slot,
                booking__status__in=[s.value for s in BLOCKING_STATUSES],
            )
            .aggregate(total=Sum('participants'))['total']
        )
        return int(total or 0)

    def reference_exists(self, reference: str) -> bool:
        return models.Booking.objects.filter(reference=reference).exists()

    def _load(self, lock: bool, **lookup) -> Optional[Booking]:
        qs = models.Booking.objects.all()
        if lock:
            # nullable package join cannot be locked on PostgreSQL
            if connection.features.has_select_for_update_of:
                qs = qs.select_for_update(of=("self",))
            else:
                qs = qs.select_for_update()
        obj = qs.select_related('cottage', 'package').filter(**lookup).first()
        return booking_from_model(obj) if obj else None

    def get_booking(self, booking_id: UUID, lock: bool = False) -> Optional[Booking]:
        return self._load(lock, pk=booking_id)

    def get_booking_by_reference(self, reference: str, lock: bool = False) -> Optional[Booking]:
        return self._load(lock, reference=reference)

    def find_finished_bookings(self, on_or_before: date) -> List[UUID]:
        return list(
            models.Booking.objects.filter(
                status=BookingStatus.CONFIRMED.value,
                check_out__lte=on_or_before,
            ).values_list('id', flat=True)
        )

    def insert_booking(self, booking: Booking) -> None:
        try:
            with transaction.atomic():
                models.Booking.objects.create(
                    id=booking.id,
                    reference=booking.reference,
                    cottage_id=booking.cottage_id,
                    package_id=booking.package_id,
                    check_in=booking.check_in,
                    check_out=booking.check_out,
                    adults=booking.adults,
                    children=booking.children,
                    total_amount=booking.total_amount.amount,
                    currency=booking.total_amount.currency,
                    status=booking.status.value,
                    payment_status=booking.payment_status.value,
                    payment_method=booking.payment_method,
                    guest_details=booking.guest.to_dict(),
                    special_requests=booking.special_requests,
                    admin_notes=booking.admin_notes,
                )
        except IntegrityError:
            if self.reference_exists(booking.reference):
                raise ReferenceCollision(booking.reference)
            raise
        logger.debug(f"Inserted booking {booking.reference}")

    def insert_safari_booking(self, safari: SafariBooking) -> None:
        models.SafariBooking.objects.create(
            id=safari.id,
            booking_id=safari.booking_id,
            safari_type_id=safari.safari_type_id,
            date=safari.date,
            time_slot=safari.time_slot,
            participants=safari.participants,
            unit_price=safari.unit_price,
        )

    def _update_booking(self, booking: Booking, **fields) -> None:
        updated = models.Booking.objects.filter(pk=booking.id).update(updated_at=booking.updated_at, **fields)
        if not updated:
            logger.warning(f"Booking {booking.id} vanished during update")

    def update_booking_status(self, booking: Booking) -> None:
        self._update_booking(booking, status=booking.status.value, admin_notes=booking.admin_notes)

    def update_payment_status(self, booking: Booking) -> None:
        self._update_booking(
            booking,
            payment_status=booking.payment_status.value,
            payment_method=booking.payment_method,
        )

    def update_total_amount(self, booking: Booking) -> None:
        self._update_booking(
            booking,
            total_amount=booking.total_amount.amount,
            admin_notes=booking.admin_notes,
        )

    def insert_payment(self, payment: Payment) -> None:
        PaymentModel.objects.create(
            id=payment.id,
            booking_id=payment.booking_id,
            amount=payment.amount.amount,
            currency=payment.amount.currency,
            method=payment.method,
            status=payment.status.value,
            external_order_id=payment.external_order_id,
            external_payment_id=payment.external_payment_id,
            failure_reason=payment.failure_reason,
        )

    def update_payment(self, payment: Payment) -> None:
        PaymentModel.objects.filter(pk=payment.id).update(
            status=payment.status.value,
            method=payment.method,
            external_order_id=payment.external_order_id,
            external_payment_id=payment.external_payment_id,
            failure_reason=payment.failure_reason,
            updated_at=payment.updated_at,
        )
