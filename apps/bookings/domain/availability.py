"""
Availability Checker

Overlap rules for cottage stays. The ledger does the narrowing query; this
module decides what counts as a conflict so the rule lives in one place.
"""

from dataclasses import dataclass
from typing import Iterable, Tuple
from uuid import UUID

from apps.bookings.domain.entities import BLOCKING_STATUSES, BookingStatus
from shared.domain.value_objects import DateRange


@dataclass(frozen=True)
class OccupiedPeriod:
    """A booking that holds a cottage for a date range"""
    booking_id: UUID
    reference: str
    dates: DateRange
    status: BookingStatus

    def to_dict(self) -> dict:
        return {
            'booking_id': str(self.booking_id),
            'reference': self.reference,
            'check_in': self.dates.start_date.isoformat(),
            'check_out': self.dates.end_date.isoformat(),
            'status': self.status.value,
        }

    def to_public_dict(self) -> dict:
        """Dates and status only; references identify other guests' bookings"""
        return {
            'check_in': self.dates.start_date.isoformat(),
            'check_out': self.dates.end_date.isoformat(),
            'status': self.status.value,
        }


@dataclass(frozen=True)
class AvailabilityResult:
    available: bool
    conflicts: Tuple[OccupiedPeriod, ...] = ()


def evaluate_availability(requested: DateRange, occupied: Iterable[OccupiedPeriod]) -> AvailabilityResult:
    """
    Check requested dates against occupied periods.

    Only pending and confirmed bookings block. Back-to-back stays do not
    conflict because DateRange is half-open.
    """
    conflicts = tuple(
        period for period in occupied
        if period.status in BLOCKING_STATUSES and period.dates.overlaps_with(requested)
    )
    return AvailabilityResult(available=not conflicts, conflicts=conflicts)
