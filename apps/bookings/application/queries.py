"""
Read-side queries for the HTTP layer.

Nothing here writes; results may be stale by the time a booking is made,
which is why booking creation re-checks under lock.
"""

from calendar import monthrange
from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Tuple
from uuid import UUID

from apps.bookings.domain.availability import OccupiedPeriod
from apps.catalog.domain.entities import Cottage, SafariType
from shared.domain.exceptions import InvalidInput, NotFound


@dataclass(frozen=True)
class SlotAvailability:
    time_slot: str
    capacity: int
    booked: int

    @property
    def remaining(self) -> int:
        return max(self.capacity - self.booked, 0)

    @property
    def available(self) -> bool:
        return self.remaining > 0

    def to_dict(self) -> dict:
        return {
            'time': self.time_slot,
            'capacity': self.capacity,
            'booked': self.booked,
            'available_spots': self.remaining,
            'available': self.available,
        }


def _find_safari(catalog, safari_type_id: UUID) -> SafariType:
    safari = catalog.get_safari_type(safari_type_id)
    if safari is None:
        raise NotFound(f"Safari {safari_type_id} not found")
    return safari


def _slots_on(ledger, safari: SafariType, on_date: date) -> List[SlotAvailability]:
    return [
        SlotAvailability(
            time_slot=slot,
            capacity=safari.max_guests,
            booked=ledger.sum_safari_participants(safari.id, on_date, slot),
        )
        for slot in safari.time_slots
    ]


def safari_slots(catalog, ledger, safari_type_id: UUID, on_date: date) -> Tuple[SafariType, List[SlotAvailability]]:
    safari = _find_safari(catalog, safari_type_id)
    return safari, _slots_on(ledger, safari, on_date)


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    if not 1 <= month <= 12 or not 1 <= year < 9999:
        raise InvalidInput("Invalid calendar month", details={'year': year, 'month': month})
    first = date(year, month, 1)
    last = first + timedelta(days=monthrange(year, month)[1])
    return first, last


def cottage_calendar(catalog, ledger, cottage_type: str, year: int, month: int) -> Tuple[Cottage, List[OccupiedPeriod]]:
    """Blocking bookings that touch any night of the month"""
    cottage = catalog.get_cottage_by_type(cottage_type)
    if cottage is None:
        raise NotFound(f"Cottage '{cottage_type}' not found")
    first, after_last = month_bounds(year, month)
    return cottage, ledger.find_overlapping_bookings(cottage.id, first, after_last)


def safari_available_dates(
    catalog, ledger, safari_type_id: UUID, year: int, month: int, today: date
) -> Tuple[SafariType, List[Tuple[date, List[SlotAvailability]]]]:
    """Days of the month, from ``today`` on, with at least one open slot"""
    safari = _find_safari(catalog, safari_type_id)
    first, after_last = month_bounds(year, month)
    days = []
    day = max(first, today)
    while day < after_last:
        slots = _slots_on(ledger, safari, day)
        if any(slot.available for slot in slots):
            days.append((day, slots))
        day += timedelta(days=1)
    return safari, days
