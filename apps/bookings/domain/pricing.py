"""
Pricing Calculator

Pure function shared by quotes, availability previews and booking creation.

All arithmetic happens on unrounded Decimals. Every displayed figure is then
rounded on its own with ``round_display``, so displayed parts may not add up
to the displayed grand total.
"""

from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Iterable, Optional, Sequence, Tuple
from uuid import UUID

from apps.catalog.domain.entities import Cottage, Package, SafariType
from shared.domain.exceptions import InvalidInput
from shared.domain.value_objects import round_display

INCLUDED_GUESTS = 2
GUEST_SURCHARGE_RATE = Decimal('0.20')
TAX_RATE = Decimal('0.18')
SERVICE_FEE_RATE = Decimal('0.05')

ZERO = Decimal('0')


@dataclass(frozen=True)
class SafariLine:
    safari_type_id: UUID
    name: str
    unit_price: Decimal
    participants: int
    line_total: Decimal
    waived: bool = False

    @property
    def charged(self) -> Decimal:
        return ZERO if self.waived else self.line_total


@dataclass(frozen=True)
class PriceBreakdown:
    nights: int
    guests: int
    base_price: Decimal
    base_total: Decimal
    guest_surcharge: Decimal
    villa_total: Decimal
    package_multiplier: Optional[Decimal]
    package_total: Optional[Decimal]
    package_delta: Decimal
    safari_lines: Tuple[SafariLine, ...]
    safari_total: Decimal
    safari_discount: Decimal
    subtotal: Decimal
    tax: Decimal
    service_fee: Decimal
    grand_total: Decimal

    @property
    def display_total(self) -> int:
        return round_display(self.grand_total)

    def as_display(self) -> dict:
        """Breakdown with every money field rounded independently"""
        return {
            'nights': self.nights,
            'guests': self.guests,
            'base_price': round_display(self.base_price),
            'base_total': round_display(self.base_total),
            'guest_surcharge': round_display(self.guest_surcharge),
            'villa_total': round_display(self.villa_total),
            'package_multiplier': str(self.package_multiplier) if self.package_multiplier is not None else None,
            'package_total': round_display(self.package_total) if self.package_total is not None else None,
            'package_delta': round_display(self.package_delta),
            'safaris': [
                {
                    'safari_type_id': str(line.safari_type_id),
                    'name': line.name,
                    'unit_price': round_display(line.unit_price),
                    'participants': line.participants,
                    'total': round_display(line.line_total),
                    'included_in_package': line.waived,
                }
                for line in self.safari_lines
            ],
            'safari_total': round_display(self.safari_total),
            'safari_discount': round_display(self.safari_discount),
            'subtotal': round_display(self.subtotal),
            'tax': round_display(self.tax),
            'service_fee': round_display(self.service_fee),
            'grand_total': round_display(self.grand_total),
        }


def _waived_indexes(lines: Sequence[SafariLine], free_count: int) -> set:
    """Lowest unit price first; equal prices keep request order."""
    if free_count <= 0:
        return set()
    ranked = sorted(range(len(lines)), key=lambda i: (lines[i].unit_price, i))
    return set(ranked[:free_count])


def price_safaris(
    safaris: Iterable[Tuple[SafariType, int]],
    package: Optional[Package] = None,
) -> Tuple[SafariLine, ...]:
    lines = []
    for safari, participants in safaris:
        if participants < 1:
            raise InvalidInput(f"Participants for {safari.name} must be at least 1")
        lines.append(SafariLine(
            safari_type_id=safari.id,
            name=safari.name,
            unit_price=safari.price,
            participants=participants,
            line_total=safari.price * participants,
        ))

    free_count = package.free_safari_count if package else 0
    waived = _waived_indexes(lines, free_count)
    return tuple(
        replace(line, waived=True) if i in waived else line
        for i, line in enumerate(lines)
    )


def compute_price(
    cottage: Cottage,
    nights: int,
    guests: int,
    package: Optional[Package] = None,
    safaris: Iterable[Tuple[SafariType, int]] = (),
) -> PriceBreakdown:
    """
    Price a stay.

    Args:
        cottage: cottage snapshot supplying the nightly base price
        nights: number of nights, at least 1
        guests: adults plus children, at least 1
        package: optional package; its multiplier applies to the stay only
        safaris: (safari type, participants) pairs in request order

    Returns:
        PriceBreakdown with unrounded Decimal fields
    """
    if nights < 1:
        raise InvalidInput("A stay must be at least one night")
    if guests < 1:
        raise InvalidInput("At least one guest is required")

    base_price = cottage.base_price
    base_total = base_price * nights
    extra_guests = max(guests - INCLUDED_GUESTS, 0)
    guest_surcharge = extra_guests * base_price * GUEST_SURCHARGE_RATE * nights
    villa_total = base_total + guest_surcharge

    package_multiplier = None
    package_total = None
    package_delta = ZERO
    if package is not None:
        package_multiplier = package.price_multiplier
        package_total = villa_total * package_multiplier
        package_delta = package_total - villa_total

    lines = price_safaris(safaris, package)
    safari_gross = sum((line.line_total for line in lines), ZERO)
    safari_total = sum((line.charged for line in lines), ZERO)

    stay_total = package_total if package_total is not None else villa_total
    subtotal = stay_total + safari_total
    tax = subtotal * TAX_RATE
    service_fee = subtotal * SERVICE_FEE_RATE

    return PriceBreakdown(
        nights=nights,
        guests=guests,
        base_price=base_price,
        base_total=base_total,
        guest_surcharge=guest_surcharge,
        villa_total=villa_total,
        package_multiplier=package_multiplier,
        package_total=package_total,
        package_delta=package_delta,
        safari_lines=lines,
        safari_total=safari_total,
        safari_discount=safari_gross - safari_total,
        subtotal=subtotal,
        tax=tax,
        service_fee=service_fee,
        grand_total=subtotal + tax + service_fee,
    )
