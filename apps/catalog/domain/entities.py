"""
Catalog snapshots

Immutable views of catalog rows handed to the booking core. The repository
builds them once per transaction, so pricing and availability never touch
the ORM directly.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Tuple
from uuid import UUID

from shared.domain.base import ValueObject


@dataclass(frozen=True)
class Cottage(ValueObject):
    id: UUID
    name: str
    type: str
    base_price: Decimal
    max_guests: int
    is_active: bool = True
    amenities: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if self.base_price <= 0:
            raise ValueError(f"Cottage {self.type} must have a positive base price")


@dataclass(frozen=True)
class Package(ValueObject):
    id: UUID
    name: str
    price_multiplier: Decimal
    includes_safari: bool = False
    max_safaris: int = 0
    is_active: bool = True

    def __post_init__(self):
        if self.price_multiplier <= 0:
            raise ValueError(f"Package {self.name} must have a positive multiplier")

    @property
    def free_safari_count(self) -> int:
        """How many safari lines the package waives."""
        return self.max_safaris if self.includes_safari else 0


@dataclass(frozen=True)
class SafariType(ValueObject):
    id: UUID
    name: str
    price: Decimal
    max_guests: int
    duration: str = ''
    time_slots: Tuple[str, ...] = field(default_factory=tuple)
    is_active: bool = True

    def offers_slot(self, slot: str) -> bool:
        return slot in self.time_slots
