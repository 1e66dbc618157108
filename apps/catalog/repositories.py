"""
Catalog repository

Read access to cottages, packages and safari types for the booking core.
JSON columns are turned into tuples here so nothing past this module sees
loose ORM data.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional
from uuid import UUID
import logging

from django.core.exceptions import ValidationError

from apps.catalog import models
from apps.catalog.domain.entities import Cottage, Package, SafariType

logger = logging.getLogger(__name__)


def _as_slots(raw) -> tuple:
    if not raw:
        return ()
    if isinstance(raw, str):
        return (raw,)
    return tuple(str(slot) for slot in raw)


def cottage_from_model(obj: models.Cottage) -> Cottage:
    return Cottage(
        id=obj.id,
        name=obj.name,
        type=obj.type,
        base_price=Decimal(obj.base_price),
        max_guests=obj.max_guests,
        is_active=obj.is_active,
        amenities=_as_slots(obj.amenities),
    )


def package_from_model(obj: models.Package) -> Package:
    return Package(
        id=obj.id,
        name=obj.name,
        price_multiplier=Decimal(obj.price_multiplier),
        includes_safari=obj.includes_safari,
        max_safaris=obj.max_safaris,
        is_active=obj.is_active,
    )


def safari_type_from_model(obj: models.SafariType) -> SafariType:
    return SafariType(
        id=obj.id,
        name=obj.name,
        price=Decimal(obj.price),
        max_guests=obj.max_guests,
        duration=obj.duration,
        time_slots=_as_slots(obj.time_slots),
        is_active=obj.is_active,
    )


class AbstractCatalog(ABC):
    """Catalog lookups. Every getter returns None for missing or inactive rows."""

    @abstractmethod
    def get_cottage_by_type(self, cottage_type: str) -> Optional[Cottage]:
        raise NotImplementedError

    @abstractmethod
    def get_package(self, package_id: UUID) -> Optional[Package]:
        raise NotImplementedError

    @abstractmethod
    def get_safari_type(self, safari_type_id: UUID) -> Optional[SafariType]:
        raise NotImplementedError


class DjangoCatalog(AbstractCatalog):
    """Django ORM implementation of the catalog"""

    def get_cottage_by_type(self, cottage_type: str) -> Optional[Cottage]:
        obj = models.Cottage.objects.active().filter(type=cottage_type).first()
        if obj is None:
            logger.debug(f"Cottage type {cottage_type!r} not found or inactive")
            return None
        return cottage_from_model(obj)

    def get_package(self, package_id: UUID) -> Optional[Package]:
        try:
            obj = models.Package.objects.active().filter(pk=package_id).first()
        except ValidationError:
            return None
        return package_from_model(obj) if obj else None

    def get_safari_type(self, safari_type_id: UUID) -> Optional[SafariType]:
        try:
            obj = models.SafariType.objects.active().filter(pk=safari_type_id).first()
        except ValidationError:
            return None
        return safari_type_from_model(obj) if obj else None
