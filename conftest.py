"""Shared pytest fixtures: a catalog row and in-memory doubles for the booking core."""

from __future__ import annotations

from decimal import Decimal

import pytest


@pytest.fixture
def cottage(db):
    from apps.catalog.models import Cottage

    return Cottage.objects.create(
        name="Glass Cottage",
        type="glass-cottage",
        base_price=Decimal("15000.00"),
        max_guests=4,
        amenities=["Air conditioning", "Forest view"],
    )


@pytest.fixture
def fake_catalog():
    from apps.bookings.tests.fakes import FakeCatalog

    return FakeCatalog()


@pytest.fixture
def fake_ledger():
    from apps.bookings.tests.fakes import FakeLedger

    return FakeLedger()


@pytest.fixture
def uow_factory(fake_ledger):
    from apps.bookings.tests.fakes import UnitOfWorkFactory

    return UnitOfWorkFactory(fake_ledger)
