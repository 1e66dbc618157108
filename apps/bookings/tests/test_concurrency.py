"""Concurrent booking requests for the same cottage and dates."""

from __future__ import annotations

import os
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import date, timedelta
from decimal import Decimal

import pytest
from django.db import connection

from apps.bookings.application import command_handlers as ch
from apps.bookings.domain.entities import GuestContact
from apps.bookings.models import Booking
from apps.bookings.repositories import DjangoLedger
from apps.catalog.repositories import DjangoCatalog
from shared.domain.exceptions import Conflict

WORKERS = 8


def command(index: int, check_in: date, check_out: date) -> ch.CreateBookingCommand:
    return ch.CreateBookingCommand(
        cottage_type="glass-cottage",
        check_in=check_in,
        check_out=check_out,
        adults=2,
        guest=GuestContact(name=f"Guest {index}", email=f"guest{index}@example.com"),
        total_amount=Decimal("36900"),
    )


def race(handler, commands):
    barrier = threading.Barrier(len(commands))

    def attempt(cmd):
        barrier.wait()
        try:
            return handler.handle(cmd)
        except Conflict as exc:
            return exc

    with ThreadPoolExecutor(max_workers=len(commands)) as pool:
        return list(pool.map(attempt, commands))


def test_only_one_of_many_overlapping_requests_commits(fake_catalog, fake_ledger, uow_factory):
    fake_catalog.add_cottage(type="glass-cottage", base_price="15000")
    handler = ch.CreateBookingHandler(fake_catalog, fake_ledger, uow_factory)
    check_in = date(2030, 4, 1)

    results = race(handler, [command(i, check_in, check_in + timedelta(days=2)) for i in range(WORKERS)])

    conflicts = [r for r in results if isinstance(r, Conflict)]
    assert len(conflicts) == WORKERS - 1
    assert len(fake_ledger.bookings) == 1
    assert uow_factory.event_names() == ["BookingCreated"]


def test_disjoint_requests_all_commit(fake_catalog, fake_ledger, uow_factory):
    fake_catalog.add_cottage(type="glass-cottage", base_price="15000")
    handler = ch.CreateBookingHandler(fake_catalog, fake_ledger, uow_factory)
    start = date(2030, 6, 1)
    commands = [
        command(i, start + timedelta(days=2 * i), start + timedelta(days=2 * i + 2))
        for i in range(WORKERS)
    ]

    results = race(handler, commands)

    assert not [r for r in results if isinstance(r, Conflict)]
    assert len(fake_ledger.bookings) == WORKERS


@pytest.mark.postgres
@pytest.mark.django_db(transaction=True)
@pytest.mark.skipif(
    os.environ.get("DB_ENGINE") != "django.db.backends.postgresql",
    reason="row locks need PostgreSQL",
)
def test_database_race_leaves_one_booking(cottage):
    handler = ch.CreateBookingHandler(
        catalog=DjangoCatalog(),
        ledger=DjangoLedger(),
    )
    check_in = date(2031, 1, 10)

    def run(cmd):
        try:
            return handler.handle(cmd)
        except Conflict as exc:
            return exc
        finally:
            connection.close()

    barrier = threading.Barrier(4)

    def attempt(cmd):
        barrier.wait()
        return run(cmd)

    with ThreadPoolExecutor(max_workers=4) as pool:
        results = list(pool.map(attempt, [command(i, check_in, check_in + timedelta(days=2)) for i in range(4)]))

    assert sum(isinstance(r, Conflict) for r in results) == 3
    assert Booking.objects.filter(cottage=cottage).count() == 1
