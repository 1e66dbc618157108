"""Booking use cases driven through in-memory Catalog and Ledger doubles."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from apps.bookings.application import command_handlers as ch
from apps.bookings.domain.entities import BookingStatus, GuestContact, PaymentAttemptStatus, PaymentStatus
from shared.domain.exceptions import Conflict, InvalidInput, InvalidTransition, NotFound, TransientStoreFailure

GUEST = GuestContact(name="Asha Rao", email="asha@example.com", phone="+919800000000")
CHECK_IN = date(2030, 4, 1)
CHECK_OUT = date(2030, 4, 3)


@pytest.fixture
def cottage(fake_catalog):
    return fake_catalog.add_cottage(type="glass-cottage", base_price="15000", max_guests=4)


@pytest.fixture
def create(fake_catalog, fake_ledger, uow_factory):
    return ch.CreateBookingHandler(fake_catalog, fake_ledger, uow_factory).handle


def booking_command(**overrides) -> ch.CreateBookingCommand:
    fields = dict(
        cottage_type="glass-cottage",
        check_in=CHECK_IN,
        check_out=CHECK_OUT,
        adults=2,
        guest=GUEST,
        total_amount=Decimal("36900"),
    )
    fields.update(overrides)
    return ch.CreateBookingCommand(**fields)


class TestCreateBooking:
    def test_creates_pending_booking_at_server_price(self, cottage, create, fake_ledger, uow_factory):
        booking = create(booking_command(total_amount=Decimal("36900.40")))

        stored = fake_ledger.get_booking(booking.id)
        assert stored.status == BookingStatus.PENDING
        assert stored.payment_status == PaymentStatus.PENDING
        assert stored.total_amount.amount == Decimal("36900")
        assert stored.reference == booking.reference
        assert uow_factory.event_names() == ["BookingCreated"]

    def test_total_uses_configured_currency(self, cottage, create, settings):
        settings.RESORT_CURRENCY = "GBP"

        booking = create(booking_command())

        assert booking.total_amount.currency == "GBP"

    def test_stale_client_total_is_a_conflict(self, cottage, create, fake_ledger):
        with pytest.raises(Conflict) as exc:
            create(booking_command(total_amount=Decimal("30000")))

        assert exc.value.details["expected_total"] == 36900
        assert fake_ledger.bookings == {}

    def test_overlap_with_confirmed_booking_is_rejected(self, cottage, create, fake_ledger, uow_factory):
        first = create(booking_command())
        ch.UpdateBookingStatusHandler(fake_ledger, uow_factory).handle(
            ch.UpdateBookingStatusCommand(booking_id=first.id, status=BookingStatus.CONFIRMED)
        )

        with pytest.raises(Conflict) as exc:
            create(booking_command(check_in=date(2030, 4, 2), check_out=date(2030, 4, 4)))

        assert exc.value.details["conflicts"][0]["reference"] == first.reference
        assert len(fake_ledger.bookings) == 1

    def test_back_to_back_is_allowed(self, cottage, create, fake_ledger):
        create(booking_command())
        create(booking_command(check_in=CHECK_OUT, check_out=date(2030, 4, 5)))

        assert len(fake_ledger.bookings) == 2

    def test_cancelled_booking_frees_the_dates(self, cottage, create, fake_ledger, uow_factory):
        first = create(booking_command())
        ch.UpdateBookingStatusHandler(fake_ledger, uow_factory).handle(
            ch.UpdateBookingStatusCommand(booking_id=first.id, status=BookingStatus.CANCELLED)
        )

        create(booking_command())

        assert len(fake_ledger.bookings) == 2

    def test_checkout_must_follow_checkin(self, cottage, create):
        with pytest.raises(InvalidInput):
            create(booking_command(check_out=CHECK_IN))

    def test_unknown_cottage(self, create):
        with pytest.raises(NotFound):
            create(booking_command(cottage_type="tree-house"))

    def test_too_many_guests(self, cottage, create):
        with pytest.raises(InvalidInput) as exc:
            create(booking_command(adults=3, children=2))

        assert exc.value.details["max_guests"] == 4

    def test_safari_slot_capacity(self, cottage, create, fake_catalog, fake_ledger):
        safari = fake_catalog.add_safari(price="3000", max_guests=4)
        selection = ch.SafariSelection(safari_type_id=safari.id, date=CHECK_IN, time_slot="06:00", participants=3)
        # 15000 x 2 nights + 9000 safari = 39000, tax 7020, fee 1950
        create(booking_command(safaris=[selection], total_amount=Decimal("47970")))

        with pytest.raises(Conflict) as exc:
            create(booking_command(
                check_in=date(2030, 5, 1),
                check_out=date(2030, 5, 3),
                safaris=[ch.SafariSelection(safari.id, CHECK_IN, "06:00", 2)],
                total_amount=Decimal("44280"),
            ))

        [problem] = exc.value.details["invalid_selections"]
        assert problem["available_spots"] == 1
        assert len(fake_ledger.bookings) == 1

    def test_same_request_selections_share_the_slot(self, cottage, create, fake_catalog):
        safari = fake_catalog.add_safari(max_guests=4)
        selections = [
            ch.SafariSelection(safari.id, CHECK_IN, "06:00", 3),
            ch.SafariSelection(safari.id, CHECK_IN, "06:00", 3),
        ]

        with pytest.raises(Conflict):
            create(booking_command(safaris=selections, total_amount=Decimal("59040")))

    def test_unknown_time_slot(self, cottage, create, fake_catalog):
        safari = fake_catalog.add_safari(time_slots=("06:00",))
        selection = ch.SafariSelection(safari.id, CHECK_IN, "23:00", 1)

        with pytest.raises(Conflict) as exc:
            create(booking_command(safaris=[selection], total_amount=Decimal("40590")))

        assert exc.value.details["invalid_selections"][0]["error"] == "Time slot is not offered for this safari"

    def test_reference_collisions_give_up_after_five_attempts(self, cottage, create, fake_ledger, monkeypatch):
        monkeypatch.setattr(ch, "generate_reference", lambda: "VM000000DUPE")
        fake_ledger.taken_references.add("VM000000DUPE")

        with pytest.raises(TransientStoreFailure):
            create(booking_command())

        assert fake_ledger.bookings == {}

    def test_reference_taken_at_insert_draws_a_new_one(self, cottage, create, fake_ledger, uow_factory, monkeypatch):
        references = iter(["VM000001RACE", "VM000002FREE"])
        monkeypatch.setattr(ch, "generate_reference", lambda: next(references))
        fake_ledger.concurrent_references.add("VM000001RACE")

        booking = create(booking_command())

        assert booking.reference == "VM000002FREE"
        assert [b.reference for b in fake_ledger.bookings.values()] == ["VM000002FREE"]
        created = [e for e in uow_factory.published if e.name == "BookingCreated"]
        assert created[0].booking["reference"] == "VM000002FREE"

    def test_package_with_free_safari(self, cottage, create, fake_catalog, fake_ledger):
        package = fake_catalog.add_package(multiplier="1.2", includes_safari=True, max_safaris=1)
        safari = fake_catalog.add_safari(price="3000")
        selection = ch.SafariSelection(safari.id, CHECK_IN, "06:00", 2)
        # 30000 x 1.2 = 36000, safari waived, tax 6480, fee 1800
        booking = create(booking_command(package_id=package.id, safaris=[selection], total_amount=Decimal("44280")))

        stored = fake_ledger.get_booking(booking.id)
        assert stored.package_id == package.id
        assert stored.total_amount.amount == Decimal("44280")
        assert stored.safaris[0].participants == 2


class TestAvailabilityAndQuote:
    def test_availability_includes_price(self, cottage, fake_catalog, fake_ledger):
        handler = ch.CheckAvailabilityHandler(fake_catalog, fake_ledger)

        report = handler.handle(ch.CheckAvailabilityCommand("glass-cottage", CHECK_IN, CHECK_OUT, guests=2))

        assert report.available
        assert report.price.display_total == 36900

    def test_availability_is_repeatable(self, cottage, fake_catalog, fake_ledger):
        handler = ch.CheckAvailabilityHandler(fake_catalog, fake_ledger)
        command = ch.CheckAvailabilityCommand("glass-cottage", CHECK_IN, CHECK_OUT, guests=2)

        assert handler.handle(command).result == handler.handle(command).result

    def test_quote_for_unknown_package(self, cottage, fake_catalog):
        handler = ch.QuotePriceHandler(fake_catalog)

        with pytest.raises(NotFound):
            handler.handle(ch.QuotePriceCommand("glass-cottage", CHECK_IN, CHECK_OUT, adults=2, package_id=uuid4()))

    def test_quote_surcharge(self, cottage, fake_catalog):
        quote = ch.QuotePriceHandler(fake_catalog).handle(
            ch.QuotePriceCommand("glass-cottage", CHECK_IN, CHECK_OUT, adults=2, children=1)
        )

        assert quote.price.guest_surcharge == Decimal("6000")


class TestSafariSelection:
    @pytest.fixture
    def validate(self, fake_catalog, fake_ledger):
        return ch.ValidateSafariSelectionHandler(fake_catalog, fake_ledger).handle

    def test_valid_lines_are_priced(self, fake_catalog, validate):
        safari = fake_catalog.add_safari(price="3000", max_guests=6)

        report = validate(ch.ValidateSafariSelectionCommand([
            ch.SafariSelection(safari.id, CHECK_IN, "06:00", 2),
            ch.SafariSelection(safari.id, CHECK_IN, "15:00", 1),
        ]))

        assert report.all_valid
        assert report.total_price == Decimal("9000")
        assert report.results[0]["available_spots"] == 6

    def test_each_line_is_reported(self, cottage, create, fake_catalog, validate):
        safari = fake_catalog.add_safari(price="3000", max_guests=4)
        create(booking_command(
            safaris=[ch.SafariSelection(safari.id, CHECK_IN, "06:00", 3)],
            total_amount=Decimal("47970"),
        ))

        report = validate(ch.ValidateSafariSelectionCommand([
            ch.SafariSelection(safari.id, CHECK_IN, "06:00", 2),
            ch.SafariSelection(uuid4(), CHECK_IN, "06:00", 1),
            ch.SafariSelection(safari.id, CHECK_IN, "15:00", 4),
        ]))

        assert not report.all_valid
        assert [r["valid"] for r in report.results] == [False, False, True]
        assert report.results[0]["available_spots"] == 1
        assert report.results[1]["error"] == "Safari type not found"
        assert report.total_price == Decimal("12000")

    def test_past_dates_are_invalid_when_today_is_given(self, fake_catalog, validate):
        safari = fake_catalog.add_safari()
        selection = ch.SafariSelection(safari.id, date(2030, 1, 1), "06:00", 1)

        report = validate(ch.ValidateSafariSelectionCommand([selection], today=date(2030, 1, 2)))

        assert report.results[0]["error"] == "Cannot book safari for past dates"

    def test_nothing_is_held(self, fake_catalog, fake_ledger, validate):
        safari = fake_catalog.add_safari(max_guests=2)
        command = ch.ValidateSafariSelectionCommand([ch.SafariSelection(safari.id, CHECK_IN, "06:00", 2)])

        assert validate(command).all_valid
        assert validate(command).all_valid
        assert fake_ledger.bookings == {}

    def test_empty_selection_is_rejected(self, validate):
        with pytest.raises(InvalidInput):
            validate(ch.ValidateSafariSelectionCommand([]))


class TestPayments:
    @pytest.fixture
    def booking(self, cottage, create):
        return create(booking_command())

    def test_paid_confirms_booking_and_records_one_payment(self, booking, fake_ledger, uow_factory):
        handler = ch.UpdatePaymentStatusHandler(fake_ledger, uow_factory)

        handler.handle(ch.UpdatePaymentStatusCommand(
            booking_id=booking.id,
            payment_status=PaymentStatus.PAID,
            payment_method="upi",
            external_payment_id="pay_123",
        ))

        stored = fake_ledger.get_booking(booking.id)
        assert stored.status == BookingStatus.CONFIRMED
        assert stored.payment_status == PaymentStatus.PAID
        assert [p.status for p in stored.payments] == [PaymentAttemptStatus.SUCCESSFUL]
        assert stored.payments[0].amount.amount == Decimal("36900")
        assert "PaymentStatusChanged" in uow_factory.event_names()
        assert "BookingStatusChanged" in uow_factory.event_names()

    def test_refund_marks_payment_refunded(self, booking, fake_ledger, uow_factory):
        handler = ch.UpdatePaymentStatusHandler(fake_ledger, uow_factory)
        handler.handle(ch.UpdatePaymentStatusCommand(booking.id, PaymentStatus.PAID))
        handler.handle(ch.UpdatePaymentStatusCommand(booking.id, PaymentStatus.REFUNDED))

        stored = fake_ledger.get_booking(booking.id)
        assert stored.payment_status == PaymentStatus.REFUNDED
        assert stored.payments[0].status == PaymentAttemptStatus.REFUNDED

    def test_invalid_payment_transition_leaves_row_unchanged(self, booking, fake_ledger, uow_factory):
        handler = ch.UpdatePaymentStatusHandler(fake_ledger, uow_factory)

        with pytest.raises(InvalidTransition):
            handler.handle(ch.UpdatePaymentStatusCommand(booking.id, PaymentStatus.REFUNDED))

        assert fake_ledger.get_booking(booking.id).payment_status == PaymentStatus.PENDING

    def test_confirm_callback_is_idempotent(self, booking, fake_ledger, uow_factory):
        handler = ch.ConfirmPaymentHandler(fake_ledger, uow_factory)
        command = ch.ConfirmPaymentCommand(
            booking_reference=booking.reference,
            external_order_id="order_1",
            external_payment_id="pay_1",
            verified_signature_ok=True,
        )

        handler.handle(command)
        handler.handle(command)

        stored = fake_ledger.get_booking(booking.id)
        assert len(stored.payments) == 1
        assert stored.status == BookingStatus.CONFIRMED

    def test_unverified_callback_is_rejected(self, booking, fake_ledger, uow_factory):
        handler = ch.ConfirmPaymentHandler(fake_ledger, uow_factory)

        with pytest.raises(InvalidInput):
            handler.handle(ch.ConfirmPaymentCommand(booking.reference, "order_1", "pay_1", verified_signature_ok=False))

        assert fake_ledger.get_booking(booking.id).payment_status == PaymentStatus.PENDING

    def test_failure_then_retry_at_property(self, booking, fake_ledger, uow_factory):
        ch.PaymentFailedHandler(fake_ledger, uow_factory).handle(
            ch.PaymentFailedCommand(booking.reference, external_order_id="order_9", reason="card declined")
        )
        failed = fake_ledger.get_booking(booking.id)
        assert failed.payment_status == PaymentStatus.FAILED
        assert failed.payments[0].failure_reason == "card declined"

        ch.OfflinePaymentHandler(fake_ledger, uow_factory).handle(ch.OfflinePaymentCommand(booking.reference))

        stored = fake_ledger.get_booking(booking.id)
        assert stored.status == BookingStatus.CONFIRMED
        assert stored.payment_status == PaymentStatus.PENDING
        assert stored.payment_method == "pay_at_property"
        assert stored.payments[-1].status == PaymentAttemptStatus.PENDING

    def test_verified_retry_after_failure_is_recorded(self, booking, fake_ledger, uow_factory):
        ch.PaymentFailedHandler(fake_ledger, uow_factory).handle(
            ch.PaymentFailedCommand(booking.reference, external_order_id="order_1", reason="card declined")
        )
        uow_factory.published.clear()

        ch.ConfirmPaymentHandler(fake_ledger, uow_factory).handle(
            ch.ConfirmPaymentCommand(booking.reference, "order_2", "pay_2", verified_signature_ok=True)
        )

        stored = fake_ledger.get_booking(booking.id)
        assert stored.status == BookingStatus.CONFIRMED
        assert stored.payment_status == PaymentStatus.PAID
        assert [p.status for p in stored.payments] == [
            PaymentAttemptStatus.FAILED,
            PaymentAttemptStatus.SUCCESSFUL,
        ]
        payment_events = [e for e in uow_factory.published if e.name == "PaymentStatusChanged"]
        assert [(e.previous_status, e.booking["payment_status"]) for e in payment_events] == [
            ("failed", "pending"),
            ("pending", "paid"),
        ]

    def test_override_total_before_payment(self, booking, fake_ledger, uow_factory):
        ch.OverrideTotalHandler(fake_ledger, uow_factory).handle(
            ch.OverrideTotalCommand(booking.id, Decimal("30000"), admin_notes="Loyalty discount")
        )

        stored = fake_ledger.get_booking(booking.id)
        assert stored.total_amount.amount == Decimal("30000.00")
        assert stored.admin_notes == "Loyalty discount"

    def test_override_total_after_payment_conflicts(self, booking, fake_ledger, uow_factory):
        ch.UpdatePaymentStatusHandler(fake_ledger, uow_factory).handle(
            ch.UpdatePaymentStatusCommand(booking.id, PaymentStatus.PAID)
        )

        with pytest.raises(Conflict):
            ch.OverrideTotalHandler(fake_ledger, uow_factory).handle(
                ch.OverrideTotalCommand(booking.id, Decimal("1"))
            )

    def test_unknown_reference(self, fake_ledger, uow_factory):
        with pytest.raises(NotFound):
            ch.OfflinePaymentHandler(fake_ledger, uow_factory).handle(ch.OfflinePaymentCommand("VM000000NONE"))


def test_finished_bookings_are_completed(cottage, create, fake_ledger, uow_factory):
    confirmed = create(booking_command())
    pending = create(booking_command(check_in=CHECK_OUT, check_out=date(2030, 4, 5)))
    ch.UpdateBookingStatusHandler(fake_ledger, uow_factory).handle(
        ch.UpdateBookingStatusCommand(confirmed.id, BookingStatus.CONFIRMED)
    )

    completed = ch.CompleteFinishedBookingsHandler(fake_ledger, uow_factory).handle(
        ch.CompleteFinishedBookingsCommand(today=date(2030, 4, 5))
    )

    assert completed == 1
    assert fake_ledger.get_booking(confirmed.id).status == BookingStatus.COMPLETED
    assert fake_ledger.get_booking(pending.id).status == BookingStatus.PENDING
