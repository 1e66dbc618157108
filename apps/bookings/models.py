"""Booking ledger models for Village Machaan."""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError  # type: ignore
from django.core.validators import MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Booking(models.Model):
    """A cottage stay. Cancelling changes status, rows are never deleted."""

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending")
        CONFIRMED = "confirmed", _("Confirmed")
        CANCELLED = "cancelled", _("Cancelled")
        COMPLETED = "completed", _("Completed")

    class PaymentStatus(models.TextChoices):
        PENDING = "pending", _("Pending")
        PAID = "paid", _("Paid")
        FAILED = "failed", _("Failed")
        REFUNDED = "refunded", _("Refunded")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    reference = models.CharField(max_length=12, unique=True, editable=False)
    cottage = models.ForeignKey(
        "catalog.Cottage",
        on_delete=models.PROTECT,
        related_name="bookings",
    )
    package = models.ForeignKey(
        "catalog.Package",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="bookings",
    )
    check_in = models.DateField()
    check_out = models.DateField(help_text=_("Departure day, not a night of the stay."))
    adults = models.PositiveSmallIntegerField(validators=[MinValueValidator(1)])
    children = models.PositiveSmallIntegerField(default=0)
    total_amount = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=3, default="INR")
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
    )
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
    )
    payment_method = models.CharField(max_length=30, blank=True)
    guest_details = models.JSONField(
        default=dict,
        help_text=_("Guest contact: name, email, phone."),
    )
    special_requests = models.TextField(blank=True)
    admin_notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Booking")
        verbose_name_plural = _("Bookings")
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(check_out__gt=models.F("check_in")),
                name="booking_valid_dates",
            ),
            models.CheckConstraint(
                condition=models.Q(adults__gte=1),
                name="booking_at_least_one_adult",
            ),
        ]
        indexes = [
            models.Index(fields=["cottage", "check_in", "check_out"]),
            models.Index(fields=["status"]),
            models.Index(fields=["payment_status"]),
        ]

    def __str__(self) -> str:
        return f"Booking {self.reference} ({self.check_in} - {self.check_out})"

    def clean(self) -> None:
        if self.check_in and self.check_out and self.check_in >= self.check_out:
            raise ValidationError(_("Check-out must be after check-in."))

    @property
    def nights(self) -> int:
        return (self.check_out - self.check_in).days

    @property
    def guests(self) -> int:
        return self.adults + self.children

    @property
    def guest_name(self) -> str:
        return (self.guest_details or {}).get("name", "")

    @property
    def guest_email(self) -> str:
        return (self.guest_details or {}).get("email", "")

    @property
    def guest_phone(self) -> str:
        return (self.guest_details or {}).get("phone", "")


class SafariBooking(models.Model):
    """Seats in one safari time slot attached to a booking."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    booking = models.ForeignKey(
        Booking,
        on_delete=models.CASCADE,
        related_name="safari_bookings",
    )
    safari_type = models.ForeignKey(
        "catalog.SafariType",
        on_delete=models.PROTECT,
        related_name="safari_bookings",
    )
    date = models.DateField()
    time_slot = models.CharField(max_length=50)
    participants = models.PositiveSmallIntegerField(validators=[MinValueValidator(1)])
    unit_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text=_("Per-participant price at the time of booking."),
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Safari booking")
        verbose_name_plural = _("Safari bookings")
        ordering = ["date", "time_slot"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(participants__gte=1),
                name="safari_booking_participants_positive",
            ),
        ]
        indexes = [
            models.Index(fields=["safari_type", "date", "time_slot"]),
        ]

    def __str__(self) -> str:
        return f"{self.safari_type_id} {self.date} {self.time_slot} x{self.participants}"
