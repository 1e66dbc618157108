"""Payment ledger models for Village Machaan."""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Payment(models.Model):
    """A payment attempt for a booking. A booking may have many attempts."""

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending")
        SUCCESSFUL = "successful", _("Successful")
        FAILED = "failed", _("Failed")
        REFUNDED = "refunded", _("Refunded")

    class Method(models.TextChoices):
        ONLINE = "online", _("Online gateway")
        PAY_AT_PROPERTY = "pay_at_property", _("Pay at property")
        CASH = "cash", _("Cash")
        CARD = "card", _("Card")
        UPI = "upi", _("UPI")
        TRANSFER = "transfer", _("Bank transfer")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    booking = models.ForeignKey(
        "bookings.Booking",
        on_delete=models.CASCADE,
        related_name="payments",
    )
    amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    currency = models.CharField(max_length=3, default="INR")
    method = models.CharField(max_length=30, default=Method.ONLINE)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    external_order_id = models.CharField(max_length=100, blank=True, db_index=True)
    external_payment_id = models.CharField(max_length=100, blank=True)
    failure_reason = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Payment")
        verbose_name_plural = _("Payments")
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["booking"],
                condition=models.Q(status="successful"),
                name="payment_one_successful_per_booking",
            ),
        ]

    def __str__(self) -> str:
        return f"Payment {self.booking_id} {self.amount} ({self.status})"
