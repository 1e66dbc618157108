"""Notification model.

In-app feed for resort staff. Rows are written by the notification tasks
when bookings are created or change state, and staff mark them as read from
the admin dashboard.
"""

from __future__ import annotations

from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Notification(models.Model):
    """A message for the staff dashboard about some booking event."""

    class Kind(models.TextChoices):
        BOOKING_CREATED = "booking_created", _("New booking")
        BOOKING_STATUS = "booking_status", _("Booking status changed")
        PAYMENT_STATUS = "payment_status", _("Payment status changed")

    kind = models.CharField(max_length=30, choices=Kind.choices)
    booking_reference = models.CharField(max_length=12, blank=True, db_index=True)
    title = models.CharField(max_length=255)
    message = models.TextField()
    payload = models.JSONField(default=dict, blank=True)
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        verbose_name = _("Notification")
        verbose_name_plural = _("Notifications")

    def __str__(self) -> str:
        return f"{self.kind}: {self.title}"
