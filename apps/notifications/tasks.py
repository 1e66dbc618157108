"""Celery tasks delivering booking event notifications."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore

from .models import Notification
from .services import (
    create_admin_notification,
    send_admin_booking_alert,
    send_booking_received_email,
    send_booking_status_email,
    send_payment_status_email,
)

logger = logging.getLogger(__name__)


@shared_task(name="notifications.booking_created")
def notify_booking_created(event: dict) -> dict[str, bool]:
    """Guest acknowledgement, staff e-mail and feed entry for a new booking."""
    booking = event["booking"]
    guest = booking.get("guest") or {}
    results = {
        "guest_email": send_booking_received_email(booking, event.get("safaris")),
        "admin_email": send_admin_booking_alert(booking, event.get("safaris")),
        "in_app": create_admin_notification(
            Notification.Kind.BOOKING_CREATED,
            booking,
            title=f"New booking {booking['reference']}",
            message=(
                f"{guest.get('name', 'A guest')} booked {booking.get('cottage_name', '')} "
                f"from {booking['check_in']} to {booking['check_out']} ({booking['total_amount']})."
            ),
            payload=event,
        ),
    }
    logger.info(f"[NOTIFICATION] Booking created {booking['reference']}: {results}")
    return results


@shared_task(name="notifications.booking_status_changed")
def notify_booking_status_changed(event: dict) -> dict[str, bool]:
    booking = event["booking"]
    previous = event.get("previous_status", "")
    results = {
        "guest_email": send_booking_status_email(booking, previous),
        "in_app": create_admin_notification(
            Notification.Kind.BOOKING_STATUS,
            booking,
            title=f"Booking {booking['reference']} {booking['status']}",
            message=f"Status changed from {previous} to {booking['status']}.",
            payload=event,
        ),
    }
    logger.info(f"[NOTIFICATION] Booking status {booking['reference']}: {results}")
    return results


@shared_task(name="notifications.payment_status_changed")
def notify_payment_status_changed(event: dict) -> dict[str, bool]:
    booking = event["booking"]
    previous = event.get("previous_status", "")
    results = {
        "guest_email": send_payment_status_email(booking, previous),
        "in_app": create_admin_notification(
            Notification.Kind.PAYMENT_STATUS,
            booking,
            title=f"Payment {booking['payment_status']} for {booking['reference']}",
            message=f"Payment status changed from {previous} to {booking['payment_status']}.",
            payload=event,
        ),
    }
    logger.info(f"[NOTIFICATION] Payment status {booking['reference']}: {results}")
    return results
