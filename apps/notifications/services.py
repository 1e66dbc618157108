"""Notification services for guest e-mails and the staff feed.

Every function here takes the JSON booking summary carried by the booking
events (see ``Booking.snapshot``), never an ORM object, so the Celery tasks
can run after the request is long gone. E-mail bodies are Django templates
under ``templates/notifications/emails/``.
"""

from __future__ import annotations

import logging

from django.conf import settings  # type: ignore
from django.core.mail import send_mail  # type: ignore
from django.template.loader import render_to_string  # type: ignore
from django.utils.html import strip_tags  # type: ignore

logger = logging.getLogger(__name__)

BOOKING_STATUS_LINES = {
    "confirmed": "Your booking is confirmed. We look forward to welcoming you.",
    "cancelled": "Your booking has been cancelled. Contact us if this is unexpected.",
    "completed": "Thank you for staying with us. We hope to see you again.",
}


def _resort_name() -> str:
    return getattr(settings, "RESORT_NAME", "Village Machaan Resort")


def _money(booking: dict) -> str:
    return f"{booking.get('total_amount')} {booking.get('currency', '')}".strip()


# ============================================================================
# EMAIL NOTIFICATIONS
# ============================================================================

def send_email_notification(
    recipient_email: str,
    subject: str,
    template_name: str | None,
    context: dict,
    *,
    html_message: str | None = None,
) -> bool:
    """
    Send one e-mail through the configured Django backend.

    Args:
        recipient_email: Recipient address
        subject: Subject line
        template_name: Django template rendered with ``context`` (optional)
        context: Template context; ``resort_name`` is always added
        html_message: Pre-rendered HTML used instead of a template

    Returns:
        bool: True when the backend accepted the message
    """
    if not recipient_email:
        logger.warning(f"Skipping e-mail without recipient: {subject}")
        return False
    try:
        if html_message:
            text_message = strip_tags(html_message)
        elif template_name:
            html_message = render_to_string(template_name, {"resort_name": _resort_name(), **context})
            text_message = strip_tags(html_message)
        else:
            text_message = context.get("message", "")
            html_message = None

        send_mail(
            subject=subject,
            message=text_message,
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[recipient_email],
            html_message=html_message,
            fail_silently=False,
        )

        logger.info(f"Email sent successfully to {recipient_email}: {subject}")
        return True

    except Exception as e:
        logger.error(f"Failed to send email to {recipient_email}: {e}", exc_info=True)
        return False


def send_booking_received_email(booking: dict, safaris: list[dict] | None = None) -> bool:
    """Acknowledgement sent to the guest right after booking."""
    guest = booking.get("guest") or {}
    return send_email_notification(
        guest.get("email", ""),
        f"Booking {booking['reference']} received",
        "notifications/emails/booking_received.html",
        {"booking": booking, "safaris": safaris or []},
    )


def send_booking_status_email(booking: dict, previous_status: str) -> bool:
    """Guest e-mail for confirmation, cancellation and completion."""
    guest = booking.get("guest") or {}
    status = booking["status"]
    if status not in BOOKING_STATUS_LINES:
        logger.debug(f"No guest e-mail for booking status {status}")
        return False

    return send_email_notification(
        guest.get("email", ""),
        f"Booking {booking['reference']} {status}",
        "notifications/emails/booking_status.html",
        {"booking": booking, "headline": BOOKING_STATUS_LINES[status], "previous_status": previous_status},
    )


def send_payment_status_email(booking: dict, previous_status: str) -> bool:
    guest = booking.get("guest") or {}
    status = booking["payment_status"]
    lines = {
        "paid": f"We have received your payment of {_money(booking)}.",
        "failed": "Your payment did not go through. You can retry from the booking page or pay at the property.",
        "refunded": f"A refund of {_money(booking)} has been issued.",
    }
    if status not in lines:
        return False

    return send_email_notification(
        guest.get("email", ""),
        f"Payment update for booking {booking['reference']}",
        "notifications/emails/payment_status.html",
        {"booking": booking, "headline": lines[status], "previous_status": previous_status},
    )


def send_admin_booking_alert(booking: dict, safaris: list[dict] | None = None) -> bool:
    admin_email = getattr(settings, "RESORT_ADMIN_EMAIL", "")
    if not admin_email:
        return False
    return send_email_notification(
        admin_email,
        f"New booking {booking['reference']}",
        "notifications/emails/admin_booking_alert.html",
        {"booking": booking, "safaris": safaris or []},
    )


# ============================================================================
# IN-APP NOTIFICATIONS
# ============================================================================

def create_admin_notification(kind: str, booking: dict, title: str, message: str, payload: dict | None = None) -> bool:
    """
    Create an entry in the staff notification feed.

    Returns:
        bool: True if the notification was stored
    """
    try:
        from .models import Notification

        Notification.objects.create(
            kind=kind,
            booking_reference=booking.get("reference", ""),
            title=title,
            message=message,
            payload=payload or {"booking": booking},
        )

        logger.info(f"Admin notification created: {title}")
        return True

    except Exception as e:
        logger.error(f"Failed to create admin notification {title}: {e}", exc_info=True)
        return False
