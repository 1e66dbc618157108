"""
Domain event subscribers.

Each handler only enqueues a Celery task with the event as JSON; the message
bus calls them after the booking transaction has committed.
"""

import logging

from apps.bookings.domain.events import BookingCreated, BookingStatusChanged, PaymentStatusChanged

from . import tasks

logger = logging.getLogger(__name__)


def on_booking_created(event: BookingCreated):
    tasks.notify_booking_created.delay(event.to_dict())


def on_booking_status_changed(event: BookingStatusChanged):
    tasks.notify_booking_status_changed.delay(event.to_dict())


def on_payment_status_changed(event: PaymentStatusChanged):
    tasks.notify_payment_status_changed.delay(event.to_dict())


def register(bus):
    bus.register_event_handler(BookingCreated, on_booking_created)
    bus.register_event_handler(BookingStatusChanged, on_booking_status_changed)
    bus.register_event_handler(PaymentStatusChanged, on_payment_status_changed)
    logger.debug("Notification handlers subscribed to booking events")
