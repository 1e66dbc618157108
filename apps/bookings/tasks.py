"""Celery tasks for the booking domain."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore
from django.utils import timezone  # type: ignore

from shared.application.message_bus import message_bus

from .application.command_handlers import CompleteFinishedBookingsCommand

logger = logging.getLogger(__name__)


# ============================================================================
# PERIODIC TASKS (scheduled through Celery Beat, see config.celery)
# ============================================================================

@shared_task(name="bookings.complete_finished_bookings")
def complete_finished_bookings() -> dict[str, int]:
    """
    Move confirmed bookings to COMPLETED once their check-out day arrives.

    Runs hourly. Each booking is completed in its own transaction so one bad
    row does not block the rest.

    Returns:
        dict: {"completed": number of bookings completed}
    """
    today = timezone.localdate()
    completed = message_bus.handle_command(CompleteFinishedBookingsCommand(today=today))
    return {"completed": completed}
