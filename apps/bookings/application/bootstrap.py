"""
Wires booking command handlers onto a message bus.

Called from ``BookingsConfig.ready()`` with the Django repositories. Tests
call it with in-memory doubles and their own bus.
"""

import logging

from apps.bookings.application import command_handlers as ch
from apps.bookings.repositories import DjangoLedger
from apps.catalog.repositories import DjangoCatalog
from shared.application.message_bus import message_bus
from shared.application.uow import DjangoUnitOfWork

logger = logging.getLogger(__name__)


def bootstrap(bus=None, catalog=None, ledger=None, uow_factory=DjangoUnitOfWork):
    bus = bus if bus is not None else message_bus
    catalog = catalog if catalog is not None else DjangoCatalog()
    ledger = ledger if ledger is not None else DjangoLedger()

    handlers = {
        ch.CheckAvailabilityCommand: ch.CheckAvailabilityHandler(catalog, ledger),
        ch.QuotePriceCommand: ch.QuotePriceHandler(catalog),
        ch.CreateBookingCommand: ch.CreateBookingHandler(catalog, ledger, uow_factory),
        ch.UpdateBookingStatusCommand: ch.UpdateBookingStatusHandler(ledger, uow_factory),
        ch.UpdatePaymentStatusCommand: ch.UpdatePaymentStatusHandler(ledger, uow_factory),
        ch.ConfirmPaymentCommand: ch.ConfirmPaymentHandler(ledger, uow_factory),
        ch.PaymentFailedCommand: ch.PaymentFailedHandler(ledger, uow_factory),
        ch.OfflinePaymentCommand: ch.OfflinePaymentHandler(ledger, uow_factory),
        ch.OverrideTotalCommand: ch.OverrideTotalHandler(ledger, uow_factory),
        ch.CompleteFinishedBookingsCommand: ch.CompleteFinishedBookingsHandler(ledger, uow_factory),
        ch.ValidateSafariSelectionCommand: ch.ValidateSafariSelectionHandler(catalog, ledger),
    }
    for command_type, handler in handlers.items():
        bus.register_command_handler(command_type, handler.handle, replace=True)

    logger.debug(f"Registered {len(handlers)} booking command handlers")
    return bus
