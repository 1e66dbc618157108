"""Bookings app package.

The reservation ledger and the booking core: availability checks, pricing,
booking creation and the booking/payment state machines. All writes go
through the command handlers in ``application.command_handlers`` so each
booking commits with its safaris and payments in one transaction.
"""
