"""
Domain error taxonomy

Every failure the booking core reports to a caller is one of these. The HTTP
layer maps them to status codes in ``shared.infrastructure.drf``.
"""

from __future__ import annotations


class BookingDomainError(Exception):
    """Base class for errors surfaced to callers."""

    code = "error"

    def __init__(self, message: str, details=None):
        super().__init__(message)
        self.message = message
        self.details = details


class NotFound(BookingDomainError):
    """Referenced cottage, package, safari or booking is missing or inactive."""

    code = "not_found"


class Conflict(BookingDomainError):
    """Availability or capacity was violated at commit time."""

    code = "conflict"


class InvalidInput(BookingDomainError):
    """Request is malformed and was rejected before touching the ledger."""

    code = "invalid_input"


class InvalidTransition(BookingDomainError):
    """Requested status change is not allowed by the state machine."""

    code = "invalid_transition"

    def __init__(self, kind: str, current: str, requested: str):
        super().__init__(
            f"Cannot move {kind} status from '{current}' to '{requested}'",
            details={"current": current, "requested": requested},
        )
        self.current = current
        self.requested = requested


class TransientStoreFailure(BookingDomainError):
    """Timeout or connection failure inside the ledger transaction. Safe to retry."""

    code = "store_unavailable"


class EventDeliveryFailure(Exception):
    """Event sink failed after commit. Logged, never raised to callers."""
