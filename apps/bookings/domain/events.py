"""
Booking Domain Events

Events that represent things that have happened in the booking domain.
These are published after successful transaction commits. Payloads are
plain JSON-safe dicts so subscribers can pass them straight to Celery.
"""

from dataclasses import dataclass, field
from typing import List

from shared.domain.base import DomainEvent


@dataclass(kw_only=True)
class BookingCreated(DomainEvent):
    """
    Event: A new booking was created (pending / pending)

    Triggers:
    - Send confirmation email to guest
    - Notify resort admin
    """
    booking: dict
    safaris: List[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update(booking=self.booking, safaris=self.safaris)
        return data


@dataclass(kw_only=True)
class BookingStatusChanged(DomainEvent):
    """
    Event: Booking status moved along its state machine

    Triggers:
    - Notify guest of confirmation or cancellation
    - In-app admin feed entry
    """
    booking: dict
    previous_status: str

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update(booking=self.booking, previous_status=self.previous_status)
        return data


@dataclass(kw_only=True)
class PaymentStatusChanged(DomainEvent):
    """
    Event: Payment status moved along its state machine

    Triggers:
    - Payment receipt or failure notice to guest
    - In-app admin feed entry
    """
    booking: dict
    previous_status: str

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update(booking=self.booking, previous_status=self.previous_status)
        return data
