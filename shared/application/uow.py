"""
Unit of Work Pattern

Wraps one ledger transaction. Domain events collected during the
transaction are handed to the message bus only after the database commit
succeeds; a rollback discards them.
"""

from abc import ABC, abstractmethod
from typing import List
import logging
import sys

from django.conf import settings
from django.db import DatabaseError, IntegrityError, transaction

from shared.domain.base import DomainEvent
from shared.domain.exceptions import TransientStoreFailure

logger = logging.getLogger(__name__)


class AbstractUnitOfWork(ABC):
    """Abstract Unit of Work pattern"""

    def __init__(self):
        self._events: List[DomainEvent] = []

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.commit()
        else:
            self.rollback()

    @abstractmethod
    def commit(self):
        """Commit the transaction"""

    @abstractmethod
    def rollback(self):
        """Rollback the transaction"""

    def collect_events(self, aggregate):
        """Move pending events off an aggregate root into this unit of work"""
        new_events = getattr(aggregate, 'events', None)
        if new_events:
            self._events.extend(new_events)
            aggregate.clear_events()
            logger.debug(
                f"Collected {len(new_events)} events from "
                f"{aggregate.__class__.__name__} (ID: {aggregate.id})"
            )

    def _take_events(self) -> List[DomainEvent]:
        events = self._events.copy()
        self._events.clear()
        return events


class DjangoUnitOfWork(AbstractUnitOfWork):
    """
    Django implementation of Unit of Work

    Usage:
        with DjangoUnitOfWork() as uow:
            ledger.lock_cottage(cottage.id)
            ...
            uow.collect_events(booking)
        # BookingCreated is published here, after commit

    On PostgreSQL the transaction gets ``lock_timeout`` and
    ``statement_timeout`` from ``RESORT_STORE_TIMEOUT_MS`` so a stuck lock
    surfaces as TransientStoreFailure instead of hanging the request.
    """

    def __init__(self, bus=None, using: str = 'default', timeout_ms: int | None = None):
        super().__init__()
        self._bus = bus
        self._using = using
        self._timeout_ms = timeout_ms if timeout_ms is not None else getattr(
            settings, 'RESORT_STORE_TIMEOUT_MS', 5000
        )
        self._transaction = None

    def __enter__(self):
        self._transaction = transaction.atomic(using=self._using)
        try:
            self._transaction.__enter__()
        except DatabaseError as exc:
            raise TransientStoreFailure(f"Could not open ledger transaction: {exc}") from exc
        try:
            self._apply_timeouts()
        except DatabaseError as exc:
            self._transaction.__exit__(*sys.exc_info())
            raise TransientStoreFailure(f"Could not open ledger transaction: {exc}") from exc
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            if exc_type is None:
                self.commit()
            else:
                self.rollback()
        finally:
            try:
                if self._transaction:
                    self._transaction.__exit__(exc_type, exc_val, exc_tb)
            except IntegrityError:
                raise
            except DatabaseError as exc:
                raise TransientStoreFailure(f"Ledger commit failed: {exc}") from exc
        if exc_type is not None and issubclass(exc_type, DatabaseError) and not issubclass(exc_type, IntegrityError):
            raise TransientStoreFailure(f"Ledger transaction failed: {exc_val}") from exc_val
        return False

    def _apply_timeouts(self):
        connection = transaction.get_connection(self._using)
        if connection.vendor != 'postgresql' or not self._timeout_ms:
            return
        timeout = int(self._timeout_ms)
        with connection.cursor() as cursor:
            cursor.execute(f"SET LOCAL lock_timeout = {timeout}")
            cursor.execute(f"SET LOCAL statement_timeout = {timeout}")

    def commit(self):
        """
        Schedule event publishing for after the database commit.

        ``transaction.on_commit`` only fires once the outermost atomic block
        commits, so nested units of work publish together.
        """
        events = self._take_events()
        logger.debug(f"Committing transaction with {len(events)} events")
        if events:
            transaction.on_commit(lambda: self._publish_events(events), using=self._using)

    def rollback(self):
        if self._events:
            logger.warning(f"Rolling back transaction, discarding {len(self._events)} events")
        self._events.clear()

    def _publish_events(self, events: List[DomainEvent]):
        if self._bus is None:
            from shared.application.message_bus import message_bus
            bus = message_bus
        else:
            bus = self._bus

        logger.info(f"Publishing {len(events)} domain events after commit")
        try:
            bus.publish_events(events)
        except Exception as e:
            # Rows are already committed; delivery is best-effort
            logger.error(f"Error publishing events: {e}", exc_info=True)
