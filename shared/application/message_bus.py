"""
Message Bus

Routes commands to their single handler and domain events to any number of
subscribers. Event delivery is best-effort: a failing subscriber is logged
and the remaining subscribers still run.
"""

from typing import Dict, List, Callable, Type, Any, Iterable
import logging

from shared.domain.base import DomainEvent
from shared.domain.exceptions import EventDeliveryFailure

logger = logging.getLogger(__name__)


class MessageBus:
    """
    Message bus for commands and events

    Commands: One handler per command (1:1)
    Events: Multiple handlers per event (1:N)
    """

    def __init__(self):
        self._event_handlers: Dict[Type[DomainEvent], List[Callable]] = {}
        self._command_handlers: Dict[Type, Callable] = {}

    def register_event_handler(
        self,
        event_type: Type[DomainEvent],
        handler: Callable[[DomainEvent], None]
    ):
        handlers = self._event_handlers.setdefault(event_type, [])
        if handler not in handlers:
            handlers.append(handler)
            logger.debug(f"Registered event handler for {event_type.__name__}")

    def register_command_handler(
        self,
        command_type: Type,
        handler: Callable[[Any], Any],
        *,
        replace: bool = False,
    ):
        """
        Register a command handler

        Only one handler can be registered per command type unless
        ``replace`` is given (used when the app registry reloads).
        """
        if command_type in self._command_handlers and not replace:
            raise ValueError(
                f"Handler for {command_type.__name__} is already registered. "
                "Commands can have only one handler."
            )
        self._command_handlers[command_type] = handler
        logger.debug(f"Registered command handler for {command_type.__name__}")

    def handle_command(self, command: Any) -> Any:
        command_type = type(command)
        handler = self._command_handlers.get(command_type)

        if not handler:
            raise ValueError(
                f"No handler registered for command {command_type.__name__}"
            )

        logger.info(f"Handling command: {command_type.__name__}")
        try:
            return handler(command)
        except Exception as e:
            logger.warning(f"Command {command_type.__name__} failed: {e}")
            raise

    def publish_events(self, events: Iterable[DomainEvent]) -> int:
        """
        Publish domain events to every subscriber.

        Returns the number of deliveries that failed. Failures never
        propagate to the caller.
        """
        failures = 0
        for event in events:
            handlers = self._event_handlers.get(type(event), [])

            if not handlers:
                logger.debug(f"No handlers registered for event {event.name}")
                continue

            logger.info(f"Publishing event: {event.name} (ID: {event.event_id})")

            for handler in handlers:
                try:
                    handler(event)
                except Exception as e:
                    failures += 1
                    error = EventDeliveryFailure(
                        f"{getattr(handler, '__name__', handler)} failed for {event.name}: {e}"
                    )
                    logger.error(str(error), exc_info=True)
        return failures


# Global message bus instance, wired in AppConfig.ready()
message_bus = MessageBus()
