"""
Publish/subscribe for console events.

Everything runs inline on the publishing thread, in the order handlers were
registered. The store write that triggered an event has already happened by
the time it is published, so a failing handler is logged and skipped; the
failures are handed back to the publisher, which may turn them into warnings
for the operator.
"""

import logging
from collections import defaultdict
from typing import Callable, DefaultDict, List

from core.events import ConsoleEvent

logger = logging.getLogger(__name__)

Handler = Callable[[ConsoleEvent], None]


class EventBus:
    """
    Routes events to handlers registered under the event's class name.

    Usage:
        bus.subscribe("MessageSent", delivery.handle_message_sent)
        bus.publish(MessageSent.create(message=message))
    """

    def __init__(self):
        self._handlers: DefaultDict[str, List[Handler]] = defaultdict(list)

    def subscribe(self, event_type: str, callback: Handler) -> None:
        """Register callback for events whose class is named event_type, e.g. 'JobStatusChanged'."""
        self._handlers[event_type].append(callback)

    def publish(self, event: ConsoleEvent) -> List[Exception]:
        """Run every handler for event. Returns what the failing handlers raised, in order."""
        name = type(event).__name__
        failures: List[Exception] = []
        for callback in list(self._handlers.get(name, ())):
            try:
                callback(event)
            except Exception as e:
                failures.append(e)
                handler_name = getattr(callback, "__qualname__", repr(callback))
                logger.exception(f"{name} handler {handler_name} raised (event_id={event.event_id})")
        return failures
