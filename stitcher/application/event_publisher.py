"""
Event Publisher

In-process publish/subscribe for domain events. JobManager publishes,
infrastructure handlers (logging) subscribe.
"""

import logging
from threading import Lock
from typing import Callable, List, Tuple, Type

from stitcher.domain.events import DomainEvent

logger = logging.getLogger(__name__)

EventHandler = Callable[[DomainEvent], None]


def _handler_name(handler: EventHandler) -> str:
    return getattr(handler, "__qualname__", None) or repr(handler)


class EventPublisher:
    """
    Delivers each event to every handler subscribed to its class or to one
    of its base classes, in subscription order.

    A failing handler is logged and skipped; publishing never raises.
    """

    def __init__(self):
        self._subscriptions: List[Tuple[Type[DomainEvent], EventHandler]] = []
        self._lock = Lock()

    def subscribe(self, event_type: Type[DomainEvent], handler: EventHandler) -> None:
        """
        Register ``handler`` for ``event_type`` and its subclasses.

        Example:
            publisher.subscribe(JobFailedEvent, alert_on_failure)
        """
        with self._lock:
            self._subscriptions.append((event_type, handler))
        logger.debug(f"Subscribed {_handler_name(handler)} to {event_type.__name__}")

    def publish(self, event: DomainEvent) -> None:
        with self._lock:
            handlers = [h for t, h in self._subscriptions if isinstance(event, t)]

        if not handlers:
            logger.debug(f"No handlers registered for {type(event).__name__}")
            return

        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                logger.error(
                    f"Handler {_handler_name(handler)} failed on "
                    f"{type(event).__name__} for job {event.aggregate_id}: {e}",
                    exc_info=True,
                )
