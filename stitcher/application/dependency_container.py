"""
Dependency Injection Container

Registry of the services built by the application factory. API routes and
Celery tasks look services up here by their class.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Optional, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

EVENTS_LOGGER = "stitcher.events"


class DependencyNotFoundError(Exception):
    """Raised when attempting to resolve an unregistered dependency."""
    pass


@dataclass(frozen=True)
class _Provider:
    instance: Any = None
    factory: Optional[Callable[[], Any]] = None

    def get(self) -> Any:
        if self.factory is not None:
            return self.factory()
        return self.instance


class DependencyContainer:
    """
    Maps a service class to the object that provides it.

    A singleton hands out one shared instance, a transient calls its factory
    on every lookup. Overrides shadow both until cleared, so tests can swap
    a service on a fully wired app.
    """

    def __init__(self):
        self._providers: Dict[type, _Provider] = {}
        self._overrides: Dict[type, Any] = {}
        self._lock = threading.Lock()

    def register_singleton(self, interface: Type[T], implementation: T) -> None:
        self._register(interface, _Provider(instance=implementation), "singleton")

    def register_transient(self, interface: Type[T], factory: Callable[[], T]) -> None:
        self._register(interface, _Provider(factory=factory), "transient")

    def _register(self, interface: type, provider: _Provider, kind: str) -> None:
        with self._lock:
            self._providers[interface] = provider
        logger.debug(f"Registered {kind}: {interface.__name__}")

    def resolve(self, interface: Type[T]) -> T:
        """
        Look up the service registered for ``interface``.

        Raises:
            DependencyNotFoundError: If nothing is registered for it
        """
        with self._lock:
            if interface in self._overrides:
                return self._overrides[interface]
            provider = self._providers.get(interface)

        if provider is None:
            raise DependencyNotFoundError(
                f"No registration found for type: {interface.__name__}"
            )
        # Called outside the lock so a factory may resolve other services
        return provider.get()

    def override(self, interface: Type[T], implementation: T) -> None:
        with self._lock:
            self._overrides[interface] = implementation
        logger.debug(f"Overridden: {interface.__name__}")

    def clear_overrides(self) -> None:
        with self._lock:
            self._overrides.clear()

    def is_registered(self, interface: type) -> bool:
        with self._lock:
            return interface in self._providers or interface in self._overrides

    def registered_count(self) -> int:
        with self._lock:
            return len(self._providers)

    def setup_event_handlers(
        self, event_publisher, handlers: Optional[Iterable[Any]] = None
    ) -> None:
        """
        Subscribe event handlers to every domain event.

        Args:
            event_publisher: EventPublisher receiving the subscriptions
            handlers: Objects with a ``handle(event)`` method. Defaults to a
                LoggingEventHandler writing to the ``stitcher.events`` logger.
        """
        from stitcher.domain.events import DomainEvent
        from stitcher.infrastructure.event_handlers.logging_handler import LoggingEventHandler

        if handlers is None:
            handlers = [LoggingEventHandler(logging.getLogger(EVENTS_LOGGER))]

        for handler in handlers:
            event_publisher.subscribe(DomainEvent, handler.handle)
            logger.debug(f"Subscribed {type(handler).__name__} to domain events")
