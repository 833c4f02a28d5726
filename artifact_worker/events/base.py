import threading
from abc import ABC, abstractmethod
from collections import defaultdict
from collections.abc import Callable

from artifact_worker.events.models import Event
from artifact_worker.logging.logger import Log

EventHandler = Callable[[Event], None]


class EventBus(ABC):
    """Publish/subscribe contract shared by every bus backend."""

    def __init__(self) -> None:
        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)
        self._handlers_lock = threading.Lock()

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        """Register a handler for an event type. Must be called before start()."""
        with self._handlers_lock:
            self._handlers[event_type].append(handler)
        Log.info(f"Subscribed to event type: {event_type}")

    def subscribed_types(self) -> list[str]:
        with self._handlers_lock:
            return list(self._handlers)

    @abstractmethod
    def publish(self, event: Event) -> None:
        """Publish an event.

        Raises:
            EventPublishError: If the bus rejects the event.
        """

    @abstractmethod
    def start(self, stop_event: threading.Event) -> None:
        """Deliver events to handlers until stop_event is set. Blocks."""

    def close(self) -> None:
        """Release backend resources."""

    def _dispatch(self, event: Event) -> None:
        with self._handlers_lock:
            handlers = list(self._handlers.get(event.type, ()))
        for handler in handlers:
            try:
                handler(event)
            except Exception as exc:
                Log.exception(f"Event handler failed for {event.type} (ID: {event.id}): {exc}")
