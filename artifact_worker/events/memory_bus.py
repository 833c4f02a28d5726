import queue
import threading
from collections import deque

from artifact_worker.events.base import EventBus
from artifact_worker.events.models import Event
from artifact_worker.logging.logger import Log


class InMemoryEventBus(EventBus):
    """Single-process bus for local runs and tests.

    Keeps the most recent `history_size` published events for inspection;
    older ones are dropped.
    """

    def __init__(self, poll_timeout_seconds: float = 0.1, history_size: int = 1000) -> None:
        super().__init__()
        self._queue: queue.Queue[Event] = queue.Queue()
        self._poll_timeout = poll_timeout_seconds
        self._published: deque[Event] = deque(maxlen=history_size)

    @property
    def published(self) -> list[Event]:
        return list(self._published)

    def publish(self, event: Event) -> None:
        self._published.append(event)
        self._queue.put(event)
        Log.debug(f"Published event: {event.type} (ID: {event.id})")

    def start(self, stop_event: threading.Event) -> None:
        while not stop_event.is_set():
            try:
                event = self._queue.get(timeout=self._poll_timeout)
            except queue.Empty:
                continue
            self._dispatch(event)
