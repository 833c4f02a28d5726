"""Event bus on Redis Streams.

Each event type is its own stream (``<prefix>:<type>``). Consumers read via a
consumer group, so every event is delivered to one worker of the group, and
messages are acknowledged once the handlers have run. Messages left pending by
a crashed consumer are replayed when the same consumer name starts again.
"""

import threading

import redis

from artifact_worker.events.base import EventBus
from artifact_worker.events.exceptions import EventError, EventPublishError, EventValidationError
from artifact_worker.events.models import Event
from artifact_worker.logging.logger import Log

_EVENT_FIELD = "event"


class RedisStreamsEventBus(EventBus):
    def __init__(
        self,
        client: redis.Redis,
        *,
        stream_prefix: str = "events",
        group: str = "artifact-worker",
        consumer: str = "worker-1",
        block_ms: int = 1000,
        batch_size: int = 10,
        max_stream_length: int = 10_000,
    ) -> None:
        super().__init__()
        self._client = client
        self._prefix = stream_prefix
        self._group = group
        self._consumer = consumer
        self._block_ms = block_ms
        self._batch_size = batch_size
        self._max_len = max_stream_length

    @classmethod
    def from_url(cls, url: str, **kwargs: object) -> "RedisStreamsEventBus":
        return cls(redis.Redis.from_url(url, decode_responses=True), **kwargs)

    def stream_name(self, event_type: str) -> str:
        return f"{self._prefix}:{event_type}"

    def publish(self, event: Event) -> None:
        try:
            self._client.xadd(
                self.stream_name(event.type),
                {_EVENT_FIELD: event.to_json()},
                maxlen=self._max_len,
                approximate=True,
            )
        except redis.RedisError as exc:
            raise EventPublishError(f"Failed to publish {event.type}: {exc}") from exc
        Log.info(
            f"Published event: {event.type} (ID: {event.id}, "
            f"correlation: {event.correlation_id})"
        )

    def start(self, stop_event: threading.Event) -> None:
        streams = [self.stream_name(t) for t in self.subscribed_types()]
        if not streams:
            Log.warning("Event bus started with no subscriptions")
            stop_event.wait()
            return

        try:
            self._ensure_groups(streams)
            # Replay our own unacknowledged messages before taking new ones.
            while self._consume(streams, "0", stop_event) and not stop_event.is_set():
                pass
            while not stop_event.is_set():
                self._consume(streams, ">", stop_event)
        except redis.RedisError as exc:
            raise EventError(f"Event stream read failed: {exc}") from exc

    def close(self) -> None:
        self._client.close()

    def _ensure_groups(self, streams: list[str]) -> None:
        for stream in streams:
            try:
                self._client.xgroup_create(stream, self._group, id="0", mkstream=True)
                Log.info(f"Created consumer group {self._group} on {stream}")
            except redis.ResponseError as exc:
                if "BUSYGROUP" not in str(exc):
                    raise

    def _consume(self, streams: list[str], start_id: str, stop_event: threading.Event) -> int:
        """Read one batch and handle it. Returns the number of messages handled."""
        response = self._client.xreadgroup(
            self._group,
            self._consumer,
            {stream: start_id for stream in streams},
            count=self._batch_size,
            block=self._block_ms if start_id == ">" else None,
        )
        handled = 0
        for stream, messages in response or []:
            for message_id, fields in messages:
                if stop_event.is_set():
                    # Left pending; replayed on the next start.
                    return handled
                self._handle(stream, message_id, fields)
                handled += 1
        return handled

    def _handle(self, stream: str, message_id: str, fields: dict[str, str] | None) -> None:
        raw = (fields or {}).get(_EVENT_FIELD)
        if raw is None:
            Log.warning(f"Dropping message {message_id} on {stream}: no event field")
        else:
            try:
                event = Event.from_json(raw)
            except EventValidationError as exc:
                Log.error(f"Dropping malformed event {message_id} on {stream}: {exc}")
            else:
                self._dispatch(event)
        self._client.xack(stream, self._group, message_id)
