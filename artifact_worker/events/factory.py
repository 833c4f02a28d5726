from artifact_worker.config.settings import Settings
from artifact_worker.events.base import EventBus
from artifact_worker.events.memory_bus import InMemoryEventBus
from artifact_worker.events.redis_bus import RedisStreamsEventBus


class EventBusFactory:
    """Factory for creating event bus instances based on configuration."""

    @staticmethod
    def create(settings: Settings) -> EventBus:
        backend = settings.event_bus_backend.lower()
        if backend == "memory":
            return InMemoryEventBus()
        if backend == "redis":
            return RedisStreamsEventBus.from_url(
                settings.redis_url,
                stream_prefix=settings.event_stream_prefix,
                group=settings.event_consumer_group,
                consumer=settings.event_consumer_name,
                block_ms=settings.event_block_ms,
            )
        raise ValueError(
            f"Unknown event bus backend: '{settings.event_bus_backend}'. "
            "Valid options: redis, memory"
        )
