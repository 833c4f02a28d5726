from unittest.mock import patch

import pytest

from artifact_worker.config.settings import Settings
from artifact_worker.events.factory import EventBusFactory
from artifact_worker.events.memory_bus import InMemoryEventBus
from artifact_worker.events.redis_bus import RedisStreamsEventBus


class TestEventBusFactory:
    def test_creates_memory_bus(self) -> None:
        bus = EventBusFactory.create(Settings(event_bus_backend="memory"))
        assert isinstance(bus, InMemoryEventBus)

    def test_creates_redis_bus(self) -> None:
        settings = Settings(event_bus_backend="redis", redis_url="redis://cache:6379/1")
        with patch("artifact_worker.events.redis_bus.redis.Redis.from_url") as from_url:
            bus = EventBusFactory.create(settings)
        assert isinstance(bus, RedisStreamsEventBus)
        from_url.assert_called_once_with("redis://cache:6379/1", decode_responses=True)

    def test_unknown_backend_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown event bus backend"):
            EventBusFactory.create(Settings(event_bus_backend="kafka"))
