import threading

from artifact_worker.events.memory_bus import InMemoryEventBus
from artifact_worker.events.models import ArtifactUploaded, Event, EventType

PROGRAM_ID = "0f8d2c4e-1111-2222-3333-444455556666"


def _event(artifact_id: str = "a-1") -> Event:
    return Event.create(
        ArtifactUploaded(artifact_id=artifact_id, program_id=PROGRAM_ID), source="test"
    )


class TestInMemoryEventBus:
    def test_delivers_to_subscribers(self) -> None:
        bus = InMemoryEventBus(poll_timeout_seconds=0.01)
        stop = threading.Event()
        received: list[Event] = []

        def handler(event: Event) -> None:
            received.append(event)
            stop.set()

        bus.subscribe(EventType.ARTIFACT_UPLOADED, handler)
        bus.publish(_event())
        thread = threading.Thread(target=bus.start, args=(stop,))
        thread.start()
        thread.join(timeout=2)

        assert not thread.is_alive()
        assert [e.body().artifact_id for e in received] == ["a-1"]

    def test_handler_error_does_not_stop_delivery(self) -> None:
        bus = InMemoryEventBus(poll_timeout_seconds=0.01)
        stop = threading.Event()
        received: list[str] = []

        def failing(event: Event) -> None:
            raise RuntimeError("boom")

        def recording(event: Event) -> None:
            received.append(event.body().artifact_id)
            if len(received) == 2:
                stop.set()

        bus.subscribe(EventType.ARTIFACT_UPLOADED, failing)
        bus.subscribe(EventType.ARTIFACT_UPLOADED, recording)
        bus.publish(_event("a-1"))
        bus.publish(_event("a-2"))
        thread = threading.Thread(target=bus.start, args=(stop,))
        thread.start()
        thread.join(timeout=2)

        assert received == ["a-1", "a-2"]

    def test_publish_records_event(self) -> None:
        bus = InMemoryEventBus()
        bus.publish(_event())
        assert len(bus.published) == 1

    def test_published_history_keeps_only_latest(self) -> None:
        bus = InMemoryEventBus(history_size=3)

        for n in range(10):
            bus.publish(_event(f"a-{n}"))

        assert [e.body().artifact_id for e in bus.published] == ["a-7", "a-8", "a-9"]

    def test_start_returns_when_stopped(self) -> None:
        bus = InMemoryEventBus(poll_timeout_seconds=0.01)
        stop = threading.Event()
        stop.set()
        bus.start(stop)
