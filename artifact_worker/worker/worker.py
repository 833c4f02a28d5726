import signal
import threading
import time

from artifact_worker.config.settings import Settings
from artifact_worker.database.repositories.artifact_repository import ArtifactRepository
from artifact_worker.events.base import EventBus
from artifact_worker.events.exceptions import EventValidationError
from artifact_worker.events.models import ArtifactUploaded, Event, EventType
from artifact_worker.logging.logger import Log
from artifact_worker.processor.exceptions import PersistenceError
from artifact_worker.worker.artifact_runner import ArtifactRunner


class Worker:
    """Two triggers for one routine: bus events and a reconciliation poll.

    The event thread reacts to artifact.uploaded; the poll thread picks up
    anything still pending (missed events, bus outages, reanalysis).
    """

    def __init__(
        self,
        *,
        runner: ArtifactRunner,
        artifact_repo: ArtifactRepository,
        event_bus: EventBus,
        settings: Settings,
    ) -> None:
        self._runner = runner
        self._artifact_repo = artifact_repo
        self._event_bus = event_bus
        self._settings = settings
        self._stop = threading.Event()
        self._threads: list[threading.Thread] = []
        self._event_bus.subscribe(EventType.ARTIFACT_UPLOADED, self.handle_uploaded)

    @property
    def stopping(self) -> bool:
        return self._stop.is_set()

    def handle_uploaded(self, event: Event) -> None:
        """Run the artifact named by an artifact.uploaded event."""
        try:
            body = event.body()
        except EventValidationError as exc:
            Log.error(f"Ignoring invalid upload event {event.id}: {exc}")
            return
        if not isinstance(body, ArtifactUploaded):
            return
        Log.info(
            f"Received upload event for artifact {body.artifact_id} "
            f"(correlation: {event.correlation_id})"
        )
        self._runner.run(body.artifact_id, event.correlation_id or None)

    def poll_once(self) -> int:
        """Run one reconciliation tick. Returns the number of artifacts claimed."""
        try:
            pending = self._artifact_repo.find_pending(self._settings.poll_batch_size)
        except PersistenceError as exc:
            Log.warning(f"Database error, will retry: {exc}")
            return 0
        if not pending:
            Log.debug("No pending artifacts")
            return 0

        Log.info(f"Found {len(pending)} pending artifacts")
        claimed = 0
        for artifact in pending:
            if self._stop.is_set():
                break
            if self._runner.run(artifact.artifact_id):
                claimed += 1
        return claimed

    def run(self) -> None:
        """Start both triggers and block until a stop is requested."""
        self._install_signal_handlers()
        self._threads = [
            threading.Thread(target=self._consume_events, name="events", daemon=True),
            threading.Thread(target=self._poll_loop, name="poller", daemon=True),
        ]
        for thread in self._threads:
            thread.start()
        Log.info("Worker started")

        self._stop.wait()
        Log.info("Shutdown signal received, stopping worker")
        self._join_threads()
        self._event_bus.close()
        Log.info("Worker stopped")

    def stop(self) -> None:
        self._stop.set()

    def _consume_events(self) -> None:
        while not self._stop.is_set():
            try:
                self._event_bus.start(self._stop)
            except Exception as exc:
                Log.error(
                    f"Event consumer failed, retrying in "
                    f"{self._settings.event_reconnect_seconds}s: {exc}"
                )
                self._stop.wait(self._settings.event_reconnect_seconds)

    def _poll_loop(self) -> None:
        while not self._stop.is_set():
            try:
                self.poll_once()
            except Exception as exc:
                Log.exception(f"Poll tick failed: {exc}")
            self._stop.wait(self._settings.poll_interval_seconds)

    def _join_threads(self) -> None:
        grace = self._settings.shutdown_grace_seconds
        deadline = time.monotonic() + grace
        for thread in self._threads:
            thread.join(timeout=max(0.0, deadline - time.monotonic()))
            if thread.is_alive():
                Log.warning(
                    f"Thread {thread.name} still running after {grace}s grace period, "
                    "abandoning in-flight work"
                )

    def _install_signal_handlers(self) -> None:
        if threading.current_thread() is not threading.main_thread():
            return
        for sig in (signal.SIGINT, signal.SIGTERM):
            signal.signal(sig, lambda signum, _frame: self.stop())
