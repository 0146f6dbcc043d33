"""Fixed-interval tick driver for the sampling engine."""

import threading
from queue import Queue

import structlog

from hostwatch.engine import SamplingEngine
from hostwatch.models import Snapshot

log = structlog.get_logger()

MIN_INTERVAL = 0.1


class Scheduler:
    """
    Drive the sampling engine at a fixed interval.

    Runs in a separate daemon thread and pushes each Snapshot to a
    thread-safe Queue. Ticks run strictly one after another on that thread.
    """

    def __init__(
        self,
        engine: SamplingEngine,
        update_queue: Queue[Snapshot],
        interval: float = 2.0,
    ) -> None:
        """
        Initialize the Scheduler.

        Args:
            engine: Engine sampled once per tick.
            update_queue: Thread-safe queue to push snapshots to.
            interval: Seconds between ticks. Default 2.0s.
        """
        self._engine = engine
        self._queue = update_queue
        self._interval = max(MIN_INTERVAL, interval)
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._tick_lock = threading.Lock()

    @property
    def interval(self) -> float:
        """Get the current tick interval."""
        return self._interval

    @interval.setter
    def interval(self, value: float) -> None:
        """Set the tick interval."""
        self._interval = max(MIN_INTERVAL, value)

    @property
    def is_running(self) -> bool:
        """Check if the scheduler thread is running."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the scheduler thread."""
        if self.is_running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run,
            daemon=True,
            name="Scheduler",
        )
        self._thread.start()
        log.info("scheduler_started", interval=self._interval)

    def stop(self, timeout: float | None = 5.0) -> None:
        """
        Stop the scheduler thread.

        A sample already in progress completes; no further ticks start.

        Args:
            timeout: How long to wait for thread to stop (seconds).
        """
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None
            log.info("scheduler_stopped")

    def tick(self) -> Snapshot:
        """Sample once and push the snapshot to the queue."""
        # The engine's rate baseline requires ticks that never overlap
        with self._tick_lock:
            snapshot = self._engine.sample()
        self._queue.put(snapshot)
        return snapshot

    def _run(self) -> None:
        """Main tick loop running in the background thread."""
        while not self._stop_event.is_set():
            try:
                self.tick()
            except Exception:
                # Each tick is independent; the next one is the retry
                log.exception("tick_crashed")

            # Wait for the interval or until stop is requested
            self._stop_event.wait(timeout=self._interval)
