"""Shared sampling engine for sysdash."""

import logging
import threading
from dataclasses import dataclass

from sysdash.errors import DashboardError
from sysdash.models import Snapshot
from sysdash.provider import MetricsProvider
from sysdash.snapshot import build_snapshot

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class TickResult:
    """Outcome of one tick: either a snapshot or the error that spoiled it."""

    sequence: int
    snapshot: Snapshot | None = None
    error: DashboardError | None = None

    @property
    def ok(self) -> bool:
        """Whether the tick produced a snapshot."""
        return self.error is None and self.snapshot is not None


class Subscription:
    """
    Mailbox delivering ticks from a SnapshotSampler to one consumer.

    Holds at most one undelivered tick. A newer tick replaces an older one, so
    a slow reader always gets the freshest data and never a backlog.
    """

    def __init__(self, sampler: "SnapshotSampler") -> None:
        self._sampler = sampler
        self._cond = threading.Condition()
        self._pending: TickResult | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def put(self, result: TickResult) -> None:
        with self._cond:
            if self._closed:
                return
            self._pending = result
            self._cond.notify_all()

    def get(self, timeout: float | None = None) -> TickResult | None:
        """
        Wait for the next tick.

        Returns None if nothing arrived within timeout or the subscription
        was closed.
        """
        with self._cond:
            if self._pending is None and not self._closed:
                self._cond.wait(timeout=timeout)
            result, self._pending = self._pending, None
            return result

    def close(self) -> None:
        with self._cond:
            if self._closed:
                return
            self._closed = True
            self._pending = None
            self._cond.notify_all()
        self._sampler._unsubscribe(self)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class SnapshotSampler:
    """
    Background sampler that builds one snapshot per tick and fans it out.

    A single daemon thread queries the provider, so the blocking CPU sampling
    window is paid once per tick no matter how many clients are connected.
    Failed ticks are published as TickResults carrying the error; the loop
    itself keeps running.
    """

    def __init__(
        self,
        provider: MetricsProvider,
        disk_path: str = "/",
        interval: float = 1.0,
    ) -> None:
        """
        Initialize the SnapshotSampler.

        Args:
            provider: Source of raw metrics.
            disk_path: Mount point whose usage is reported. Default "/".
            interval: Fixed sleep between ticks (in seconds). Default 1.0s.
        """
        self._provider = provider
        self._disk_path = disk_path
        self._interval = max(0.1, interval)
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()
        self._subscribers: set[Subscription] = set()
        self._sequence = 0

    @property
    def interval(self) -> float:
        """Get the tick interval."""
        return self._interval

    @interval.setter
    def interval(self, value: float) -> None:
        """Set the tick interval."""
        self._interval = max(0.1, value)  # Minimum 0.1 seconds

    @property
    def is_running(self) -> bool:
        """Check if the sampler thread is running."""
        return self._thread is not None and self._thread.is_alive()

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def start(self) -> None:
        """Start the sampling thread."""
        if self.is_running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._poll_loop,
            daemon=True,
            name="SnapshotSampler",
        )
        self._thread.start()
        logger.debug("Snapshot sampler started (interval=%.2fs)", self._interval)

    def stop(self, timeout: float | None = 5.0) -> None:
        """
        Stop the sampling thread and close every subscription.

        Args:
            timeout: How long to wait for thread to stop (seconds).
        """
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None

        with self._lock:
            subscribers = list(self._subscribers)
        for subscription in subscribers:
            subscription.close()
        logger.debug("Snapshot sampler stopped")

    def subscribe(self) -> Subscription:
        """Register a new consumer of ticks."""
        subscription = Subscription(self)
        if self._stop_event.is_set():
            subscription.close()
            return subscription
        with self._lock:
            self._subscribers.add(subscription)
            count = len(self._subscribers)
        logger.debug("Subscriber added (%d active)", count)
        return subscription

    def _unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            self._subscribers.discard(subscription)
            count = len(self._subscribers)
        logger.debug("Subscriber removed (%d active)", count)

    def sample_once(self) -> TickResult:
        """Build one snapshot and wrap the outcome in a TickResult."""
        self._sequence += 1
        try:
            snapshot = build_snapshot(self._provider, self._disk_path)
        except DashboardError as exc:
            logger.warning("Tick %d failed: %s", self._sequence, exc)
            return TickResult(sequence=self._sequence, error=exc)
        return TickResult(sequence=self._sequence, snapshot=snapshot)

    def _publish(self, result: TickResult) -> None:
        with self._lock:
            subscribers = list(self._subscribers)
        for subscription in subscribers:
            subscription.put(result)

    def _poll_loop(self) -> None:
        """Main sampling loop running in the background thread."""
        while not self._stop_event.is_set():
            # Nobody is listening, so skip the provider entirely
            if self.subscriber_count > 0:
                try:
                    self._publish(self.sample_once())
                except Exception:
                    logger.exception("Unexpected error in snapshot sampler")

            # Wait for interval seconds or until stop is requested
            self._stop_event.wait(timeout=self._interval)
