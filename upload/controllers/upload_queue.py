"""
Upload Queue

Delivers chunk artifacts to the remote endpoint one at a time, in capture
order, with bounded exponential-backoff retry.

Why a single worker?
- Chunk order on the remote side matches capture order
- Never more than one request against a rate-limited remote API
- The in-flight flag is the only mutual exclusion needed

Per-chunk state machine:
    pending -> uploading -> completed
                         -> retry (n) -> uploading -> ...
                         -> failed  (retries exhausted or configuration fault)

A chunk that is retrying stays at the head of the queue and blocks the
chunks behind it. A chunk that failed permanently is removed and no longer
blocks anything.

SOLID Principles:
- Single Responsibility: Only manages delivery order and retry policy
- Dependency Inversion: Depends on ChunkTransportInterface, not on HTTP
"""

import logging
import threading
from collections import deque
from pathlib import Path
from typing import Any, Callable, Deque, Dict, List, Optional, Union

from config.settings import (
    CONNECTIVITY_POLL_INTERVAL,
    MAX_UPLOAD_RETRIES,
    QUEUE_HIGH_WATER_MARK,
    RETRY_BASE_DELAY_SECONDS,
)
from core.constants import ChunkStatus, EventType
from core.event_bus import EventBus
from core.models.chunk_artifact import ChunkArtifact
from core.network import ConnectivityProbe
from upload.constants import WORKER_IDLE_WAIT, DrainOutcome, TransferStatus
from upload.interfaces.transport_interface import (
    ChunkTransportInterface,
    TransferResult,
)

# Poll interval used when another driver holds the in-flight flag
BUSY_WAIT = 0.05


class UploadQueue:
    """
    Serial FIFO upload queue with retry/backoff.

    This class:
    - Keeps an ordered processing list of pending chunks
    - Runs one background worker that drains the list
    - Retries failed attempts after base_delay * 2**retry_count seconds
    - Defers attempts while the network is down (no retry consumed)
    - Keeps every chunk it has seen for observability

    Usage:
        transport = create_transport()
        upload_queue = UploadQueue(transport, event_bus=bus)
        bus.publish(EventType.CHUNK_READY, artifact)  # or upload_queue.enqueue()
        upload_queue.wait_until_idle()
        upload_queue.stop()
    """

    def __init__(
        self,
        transport: ChunkTransportInterface,
        max_retries: int = MAX_UPLOAD_RETRIES,
        base_delay: float = RETRY_BASE_DELAY_SECONDS,
        connectivity_check: Optional[Callable[[], bool]] = None,
        connectivity_poll_interval: float = CONNECTIVITY_POLL_INTERVAL,
        event_bus: Optional[EventBus] = None,
        high_water_mark: int = QUEUE_HIGH_WATER_MARK,
        failed_dir: Optional[Union[str, Path]] = None,
        sleep: Optional[Callable[[float], Any]] = None,
        autostart: bool = True,
    ):
        """
        Initialize upload queue.

        Args:
            transport: Transport performing one attempt per call
            max_retries: Retries after the first attempt before giving up
            base_delay: Backoff base in seconds
            connectivity_check: Returns False while the network is down
                (default: cached socket probe)
            connectivity_poll_interval: Seconds between checks while offline
            event_bus: Subscribe to CHUNK_READY and publish status events
            high_water_mark: Pending count that triggers a backpressure
                warning (0 disables)
            failed_dir: Directory where permanently failed payloads are saved
            sleep: Wait function for backoff/deferral (default: interruptible
                wait that returns early on stop())
            autostart: Start the background worker immediately
        """
        self.logger = logging.getLogger(__name__)

        if max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {max_retries}")
        if base_delay < 0:
            raise ValueError(f"base_delay must be >= 0, got {base_delay}")

        self.transport = transport
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.connectivity_poll_interval = connectivity_poll_interval
        self.high_water_mark = high_water_mark
        self.failed_dir = Path(failed_dir) if failed_dir else None
        self._is_online = connectivity_check or ConnectivityProbe()
        self._sleep = sleep or self._interruptible_sleep

        # Processing list (head = next to deliver) and observability list
        self._pending: Deque[ChunkArtifact] = deque()
        self._chunks: List[ChunkArtifact] = []

        # The in-flight flag is the only mutual exclusion between drain steps
        self._lock = threading.RLock()
        self._idle_condition = threading.Condition(self._lock)
        self._in_flight = False
        self._current: Optional[ChunkArtifact] = None
        self._next_delay = 0.0

        # Counters
        self._completed_count = 0
        self._failed_count = 0
        self._deferred_count = 0
        self._backpressure_active = False

        # Worker thread control
        self._worker_thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._wakeup = threading.Event()

        # Callback: (artifact, status_label)
        self.on_status_change: Optional[Callable[[ChunkArtifact, str], None]] = None

        self.event_bus = event_bus
        if event_bus is not None:
            event_bus.subscribe(EventType.CHUNK_READY, self.enqueue)

        if autostart:
            self._start_worker()

        self.logger.info(
            f"Upload Queue initialized "
            f"(max_retries: {max_retries}, base_delay: {base_delay}s)",
        )

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    def enqueue(self, artifact: ChunkArtifact) -> None:
        """
        Append a chunk to the tail of the queue.

        Returns immediately; delivery happens on the worker.

        Example:
            upload_queue.enqueue(artifact)
        """
        with self._lock:
            if any(chunk.id == artifact.id for chunk in self._chunks):
                self.logger.warning(f"Chunk already queued, ignoring: {artifact.name}")
                return

            artifact.status = ChunkStatus.PENDING
            self._pending.append(artifact)
            self._chunks.append(artifact)
            pending_count = len(self._pending)
            label = artifact.status_label

        if self._stop_event.is_set():
            self.logger.warning(
                f"Queue stopped; {artifact.name} will wait until processed manually",
            )

        self.logger.info(
            f"Queued {artifact.name} ({artifact.size} bytes, pending: {pending_count})",
        )
        self._notify_status(artifact, label)
        self._check_backpressure(pending_count)
        self._wakeup.set()

    def drain_once(self) -> DrainOutcome:
        """
        Run one drain step on the head of the queue.

        - BUSY if a transfer is already in flight
        - IDLE if the queue is empty
        - DEFERRED if the network is down (retry budget untouched)
        - otherwise attempts the head chunk and reports the outcome
        """
        with self._lock:
            if self._in_flight:
                return DrainOutcome.BUSY
            if not self._pending:
                return DrainOutcome.IDLE

        if not self._check_online():
            with self._lock:
                self._deferred_count += 1
                head = self._pending[0] if self._pending else None
            if head is not None:
                self.logger.info(
                    f"Network unavailable, deferring upload of {head.name}",
                )
            return DrainOutcome.DEFERRED

        with self._lock:
            # Re-check: another driver may have started while we probed
            if self._in_flight:
                return DrainOutcome.BUSY
            if not self._pending:
                return DrainOutcome.IDLE
            artifact = self._pending[0]
            self._in_flight = True
            self._current = artifact
            artifact.mark_uploading()
            label = artifact.status_label

        try:
            self._notify_status(artifact, label)
            self.logger.info(
                f"Uploading {artifact.name} (attempt {artifact.attempts})",
            )
            result = self._attempt(artifact)
            return self._handle_result(artifact, result)
        finally:
            with self._lock:
                self._in_flight = False
                self._current = None
                self._idle_condition.notify_all()

    def process_pending(self, max_steps: Optional[int] = None) -> List[DrainOutcome]:
        """
        Drain until the queue is empty (or stop() is called).

        Waits between steps using the configured sleep: the backoff delay
        after a failed attempt, the poll interval while offline.

        Args:
            max_steps: Stop after this many drain steps (None = no limit)

        Returns:
            Outcomes of every drain step, in order
        """
        outcomes: List[DrainOutcome] = []

        while not self._stop_event.is_set():
            if max_steps is not None and len(outcomes) >= max_steps:
                break

            outcome = self.drain_once()
            if outcome == DrainOutcome.IDLE:
                break
            outcomes.append(outcome)

            if outcome == DrainOutcome.RETRY_SCHEDULED:
                self._sleep(self._next_delay)
            elif outcome == DrainOutcome.DEFERRED:
                self._sleep(self.connectivity_poll_interval)
            elif outcome == DrainOutcome.BUSY:
                self._sleep(BUSY_WAIT)

        return outcomes

    def compute_backoff(self, retry_count: int) -> float:
        """
        Delay before the attempt following retry number retry_count.

        base_delay * 2**retry_count: with base 1s → 2s, 4s, 8s
        """
        return self.base_delay * (2 ** retry_count)

    # =========================================================================
    # ATTEMPT HANDLING
    # =========================================================================

    def _attempt(self, artifact: ChunkArtifact) -> TransferResult:
        """Run the transport, turning unexpected exceptions into failures"""
        try:
            return self.transport.send(artifact)
        except Exception as e:
            self.logger.error(
                f"Unexpected transport error for {artifact.name}: {e}",
                exc_info=True,
            )
            return TransferResult(
                success=False,
                status=TransferStatus.FAILED,
                error_message=f"Unexpected transport error: {e}",
            )

    def _handle_result(
        self,
        artifact: ChunkArtifact,
        result: TransferResult,
    ) -> DrainOutcome:
        if result.success:
            with self._lock:
                artifact.mark_completed(result.remote_id)
                artifact.release_payload()
                self._remove_head(artifact)
                self._completed_count += 1
                label = artifact.status_label
                pending_count = len(self._pending)

            self.logger.info(
                f"✅ Uploaded {artifact.name} → {result.remote_id} "
                f"({result.duration:.1f}s)",
            )
            self._notify_status(artifact, label)
            self._check_backpressure(pending_count)
            return DrainOutcome.COMPLETED

        error = result.error_message or result.status.value

        if result.is_fatal:
            self.logger.error(
                f"❌ Configuration fault uploading {artifact.name}, "
                f"not retrying: {error}",
            )
            self._fail(artifact, error)
            return DrainOutcome.FAILED

        if artifact.retry_count < self.max_retries:
            with self._lock:
                artifact.mark_retry(error)
                self._next_delay = self.compute_backoff(artifact.retry_count)
                label = artifact.status_label

            self.logger.warning(
                f"Upload failed for {artifact.name}: {error} "
                f"(retry {artifact.retry_count}/{self.max_retries} "
                f"in {self._next_delay:.1f}s)",
            )
            self._notify_status(artifact, label)
            return DrainOutcome.RETRY_SCHEDULED

        self.logger.error(
            f"❌ Upload failed permanently after {artifact.attempts} attempts: "
            f"{artifact.name} ({error})",
        )
        self._fail(artifact, error)
        return DrainOutcome.FAILED

    def _fail(self, artifact: ChunkArtifact, error: str) -> None:
        with self._lock:
            artifact.mark_failed(error)
            self._remove_head(artifact)
            self._failed_count += 1
            label = artifact.status_label
            pending_count = len(self._pending)

        self._save_failed_payload(artifact)
        with self._lock:
            artifact.release_payload()
        self._notify_status(artifact, label)
        self._check_backpressure(pending_count)

    def _remove_head(self, artifact: ChunkArtifact) -> None:
        """Remove a terminal chunk from the processing list (lock held)"""
        if self._pending and self._pending[0] is artifact:
            self._pending.popleft()
        else:
            self._pending.remove(artifact)
        self._idle_condition.notify_all()

    def _save_failed_payload(self, artifact: ChunkArtifact) -> None:
        """Keep the payload of a failed chunk so it can be resent later"""
        if self.failed_dir is None:
            return

        try:
            self.failed_dir.mkdir(parents=True, exist_ok=True)
            target = self.failed_dir / artifact.name
            target.write_bytes(artifact.payload)
            self.logger.info(f"Saved failed chunk to {target}")
        except OSError as e:
            self.logger.error(f"Could not save failed chunk {artifact.name}: {e}")

    def _check_online(self) -> bool:
        try:
            return bool(self._is_online())
        except Exception as e:
            # An unreliable probe must not stall the queue
            self.logger.debug(f"Connectivity check error: {e}")
            return True

    # =========================================================================
    # OBSERVABILITY
    # =========================================================================

    def _notify_status(self, artifact: ChunkArtifact, label: str) -> None:
        if self.on_status_change:
            try:
                self.on_status_change(artifact, label)
            except Exception as e:
                self.logger.error(f"Error in status callback: {e}")

        if self.event_bus is not None:
            snapshot = artifact.to_dict()
            snapshot["status"] = label
            self.event_bus.publish(EventType.CHUNK_STATUS_CHANGED, snapshot)

    def _check_backpressure(self, pending_count: int) -> None:
        if not self.high_water_mark:
            return

        if pending_count >= self.high_water_mark and not self._backpressure_active:
            self._backpressure_active = True
            self.logger.warning(
                f"Upload queue backlog: {pending_count} chunks pending "
                f"(high-water mark {self.high_water_mark})",
            )
            if self.event_bus is not None:
                self.event_bus.publish(
                    EventType.QUEUE_BACKPRESSURE,
                    {"pending": pending_count, "high_water_mark": self.high_water_mark},
                )
        elif pending_count < self.high_water_mark and self._backpressure_active:
            self._backpressure_active = False
            self.logger.info(f"Upload queue backlog cleared ({pending_count} pending)")

    def get_chunks(self) -> List[ChunkArtifact]:
        """Every chunk seen by this queue, terminal ones included"""
        with self._lock:
            return list(self._chunks)

    def get_pending(self) -> List[ChunkArtifact]:
        """Chunks still in the processing list, head first"""
        with self._lock:
            return list(self._pending)

    def get_pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    def get_uploading_count(self) -> int:
        """Number of chunks currently in the uploading state"""
        with self._lock:
            return sum(
                1 for chunk in self._chunks if chunk.status == ChunkStatus.UPLOADING
            )

    def is_busy(self) -> bool:
        """True if a transfer is in flight or chunks are pending"""
        with self._lock:
            return self._in_flight or bool(self._pending)

    def wait_until_idle(self, timeout: Optional[float] = None) -> bool:
        """
        Block until every queued chunk reached a terminal state.

        Returns:
            True if the queue became idle, False on timeout
        """
        with self._idle_condition:
            return self._idle_condition.wait_for(
                lambda: not self._pending and not self._in_flight,
                timeout=timeout,
            )

    def get_status(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "pending": len(self._pending),
                "in_flight": self._in_flight,
                "current_chunk": self._current.name if self._current else None,
                "completed": self._completed_count,
                "failed": self._failed_count,
                "deferred_checks": self._deferred_count,
                "backpressure": self._backpressure_active,
                "worker_running": self.is_running(),
                "chunks": [chunk.to_dict() for chunk in self._chunks],
            }

    # =========================================================================
    # WORKER
    # =========================================================================

    def _start_worker(self) -> None:
        if self.is_running():
            self.logger.warning("Worker already running")
            return

        self._stop_event.clear()
        self._worker_thread = threading.Thread(
            target=self._worker_loop,
            daemon=True,
            name="UploadQueue-Worker",
        )
        self._worker_thread.start()
        self.logger.debug("Upload queue worker started")

    def start(self) -> None:
        """Start the worker (when created with autostart=False)"""
        self._start_worker()

    def is_running(self) -> bool:
        return bool(self._worker_thread and self._worker_thread.is_alive())

    def _worker_loop(self) -> None:
        self.logger.debug("Worker thread started")

        while not self._stop_event.is_set():
            if not self.is_busy():
                self._wakeup.wait(WORKER_IDLE_WAIT)
                self._wakeup.clear()
                continue

            try:
                self.process_pending()
            except Exception as e:
                # Never let the worker die; the head chunk is retried later
                self.logger.error(f"Error in upload worker: {e}", exc_info=True)
                self._stop_event.wait(WORKER_IDLE_WAIT)

        self.logger.debug("Worker thread stopped")

    def _interruptible_sleep(self, seconds: float) -> None:
        if seconds > 0:
            self._stop_event.wait(seconds)

    def stop(self, timeout: float = 5.0) -> None:
        """
        Stop the worker thread.

        An in-flight transfer is not cancelled; the worker exits after it.
        Pending chunks stay in the queue.
        """
        self.logger.info("Stopping upload queue")

        self._stop_event.set()
        self._wakeup.set()

        if self.event_bus is not None:
            self.event_bus.unsubscribe(EventType.CHUNK_READY, self.enqueue)

        if self._worker_thread and self._worker_thread.is_alive():
            self._worker_thread.join(timeout=timeout)

        pending = self.get_pending_count()
        if pending:
            self.logger.warning(f"Upload queue stopped with {pending} chunks pending")
        else:
            self.logger.info("Upload queue stopped")
