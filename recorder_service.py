"""
Recorder Service

Command-line entry point for the chunked screen recorder.
Wires the capture session, the event bus and the upload queue together.

Architecture:
- CaptureSession publishes CHUNK_READY on the EventBus
- UploadQueue is subscribed and delivers chunks one at a time
- The session and the queue never reference each other

Lifecycle:
    ping backend → start session → record until signal / stream end /
    --duration → stop session (final chunk still emitted) → keep draining
    uploads → exit

A first Ctrl+C stops recording; uploads keep draining. A second Ctrl+C
abandons the remaining uploads.
"""

import argparse
import logging
import signal
import sys
import time
from typing import Optional

from capture import CaptureError, CaptureFactory, CaptureSession, CaptureSource
from config.settings import (
    CAPTURE_DEVICE_HINT,
    CHUNK_DURATION_SECONDS,
    FAILED_CHUNKS_DIR,
    LOG_SERVICE_FILE,
    UPLOAD_API_URL,
)
from core.constants import EventType
from core.event_bus import EventBus
from core.logging_setup import setup_logging
from core.network import get_network_status
from upload import TransportFactory, UploadQueue

# Main loop tick (seconds)
LOOP_INTERVAL = 0.1

# Progress log interval while draining (seconds)
DRAIN_REPORT_INTERVAL = 5.0


class RecorderService:
    """
    Main service coordinator.

    Usage:
        service = RecorderService(endpoint="https://recorder-api.example.com")
        exit_code = service.run()  # Blocks until recording and uploads finish
    """

    def __init__(
        self,
        endpoint: str = UPLOAD_API_URL,
        chunk_duration: float = CHUNK_DURATION_SECONDS,
        source: Optional[CaptureSource] = None,
        device_hint: Optional[str] = CAPTURE_DEVICE_HINT,
        use_mock: bool = False,
        max_duration: Optional[float] = None,
        drain_timeout: Optional[float] = None,
    ):
        self.logger = logging.getLogger(__name__)
        self.logger.info("Initializing Recorder Service...")

        self.use_mock = use_mock
        self.max_duration = max_duration
        self.drain_timeout = drain_timeout
        self.running = False
        self._abort_drain = False
        self._signal_count = 0

        self.event_bus = EventBus()

        # Capture
        self.capture_backend = CaptureFactory.create_backend(
            mode="mock" if use_mock else "auto",
        )
        self.session = CaptureSession(
            self.capture_backend,
            event_bus=self.event_bus,
            chunk_duration=chunk_duration,
            device_hint=device_hint,
            source=source,
        )

        # Upload
        self.transport = TransportFactory.create_transport(
            mode="mock" if use_mock else "auto",
            base_url=endpoint,
        )
        self.upload_queue = UploadQueue(
            self.transport,
            event_bus=self.event_bus,
            failed_dir=FAILED_CHUNKS_DIR,
            # Mock uploads never touch the network
            connectivity_check=(lambda: True) if use_mock else None,
        )

        self._setup_subscriptions()

        # Register signal handlers for graceful shutdown
        signal.signal(signal.SIGTERM, self._signal_handler)
        signal.signal(signal.SIGINT, self._signal_handler)

        self.logger.info("Recorder Service initialized successfully")

    def _setup_subscriptions(self):
        self.event_bus.subscribe(EventType.CHUNK_STATUS_CHANGED, self._log_chunk_status)
        self.event_bus.subscribe(EventType.SESSION_STOPPED, self._handle_session_stopped)
        self.event_bus.subscribe(EventType.QUEUE_BACKPRESSURE, self._handle_backpressure)

    def run(self) -> int:
        """
        Record, then drain uploads.

        Returns:
            Process exit code (0 = all chunks delivered)
        """
        self._log_network_status()
        self._wake_backend()

        try:
            self.session.start()
        except CaptureError as e:
            self.logger.critical(f"Cannot start recording: {e}")
            self._shutdown()
            return 1

        self.running = True
        started_at = time.time()
        self.logger.info("Recording... press Ctrl+C to stop")

        try:
            while self.running and self.session.is_recording():
                if self.max_duration and time.time() - started_at >= self.max_duration:
                    self.logger.info("Duration limit reached")
                    break
                time.sleep(LOOP_INTERVAL)
        finally:
            self.session.stop()

        self._drain_uploads()
        return self._shutdown()

    def _log_network_status(self):
        if self.use_mock:
            return
        is_connected, status = get_network_status()
        if is_connected:
            self.logger.info(f"Network: {status}")
        else:
            self.logger.warning(f"Network: {status} (uploads wait until it returns)")

    def _wake_backend(self):
        """Ping the backend; hosted instances sleep when idle"""
        get_status = getattr(self.transport, "get_backend_status", None)
        if get_status is None:
            return
        status = get_status()
        self.logger.info(f"Backend status: {status}")

    def _drain_uploads(self):
        """Wait for every queued chunk to reach a terminal state"""
        if not self.upload_queue.is_busy():
            return

        self.logger.info(
            f"Waiting for uploads to finish "
            f"({self.upload_queue.get_pending_count()} pending)...",
        )
        deadline = time.time() + self.drain_timeout if self.drain_timeout else None
        last_report = time.time()

        while self.upload_queue.is_busy() and not self._abort_drain:
            if deadline and time.time() >= deadline:
                self.logger.warning("Drain timeout reached")
                break
            self.upload_queue.wait_until_idle(timeout=1.0)

            if time.time() - last_report >= DRAIN_REPORT_INTERVAL:
                self.logger.info(
                    f"{self.upload_queue.get_pending_count()} chunks still pending",
                )
                last_report = time.time()

    def _log_chunk_status(self, chunk: dict):
        self.logger.info(f"{chunk['name']}: {chunk['status']}")

    def _handle_session_stopped(self, data: dict):
        self.logger.info(f"Session stopped after {data['chunks']} chunks")
        self.running = False

    def _handle_backpressure(self, data: dict):
        self.logger.warning(
            f"Uploads are falling behind ({data['pending']} chunks waiting)",
        )

    def _signal_handler(self, signum, _frame):
        """
        Handle shutdown signals.

        First signal stops recording; the second abandons pending uploads.
        """
        signal_name = signal.Signals(signum).name
        self._signal_count += 1

        if self._signal_count == 1:
            self.logger.info(f"Received {signal_name}, stopping recording...")
            self.running = False
        else:
            self.logger.warning(f"Received {signal_name} again, abandoning uploads")
            self._abort_drain = True

    def _shutdown(self) -> int:
        self.logger.info("Shutting down Recorder Service...")

        self.upload_queue.stop()
        self.capture_backend.cleanup()

        status = self.upload_queue.get_status()
        self.logger.info(
            f"Uploads: {status['completed']} completed, {status['failed']} failed, "
            f"{status['pending']} not attempted",
        )
        self.logger.info("Recorder Service shutdown complete")

        if status["failed"] or status["pending"]:
            self.logger.info(
                "Resend failed chunks with: python scripts/resend_failed_chunks.py",
            )
            return 2
        return 0


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Record the screen or a camera in chunks and upload them",
    )
    parser.add_argument(
        "--endpoint",
        default=UPLOAD_API_URL,
        help=f"Backend base URL (default: {UPLOAD_API_URL})",
    )
    parser.add_argument(
        "--chunk-duration",
        type=float,
        default=CHUNK_DURATION_SECONDS,
        help=f"Chunk length in seconds (default: {CHUNK_DURATION_SECONDS})",
    )
    parser.add_argument(
        "--source",
        choices=[source.value for source in CaptureSource],
        help="Force display or camera capture",
    )
    parser.add_argument(
        "--duration",
        type=float,
        help="Stop recording after this many seconds",
    )
    parser.add_argument(
        "--drain-timeout",
        type=float,
        help="Give up waiting for uploads after this many seconds",
    )
    parser.add_argument(
        "--mock",
        action="store_true",
        help="Use mock capture and mock uploads (no FFmpeg, no network)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Debug logging",
    )
    return parser.parse_args(argv)


def main(argv=None):
    """
    Main entry point for the service.

    Sets up logging and runs the service.
    """
    args = parse_args(argv)
    setup_logging(LOG_SERVICE_FILE, level=logging.DEBUG if args.verbose else logging.INFO)

    logger = logging.getLogger(__name__)
    logger.info("=" * 60)
    logger.info("Chunked Screen Recorder Starting")
    logger.info("=" * 60)

    try:
        service = RecorderService(
            endpoint=args.endpoint,
            chunk_duration=args.chunk_duration,
            source=CaptureSource(args.source) if args.source else None,
            use_mock=args.mock,
            max_duration=args.duration,
            drain_timeout=args.drain_timeout,
        )
        sys.exit(service.run())
    except Exception as e:
        logger.critical(f"Fatal error in main: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
