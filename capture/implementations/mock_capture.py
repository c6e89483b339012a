"""
Mock Capture Implementation

Simulated capture backend for testing without a display, camera or FFmpeg.

This is a "Fake" (test double): it has working logic but no real media.
Segments are pushed manually with MockRecorder.emit(), or produced on a
timer when simulate_timing is enabled.
"""

import logging
import os
import threading
from typing import Callable, Iterable, List, Optional

from capture.constants import VideoCodec
from capture.interfaces.capture_interface import (
    CaptureBackendInterface,
    CaptureDeniedError,
    CaptureUnsupportedError,
    ChunkedRecorderInterface,
    DataCallback,
    ErrorCallback,
    MediaStreamHandle,
    StreamConstraints,
)

# EBML magic, so fake segments look like WebM to anyone sniffing them
WEBM_MAGIC = b"\x1a\x45\xdf\xa3"


def fake_segment(size: int = 1024) -> bytes:
    """Random bytes prefixed with the WebM header magic"""
    return WEBM_MAGIC + os.urandom(max(size - len(WEBM_MAGIC), 0))


class MockStream(MediaStreamHandle):
    """Simulated media stream that counts releases"""

    def __init__(self, constraints: StreamConstraints):
        self.logger = logging.getLogger(__name__)
        self.constraints = constraints
        self.release_count = 0  # Number of times tracks were actually released
        self._active = True
        self._ended_callbacks: List[Callable[[], None]] = []
        self._lock = threading.Lock()

    def stop_tracks(self) -> None:
        with self._lock:
            if not self._active:
                return
            self._active = False
            self.release_count += 1
        self.logger.info("[MOCK] Stream tracks released")

    def is_active(self) -> bool:
        return self._active

    def on_ended(self, callback: Callable[[], None]) -> None:
        self._ended_callbacks.append(callback)

    def end(self) -> None:
        """Simulate the stream ending on its own (display closed)"""
        with self._lock:
            if not self._active:
                return
            self._active = False
        self.logger.info("[MOCK] Stream ended")
        for callback in list(self._ended_callbacks):
            callback()


class MockRecorder(ChunkedRecorderInterface):
    """
    Simulated chunked recorder.

    Usage:
        recorder.emit(b"segment bytes")  # deliver a completed segment
        recorder.fail("encoder crashed")  # simulate a fatal error
    """

    def __init__(
        self,
        stream: MockStream,
        codec: VideoCodec,
        final_segment: Optional[bytes] = None,
        simulate_timing: bool = False,
    ):
        self.logger = logging.getLogger(__name__)
        self.stream = stream
        self._codec = codec
        self.final_segment = final_segment
        self.simulate_timing = simulate_timing

        self.timeslice: Optional[float] = None
        self.start_count = 0
        self.stop_count = 0
        self._recording = False
        self._on_data: Optional[DataCallback] = None
        self._on_error: Optional[ErrorCallback] = None

        self._timer_thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

    @property
    def codec(self) -> VideoCodec:
        return self._codec

    def start(
        self,
        timeslice: float,
        on_data: DataCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> None:
        self.timeslice = timeslice
        self._on_data = on_data
        self._on_error = on_error
        self._recording = True
        self.start_count += 1
        self.logger.info(f"[MOCK] Recorder started ({timeslice:g}s slices)")

        if self.simulate_timing:
            self._stop_event.clear()
            self._timer_thread = threading.Thread(
                target=self._timer_worker,
                daemon=True,
                name="MockRecorder-Timer",
            )
            self._timer_thread.start()

    def _timer_worker(self) -> None:
        while not self._stop_event.wait(self.timeslice):
            self.emit(fake_segment())

    def emit(self, data: bytes) -> None:
        """Deliver one completed segment to the session"""
        if not self._recording:
            self.logger.warning("[MOCK] Emit ignored, recorder not running")
            return
        if self._on_data:
            self._on_data(data)

    def fail(self, message: str = "Simulated recorder crash") -> None:
        """Simulate a fatal recorder error"""
        self.logger.warning(f"[MOCK] Recorder failure: {message}")
        if self._on_error:
            self._on_error(message)

    def stop(self) -> None:
        if not self._recording:
            return

        self.stop_count += 1
        self._stop_event.set()
        if self._timer_thread and self._timer_thread is not threading.current_thread():
            self._timer_thread.join(timeout=2.0)

        # Flush: the partial segment is still delivered
        if self.final_segment is not None and self._on_data:
            self._on_data(self.final_segment)

        self._recording = False
        self.logger.info("[MOCK] Recorder stopped")

    def is_recording(self) -> bool:
        return self._recording


class MockCaptureBackend(CaptureBackendInterface):
    """
    Mock capture backend for testing.

    Usage:
        backend = MockCaptureBackend(supported_codecs=["libvpx"])
        backend.deny_access = True   # next acquire_stream() is refused
    """

    def __init__(
        self,
        available: bool = True,
        deny_access: bool = False,
        supported_codecs: Optional[Iterable[str]] = None,
        final_segment: Optional[bytes] = None,
        simulate_timing: bool = False,
    ):
        """
        Initialize mock capture backend.

        Args:
            available: Value reported by is_available()
            deny_access: Refuse stream acquisition
            supported_codecs: Encoder names reported as supported
                (None = every codec)
            final_segment: Bytes flushed by recorders on stop
            simulate_timing: Recorders emit fake segments every timeslice
        """
        self.logger = logging.getLogger(__name__)
        self.available = available
        self.deny_access = deny_access
        self.supported_codecs = (
            set(supported_codecs) if supported_codecs is not None else None
        )
        self.final_segment = final_segment
        self.simulate_timing = simulate_timing

        # Tracking for assertions
        self.streams: List[MockStream] = []
        self.recorders: List[MockRecorder] = []
        self.constraints_history: List[StreamConstraints] = []
        self.codec_probes: List[str] = []

        self.logger.info("Mock Capture initialized")

    def is_available(self) -> bool:
        return self.available

    def acquire_stream(self, constraints: StreamConstraints) -> MockStream:
        self.constraints_history.append(constraints)

        if not self.available:
            raise CaptureUnsupportedError("[MOCK] Capture not supported")
        if self.deny_access:
            self.logger.error("[MOCK] Simulated permission denial")
            raise CaptureDeniedError("[MOCK] Permission denied")

        stream = MockStream(constraints)
        self.streams.append(stream)
        self.logger.info(f"[MOCK] Acquired {constraints.source.value} stream")
        return stream

    def is_codec_supported(self, codec: VideoCodec) -> bool:
        self.codec_probes.append(codec.encoder)
        if self.supported_codecs is None:
            return True
        return codec.encoder in self.supported_codecs

    def create_recorder(
        self,
        stream: MediaStreamHandle,
        codec: VideoCodec,
    ) -> MockRecorder:
        assert isinstance(stream, MockStream)
        recorder = MockRecorder(
            stream,
            codec,
            final_segment=self.final_segment,
            simulate_timing=self.simulate_timing,
        )
        self.recorders.append(recorder)
        return recorder

    def cleanup(self) -> None:
        for recorder in self.recorders:
            recorder.stop()
        self.logger.info("[MOCK] Capture cleanup complete")

    # =========================================================================
    # TESTING HELPER METHODS
    # =========================================================================

    @property
    def last_stream(self) -> Optional[MockStream]:
        return self.streams[-1] if self.streams else None

    @property
    def last_recorder(self) -> Optional[MockRecorder]:
        return self.recorders[-1] if self.recorders else None
