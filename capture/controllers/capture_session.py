"""
Capture Session

Owns one recording run: acquires a media stream, drives a chunked recorder
and turns every completed segment into a ChunkArtifact published on the
event bus.

State machine:
    idle --start()--> recording --stop() | stream ended | fatal error--> idle

The session never talks to the upload queue directly. It publishes
CHUNK_READY and whoever subscribed (normally the UploadQueue) takes over,
so uploads keep draining after the session is stopped or discarded.

SOLID Principles:
- Single Responsibility: Only manages the recording lifecycle
- Open/Closed: Callbacks and events for everything that happens
- Dependency Inversion: Depends on CaptureBackendInterface, not FFmpeg
"""

import logging
import threading
from typing import Any, Callable, Dict, List, Optional

from capture.constants import (
    DEFAULT_CODEC,
    PREFERRED_CODEC,
    CaptureSource,
    CaptureState,
    DeviceClass,
    VideoCodec,
    format_elapsed,
)
from capture.interfaces.capture_interface import (
    CaptureBackendInterface,
    CaptureError,
    CaptureProcessError,
    CaptureUnsupportedError,
    ChunkedRecorderInterface,
    MediaStreamHandle,
    StreamConstraints,
)
from capture.utils.capture_utils import classify_device, generate_chunk_name
from config.settings import (
    CAPTURE_AUDIO,
    CAPTURE_DEVICE_HINT,
    CHUNK_DURATION_SECONDS,
    ELAPSED_TICK_INTERVAL,
)
from core.constants import EventType
from core.event_bus import EventBus
from core.models.chunk_artifact import ChunkArtifact

# Offered to the chooser on mobile devices, in display order
SourceChooser = Callable[[List[CaptureSource]], Any]


class CaptureSession:
    """
    Manages a chunked recording session.

    Usage:
        bus = EventBus()
        session = CaptureSession(create_backend(), event_bus=bus)
        session.on_chunk = lambda artifact: print(artifact.name)

        session.start()   # raises CaptureError if capture is refused
        ...
        session.stop()    # final partial chunk is still emitted
    """

    def __init__(
        self,
        backend: CaptureBackendInterface,
        event_bus: Optional[EventBus] = None,
        chunk_duration: float = CHUNK_DURATION_SECONDS,
        device_hint: Optional[str] = CAPTURE_DEVICE_HINT,
        source_chooser: Optional[SourceChooser] = None,
        source: Optional[CaptureSource] = None,
        capture_audio: bool = CAPTURE_AUDIO,
        tick_interval: float = ELAPSED_TICK_INTERVAL,
    ):
        """
        Initialize capture session.

        Args:
            backend: Capture primitives (FFmpeg or mock)
            event_bus: Where CHUNK_READY and session events are published
            chunk_duration: Segment length in seconds, fixed for the session
            device_hint: User-agent / platform string used to classify the device
            source_chooser: Asked to pick a source on mobile devices
            source: Force a source, bypassing the selection policy
            capture_audio: Request an audio track
            tick_interval: Seconds per elapsed-time tick
        """
        self.logger = logging.getLogger(__name__)

        if chunk_duration <= 0:
            raise ValueError(f"chunk_duration must be > 0, got {chunk_duration}")

        self.backend = backend
        self.event_bus = event_bus
        self.chunk_duration = chunk_duration
        self.device_class = classify_device(device_hint)
        self.source_chooser = source_chooser
        self.forced_source = source
        self.capture_audio = capture_audio
        self.tick_interval = tick_interval

        # Session state
        self.state = CaptureState.IDLE
        self._lock = threading.RLock()
        self._stream: Optional[MediaStreamHandle] = None
        self._recorder: Optional[ChunkedRecorderInterface] = None
        self._source: Optional[CaptureSource] = None
        self._codec: Optional[VideoCodec] = None
        self._sequence = 0
        self._chunks_emitted = 0
        self._discarded_emissions = 0
        self._elapsed_seconds = 0

        # Elapsed-time ticker
        self._ticker_thread: Optional[threading.Thread] = None
        self._ticker_stop_event = threading.Event()

        # Callbacks for events
        self.on_chunk: Optional[Callable[[ChunkArtifact], None]] = None
        self.on_stop: Optional[Callable[[], None]] = None
        self.on_error: Optional[Callable[[str], None]] = None
        self.on_tick: Optional[Callable[[int], None]] = None

        self.logger.info(
            f"Capture Session initialized "
            f"(chunk: {chunk_duration:g}s, device: {self.device_class.value})",
        )

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def start(self) -> bool:
        """
        Start recording.

        Returns:
            True if recording started, False if the session is not idle

        Raises:
            CaptureDeniedError: Access to the source was refused
            CaptureUnsupportedError: Capture is not possible on this platform
            CaptureError: Any other acquisition or recorder failure
        """
        with self._lock:
            if self.state != CaptureState.IDLE:
                self.logger.warning(
                    f"Cannot start - session in state: {self.state.value}",
                )
                return False

            constraints = self._select_constraints()

            try:
                if not self.backend.is_available():
                    raise CaptureUnsupportedError(
                        "Capture is not supported on this platform "
                        "(is FFmpeg installed?)",
                    )
                stream = self.backend.acquire_stream(constraints)
            except CaptureError as e:
                self._report_error(e)
                raise

            codec = self._select_codec()

            try:
                recorder = self.backend.create_recorder(stream, codec)

                # Fresh session: counters start over
                self._stream = stream
                self._recorder = recorder
                self._source = constraints.source
                self._codec = codec
                self._sequence = 0
                self._chunks_emitted = 0
                self._discarded_emissions = 0
                self._elapsed_seconds = 0
                self.state = CaptureState.RECORDING

                stream.on_ended(self._handle_stream_ended)
                recorder.start(
                    self.chunk_duration,
                    self._handle_data,
                    self._handle_recorder_error,
                )
            except CaptureError as e:
                self._abort_start(stream, e)
                raise
            except Exception as e:
                error = CaptureProcessError(f"Recorder failed to start: {e}")
                self._abort_start(stream, error)
                raise error from e

            self._start_ticker()

        self.logger.info(
            f"Recording started ({constraints.source.value}, codec: {codec.name})",
        )
        self._publish(
            EventType.SESSION_STARTED,
            {
                "source": constraints.source.value,
                "codec": codec.mime_type,
                "chunk_duration": self.chunk_duration,
            },
        )
        return True

    def stop(self) -> bool:
        """
        Stop recording.

        Flushes the recorder (the final partial chunk is emitted), releases
        the stream and the elapsed-time ticker. Safe to call repeatedly and
        concurrently with the stream-ended hook.

        Returns:
            True if this call stopped the session, False if already idle
        """
        with self._lock:
            if self.state != CaptureState.RECORDING:
                self.logger.debug(f"Stop ignored (state: {self.state.value})")
                return False
            self.state = CaptureState.STOPPING
            recorder = self._recorder
            stream = self._stream

        self.logger.info("Stopping recording...")

        # Outside the lock: the recorder emits its last segment from its
        # own thread and that goes through _handle_data
        try:
            if recorder is not None:
                recorder.stop()
        except Exception as e:
            self.logger.error(f"Error stopping recorder: {e}")

        if stream is not None:
            stream.stop_tracks()

        self._stop_ticker()

        with self._lock:
            self._recorder = None
            self._stream = None
            self.state = CaptureState.IDLE
            chunks = self._chunks_emitted
            elapsed = self._elapsed_seconds

        self.logger.info(
            f"Recording stopped ({chunks} chunks, {format_elapsed(elapsed)})",
        )
        self._trigger_callback(self.on_stop)
        self._publish(
            EventType.SESSION_STOPPED,
            {"chunks": chunks, "elapsed_seconds": elapsed},
        )
        return True

    def is_recording(self) -> bool:
        return self.state == CaptureState.RECORDING

    # =========================================================================
    # SOURCE AND CODEC SELECTION
    # =========================================================================

    def _select_constraints(self) -> StreamConstraints:
        """
        Pick the capture source.

        - Forced source wins
        - Mobile: ask the chooser, camera if it is absent or undecided
        - Desktop: display with cursor
        """
        if self.forced_source is not None:
            source = self.forced_source
        elif self.device_class == DeviceClass.MOBILE:
            source = self._ask_chooser()
        else:
            source = CaptureSource.DISPLAY

        return StreamConstraints(
            source=source,
            cursor=source == CaptureSource.DISPLAY,
            audio=self.capture_audio,
        )

    def _ask_chooser(self) -> CaptureSource:
        if self.source_chooser is None:
            return CaptureSource.CAMERA

        try:
            choice = self.source_chooser([CaptureSource.CAMERA, CaptureSource.DISPLAY])
        except Exception as e:
            self.logger.error(f"Error in source chooser: {e}")
            return CaptureSource.CAMERA

        if isinstance(choice, CaptureSource):
            return choice
        try:
            return CaptureSource(choice)
        except ValueError:
            self.logger.info(f"No usable source chosen ({choice!r}), using camera")
            return CaptureSource.CAMERA

    def _select_codec(self) -> VideoCodec:
        try:
            if self.backend.is_codec_supported(PREFERRED_CODEC):
                return PREFERRED_CODEC
        except Exception as e:
            self.logger.warning(f"Codec probe failed: {e}")

        self.logger.info(
            f"{PREFERRED_CODEC.encoder} not supported, using {DEFAULT_CODEC.encoder}",
        )
        return DEFAULT_CODEC

    # =========================================================================
    # RECORDER EVENTS
    # =========================================================================

    def _handle_data(self, data: bytes) -> None:
        """Turn one completed segment into a chunk artifact"""
        if not data:
            with self._lock:
                self._discarded_emissions += 1
            self.logger.debug("Discarding empty segment")
            return

        with self._lock:
            if self.state == CaptureState.IDLE:
                self.logger.warning("Segment received while idle, ignoring")
                return
            self._sequence += 1
            self._chunks_emitted += 1
            sequence = self._sequence
            codec = self._codec or DEFAULT_CODEC

        artifact = ChunkArtifact(
            sequence=sequence,
            payload=data,
            name=generate_chunk_name(sequence, extension=codec.extension),
            mime_type=codec.mime_type,
        )

        self.logger.info(f"Chunk ready: {artifact.name} ({artifact.size} bytes)")
        self._trigger_callback(self.on_chunk, artifact)
        self._publish(EventType.CHUNK_READY, artifact)

    def _handle_recorder_error(self, message: str) -> None:
        self.logger.error(f"Recorder failed: {message}")
        self._report_error(CaptureError(message))
        self.stop()

    def _handle_stream_ended(self) -> None:
        self.logger.warning("Capture stream ended, stopping session")
        self.stop()

    def _abort_start(self, stream: MediaStreamHandle, error: CaptureError) -> None:
        """Undo a half-finished start: back to idle with the stream released"""
        self.state = CaptureState.IDLE
        self._stream = None
        self._recorder = None
        stream.stop_tracks()
        self._report_error(error)

    def _report_error(self, error: CaptureError) -> None:
        self.logger.error(f"Capture error: {error}")
        self._trigger_callback(self.on_error, str(error))
        self._publish(
            EventType.CAPTURE_ERROR,
            {"error": str(error), "type": type(error).__name__},
        )

    # =========================================================================
    # ELAPSED TIME
    # =========================================================================

    def _start_ticker(self) -> None:
        self._ticker_stop_event.clear()
        self._ticker_thread = threading.Thread(
            target=self._ticker_worker,
            daemon=True,
            name="CaptureSession-Ticker",
        )
        self._ticker_thread.start()

    def _stop_ticker(self) -> None:
        self._ticker_stop_event.set()
        ticker = self._ticker_thread
        if ticker and ticker is not threading.current_thread():
            ticker.join(timeout=2.0)
        self._ticker_thread = None

    def _ticker_worker(self) -> None:
        while not self._ticker_stop_event.wait(self.tick_interval):
            with self._lock:
                if self.state != CaptureState.RECORDING:
                    break
                self._elapsed_seconds += 1
                elapsed = self._elapsed_seconds
            self._trigger_callback(self.on_tick, elapsed)

    @property
    def elapsed_seconds(self) -> int:
        return self._elapsed_seconds

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _publish(self, event_type: EventType, data: Any) -> None:
        if self.event_bus is not None:
            self.event_bus.publish(event_type, data)

    def _trigger_callback(self, callback: Optional[Callable], *args: Any) -> None:
        if callback:
            try:
                callback(*args)
            except Exception as e:
                self.logger.error(f"Error in session callback: {e}")

    def get_status(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "state": self.state.value,
                "source": self._source.value if self._source else None,
                "codec": self._codec.mime_type if self._codec else None,
                "device_class": self.device_class.value,
                "chunk_duration": self.chunk_duration,
                "sequence": self._sequence,
                "chunks_emitted": self._chunks_emitted,
                "discarded_emissions": self._discarded_emissions,
                "elapsed_seconds": self._elapsed_seconds,
                "elapsed": format_elapsed(self._elapsed_seconds),
            }
