"""
Capture Interface

Abstract interfaces for the capture primitives the CaptureSession drives:
a backend that hands out media streams and chunked recorders.

High-level code (CaptureSession) depends on these abstractions, not on
FFmpeg directly, so tests run against MockCaptureBackend.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional

from capture.constants import CaptureSource, VideoCodec

DataCallback = Callable[[bytes], None]
ErrorCallback = Callable[[str], None]


@dataclass
class StreamConstraints:
    """
    What to acquire.

    Attributes:
        source: Display or camera
        cursor: Draw the cursor (display capture only)
        audio: Request an audio track alongside video
        device: Display name or camera device (None = configured default)
    """

    source: CaptureSource = CaptureSource.DISPLAY
    cursor: bool = True
    audio: bool = True
    device: Optional[str] = None


class MediaStreamHandle(ABC):
    """A live media stream owned by exactly one session"""

    @abstractmethod
    def stop_tracks(self) -> None:
        """
        Release every track of the stream.

        Must be idempotent and never raise.
        """

    @abstractmethod
    def is_active(self) -> bool:
        """True until the stream is released or ends"""

    @abstractmethod
    def on_ended(self, callback: Callable[[], None]) -> None:
        """
        Register a hook called once if the stream ends on its own
        (capture process exits, display closed).

        Not called when the stream is released with stop_tracks().
        """


class ChunkedRecorderInterface(ABC):
    """Encoder that emits a completed segment every timeslice seconds"""

    @property
    @abstractmethod
    def codec(self) -> VideoCodec:
        """Codec the recorder encodes with"""

    @abstractmethod
    def start(
        self,
        timeslice: float,
        on_data: DataCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> None:
        """
        Start recording.

        NON-BLOCKING. on_data is called with each completed segment,
        on_error with a description of a fatal recorder failure.

        Raises:
            CaptureError: If the recorder cannot start
        """

    @abstractmethod
    def stop(self) -> None:
        """
        Stop recording and flush.

        Blocks until the final (partial) segment has been passed to on_data.
        Idempotent.
        """

    @abstractmethod
    def is_recording(self) -> bool:
        """True while segments are being produced"""


class CaptureBackendInterface(ABC):
    """
    Environment capture primitives.

    Any capture implementation (FFmpeg, mock) must implement these methods
    to work with CaptureSession.
    """

    @abstractmethod
    def is_available(self) -> bool:
        """
        Check if the capture primitive exists on this platform.

        Returns:
            False if capture cannot work at all (e.g. FFmpeg not installed)
        """

    @abstractmethod
    def acquire_stream(self, constraints: StreamConstraints) -> MediaStreamHandle:
        """
        Acquire a live stream.

        Raises:
            CaptureDeniedError: If access to the source is refused
            CaptureUnsupportedError: If the platform cannot capture this source
            CaptureError: For other acquisition failures
        """

    @abstractmethod
    def is_codec_supported(self, codec: VideoCodec) -> bool:
        """Check if the encoder for codec is available"""

    @abstractmethod
    def create_recorder(
        self,
        stream: MediaStreamHandle,
        codec: VideoCodec,
    ) -> ChunkedRecorderInterface:
        """Create a chunked recorder bound to stream"""

    @abstractmethod
    def cleanup(self) -> None:
        """
        Release backend resources.

        This should never raise exceptions.
        """


class CaptureError(Exception):
    """
    Exception raised for capture errors.

    Examples:
    - Screen capture refused
    - FFmpeg not installed
    - Capture process crashed
    """


class CaptureDeniedError(CaptureError):
    """Access to the display or camera was refused"""


class CaptureUnsupportedError(CaptureError):
    """This platform cannot capture the requested source"""


class CaptureProcessError(CaptureError):
    """Error in the capture process (FFmpeg crashed, timed out...)"""
