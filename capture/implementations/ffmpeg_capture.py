"""
FFmpeg Capture Implementation

Real screen/camera capture using FFmpeg subprocesses.

- Stream acquisition is a probe run that grabs one frame, so permission and
  platform errors surface before recording starts
- Recording uses the segment muxer; a watcher thread follows the segment
  list and hands each completed segment to the session
"""

import logging
import re
import shutil
import subprocess
import threading
from pathlib import Path
from typing import Callable, Dict, List, Optional
from uuid import uuid4

from capture.constants import (
    DENIED_MARKERS,
    SEGMENT_LIST_NAME,
    SEGMENT_POLL_INTERVAL,
    STOP_TIMEOUT,
    UNSUPPORTED_MARKERS,
    CaptureSource,
    VideoCodec,
    get_audio_input_args,
    get_input_args,
    get_probe_command,
    get_segment_command,
)
from capture.interfaces.capture_interface import (
    CaptureBackendInterface,
    CaptureDeniedError,
    CaptureError,
    CaptureProcessError,
    CaptureUnsupportedError,
    ChunkedRecorderInterface,
    DataCallback,
    ErrorCallback,
    MediaStreamHandle,
    StreamConstraints,
)
from capture.utils.capture_utils import validate_camera_device
from config.settings import (
    CAPTURE_DISPLAY,
    CAPTURE_PROBE_TIMEOUT,
    DEFAULT_CAMERA_DEVICE,
    SEGMENT_TEMP_DIR,
)


class FFmpegStream(MediaStreamHandle):
    """
    A display or camera source that FFmpeg has proven it can open.

    The recorder attaches its process here so releasing the stream also
    terminates capture.
    """

    def __init__(
        self,
        constraints: StreamConstraints,
        input_args: List[str],
        audio_args: Optional[List[str]] = None,
    ):
        self.logger = logging.getLogger(__name__)
        self.constraints = constraints
        self.input_args = input_args
        self.audio_args = audio_args
        self._process: Optional[subprocess.Popen] = None
        self._active = True
        self._ended_callbacks: List[Callable[[], None]] = []
        self._lock = threading.Lock()

    @property
    def has_audio(self) -> bool:
        return bool(self.audio_args)

    def attach_process(self, process: subprocess.Popen) -> None:
        self._process = process

    def stop_tracks(self) -> None:
        with self._lock:
            if not self._active:
                return
            self._active = False
            process = self._process
            self._process = None

        if process is not None and process.poll() is None:
            self.logger.info("Releasing capture stream")
            process.terminate()
            try:
                process.wait(timeout=STOP_TIMEOUT)
            except subprocess.TimeoutExpired:
                self.logger.warning("FFmpeg didn't stop gracefully, force killing")
                process.kill()
                process.wait()

    def is_active(self) -> bool:
        return self._active

    def on_ended(self, callback: Callable[[], None]) -> None:
        self._ended_callbacks.append(callback)

    def notify_ended(self) -> None:
        """Called by the recorder when capture stopped on its own"""
        with self._lock:
            if not self._active:
                return
            self._active = False
            callbacks = list(self._ended_callbacks)

        for callback in callbacks:
            try:
                callback()
            except Exception as e:
                self.logger.error(f"Error in stream ended callback: {e}")


class FFmpegSegmentRecorder(ChunkedRecorderInterface):
    """
    Chunked recorder built on the FFmpeg segment muxer.

    Usage:
        recorder = FFmpegSegmentRecorder(stream, PREFERRED_CODEC)
        recorder.start(300, on_data=handle_chunk)
        ...
        recorder.stop()  # final partial segment is emitted before returning
    """

    def __init__(
        self,
        stream: FFmpegStream,
        codec: VideoCodec,
        temp_root: Path = SEGMENT_TEMP_DIR,
        poll_interval: float = SEGMENT_POLL_INTERVAL,
    ):
        self.logger = logging.getLogger(__name__)
        self.stream = stream
        self._codec = codec
        self.temp_root = Path(temp_root)
        self.poll_interval = poll_interval

        self._process: Optional[subprocess.Popen] = None
        self._output_dir: Optional[Path] = None
        self._watcher_thread: Optional[threading.Thread] = None
        self._on_data: Optional[DataCallback] = None
        self._on_error: Optional[ErrorCallback] = None
        self._stopping = threading.Event()
        self._listed_count = 0
        self._emitted: set = set()

    @property
    def codec(self) -> VideoCodec:
        return self._codec

    def start(
        self,
        timeslice: float,
        on_data: DataCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> None:
        if self.is_recording():
            raise CaptureError("Recorder already running")

        self._on_data = on_data
        self._on_error = on_error
        self._stopping.clear()
        self._listed_count = 0
        self._emitted = set()

        self._output_dir = self.temp_root / f"session_{uuid4().hex[:8]}"
        try:
            self._output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CaptureProcessError(
                f"Cannot create segment directory {self._output_dir}: {e}",
            ) from e

        command = get_segment_command(
            input_args=self.stream.input_args,
            output_dir=self._output_dir,
            segment_seconds=timeslice,
            codec=self._codec,
            audio_args=self.stream.audio_args,
        )
        self.logger.info(
            f"Starting segmented capture ({self._codec.encoder}, "
            f"{timeslice:g}s segments) in {self._output_dir}",
        )
        self.logger.debug(f"FFmpeg command: {' '.join(command)}")

        try:
            self._process = subprocess.Popen(
                command,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                stdin=subprocess.DEVNULL,
            )
        except FileNotFoundError as e:
            raise CaptureUnsupportedError(
                "FFmpeg not found. Install with: sudo apt-get install ffmpeg",
            ) from e
        except OSError as e:
            raise CaptureProcessError(f"Failed to launch FFmpeg: {e}") from e

        self.stream.attach_process(self._process)

        self._watcher_thread = threading.Thread(
            target=self._watch_segments,
            daemon=True,
            name="FFmpegRecorder-Watcher",
        )
        self._watcher_thread.start()

        self.logger.info(f"Capture started (PID: {self._process.pid})")

    def _watch_segments(self) -> None:
        process = self._process
        assert process is not None

        while process.poll() is None:
            self._emit_completed_segments()
            self._stopping.wait(self.poll_interval)

        # Process gone: hand over whatever it managed to finalize
        self._emit_completed_segments()
        self._emit_leftover_segments()

        if self._stopping.is_set():
            return

        # Exited without being asked to
        stderr = ""
        if process.stderr is not None:
            stderr = process.stderr.read().decode("utf-8", errors="ignore").strip()

        if process.returncode != 0:
            message = f"FFmpeg exited with code {process.returncode}: {stderr}"
            self.logger.error(message)
            if self._on_error:
                try:
                    self._on_error(message)
                except Exception as e:
                    self.logger.error(f"Error in recorder error callback: {e}")
        else:
            self.logger.warning("Capture source ended")

        self.stream.notify_ended()

    def _read_segment_list(self) -> List[str]:
        assert self._output_dir is not None
        list_file = self._output_dir / SEGMENT_LIST_NAME
        if not list_file.exists():
            return []
        content = list_file.read_text(encoding="utf-8", errors="ignore")
        # Only newline-terminated entries are complete
        return [line.strip() for line in content.split("\n")[:-1] if line.strip()]

    def _emit_completed_segments(self) -> None:
        entries = self._read_segment_list()
        for entry in entries[self._listed_count:]:
            self._listed_count += 1
            self._emit_segment(self._output_dir / Path(entry).name)

    def _emit_leftover_segments(self) -> None:
        """Emit segments on disk that never made it into the list"""
        assert self._output_dir is not None
        pattern = f"segment_*.{self._codec.extension}"
        for path in sorted(self._output_dir.glob(pattern)):
            self._emit_segment(path)

    def _emit_segment(self, path: Path) -> None:
        if path.name in self._emitted:
            return
        self._emitted.add(path.name)

        try:
            data = path.read_bytes()
            path.unlink()
        except OSError as e:
            self.logger.error(f"Could not read segment {path}: {e}")
            return

        self.logger.debug(f"Segment complete: {path.name} ({len(data)} bytes)")
        if self._on_data:
            try:
                self._on_data(data)
            except Exception as e:
                self.logger.error(f"Error in segment callback: {e}", exc_info=True)

    def stop(self) -> None:
        """
        Stop FFmpeg gracefully.

        SIGTERM makes FFmpeg close the current segment and list it; the
        watcher then emits it before this returns.
        """
        process = self._process
        if process is None:
            return

        self._stopping.set()

        if process.poll() is None:
            self.logger.info("Stopping capture...")
            process.terminate()
            try:
                process.wait(timeout=STOP_TIMEOUT)
            except subprocess.TimeoutExpired:
                self.logger.warning("FFmpeg didn't stop gracefully, force killing")
                process.kill()
                process.wait()

        # The watcher may be the caller (stream ended -> session stop)
        watcher = self._watcher_thread
        if watcher and watcher is not threading.current_thread():
            watcher.join(timeout=STOP_TIMEOUT)

        if self._output_dir is not None:
            shutil.rmtree(self._output_dir, ignore_errors=True)

        self._process = None
        self._watcher_thread = None
        self.logger.info("Capture stopped")

    def is_recording(self) -> bool:
        return self._process is not None and self._process.poll() is None


class FFmpegCaptureBackend(CaptureBackendInterface):
    """
    Capture backend using FFmpeg.

    Usage:
        backend = FFmpegCaptureBackend()
        stream = backend.acquire_stream(StreamConstraints())
        recorder = backend.create_recorder(stream, PREFERRED_CODEC)
    """

    def __init__(
        self,
        display: str = CAPTURE_DISPLAY,
        camera_device: str = DEFAULT_CAMERA_DEVICE,
        probe_timeout: float = CAPTURE_PROBE_TIMEOUT,
        temp_root: Path = SEGMENT_TEMP_DIR,
    ):
        self.logger = logging.getLogger(__name__)
        self.display = display
        self.camera_device = camera_device
        self.probe_timeout = probe_timeout
        self.temp_root = Path(temp_root)
        self._encoder_cache: Dict[str, bool] = {}
        self._recorders: List[FFmpegSegmentRecorder] = []

        self.logger.info(
            f"FFmpeg Capture initialized "
            f"(display: {display}, camera: {camera_device})",
        )

    def is_available(self) -> bool:
        if not shutil.which("ffmpeg"):
            self.logger.warning("FFmpeg not found in PATH")
            return False
        return True

    def acquire_stream(self, constraints: StreamConstraints) -> FFmpegStream:
        if constraints.source == CaptureSource.DISPLAY:
            device = constraints.device or self.display
        else:
            device = constraints.device or self.camera_device
            if not validate_camera_device(device):
                raise CaptureUnsupportedError(f"Camera device not found: {device}")

        input_args = get_input_args(
            constraints.source,
            device,
            draw_mouse=constraints.cursor,
        )

        self.logger.info(f"Acquiring {constraints.source.value} stream ({device})")
        self._probe(input_args, what=f"{constraints.source.value} {device}")

        audio_args = None
        if constraints.audio:
            candidate = get_audio_input_args()
            try:
                self._probe(candidate, what="audio input", video=False)
                audio_args = candidate
            except CaptureError as e:
                # Video without audio is still a usable recording
                self.logger.warning(f"Audio unavailable, recording video only: {e}")

        return FFmpegStream(constraints, input_args, audio_args)

    def _probe(self, input_args: List[str], what: str, video: bool = True) -> None:
        """Open a source briefly; map FFmpeg failures onto capture errors"""
        command = get_probe_command(input_args, video=video)

        try:
            result = subprocess.run(
                command,
                check=False,
                capture_output=True,
                text=True,
                timeout=self.probe_timeout,
            )
        except FileNotFoundError as e:
            raise CaptureUnsupportedError(
                "FFmpeg not found. Install with: sudo apt-get install ffmpeg",
            ) from e
        except subprocess.TimeoutExpired as e:
            raise CaptureProcessError(f"Timed out opening {what}") from e

        if result.returncode == 0:
            return

        stderr = result.stderr.strip()
        if any(marker in stderr for marker in UNSUPPORTED_MARKERS):
            raise CaptureUnsupportedError(f"Cannot capture {what}: {stderr}")
        if any(marker in stderr for marker in DENIED_MARKERS):
            raise CaptureDeniedError(f"Access to {what} refused: {stderr}")
        raise CaptureProcessError(f"Failed to open {what}: {stderr}")

    def is_codec_supported(self, codec: VideoCodec) -> bool:
        if codec.encoder not in self._encoder_cache:
            self._encoder_cache[codec.encoder] = self._has_encoder(codec.encoder)
        return self._encoder_cache[codec.encoder]

    def _has_encoder(self, encoder: str) -> bool:
        try:
            result = subprocess.run(
                ["ffmpeg", "-hide_banner", "-encoders"],
                check=False,
                capture_output=True,
                text=True,
                timeout=self.probe_timeout,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            self.logger.warning(f"Could not list FFmpeg encoders: {e}")
            return False

        return re.search(rf"\s{re.escape(encoder)}\s", result.stdout) is not None

    def create_recorder(
        self,
        stream: MediaStreamHandle,
        codec: VideoCodec,
    ) -> FFmpegSegmentRecorder:
        if not isinstance(stream, FFmpegStream):
            raise CaptureError("FFmpeg recorder needs a stream from FFmpegCaptureBackend")

        # Forget recorders from earlier sessions that have already stopped
        self._recorders = [r for r in self._recorders if r.is_recording()]

        recorder = FFmpegSegmentRecorder(stream, codec, temp_root=self.temp_root)
        self._recorders.append(recorder)
        return recorder

    def cleanup(self) -> None:
        self.logger.info("Cleaning up FFmpeg Capture")
        for recorder in self._recorders:
            try:
                recorder.stop()
            except Exception as e:
                self.logger.error(f"Error stopping recorder: {e}")
        self._recorders.clear()
