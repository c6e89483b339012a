"""
FFmpeg Capture Tests

Tests for the FFmpeg backend and segment recorder with subprocess faked out.
No FFmpeg, display or camera required.

To run:
    pytest tests/capture/implementations/test_ffmpeg_capture.py -v
"""

import io
import subprocess
import threading
from pathlib import Path

import pytest

from capture.constants import (
    DEFAULT_CODEC,
    PREFERRED_CODEC,
    SEGMENT_LIST_NAME,
    CaptureSource,
    CaptureState,
)
from capture.controllers.capture_session import CaptureSession
from capture.implementations import ffmpeg_capture
from capture.implementations.ffmpeg_capture import (
    FFmpegCaptureBackend,
    FFmpegSegmentRecorder,
    FFmpegStream,
)
from capture.implementations.mock_capture import MockStream
from capture.interfaces.capture_interface import (
    CaptureDeniedError,
    CaptureError,
    CaptureProcessError,
    CaptureUnsupportedError,
    StreamConstraints,
)

# =============================================================================
# FAKES
# =============================================================================


class FakeRun:
    """Stand-in for subprocess.run returning canned results per call"""

    def __init__(self, *results):
        self.results = list(results)
        self.commands = []

    def __call__(self, command, **kwargs):
        self.commands.append(command)
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(result, BaseException):
            raise result
        return result


def completed(returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess([], returncode, stdout=stdout, stderr=stderr)


class FakeSegmentProcess:
    """
    Pretends to be FFmpeg running the segment muxer.

    write_segment() finalizes a segment the way the muxer does; terminate()
    flushes the partial one.
    """

    def __init__(self, command, final_segment=b"partial", **kwargs):
        self.command = command
        self.pid = 4242
        self.returncode = None
        self.stderr = io.BytesIO(b"")
        self.final_segment = final_segment
        self.terminated = False
        self._index = 0
        self.list_file = Path(command[command.index("-segment_list") + 1])
        self.output_dir = self.list_file.parent

    def write_segment(self, data):
        name = f"segment_{self._index:05d}.webm"
        self._index += 1
        (self.output_dir / name).write_bytes(data)
        with open(self.list_file, "a", encoding="utf-8") as handle:
            handle.write(f"{name}\n")

    def poll(self):
        return self.returncode

    def terminate(self):
        self.terminated = True
        if self.returncode is None:
            if self.final_segment:
                self.write_segment(self.final_segment)
            self.returncode = 255

    def wait(self, timeout=None):
        return self.returncode

    def kill(self):
        self.returncode = -9


@pytest.fixture
def backend(tmp_path):
    return FFmpegCaptureBackend(
        display=":99.0",
        camera_device=str(tmp_path / "video0"),
        temp_root=tmp_path / "segments",
    )


@pytest.fixture
def fake_popen(monkeypatch):
    processes = []

    def _popen(command, **kwargs):
        process = FakeSegmentProcess(command)
        processes.append(process)
        return process

    monkeypatch.setattr(ffmpeg_capture.subprocess, "Popen", _popen)
    return processes


# =============================================================================
# BACKEND
# =============================================================================


@pytest.mark.unit
def test_is_available_follows_path(backend, monkeypatch):
    monkeypatch.setattr(ffmpeg_capture.shutil, "which", lambda name: None)
    assert backend.is_available() is False

    monkeypatch.setattr(ffmpeg_capture.shutil, "which", lambda name: "/usr/bin/ffmpeg")
    assert backend.is_available() is True


@pytest.mark.unit
def test_acquire_display_probes_one_frame(backend, monkeypatch):
    fake_run = FakeRun(completed())
    monkeypatch.setattr(ffmpeg_capture.subprocess, "run", fake_run)

    stream = backend.acquire_stream(StreamConstraints(source=CaptureSource.DISPLAY))

    probe = fake_run.commands[0]
    assert "x11grab" in probe
    assert ":99.0" in probe
    assert probe[probe.index("-frames:v") + 1] == "1"
    assert stream.is_active() is True
    assert stream.has_audio is True


@pytest.mark.unit
def test_audio_probe_failure_records_video_only(backend, monkeypatch):
    fake_run = FakeRun(
        completed(),
        completed(returncode=1, stderr="Connection refused"),
    )
    monkeypatch.setattr(ffmpeg_capture.subprocess, "run", fake_run)

    stream = backend.acquire_stream(StreamConstraints(source=CaptureSource.DISPLAY))

    assert stream.has_audio is False
    assert len(fake_run.commands) == 2


@pytest.mark.unit
def test_audio_not_probed_when_disabled(backend, monkeypatch):
    fake_run = FakeRun(completed())
    monkeypatch.setattr(ffmpeg_capture.subprocess, "run", fake_run)

    stream = backend.acquire_stream(
        StreamConstraints(source=CaptureSource.DISPLAY, audio=False),
    )

    assert stream.has_audio is False
    assert len(fake_run.commands) == 1


@pytest.mark.unit
@pytest.mark.parametrize(
    "stderr, error",
    [
        ("Cannot open display :99.0, error 1.", CaptureDeniedError),
        ("Unknown input format: 'x11grab'", CaptureUnsupportedError),
        ("Something odd happened", CaptureProcessError),
    ],
)
def test_probe_failures_are_classified(backend, monkeypatch, stderr, error):
    monkeypatch.setattr(
        ffmpeg_capture.subprocess,
        "run",
        FakeRun(completed(returncode=1, stderr=stderr)),
    )

    with pytest.raises(error):
        backend.acquire_stream(StreamConstraints(source=CaptureSource.DISPLAY))


@pytest.mark.unit
def test_missing_ffmpeg_is_unsupported(backend, monkeypatch):
    monkeypatch.setattr(ffmpeg_capture.subprocess, "run", FakeRun(FileNotFoundError()))

    with pytest.raises(CaptureUnsupportedError):
        backend.acquire_stream(StreamConstraints(source=CaptureSource.DISPLAY))


@pytest.mark.unit
def test_probe_timeout_is_process_error(backend, monkeypatch):
    monkeypatch.setattr(
        ffmpeg_capture.subprocess,
        "run",
        FakeRun(subprocess.TimeoutExpired(cmd="ffmpeg", timeout=10)),
    )

    with pytest.raises(CaptureProcessError):
        backend.acquire_stream(StreamConstraints(source=CaptureSource.DISPLAY))


@pytest.mark.unit
def test_missing_camera_is_unsupported(backend):
    with pytest.raises(CaptureUnsupportedError):
        backend.acquire_stream(StreamConstraints(source=CaptureSource.CAMERA))


@pytest.mark.unit
def test_codec_support_is_detected_and_cached(backend, monkeypatch):
    encoders = (
        " V....D libvpx               libvpx VP8 (codec vp8)\n"
        " A....D libvorbis            libvorbis (codec vorbis)\n"
    )
    fake_run = FakeRun(completed(stdout=encoders))
    monkeypatch.setattr(ffmpeg_capture.subprocess, "run", fake_run)

    assert backend.is_codec_supported(PREFERRED_CODEC) is False
    assert backend.is_codec_supported(DEFAULT_CODEC) is True
    assert backend.is_codec_supported(PREFERRED_CODEC) is False
    assert len(fake_run.commands) == 2


@pytest.mark.unit
def test_create_recorder_rejects_foreign_stream(backend):
    with pytest.raises(CaptureError):
        backend.create_recorder(MockStream(StreamConstraints()), DEFAULT_CODEC)


# =============================================================================
# SEGMENT RECORDER
# =============================================================================


def make_stream(audio=False):
    return FFmpegStream(
        StreamConstraints(source=CaptureSource.DISPLAY),
        input_args=["-f", "x11grab", "-i", ":99.0"],
        audio_args=["-f", "pulse", "-i", "default"] if audio else None,
    )


@pytest.mark.unit
def test_recorder_emits_segments_in_order(tmp_path, fake_popen):
    received = []
    arrived = threading.Event()

    def on_data(data):
        received.append(data)
        arrived.set()

    recorder = FFmpegSegmentRecorder(
        make_stream(),
        DEFAULT_CODEC,
        temp_root=tmp_path,
        poll_interval=0.01,
    )
    recorder.start(5, on_data)
    process = fake_popen[0]

    process.write_segment(b"first")
    assert arrived.wait(timeout=2.0) is True

    recorder.stop()

    assert received == [b"first", b"partial"]
    assert process.terminated is True
    assert not process.output_dir.exists()


@pytest.mark.unit
def test_segment_command_uses_codec_and_timeslice(tmp_path, fake_popen):
    recorder = FFmpegSegmentRecorder(
        make_stream(audio=True),
        PREFERRED_CODEC,
        temp_root=tmp_path,
        poll_interval=0.01,
    )
    recorder.start(300, lambda data: None)
    command = fake_popen[0].command
    recorder.stop()

    assert command[command.index("-c:v") + 1] == "libvpx-vp9"
    assert command[command.index("-c:a") + 1] == "libopus"
    assert command[command.index("-segment_time") + 1] == "300"
    assert command[command.index("-segment_list") + 1].endswith(SEGMENT_LIST_NAME)


@pytest.mark.unit
def test_unexpected_exit_reports_error_and_ends_stream(tmp_path, fake_popen):
    stream = make_stream()
    errors = []
    ended = threading.Event()
    stream.on_ended(ended.set)

    recorder = FFmpegSegmentRecorder(
        stream,
        DEFAULT_CODEC,
        temp_root=tmp_path,
        poll_interval=0.01,
    )
    recorder.start(5, lambda data: None, on_error=errors.append)

    process = fake_popen[0]
    process.stderr = io.BytesIO(b"x11grab: display closed")
    process.returncode = 1

    assert ended.wait(timeout=2.0) is True
    assert "code 1" in errors[0]
    assert "display closed" in errors[0]
    recorder.stop()


@pytest.mark.unit
def test_stream_release_terminates_process(tmp_path, fake_popen):
    stream = make_stream()
    recorder = FFmpegSegmentRecorder(stream, DEFAULT_CODEC, temp_root=tmp_path)
    recorder.start(5, lambda data: None)

    stream.stop_tracks()

    assert fake_popen[0].terminated is True
    assert stream.is_active() is False
    recorder.stop()


@pytest.mark.unit
def test_stream_ended_after_release_is_ignored(tmp_path, fake_popen):
    stream = make_stream()
    ended = []
    stream.on_ended(lambda: ended.append(True))
    recorder = FFmpegSegmentRecorder(stream, DEFAULT_CODEC, temp_root=tmp_path)
    recorder.start(5, lambda data: None)

    stream.stop_tracks()
    stream.notify_ended()

    assert ended == []
    assert stream.is_active() is False
    recorder.stop()


@pytest.mark.unit
def test_unwritable_segment_dir_is_process_error(tmp_path, fake_popen):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("file in the way")
    recorder = FFmpegSegmentRecorder(
        make_stream(),
        DEFAULT_CODEC,
        temp_root=blocker / "segments",
    )

    with pytest.raises(CaptureProcessError):
        recorder.start(5, lambda data: None)

    assert fake_popen == []


@pytest.mark.unit
def test_session_rolls_back_when_segment_dir_fails(tmp_path, monkeypatch, fake_popen):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("file in the way")
    backend = FFmpegCaptureBackend(temp_root=blocker / "segments")
    stream = make_stream()
    monkeypatch.setattr(backend, "is_available", lambda: True)
    monkeypatch.setattr(backend, "acquire_stream", lambda constraints: stream)
    monkeypatch.setattr(backend, "is_codec_supported", lambda codec: True)
    session = CaptureSession(backend, tick_interval=60.0)

    with pytest.raises(CaptureProcessError):
        session.start()

    assert session.state == CaptureState.IDLE
    assert stream.is_active() is False


@pytest.mark.unit
def test_backend_forgets_stopped_recorders(backend, fake_popen):
    first = backend.create_recorder(make_stream(), DEFAULT_CODEC)
    first.start(5, lambda data: None)
    first.stop()

    second = backend.create_recorder(make_stream(), DEFAULT_CODEC)

    assert backend._recorders == [second]
    backend.cleanup()
