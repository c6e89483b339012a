"""
Capture Utilities and Command Builder Tests

To run:
    pytest tests/capture/utils/test_capture_utils.py -v
"""

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from capture.constants import (
    DEFAULT_CODEC,
    CaptureSource,
    DeviceClass,
    format_elapsed,
    get_input_args,
    get_probe_command,
    get_segment_command,
)
from capture.utils.capture_utils import (
    classify_device,
    format_capture_timestamp,
    generate_chunk_name,
    validate_camera_device,
)

CAPTURED_AT = datetime(2025, 1, 15, 14, 30, 22, 123456, tzinfo=timezone.utc)


@pytest.mark.unit
def test_timestamp_is_filename_safe():
    assert format_capture_timestamp(CAPTURED_AT) == "2025-01-15T14-30-22-123Z"


@pytest.mark.unit
def test_timestamp_converts_to_utc():
    local = CAPTURED_AT.astimezone(timezone(timedelta(hours=2)))

    assert format_capture_timestamp(local) == "2025-01-15T14-30-22-123Z"


@pytest.mark.unit
def test_chunk_name_is_zero_padded():
    assert generate_chunk_name(1, CAPTURED_AT) == "chunk_001_2025-01-15T14-30-22-123Z.webm"
    assert generate_chunk_name(42, CAPTURED_AT).startswith("chunk_042_")
    assert generate_chunk_name(1000, CAPTURED_AT).startswith("chunk_1000_")


@pytest.mark.unit
@pytest.mark.parametrize(
    "hint, expected",
    [
        ("Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X)", DeviceClass.MOBILE),
        ("Mozilla/5.0 (iPad; CPU OS 17_0 like Mac OS X)", DeviceClass.MOBILE),
        ("Mozilla/5.0 (Linux; Android 14) Mobile Safari", DeviceClass.MOBILE),
        ("Mozilla/5.0 (Windows NT 10.0; Win64; x64) Chrome/126.0", DeviceClass.DESKTOP),
    ],
)
def test_classify_device_from_hint(hint, expected):
    assert classify_device(hint) == expected


@pytest.mark.unit
def test_classify_device_from_environment(monkeypatch):
    monkeypatch.setenv("ANDROID_ROOT", "/system")
    assert classify_device() == DeviceClass.MOBILE

    monkeypatch.delenv("ANDROID_ROOT")
    assert classify_device() == DeviceClass.DESKTOP


@pytest.mark.unit
def test_regular_file_is_not_a_camera(tmp_path):
    fake = tmp_path / "video0"
    fake.write_bytes(b"")

    assert validate_camera_device(str(fake)) is False
    assert validate_camera_device(str(tmp_path / "missing")) is False


@pytest.mark.unit
def test_display_input_draws_cursor():
    args = get_input_args(CaptureSource.DISPLAY, ":0.0", width=1280, height=720, fps=15)

    assert args[args.index("-draw_mouse") + 1] == "1"
    assert args[args.index("-video_size") + 1] == "1280x720"
    assert args[-2:] == ["-i", ":0.0"]


@pytest.mark.unit
def test_camera_input_uses_v4l2():
    args = get_input_args(CaptureSource.CAMERA, "/dev/video0")

    assert args[:2] == ["-f", "v4l2"]
    assert "-draw_mouse" not in args


@pytest.mark.unit
def test_audio_probe_is_time_limited():
    command = get_probe_command(["-f", "pulse", "-i", "default"], video=False)

    assert "-frames:v" not in command
    assert command[command.index("-t") + 1] == "0.1"
    assert command[-3:] == ["-f", "null", "-"]


@pytest.mark.unit
def test_segment_command_video_only():
    command = get_segment_command(
        ["-f", "x11grab", "-i", ":0.0"],
        Path("/tmp/session"),
        2.5,
        DEFAULT_CODEC,
    )

    assert "-c:a" not in command
    assert command[command.index("-segment_time") + 1] == "2.5"
    assert command[-1] == "/tmp/session/segment_%05d.webm"


@pytest.mark.unit
@pytest.mark.parametrize(
    "seconds, expected",
    [(0, "00:00"), (59, "00:59"), (630, "10:30"), (3600, "60:00")],
)
def test_format_elapsed(seconds, expected):
    assert format_elapsed(seconds) == expected
