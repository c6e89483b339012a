"""
Capture Constants

Enums, codec preferences and FFmpeg command construction for the capture
system.

Tunable values (chunk duration, display, camera device, resolution) live in
config/settings.py. This file holds only values that are not meant to change
per deployment.
"""

import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional

from config.settings import (
    AUDIO_INPUT_DEVICE,
    AUDIO_INPUT_FORMAT,
    VIDEO_FPS,
    VIDEO_HEIGHT,
    VIDEO_WIDTH,
)

# =============================================================================
# SESSION STATE
# =============================================================================


class CaptureState(Enum):
    """
    States a capture session can be in.

    Lifecycle: IDLE -> RECORDING -> STOPPING -> IDLE
    STOPPING only lasts while the recorder flushes its final segment.
    """

    IDLE = "idle"
    RECORDING = "recording"
    STOPPING = "stopping"


class CaptureSource(Enum):
    """What the session records"""

    DISPLAY = "display"  # Screen capture, cursor drawn
    CAMERA = "camera"  # Camera device


class DeviceClass(Enum):
    """Coarse device classification driving the source selection policy"""

    DESKTOP = "desktop"
    MOBILE = "mobile"


# User-agent / platform hints that identify a mobile device
MOBILE_HINT_PATTERN = re.compile(r"Mobi|Android|iPhone|iPad", re.IGNORECASE)


# =============================================================================
# CODECS
# =============================================================================


@dataclass(frozen=True)
class VideoCodec:
    """An encoder choice and the MIME type of the segments it produces"""

    name: str
    encoder: str  # FFmpeg video encoder
    audio_encoder: str  # FFmpeg audio encoder matching the container
    mime_type: str
    extension: str = "webm"


# Preferred: VP9 in WebM
PREFERRED_CODEC = VideoCodec(
    name="vp9",
    encoder="libvpx-vp9",
    audio_encoder="libopus",
    mime_type="video/webm; codecs=vp9",
)

# Fallback when VP9 is not compiled in
DEFAULT_CODEC = VideoCodec(
    name="default",
    encoder="libvpx",
    audio_encoder="libvorbis",
    mime_type="video/webm",
)

# Realtime encoding settings for libvpx
VIDEO_BITRATE = "2M"
VPX_DEADLINE = "realtime"
VPX_CPU_USED = "8"


# =============================================================================
# FFMPEG CONFIGURATION
# =============================================================================

# Only show errors, keeps stderr small enough to read after exit
FFMPEG_LOG_LEVEL = "error"

# Input queue size; the default of 8 drops frames on busy machines
THREAD_QUEUE_SIZE = 512

# Input formats
DISPLAY_INPUT_FORMAT = "x11grab"
CAMERA_INPUT_FORMAT = "v4l2"

# Segment files written by the segment muxer, and the list of completed ones
SEGMENT_FILE_PATTERN = "segment_%05d.{extension}"
SEGMENT_LIST_NAME = "segments.txt"

# How often the recorder looks for newly completed segments (seconds)
SEGMENT_POLL_INTERVAL = 0.5

# Time allowed for FFmpeg to finalize the last segment on stop (seconds)
STOP_TIMEOUT = 10.0

# stderr fragments used to classify acquisition failures
DENIED_MARKERS = (
    "Permission denied",
    "Cannot open display",
    "Authorization required",
    "No such file or directory",
    "Device or resource busy",
)
UNSUPPORTED_MARKERS = (
    "Unknown input format",
    "Unknown encoder",
    "not compiled",
)


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def get_input_args(
    source: CaptureSource,
    device: str,
    draw_mouse: bool = True,
    width: int = VIDEO_WIDTH,
    height: int = VIDEO_HEIGHT,
    fps: int = VIDEO_FPS,
) -> List[str]:
    """
    FFmpeg input options for a display or camera source.

    Example:
        get_input_args(CaptureSource.DISPLAY, ":0.0")
        # ['-f', 'x11grab', '-draw_mouse', '1', ..., '-i', ':0.0']
    """
    if source == CaptureSource.DISPLAY:
        return [
            "-f",
            DISPLAY_INPUT_FORMAT,
            "-draw_mouse",
            "1" if draw_mouse else "0",
            "-video_size",
            f"{width}x{height}",
            "-framerate",
            str(fps),
            "-thread_queue_size",
            str(THREAD_QUEUE_SIZE),
            "-i",
            device,
        ]

    return [
        "-f",
        CAMERA_INPUT_FORMAT,
        "-video_size",
        f"{width}x{height}",
        "-framerate",
        str(fps),
        "-thread_queue_size",
        str(THREAD_QUEUE_SIZE),
        "-i",
        device,
    ]


def get_audio_input_args(device: str = AUDIO_INPUT_DEVICE) -> List[str]:
    """FFmpeg input options for PulseAudio capture"""
    return [
        "-f",
        AUDIO_INPUT_FORMAT,
        "-thread_queue_size",
        str(THREAD_QUEUE_SIZE),
        "-i",
        device,
    ]


def get_probe_command(input_args: List[str], video: bool = True) -> List[str]:
    """
    Command that grabs a single frame (or a tenth of a second of audio)
    and discards it.

    Used to check that a source can be opened before recording starts.
    """
    limit = ["-frames:v", "1"] if video else ["-t", "0.1"]
    return [
        "ffmpeg",
        "-hide_banner",
        "-loglevel",
        FFMPEG_LOG_LEVEL,
        *input_args,
        *limit,
        "-f",
        "null",
        "-",
    ]


def get_segment_command(
    input_args: List[str],
    output_dir: Path,
    segment_seconds: float,
    codec: VideoCodec,
    audio_args: Optional[List[str]] = None,
) -> List[str]:
    """
    FFmpeg command recording fixed-length WebM segments.

    Each completed segment is appended to SEGMENT_LIST_NAME in output_dir,
    which is how the recorder learns a chunk is ready. On SIGTERM FFmpeg
    closes the current (partial) segment and lists it too.

    Args:
        input_args: Video input options (see get_input_args)
        output_dir: Directory receiving segments and the segment list
        segment_seconds: Segment length
        codec: Encoder choice
        audio_args: Audio input options, or None for video only

    Returns:
        List of command arguments for subprocess
    """
    command = ["ffmpeg", "-hide_banner", *input_args]

    if audio_args:
        command.extend(audio_args)

    command.extend(
        [
            "-c:v",
            codec.encoder,
            "-b:v",
            VIDEO_BITRATE,
            "-deadline",
            VPX_DEADLINE,
            "-cpu-used",
            VPX_CPU_USED,
        ],
    )

    if audio_args:
        command.extend(["-c:a", codec.audio_encoder])

    pattern = SEGMENT_FILE_PATTERN.format(extension=codec.extension)
    command.extend(
        [
            "-f",
            "segment",
            "-segment_time",
            f"{segment_seconds:g}",
            "-segment_format",
            "webm",
            "-reset_timestamps",
            "1",
            "-segment_list",
            str(output_dir / SEGMENT_LIST_NAME),
            "-segment_list_type",
            "flat",
            "-loglevel",
            FFMPEG_LOG_LEVEL,
            "-y",
            str(output_dir / pattern),
        ],
    )

    return command


def format_elapsed(seconds: float) -> str:
    """
    Format elapsed seconds as MM:SS.

    Example:
        format_elapsed(630) -> "10:30"
    """
    minutes = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{minutes:02d}:{secs:02d}"
