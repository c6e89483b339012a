"""
Capture Utilities

Shared helper functions for capture operations.
"""

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from capture.constants import MOBILE_HINT_PATTERN, DeviceClass


def format_capture_timestamp(captured_at: datetime) -> str:
    """
    ISO-8601 UTC timestamp with millisecond precision, safe for file names.

    ':' and '.' are replaced by '-'.

    Example:
        format_capture_timestamp(datetime(2025, 1, 15, 14, 30, 22, 123000, tzinfo=timezone.utc))
        # "2025-01-15T14-30-22-123Z"
    """
    if captured_at.tzinfo is None:
        captured_at = captured_at.replace(tzinfo=timezone.utc)
    utc = captured_at.astimezone(timezone.utc)

    iso = utc.strftime("%Y-%m-%dT%H:%M:%S") + f".{utc.microsecond // 1000:03d}Z"
    return iso.replace(":", "-").replace(".", "-")


def generate_chunk_name(
    sequence: int,
    captured_at: Optional[datetime] = None,
    extension: str = "webm",
) -> str:
    """
    Remote name for a chunk.

    Args:
        sequence: 1-based chunk number within the session
        captured_at: Capture time (default: now, UTC)
        extension: File extension

    Returns:
        e.g. "chunk_001_2025-01-15T14-30-22-123Z.webm"
    """
    if captured_at is None:
        captured_at = datetime.now(timezone.utc)
    return f"chunk_{sequence:03d}_{format_capture_timestamp(captured_at)}.{extension}"


def classify_device(hint: Optional[str] = None) -> DeviceClass:
    """
    Classify the device as mobile or desktop.

    Args:
        hint: User-agent or platform string. Without one, the host is
            inspected (Android sets ANDROID_ROOT).

    Example:
        classify_device("Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X)")
        # DeviceClass.MOBILE
    """
    if hint:
        if MOBILE_HINT_PATTERN.search(hint):
            return DeviceClass.MOBILE
        return DeviceClass.DESKTOP

    if os.environ.get("ANDROID_ROOT"):
        return DeviceClass.MOBILE
    return DeviceClass.DESKTOP


def validate_camera_device(device_path: str) -> bool:
    """
    Check if camera device exists and is a character device.

    Example:
        if validate_camera_device("/dev/video0"):
            print("Camera found!")
    """
    device = Path(device_path)
    return device.exists() and device.is_char_device()
