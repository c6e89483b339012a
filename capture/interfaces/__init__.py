"""
Capture Interfaces Package

Exposes abstract interfaces for capture components.
"""

from capture.interfaces.capture_interface import (
    CaptureBackendInterface,
    CaptureDeniedError,
    CaptureError,
    CaptureProcessError,
    CaptureUnsupportedError,
    ChunkedRecorderInterface,
    MediaStreamHandle,
    StreamConstraints,
)

# Public API
__all__ = [
    # Exceptions
    "CaptureDeniedError",
    "CaptureError",
    "CaptureProcessError",
    "CaptureUnsupportedError",
    # Interfaces
    "CaptureBackendInterface",
    "ChunkedRecorderInterface",
    "MediaStreamHandle",
    "StreamConstraints",
]
