"""
Capture Module

Screen/camera capture sliced into fixed-length chunks.

Provides automatic detection and graceful fallback between real FFmpeg
capture and mock implementations for testing.

Public API:
    - CaptureSession: Recording lifecycle, emits ChunkArtifacts
    - CaptureFactory: Factory for creating capture backends
    - create_backend: Quick backend creation with auto-detection
    - CaptureBackendInterface: Capture contract
    - CaptureError: Custom exceptions
    - CaptureState: State enumeration

Usage:
    from capture import CaptureSession, create_backend

    session = CaptureSession(create_backend(), event_bus=bus)
    session.start()
"""

from capture.constants import CaptureSource, CaptureState
from capture.controllers.capture_session import CaptureSession
from capture.factory import CaptureFactory, create_backend
from capture.interfaces.capture_interface import (
    CaptureBackendInterface,
    CaptureDeniedError,
    CaptureError,
    CaptureUnsupportedError,
)
from capture.utils.capture_utils import classify_device, generate_chunk_name

__all__ = [
    "CaptureBackendInterface",
    "CaptureDeniedError",
    "CaptureError",
    "CaptureFactory",
    "CaptureSession",
    "CaptureSource",
    "CaptureState",
    "CaptureUnsupportedError",
    "classify_device",
    "create_backend",
    "generate_chunk_name",
]
