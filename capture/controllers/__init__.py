"""
Capture Controllers Package

High-level controllers that orchestrate chunked capture.
"""

from capture.controllers.capture_session import CaptureSession

# Public API
__all__ = [
    "CaptureSession",
]
