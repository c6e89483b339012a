"""
Capture Factory

Factory pattern for creating capture backends.
Automatically selects FFmpeg or mock capture based on availability.
"""

import logging
from typing import Dict, Literal

from capture.constants import PREFERRED_CODEC
from capture.implementations.ffmpeg_capture import FFmpegCaptureBackend
from capture.implementations.mock_capture import MockCaptureBackend
from capture.interfaces.capture_interface import CaptureBackendInterface

# Type alias for better type hints
CaptureMode = Literal["auto", "real", "mock"]


class CaptureFactory:
    """
    Factory for creating capture backends.

    Usage:
        # Auto-detect (uses FFmpeg if available, mock otherwise)
        backend = CaptureFactory.create_backend()

        # Force mock mode (useful for testing)
        backend = CaptureFactory.create_backend(mode="mock")

        # Force real capture (raises error if not available)
        backend = CaptureFactory.create_backend(mode="real")
    """

    _logger = logging.getLogger(__name__)

    @classmethod
    def create_backend(
        cls,
        mode: CaptureMode = "auto",
        simulate_timing: bool = True,
    ) -> CaptureBackendInterface:
        """
        Create a capture backend.

        Args:
            mode: "auto" (detect), "real" (force FFmpeg), "mock" (force mock)
            simulate_timing: For mock capture, emit fake segments on a timer

        Returns:
            CaptureBackendInterface implementation

        Raises:
            RuntimeError: If mode="real" but FFmpeg not available
        """
        if mode == "mock":
            cls._logger.info(f"Creating Mock Capture (simulate_timing: {simulate_timing})")
            return MockCaptureBackend(simulate_timing=simulate_timing)

        backend = FFmpegCaptureBackend()

        if mode == "real":
            if not backend.is_available():
                raise RuntimeError("Real capture requested but FFmpeg not available")
            cls._logger.info("Creating FFmpeg Capture (forced)")
            return backend

        # mode == "auto" - try real first, fall back to mock
        if backend.is_available():
            cls._logger.info("Creating FFmpeg Capture (auto-detected)")
            return backend

        cls._logger.warning("FFmpeg not available, using Mock Capture")
        return MockCaptureBackend(simulate_timing=simulate_timing)

    @classmethod
    def is_real_capture_available(cls) -> Dict[str, bool]:
        """
        Report which capture features FFmpeg provides here.

        Returns:
            {'ffmpeg': bool, 'vp9': bool}
        """
        backend = FFmpegCaptureBackend()
        available = backend.is_available()
        return {
            "ffmpeg": available,
            "vp9": available and backend.is_codec_supported(PREFERRED_CODEC),
        }


# Convenience function for quick creation
def create_backend(force_mock: bool = False) -> CaptureBackendInterface:
    """
    Quick backend creation with simple mock override.

    Example:
        backend = create_backend()
        backend = create_backend(force_mock=True)
    """
    mode = "mock" if force_mock else "auto"
    return CaptureFactory.create_backend(mode=mode)
