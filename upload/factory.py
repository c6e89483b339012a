"""
Upload Factory

Factory pattern for creating chunk transport implementations.
Follows same pattern as capture/factory.py for consistency.

Automatically configures from environment variables.
"""

import logging
from typing import Literal, Optional

from config.settings import UPLOAD_API_URL, UPLOAD_TIMEOUT
from upload.implementations.http_transport import HttpChunkTransport
from upload.implementations.mock_transport import MockTransport
from upload.interfaces.transport_interface import ChunkTransportInterface

# Type alias
TransportMode = Literal["auto", "http", "mock"]


class TransportFactory:
    """
    Factory for creating chunk transports.

    Reads configuration from environment variables:
    - UPLOAD_API_URL: Backend base URL
    - UPLOAD_TIMEOUT: Per-request timeout in seconds

    Usage:
        # Auto-detect from environment
        transport = TransportFactory.create_transport()

        # Force mock for testing
        transport = TransportFactory.create_transport(mode="mock")
    """

    _logger = logging.getLogger(__name__)

    @classmethod
    def create_transport(
        cls,
        mode: TransportMode = "auto",
        base_url: Optional[str] = None,
        timeout: float = UPLOAD_TIMEOUT,
    ) -> ChunkTransportInterface:
        """
        Create a transport instance.

        Args:
            mode: "auto" (from env), "http" (force real), "mock" (force sim)
            base_url: Override UPLOAD_API_URL
            timeout: Per-request timeout in seconds

        Returns:
            ChunkTransportInterface implementation

        Raises:
            RuntimeError: If mode="http" but no endpoint URL is configured
        """
        url = base_url if base_url is not None else UPLOAD_API_URL

        if mode == "mock":
            cls._logger.info("Creating Mock Transport (forced)")
            return MockTransport()

        if mode == "http":
            if not url:
                raise RuntimeError(
                    "HTTP transport requested but UPLOAD_API_URL is not set",
                )
            cls._logger.info("Creating HTTP Transport (forced)")
            return HttpChunkTransport(url, timeout=timeout)

        # mode == "auto" - use HTTP when an endpoint is configured
        if url:
            cls._logger.info(f"Creating HTTP Transport (auto-detected: {url})")
            return HttpChunkTransport(url, timeout=timeout)

        cls._logger.warning("UPLOAD_API_URL not set, using Mock Transport")
        return MockTransport()


# Convenience function for quick creation
def create_transport(
    force_mock: bool = False,
    base_url: Optional[str] = None,
) -> ChunkTransportInterface:
    """
    Quick transport creation with simple mock override.

    Example:
        transport = create_transport()
        transport = create_transport(force_mock=True)
    """
    mode = "mock" if force_mock else "auto"
    return TransportFactory.create_transport(mode=mode, base_url=base_url)
