"""
Chunk Transport Interface

Abstract interface for delivering a chunk to the remote endpoint.
The UploadQueue depends on this abstraction, not on HTTP or requests
directly, so tests can drive it with MockTransport.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from core.models.chunk_artifact import ChunkArtifact
from upload.constants import FATAL_TRANSFER_STATUSES, TransferStatus


@dataclass
class TransferResult:
    """
    Result of a single transfer attempt.

    Attributes:
        success: True if the remote endpoint acknowledged the chunk (2xx)
        remote_id: Remote file identifier (if successful)
        link: Remote view link (if provided)
        status: Transfer status code
        error_message: Error description (if failed)
        http_status: HTTP status code, when a response was received
        duration: Time taken by the attempt in seconds
    """

    success: bool
    remote_id: Optional[str] = None
    link: Optional[str] = None
    status: TransferStatus = TransferStatus.SUCCESS
    error_message: Optional[str] = None
    http_status: Optional[int] = None
    duration: float = 0.0

    @property
    def is_fatal(self) -> bool:
        """True when retrying this failure cannot help"""
        return not self.success and self.status in FATAL_TRANSFER_STATUSES


class ChunkTransportInterface(ABC):
    """
    Abstract base class for chunk transports.

    Implementations perform ONE atomic attempt per send() call and never
    retry internally: retry policy belongs to the UploadQueue.
    """

    @abstractmethod
    def send(self, artifact: ChunkArtifact) -> TransferResult:
        """
        Deliver one chunk.

        Must not raise for delivery failures; report them in the result.

        Args:
            artifact: Chunk to deliver (payload + name)

        Returns:
            TransferResult describing the attempt
        """

    @abstractmethod
    def test_connection(self) -> bool:
        """
        Check that the remote endpoint is reachable and alive.

        Returns:
            True if the endpoint answered its liveness probe
        """

    @abstractmethod
    def is_configured(self) -> bool:
        """
        Check that required remote configuration is present.

        Returns:
            False if send() would fail with a configuration fault
        """


class TransportError(Exception):
    """
    Exception raised inside transports for delivery errors.

    Converted to a TransferResult before leaving send().
    """

    def __init__(
        self,
        message: str,
        status: TransferStatus = TransferStatus.FAILED,
        http_status: Optional[int] = None,
    ):
        super().__init__(message)
        self.status = status
        self.http_status = http_status
