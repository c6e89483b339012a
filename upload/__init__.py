"""
Upload Module

Serial chunk delivery to the backend relay with retry/backoff.

Public API:
    - UploadQueue: FIFO queue with a single upload worker
    - TransferResult: Result of one transfer attempt
    - TransferStatus: Status codes
    - create_transport: Factory function

Usage:
    from upload import UploadQueue, create_transport

    upload_queue = UploadQueue(create_transport(), event_bus=bus)
"""

from upload.constants import DrainOutcome, TransferStatus
from upload.controllers.upload_queue import UploadQueue
from upload.factory import TransportFactory, create_transport
from upload.interfaces.transport_interface import (
    ChunkTransportInterface,
    TransferResult,
    TransportError,
)

# Public API
__all__ = [
    "ChunkTransportInterface",
    "DrainOutcome",
    "TransferResult",
    "TransferStatus",
    "TransportError",
    "TransportFactory",
    "UploadQueue",
    "create_transport",
]
