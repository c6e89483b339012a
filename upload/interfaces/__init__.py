"""
Upload Interfaces Package

Exposes the chunk transport contract.
"""

from upload.interfaces.transport_interface import (
    ChunkTransportInterface,
    TransferResult,
    TransportError,
)

__all__ = [
    "ChunkTransportInterface",
    "TransferResult",
    "TransportError",
]
