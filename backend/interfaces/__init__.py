"""
Backend Interfaces Package
"""

from backend.interfaces.storage_interface import (
    RemoteStorageInterface,
    StorageError,
    StoredFile,
)

__all__ = [
    "RemoteStorageInterface",
    "StorageError",
    "StoredFile",
]
