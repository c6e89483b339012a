"""
Remote Storage Interface

Abstract interface for the cloud storage the relay writes chunks to.
The Flask app depends on this abstraction, so tests run against
MockDriveStorage instead of the Drive API.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import BinaryIO, Optional


@dataclass
class StoredFile:
    """
    A file created in remote storage.

    Attributes:
        file_id: Remote identifier
        name: Stored file name
        link: Browser link to the file (if known)
    """

    file_id: str
    name: str
    link: Optional[str] = None


class RemoteStorageInterface(ABC):
    """Abstract base class for remote storage backends"""

    @abstractmethod
    def create_file(
        self,
        name: str,
        stream: BinaryIO,
        mime_type: str,
        folder_id: str,
    ) -> StoredFile:
        """
        Stream one file into a folder.

        Args:
            name: File name in remote storage
            stream: Readable binary stream with the content
            mime_type: Stored MIME type
            folder_id: Destination folder

        Returns:
            The created file

        Raises:
            StorageError: If the storage API rejected the file
            CredentialsError: If credentials are missing or invalid
        """

    @abstractmethod
    def is_configured(self) -> bool:
        """True if credentials for this storage can be found"""


class StorageError(Exception):
    """Remote storage API failure"""
