"""
Storage Factory

Factory pattern for creating remote storage implementations.
Follows same pattern as capture/factory.py and upload/factory.py.
"""

import logging
from typing import Literal

from backend.auth.credentials import CredentialsLoader
from backend.implementations.drive_storage import DriveStorage
from backend.implementations.mock_drive_storage import MockDriveStorage
from backend.interfaces.storage_interface import RemoteStorageInterface

# Type alias
StorageMode = Literal["auto", "drive", "mock"]


class StorageFactory:
    """
    Factory for creating remote storage.

    Reads configuration from environment variables:
    - GOOGLE_JSON_KEY: Service-account key JSON
    - GOOGLE_SERVICE_ACCOUNT_FILE: Service-account key file
    - GOOGLE_TOKEN_PATH: Authorized-user token file

    Usage:
        storage = StorageFactory.create_storage(mode="drive")
    """

    _logger = logging.getLogger(__name__)

    @classmethod
    def create_storage(cls, mode: StorageMode = "auto") -> RemoteStorageInterface:
        """
        Create a storage instance.

        Args:
            mode: "auto" (Drive if credentials exist), "drive" (force real),
                "mock" (in-memory)

        Returns:
            RemoteStorageInterface implementation
        """
        if mode == "mock":
            cls._logger.info("Creating Mock Drive Storage (forced)")
            return MockDriveStorage()

        loader = CredentialsLoader()

        if mode == "drive":
            # Credential problems surface per upload as 500 responses
            cls._logger.info("Creating Drive Storage (forced)")
            return DriveStorage(loader)

        # mode == "auto"
        if loader.has_credentials():
            cls._logger.info("Creating Drive Storage (credentials found)")
            return DriveStorage(loader)

        cls._logger.warning("No Google credentials found, using Mock Drive Storage")
        return MockDriveStorage()


# Convenience function for quick creation
def create_storage(force_mock: bool = False) -> RemoteStorageInterface:
    """
    Quick storage creation with simple mock override.

    Example:
        storage = create_storage()
        storage = create_storage(force_mock=True)
    """
    mode = "mock" if force_mock else "auto"
    return StorageFactory.create_storage(mode=mode)
