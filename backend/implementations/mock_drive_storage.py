"""
Mock Drive Storage Implementation

In-memory storage for testing the relay without Google credentials.
"""

import logging
import threading
from typing import BinaryIO, Dict, List
from uuid import uuid4

from backend.constants import DRIVE_FILE_LINK
from backend.interfaces.storage_interface import (
    RemoteStorageInterface,
    StorageError,
    StoredFile,
)


class MockDriveStorage(RemoteStorageInterface):
    """
    Mock remote storage.

    Usage:
        storage = MockDriveStorage()
        storage.fail_next = True   # next create_file raises StorageError
    """

    def __init__(self, configured: bool = True):
        self.logger = logging.getLogger(__name__)
        self.configured = configured
        self.fail_next = False

        # file_id -> stored record, for assertions
        self.files: Dict[str, dict] = {}
        self._lock = threading.Lock()

        self.logger.info("Mock Drive Storage initialized")

    def create_file(
        self,
        name: str,
        stream: BinaryIO,
        mime_type: str,
        folder_id: str,
    ) -> StoredFile:
        if self.fail_next:
            self.fail_next = False
            self.logger.warning(f"[MOCK] Simulated Drive failure for {name}")
            raise StorageError("[MOCK] Simulated Drive failure")

        content = stream.read()
        file_id = f"mock_{uuid4().hex[:16]}"

        with self._lock:
            self.files[file_id] = {
                "name": name,
                "content": content,
                "mime_type": mime_type,
                "folder_id": folder_id,
            }

        self.logger.info(f"[MOCK] Stored {name} ({len(content)} bytes) as {file_id}")
        return StoredFile(
            file_id=file_id,
            name=name,
            link=DRIVE_FILE_LINK.format(file_id=file_id),
        )

    def is_configured(self) -> bool:
        return self.configured

    # =========================================================================
    # TESTING HELPER METHODS
    # =========================================================================

    def stored_names(self) -> List[str]:
        """Names of stored files, in upload order"""
        with self._lock:
            return [record["name"] for record in self.files.values()]
