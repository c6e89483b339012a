"""
Google Drive Storage Implementation

Concrete implementation of RemoteStorageInterface for Drive API v3.
Each chunk is a single files.create call with a streaming media body.
"""

import logging
import threading
import time
from typing import BinaryIO, Optional

from google.auth.exceptions import GoogleAuthError
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaIoBaseUpload

from backend.auth.credentials import CredentialsError, CredentialsLoader
from backend.constants import (
    DRIVE_API_SERVICE_NAME,
    DRIVE_API_VERSION,
    DRIVE_FILE_LINK,
    DRIVE_RESPONSE_FIELDS,
)
from backend.interfaces.storage_interface import (
    RemoteStorageInterface,
    StorageError,
    StoredFile,
)


class DriveStorage(RemoteStorageInterface):
    """
    Google Drive storage using the Drive API v3.

    The API client is built on first upload, so the relay starts (and
    answers its liveness probe) even when credentials are broken.

    Usage:
        storage = DriveStorage(CredentialsLoader())
        stored = storage.create_file("chunk_001.webm", stream, "video/webm", folder_id)
    """

    def __init__(self, credentials_loader: Optional[CredentialsLoader] = None):
        self.logger = logging.getLogger(__name__)
        self.credentials_loader = credentials_loader or CredentialsLoader()
        self._service = None
        # The httplib2-backed client is not thread-safe; Flask serves threaded
        self._client_lock = threading.Lock()

        self.logger.info("Drive Storage initialized")

    def _get_service(self):
        """Build the Drive API client (once, lock held)"""
        if self._service is None:
            credentials = self.credentials_loader.get_credentials()
            self._service = build(
                DRIVE_API_SERVICE_NAME,
                DRIVE_API_VERSION,
                credentials=credentials,
                cache_discovery=False,
            )
            self.logger.debug("Drive API client built")
        return self._service

    def create_file(
        self,
        name: str,
        stream: BinaryIO,
        mime_type: str,
        folder_id: str,
    ) -> StoredFile:
        start_time = time.time()

        metadata = {
            "name": name,
            "parents": [folder_id],
        }
        media = MediaIoBaseUpload(stream, mimetype=mime_type, resumable=False)

        try:
            with self._client_lock:
                service = self._get_service()
                response = (
                    service.files()
                    .create(
                        body=metadata,
                        media_body=media,
                        fields=DRIVE_RESPONSE_FIELDS,
                        supportsAllDrives=True,
                    )
                    .execute()
                )
        except HttpError as e:
            status = getattr(e.resp, "status", "unknown")
            raise StorageError(f"Drive API error (HTTP {status}): {e}") from e
        except GoogleAuthError as e:
            raise CredentialsError(f"Drive authentication failed: {e}") from e
        except OSError as e:
            raise StorageError(f"Network error talking to Drive: {e}") from e

        file_id = response.get("id")
        if not file_id:
            raise StorageError("Drive did not return a file ID")

        stored = StoredFile(
            file_id=file_id,
            name=response.get("name", name),
            link=response.get("webViewLink") or DRIVE_FILE_LINK.format(file_id=file_id),
        )
        self.logger.info(
            f"Stored {stored.name} in Drive ({stored.file_id}, "
            f"{time.time() - start_time:.1f}s)",
        )
        return stored

    def is_configured(self) -> bool:
        return self.credentials_loader.has_credentials()
