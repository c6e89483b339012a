"""
HTTP Transport Implementation

Concrete implementation of ChunkTransportInterface for the backend relay.
Each send() is a single multipart POST carrying the chunk payload and its
remote file name. Success is decided solely by a 2xx acknowledgement.
"""

import logging
import time
from typing import Optional

import requests

from config.settings import (
    HTTP_TIMEOUT,
    UPLOAD_FIELD_CHUNK,
    UPLOAD_FIELD_FILENAME,
    UPLOAD_ROUTE,
    UPLOAD_TIMEOUT,
)
from core.constants import (
    CONFIGURATION_FAULT_CODE,
    RESPONSE_FILE_ID_KEY,
    RESPONSE_LINK_KEY,
)
from core.models.chunk_artifact import ChunkArtifact
from upload.constants import BACKEND_READY, BACKEND_SLEEPING, TransferStatus
from upload.interfaces.transport_interface import (
    ChunkTransportInterface,
    TransferResult,
    TransportError,
)


class HttpChunkTransport(ChunkTransportInterface):
    """
    Chunk transport posting multipart forms with requests.

    Usage:
        transport = HttpChunkTransport("https://recorder-api.example.com")
        result = transport.send(artifact)
        if result.success:
            print(result.remote_id)
    """

    def __init__(
        self,
        base_url: Optional[str],
        timeout: float = UPLOAD_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize HTTP transport.

        Args:
            base_url: Backend base URL, e.g. "https://host" (no trailing route)
            timeout: Per-request timeout in seconds
            session: Optional requests.Session (connection reuse, testing)
        """
        self.logger = logging.getLogger(__name__)
        self.base_url = (base_url or "").rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

        if not self.base_url:
            self.logger.warning("HTTP transport created without an endpoint URL")
        else:
            self.logger.info(f"HTTP transport initialized ({self.base_url})")

    @property
    def upload_url(self) -> str:
        return f"{self.base_url}{UPLOAD_ROUTE}"

    def is_configured(self) -> bool:
        return bool(self.base_url)

    def send(self, artifact: ChunkArtifact) -> TransferResult:
        """
        Post one chunk to {base_url}/upload.

        Never raises: failures come back as an unsuccessful TransferResult.
        """
        start_time = time.time()

        try:
            if not self.is_configured():
                raise TransportError(
                    "Upload endpoint URL is not configured (set UPLOAD_API_URL)",
                    status=TransferStatus.CONFIGURATION_ERROR,
                )

            self.logger.debug(
                f"POST {self.upload_url}: {artifact.name} ({artifact.size} bytes)",
            )

            response = self.session.post(
                self.upload_url,
                files={
                    UPLOAD_FIELD_CHUNK: (
                        artifact.name,
                        artifact.payload,
                        artifact.mime_type,
                    ),
                },
                data={UPLOAD_FIELD_FILENAME: artifact.name},
                timeout=self.timeout,
            )

            body = self._parse_json(response)

            if not response.ok:
                raise TransportError(
                    self._describe_error(response, body),
                    status=self._classify_error(body),
                    http_status=response.status_code,
                )

            return TransferResult(
                success=True,
                remote_id=body.get(RESPONSE_FILE_ID_KEY),
                link=body.get(RESPONSE_LINK_KEY),
                status=TransferStatus.SUCCESS,
                http_status=response.status_code,
                duration=time.time() - start_time,
            )

        except TransportError as e:
            return TransferResult(
                success=False,
                status=e.status,
                error_message=str(e),
                http_status=e.http_status,
                duration=time.time() - start_time,
            )

        except requests.RequestException as e:
            # Connection refused, DNS failure, timeout, broken pipe...
            return TransferResult(
                success=False,
                status=TransferStatus.NETWORK_ERROR,
                error_message=f"Network error: {e}",
                duration=time.time() - start_time,
            )

    def _parse_json(self, response: requests.Response) -> dict:
        try:
            body = response.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {}

    def _classify_error(self, body: dict) -> TransferStatus:
        if body.get("code") == CONFIGURATION_FAULT_CODE:
            return TransferStatus.CONFIGURATION_ERROR
        return TransferStatus.HTTP_ERROR

    def _describe_error(self, response: requests.Response, body: dict) -> str:
        message = body.get("error") or response.reason or "Upload rejected"
        details = body.get("details")
        if details:
            message = f"{message}: {details}"
        return f"HTTP {response.status_code}: {message}"

    def test_connection(self) -> bool:
        """Ping the backend liveness probe (GET /)"""
        if not self.is_configured():
            return False

        try:
            response = self.session.get(f"{self.base_url}/", timeout=HTTP_TIMEOUT)
            return response.ok
        except requests.RequestException as e:
            self.logger.warning(f"Backend liveness probe failed: {e}")
            return False

    def get_backend_status(self) -> str:
        """
        Human-readable backend status.

        Hosted backends sleep when idle; the first probe also wakes them up.
        """
        return BACKEND_READY if self.test_connection() else BACKEND_SLEEPING
