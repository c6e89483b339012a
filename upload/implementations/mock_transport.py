"""
Mock Transport Implementation

Simulated transport for testing without a backend.
Outcomes can be scripted per attempt to drive retry scenarios.
"""

import logging
import random
import threading
import time
from typing import Callable, Iterable, List, Optional, Union
from uuid import uuid4

from core.models.chunk_artifact import ChunkArtifact
from upload.constants import BACKEND_READY, BACKEND_SLEEPING, TransferStatus
from upload.interfaces.transport_interface import (
    ChunkTransportInterface,
    TransferResult,
)

# A scripted outcome: True/False, or a TransferStatus for a specific failure
Outcome = Union[bool, TransferStatus]


class MockTransport(ChunkTransportInterface):
    """
    Mock chunk transport for testing.

    Useful for:
    - Unit tests of the upload queue
    - Running the recorder without a backend
    - Simulating flaky networks

    Usage:
        # Fail twice, then succeed, then default to success
        transport = MockTransport(outcomes=[False, False, True])
    """

    def __init__(
        self,
        outcomes: Optional[Iterable[Outcome]] = None,
        default_success: bool = True,
        fail_rate: float = 0.0,
        latency: float = 0.0,
        configured: bool = True,
        on_send: Optional[Callable[[ChunkArtifact], None]] = None,
    ):
        """
        Initialize mock transport.

        Args:
            outcomes: Scripted outcomes consumed one per attempt
            default_success: Outcome once the script is exhausted
            fail_rate: Probability of random failure for unscripted attempts
            latency: Seconds each attempt takes
            configured: Value reported by is_configured()
            on_send: Hook called with the artifact at the start of every attempt
        """
        self.logger = logging.getLogger(__name__)
        self._outcomes: List[Outcome] = list(outcomes or [])
        self.default_success = default_success
        self.fail_rate = fail_rate
        self.latency = latency
        self.configured = configured
        self.on_send = on_send
        self.available = True

        # Attempt log for assertions
        self.attempts: List[dict] = []
        self._lock = threading.Lock()

        self.logger.info(
            f"Mock Transport initialized "
            f"(scripted: {len(self._outcomes)}, fail_rate: {fail_rate})",
        )

    def send(self, artifact: ChunkArtifact) -> TransferResult:
        start_time = time.time()

        if self.on_send:
            self.on_send(artifact)

        if self.latency:
            time.sleep(self.latency)

        outcome = self._next_outcome()
        if not self.configured:
            outcome = TransferStatus.CONFIGURATION_ERROR

        succeeded = outcome is True
        with self._lock:
            self.attempts.append(
                {
                    "name": artifact.name,
                    "sequence": artifact.sequence,
                    "chunk_id": artifact.id,
                    "success": succeeded,
                    "timestamp": time.time(),
                },
            )

        duration = time.time() - start_time

        if succeeded:
            remote_id = f"mock_{uuid4().hex[:12]}"
            self.logger.info(f"[MOCK] Stored {artifact.name} as {remote_id}")
            return TransferResult(
                success=True,
                remote_id=remote_id,
                status=TransferStatus.SUCCESS,
                http_status=200,
                duration=duration,
            )

        status = outcome if isinstance(outcome, TransferStatus) else TransferStatus.HTTP_ERROR
        self.logger.warning(f"[MOCK] Rejected {artifact.name} ({status.value})")
        return TransferResult(
            success=False,
            status=status,
            error_message=f"Simulated {status.value}",
            http_status=500 if status == TransferStatus.HTTP_ERROR else None,
            duration=duration,
        )

    def _next_outcome(self) -> Outcome:
        with self._lock:
            if self._outcomes:
                return self._outcomes.pop(0)
        if self.fail_rate and random.random() < self.fail_rate:
            return TransferStatus.NETWORK_ERROR
        return self.default_success

    def test_connection(self) -> bool:
        return self.available

    def is_configured(self) -> bool:
        return self.configured

    def get_backend_status(self) -> str:
        return BACKEND_READY if self.available else BACKEND_SLEEPING

    # =========================================================================
    # TESTING HELPER METHODS
    # =========================================================================

    def script(self, *outcomes: Outcome) -> None:
        """Append scripted outcomes"""
        with self._lock:
            self._outcomes.extend(outcomes)

    def attempts_for(self, sequence: int) -> List[dict]:
        """Attempts made for one chunk sequence"""
        with self._lock:
            return [a for a in self.attempts if a["sequence"] == sequence]

    def delivered_sequences(self) -> List[int]:
        """Sequences that were accepted, in acceptance order"""
        with self._lock:
            return [a["sequence"] for a in self.attempts if a["success"]]
