"""
Chunk Artifact Model

Data class representing one recorded media segment and its delivery metadata.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
from uuid import uuid4

from core.constants import TERMINAL_STATUSES, ChunkStatus


def new_chunk_id() -> str:
    """Generate an opaque, collision-free chunk identifier"""
    return uuid4().hex


@dataclass
class ChunkArtifact:
    """
    One time-sliced segment of recorded media awaiting delivery.

    Lifecycle: pending → uploading → completed | retry (n) | failed

    The payload is immutable once created and is dropped once the chunk
    is terminal (size survives). Status fields are mutated only by the
    UploadQueue that owns the artifact.
    """

    # Identity
    sequence: int  # 1-based ordinal within the session
    payload: bytes = field(repr=False)  # Encoded media segment
    name: str = ""  # chunk_001_2025-01-15T14-30-22-123Z.webm
    id: str = field(default_factory=new_chunk_id)
    created_at: datetime = field(default_factory=datetime.now)
    mime_type: str = "video/webm"
    size: int = field(init=False, default=0)  # Payload bytes, kept after release

    # Delivery tracking
    status: ChunkStatus = ChunkStatus.PENDING
    retry_count: int = 0
    attempts: int = 0  # Total transfer attempts, including the first
    remote_id: Optional[str] = None  # Remote file ID after success
    last_error: Optional[str] = None
    updated_at: datetime = field(default_factory=datetime.now)

    def __post_init__(self):
        """Freeze the payload as bytes"""
        if not isinstance(self.payload, bytes):
            self.payload = bytes(self.payload)
        self.size = len(self.payload)
        if self.sequence < 1:
            raise ValueError(f"Chunk sequence must be >= 1, got {self.sequence}")

    def release_payload(self) -> None:
        """Drop the media bytes of a delivered or dead-lettered chunk"""
        self.payload = b""

    @property
    def is_terminal(self) -> bool:
        """True once completed or failed"""
        return self.status in TERMINAL_STATUSES

    @property
    def status_label(self) -> str:
        """Human-readable status, e.g. 'retry (2)'"""
        if self.status == ChunkStatus.RETRY:
            return f"retry ({self.retry_count})"
        return self.status.value

    def mark_uploading(self) -> None:
        """Mark a transfer attempt as started"""
        self.status = ChunkStatus.UPLOADING
        self.attempts += 1
        self.updated_at = datetime.now()

    def mark_completed(self, remote_id: Optional[str]) -> None:
        """Mark chunk as delivered"""
        self.status = ChunkStatus.COMPLETED
        self.remote_id = remote_id
        self.last_error = None
        self.updated_at = datetime.now()

    def mark_retry(self, error: str) -> None:
        """Record a failed attempt that will be retried"""
        self.retry_count += 1
        self.status = ChunkStatus.RETRY
        self.last_error = error
        self.updated_at = datetime.now()

    def mark_failed(self, error: str) -> None:
        """Mark chunk as permanently failed"""
        self.status = ChunkStatus.FAILED
        self.last_error = error
        self.updated_at = datetime.now()

    def to_dict(self) -> dict:
        """Observability snapshot (never includes the payload)"""
        return {
            "id": self.id,
            "sequence": self.sequence,
            "name": self.name,
            "size": self.size,
            "status": self.status_label,
            "retry_count": self.retry_count,
            "attempts": self.attempts,
            "remote_id": self.remote_id,
            "last_error": self.last_error,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }
