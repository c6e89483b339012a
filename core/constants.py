"""
Core Constants

Enums shared by the capture and upload packages.
"""

from enum import Enum


class ChunkStatus(Enum):
    """
    Delivery status of a chunk artifact.

    Lifecycle: PENDING -> UPLOADING -> COMPLETED | RETRY | FAILED
    A RETRY chunk goes back to UPLOADING on its next attempt.
    """

    PENDING = "pending"
    UPLOADING = "uploading"
    RETRY = "retry"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATUSES = (ChunkStatus.COMPLETED, ChunkStatus.FAILED)


class EventType(Enum):
    """Events exchanged over the EventBus"""

    SESSION_STARTED = "session_started"
    SESSION_STOPPED = "session_stopped"
    CAPTURE_ERROR = "capture_error"
    CHUNK_READY = "chunk_ready"
    CHUNK_STATUS_CHANGED = "chunk_status_changed"
    QUEUE_BACKPRESSURE = "queue_backpressure"


# =============================================================================
# UPLOAD PROTOCOL
# =============================================================================
# Shared by the HTTP transport (client) and the backend relay (server)

# Error code the backend puts in its JSON body for configuration faults
CONFIGURATION_FAULT_CODE = "configuration_fault"

# Response keys returned by the backend on success
RESPONSE_FILE_ID_KEY = "fileId"
RESPONSE_LINK_KEY = "link"
