"""
Upload Constants

Centralized configuration for the chunk upload module.
Tunable values live in config/settings.py; this file holds enums and
protocol values that are not meant to change per deployment.
"""

from enum import Enum

# =============================================================================
# TRANSFER STATUS
# =============================================================================


class TransferStatus(Enum):
    """Outcome of a single transfer attempt"""

    SUCCESS = "success"
    FAILED = "failed"
    NETWORK_ERROR = "network_error"  # Connection refused, DNS, timeout...
    HTTP_ERROR = "http_error"  # Remote answered with a non-2xx status
    CONFIGURATION_ERROR = "configuration_error"  # Retrying cannot help


# Statuses that end a chunk immediately instead of consuming a retry
FATAL_TRANSFER_STATUSES = (TransferStatus.CONFIGURATION_ERROR,)


# =============================================================================
# DRAIN OUTCOMES
# =============================================================================


class DrainOutcome(Enum):
    """What a single drain step did"""

    IDLE = "idle"  # Queue empty, nothing to do
    BUSY = "busy"  # A transfer is already in flight
    DEFERRED = "deferred"  # Network down, attempt postponed (no retry used)
    COMPLETED = "completed"  # Head chunk delivered
    RETRY_SCHEDULED = "retry_scheduled"  # Head chunk failed, will retry
    FAILED = "failed"  # Head chunk failed permanently


# =============================================================================
# PROTOCOL VALUES
# =============================================================================

# Backend liveness status strings
BACKEND_READY = "Ready"
BACKEND_SLEEPING = "Backend Sleeping..."

# Worker idle wait; bounds how long stop() takes when nothing is queued
WORKER_IDLE_WAIT = 1.0
