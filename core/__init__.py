"""
Core utilities and modules.

Public API:
    - ChunkArtifact: Recorded segment plus delivery metadata
    - ChunkStatus / EventType: Shared enums
    - EventBus: Publish/subscribe channel between capture and upload
    - ConnectivityProbe / check_internet_connectivity: Network checks

Usage:
    from core import EventBus, EventType

    bus = EventBus()
    bus.subscribe(EventType.CHUNK_READY, print)
"""

from core.constants import ChunkStatus, EventType
from core.event_bus import EventBus
from core.models.chunk_artifact import ChunkArtifact
from core.network import (
    ConnectivityProbe,
    check_internet_connectivity,
    get_network_status,
)

__all__ = [
    "ChunkArtifact",
    "ChunkStatus",
    "ConnectivityProbe",
    "EventBus",
    "EventType",
    "check_internet_connectivity",
    "get_network_status",
]
