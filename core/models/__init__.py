"""Core data models"""

from core.models.chunk_artifact import ChunkArtifact, new_chunk_id

__all__ = ["ChunkArtifact", "new_chunk_id"]
