"""
Checkpoint Repository Interface

This module defines the interface for storing engine checkpoints following
the repository pattern. Checkpoints are opaque blobs produced by
``ForecastEngine.checkpoint``; the repository keeps the latest one per
series, decoupled from a specific storage backend like the filesystem or
GridFS.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class CheckpointArtifact:
    """Represents a stored checkpoint with its metadata."""

    def __init__(
        self,
        checkpoint_id: str,
        series_id: str,
        content: bytes,
        metadata: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize a checkpoint artifact.

        Args:
            checkpoint_id: Unique identifier assigned by the storage backend
            series_id: Series the checkpoint was fitted on
            content: Serialised engine state
            metadata: Additional metadata (last period, rank, ...)
        """
        self.checkpoint_id = checkpoint_id
        self.series_id = series_id
        self.content = content
        self.metadata = metadata or {}


class ICheckpointRepository(ABC):
    """Interface for checkpoint storage implementations."""

    @abstractmethod
    async def save_checkpoint(
        self,
        series_id: str,
        content: bytes,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> str:
        """
        Save a checkpoint, superseding earlier ones for the same series.

        Args:
            series_id: Series the checkpoint belongs to
            content: Serialised engine state
            metadata: Additional metadata stored next to the blob

        Returns:
            Unique identifier for the saved checkpoint

        Raises:
            CollaboratorError: When the storage backend fails
        """
        pass

    @abstractmethod
    async def get_checkpoint(self, series_id: str) -> Optional[CheckpointArtifact]:
        """
        Retrieve the latest checkpoint of a series.

        Returns:
            CheckpointArtifact if found, None otherwise
        """
        pass

    async def load_checkpoint(self, series_id: str) -> Optional[bytes]:
        """Return the content of the latest checkpoint, or None."""
        artifact = await self.get_checkpoint(series_id)
        return artifact.content if artifact is not None else None

    @abstractmethod
    async def delete_checkpoints(self, series_id: str) -> int:
        """
        Delete all checkpoints of a series.

        Returns:
            Number of checkpoints deleted
        """
        pass
