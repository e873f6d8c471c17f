"""
GridFS Checkpoint Repository - Infrastructure Layer

This module implements the CheckpointRepository interface using MongoDB
GridFS as the underlying storage system. Each save uploads a new file for
the series and removes the ones it supersedes.
"""

import asyncio
from typing import Any, Dict, List, Optional

import gridfs
import structlog
from pymongo import MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError

from revenue_forecast.domain.entities.errors import CollaboratorError
from revenue_forecast.domain.repositories.checkpoint_repository import (
    CheckpointArtifact,
    ICheckpointRepository,
)

logger = structlog.get_logger(__name__)

CONTENT_TYPE = "application/x-npz"


class GridFSCheckpointRepository(ICheckpointRepository):
    """MongoDB GridFS implementation of the CheckpointRepository."""

    def __init__(
        self,
        mongo_client: MongoClient,
        database_name: str,
        collection: str = "forecast_checkpoints",
    ):
        """
        Initialize the GridFS checkpoint repository.

        Args:
            mongo_client: MongoDB client connection
            database_name: Name of the database to use
            collection: GridFS bucket name
        """
        self.db: Database = mongo_client[database_name]
        self.fs = gridfs.GridFS(self.db, collection=collection)

    async def save_checkpoint(
        self,
        series_id: str,
        content: bytes,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> str:
        try:
            file_id = await asyncio.to_thread(
                self._replace, series_id, content, metadata or {}
            )
        except PyMongoError as e:
            logger.error(
                "gridfs_checkpoint_repository.save_failed",
                series_id=series_id,
                error=str(e),
            )
            raise CollaboratorError(f"Failed to save checkpoint: {e}") from e

        logger.info(
            "gridfs_checkpoint_repository.saved",
            series_id=series_id,
            file_id=file_id,
            size_bytes=len(content),
        )
        return file_id

    async def get_checkpoint(self, series_id: str) -> Optional[CheckpointArtifact]:
        try:
            artifact = await asyncio.to_thread(self._latest, series_id)
        except PyMongoError as e:
            logger.error(
                "gridfs_checkpoint_repository.load_failed",
                series_id=series_id,
                error=str(e),
            )
            raise CollaboratorError(f"Failed to retrieve checkpoint: {e}") from e

        if artifact is None:
            logger.debug("gridfs_checkpoint_repository.not_found", series_id=series_id)
        return artifact

    async def delete_checkpoints(self, series_id: str) -> int:
        try:
            deleted = await asyncio.to_thread(self._delete_all, series_id, None)
        except PyMongoError as e:
            logger.error(
                "gridfs_checkpoint_repository.delete_failed",
                series_id=series_id,
                error=str(e),
            )
            raise CollaboratorError(f"Failed to delete checkpoints: {e}") from e

        logger.info(
            "gridfs_checkpoint_repository.deleted", series_id=series_id, count=deleted
        )
        return deleted

    def _replace(self, series_id: str, content: bytes, metadata: Dict[str, Any]) -> str:
        file_id = self.fs.put(
            content,
            filename=f"{series_id}.ckpt.npz",
            metadata={
                **metadata,
                "series_id": series_id,
                "content_type": CONTENT_TYPE,
            },
        )
        self._delete_all(series_id, keep=file_id)
        return str(file_id)

    def _latest(self, series_id: str) -> Optional[CheckpointArtifact]:
        cursor = (
            self.fs.find({"metadata.series_id": series_id})
            .sort("uploadDate", -1)
            .limit(1)
        )
        grid_out = next(iter(cursor), None)
        if grid_out is None:
            return None
        return CheckpointArtifact(
            checkpoint_id=str(grid_out._id),
            series_id=series_id,
            content=grid_out.read(),
            metadata=dict(grid_out.metadata) if grid_out.metadata else None,
        )

    def _delete_all(self, series_id: str, keep: Optional[Any]) -> int:
        stale: List[Any] = [
            grid_out._id
            for grid_out in self.fs.find({"metadata.series_id": series_id})
            if grid_out._id != keep
        ]
        for file_id in stale:
            self.fs.delete(file_id)
        return len(stale)
