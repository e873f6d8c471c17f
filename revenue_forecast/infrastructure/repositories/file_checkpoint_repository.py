"""
File Checkpoint Repository - Infrastructure Layer

Stores one checkpoint per series in a local directory as
``<series_id>.ckpt.npz`` with its metadata next to it in
``<series_id>.ckpt.json``. Files are written to a temporary name and moved
into place, so readers never observe a partially written checkpoint.
"""

import asyncio
import hashlib
import json
import os
import re
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional

import structlog

from revenue_forecast.domain.entities.errors import CollaboratorError, InvalidInput
from revenue_forecast.domain.repositories.checkpoint_repository import (
    CheckpointArtifact,
    ICheckpointRepository,
)

logger = structlog.get_logger(__name__)

_SERIES_ID = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")


class FileCheckpointRepository(ICheckpointRepository):
    """Filesystem implementation of the CheckpointRepository."""

    def __init__(self, directory: str):
        self.directory = Path(directory)

    async def save_checkpoint(
        self,
        series_id: str,
        content: bytes,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> str:
        blob_path, meta_path = self._paths(series_id)
        checkpoint_id = f"{series_id}:{hashlib.sha256(content).hexdigest()[:16]}"
        document = {
            **(metadata or {}),
            "series_id": series_id,
            "checkpoint_id": checkpoint_id,
        }

        try:
            await asyncio.to_thread(
                self._write, blob_path, meta_path, content, document
            )
        except (OSError, TypeError, ValueError) as e:
            logger.error(
                "file_checkpoint_repository.save_failed",
                series_id=series_id,
                path=str(blob_path),
                error=str(e),
            )
            raise CollaboratorError(f"Failed to save checkpoint: {e}") from e

        logger.info(
            "file_checkpoint_repository.saved",
            series_id=series_id,
            path=str(blob_path),
            size_bytes=len(content),
        )
        return checkpoint_id

    async def get_checkpoint(self, series_id: str) -> Optional[CheckpointArtifact]:
        blob_path, meta_path = self._paths(series_id)
        try:
            loaded = await asyncio.to_thread(self._read, blob_path, meta_path)
        except (OSError, ValueError) as e:
            logger.error(
                "file_checkpoint_repository.load_failed",
                series_id=series_id,
                path=str(blob_path),
                error=str(e),
            )
            raise CollaboratorError(f"Failed to retrieve checkpoint: {e}") from e

        if loaded is None:
            logger.debug("file_checkpoint_repository.not_found", series_id=series_id)
            return None

        content, metadata = loaded
        return CheckpointArtifact(
            checkpoint_id=metadata.get("checkpoint_id", series_id),
            series_id=series_id,
            content=content,
            metadata=metadata,
        )

    async def delete_checkpoints(self, series_id: str) -> int:
        blob_path, meta_path = self._paths(series_id)
        try:
            deleted = await asyncio.to_thread(self._delete, blob_path, meta_path)
        except OSError as e:
            logger.error(
                "file_checkpoint_repository.delete_failed",
                series_id=series_id,
                error=str(e),
            )
            raise CollaboratorError(f"Failed to delete checkpoints: {e}") from e

        logger.info(
            "file_checkpoint_repository.deleted", series_id=series_id, count=deleted
        )
        return deleted

    def _paths(self, series_id: str):
        if not _SERIES_ID.match(series_id):
            raise InvalidInput(
                f"Series id {series_id!r} cannot be used as a file name",
                details={"series_id": series_id},
            )
        return (
            self.directory / f"{series_id}.ckpt.npz",
            self.directory / f"{series_id}.ckpt.json",
        )

    def _write(
        self,
        blob_path: Path,
        meta_path: Path,
        content: bytes,
        metadata: Dict[str, Any],
    ) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        self._atomic_write(meta_path, json.dumps(metadata).encode("utf-8"))
        self._atomic_write(blob_path, content)

    def _atomic_write(self, path: Path, data: bytes) -> None:
        fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{path.name}.")
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    @staticmethod
    def _read(blob_path: Path, meta_path: Path):
        if not blob_path.exists():
            return None
        content = blob_path.read_bytes()
        metadata: Dict[str, Any] = {}
        if meta_path.exists():
            metadata = json.loads(meta_path.read_text(encoding="utf-8"))
        return content, metadata

    @staticmethod
    def _delete(blob_path: Path, meta_path: Path) -> int:
        deleted = 0
        if blob_path.exists():
            blob_path.unlink()
            deleted = 1
        meta_path.unlink(missing_ok=True)
        return deleted
