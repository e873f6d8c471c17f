"""
Repositories Package - Infrastructure Layer

This package contains concrete implementations of the checkpoint
repository interface defined in the domain layer.
"""

from .file_checkpoint_repository import FileCheckpointRepository
from .gridfs_checkpoint_repository import GridFSCheckpointRepository

__all__ = ["FileCheckpointRepository", "GridFSCheckpointRepository"]
