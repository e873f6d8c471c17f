"""
Repositories Package

This package contains interfaces defining repository contracts
for checkpoint storage. Specific implementations are provided
by the infrastructure layer.
"""

from .checkpoint_repository import CheckpointArtifact, ICheckpointRepository

__all__ = ["CheckpointArtifact", "ICheckpointRepository"]
