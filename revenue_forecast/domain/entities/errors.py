"""
Domain Errors

This module defines the error taxonomy of the forecasting engine and of the
boundary with its external collaborators.
"""

from typing import Any, Dict, Optional


class DomainError(Exception):
    """Base class for domain errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class InvalidConfiguration(DomainError):
    """Raised when engine tunables violate their constraints.

    Fatal to the engine instance being constructed.
    """


class InvalidInput(DomainError):
    """Raised for out-of-order, duplicate or non-finite observations."""


class InsufficientData(DomainError):
    """Raised when fit or evaluate receives fewer observations than required."""


class SerializationFailure(DomainError):
    """Raised when a checkpoint blob is malformed or version-incompatible."""


class EngineNotFitted(DomainError):
    """Raised when an engine is queried before fit or restore."""

    def __init__(self, operation: str, details: Optional[Dict[str, Any]] = None):
        message = f"Cannot {operation}: the engine has not been fitted or restored"
        super().__init__(message, details)


class CollaboratorError(DomainError):
    """Raised when an external collaborator (data source, storage) fails."""


class CollaboratorTimeout(CollaboratorError):
    """Raised when an external collaborator does not answer within its budget."""

    def __init__(
        self,
        operation: str,
        timeout_seconds: float,
        details: Optional[Dict[str, Any]] = None,
    ):
        message = f"{operation} timed out after {timeout_seconds:g} seconds"
        super().__init__(message, details)
        self.operation = operation
        self.timeout_seconds = timeout_seconds
