"""
Gateways Package - Infrastructure Layer

This package contains concrete implementations of the gateway
interfaces defined in the domain layer.
"""

from .sql_observation_source import SqlObservationSource

__all__ = ["SqlObservationSource"]
