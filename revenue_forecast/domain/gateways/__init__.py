"""
Gateways Package - Domain Layer

This package contains interfaces defining gateway contracts
for external data sources. Specific implementations
are provided by the infrastructure layer.
"""

from .observation_source import IObservationSource

__all__ = ["IObservationSource"]
