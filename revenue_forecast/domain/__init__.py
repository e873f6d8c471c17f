"""
Domain Layer Package

This package contains the forecasting engine and the rules it enforces.
It defines entities, services and collaborator interfaces without
dependencies on databases, file systems or other infrastructure concerns.
"""

# Re-export submodules
from revenue_forecast.domain import entities, gateways, repositories, services

__all__ = ["entities", "gateways", "repositories", "services"]
