"""
Infrastructure Layer Package

This package contains implementations of interfaces defined in the
domain layer, dealing with external concerns such as SQL databases,
MongoDB GridFS and the local filesystem.
"""

from revenue_forecast.infrastructure import database, gateways, repositories

__all__ = ["database", "gateways", "repositories"]
