"""
Shared module - Cross-cutting concerns / Shared Layer

This module provides shared utilities, constants, and enums that are used
across multiple layers of the application.

Its primary responsibilities include:
- Defining cross-layer constants (environment names, log levels, backends)
- Configuring structured logging for every layer

Following Clean Architecture principles:
- Shared module contains only *cross-cutting concerns*
- It must not depend on Infrastructure or Frameworks
"""

from .consts import (
    EnumCheckpointBackend,
    EnumEnvironment,
    EnumLogLevel,
    EnumSplitStrategy,
)
from .logging import configure_logging, get_logger, update_logging_from_settings

__all__ = [
    "EnumCheckpointBackend",
    "EnumEnvironment",
    "EnumLogLevel",
    "EnumSplitStrategy",
    "configure_logging",
    "get_logger",
    "update_logging_from_settings",
]
