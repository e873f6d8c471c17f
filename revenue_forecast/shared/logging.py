"""
Logging Configuration - Shared Layer

Structured logging for the forecaster. Every module logs through structlog
with event-style names (``forecast_engine.fit_completed``); the records are
routed through the standard library so third-party loggers share handlers.
"""

import logging
import os
import sys
from typing import Any, List, Optional

import structlog
from structlog.types import Processor

from revenue_forecast.shared.consts import EnumEnvironment


def _enum_value(value: Any) -> Any:
    return value.value if hasattr(value, "value") else value


def _build_renderer(environment: str) -> Processor:
    if environment.lower() == EnumEnvironment.PRODUCTION.value:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=False)


def configure_logging(
    level: Optional[str] = None,
    file_path: Optional[str] = None,
    environment: str = "development",
) -> None:
    """
    Configure stdlib logging and structlog.

    Called once by the entry point before settings are loaded (using
    ``LOG_LEVEL`` / ``LOG_FILE_PATH`` from the environment), then again once
    the settings are available.

    Args:
        level: Log level name; falls back to ``LOG_LEVEL`` then INFO.
        file_path: Optional log file, in addition to stderr.
        environment: JSON output in production, console output otherwise.
    """
    log_level = level or os.environ.get("LOG_LEVEL") or "INFO"
    log_file = file_path or os.environ.get("LOG_FILE_PATH")
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    # stdout carries the JSON report
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    timestamper = structlog.processors.TimeStamper(fmt="iso", utc=True)
    formatter = structlog.stdlib.ProcessorFormatter(
        processor=_build_renderer(environment),
        foreign_pre_chain=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            timestamper,
        ],
    )
    for handler in handlers:
        handler.setFormatter(formatter)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            timestamper,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    root_logger.handlers = handlers
    root_logger.setLevel(numeric_level)

    get_logger(__name__).debug(
        "logging.configured", level=log_level, file_path=log_file
    )


def update_logging_from_settings(settings: Any) -> None:
    """
    Reconfigure logging from the loaded application settings.

    Args:
        settings: ``AppSettings`` instance (``logging`` and ``environment``).
    """
    configure_logging(
        level=_enum_value(settings.logging.level),
        file_path=settings.logging.file_path,
        environment=_enum_value(settings.environment),
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger configured for the project."""
    return structlog.get_logger(name)
