"""
Main module - Main/Composition Root Layer

This module serves as the entry point for the application, orchestrating
the initialization and configuration of all other layers.

Its primary responsibilities include:
- Loading settings and configuring logging
- Configuring dependencies and services (Composition Root)
- Running the training pipeline from the command line
"""

from .config import AppSettings, get_settings
from .container import AppContainer, init_container, pipeline_lifespan

__all__ = [
    "AppSettings",
    "get_settings",
    "AppContainer",
    "init_container",
    "pipeline_lifespan",
]
