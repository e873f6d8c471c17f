"""
Domain Entities Package

This package contains the core domain entities of the forecasting engine.
"""

from .errors import (
    CollaboratorError,
    CollaboratorTimeout,
    DomainError,
    EngineNotFitted,
    InsufficientData,
    InvalidConfiguration,
    InvalidInput,
    SerializationFailure,
)
from .forecast import EvaluationMetrics, ForecastComparisonPoint, ForecastResult
from .model_state import EngineConfig, ForecastModelState
from .time_series import Observation, SeriesSplit

__all__ = [
    "Observation",
    "SeriesSplit",
    "EngineConfig",
    "ForecastModelState",
    "ForecastResult",
    "EvaluationMetrics",
    "ForecastComparisonPoint",
    "DomainError",
    "InvalidConfiguration",
    "InvalidInput",
    "InsufficientData",
    "SerializationFailure",
    "EngineNotFitted",
    "CollaboratorError",
    "CollaboratorTimeout",
]
