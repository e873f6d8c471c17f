"""Domain service helpers for validating engine configurations."""

import math
from typing import List, Optional

from revenue_forecast.domain.entities.errors import InvalidConfiguration
from revenue_forecast.domain.entities.model_state import EngineConfig


def _validate_rank(
    name: str, value: Optional[int], window_size: int, errors: List[str]
) -> None:
    if value is None:
        return
    if not 1 <= value <= window_size - 1:
        errors.append(
            f"{name} must be between 1 and window_size - 1 "
            f"({window_size - 1}) when provided."
        )


def validate_engine_configuration(config: EngineConfig) -> None:
    """Validate the tunables of a forecast engine.

    Raises:
        InvalidConfiguration: If one or more validation rules fail.
    """

    errors: List[str] = []

    if config.window_size <= 1:
        errors.append("Window size must be greater than 1.")
    if config.window_size >= config.series_length:
        errors.append("Window size must be smaller than the series length.")
    if config.series_length < config.window_size + 1:
        errors.append("Series length must be at least window_size + 1.")
    if config.train_size <= 0:
        errors.append("Train size must be greater than 0.")
    elif config.train_size < config.window_size + 1:
        errors.append("Train size must be at least window_size + 1.")
    if config.horizon < 1:
        errors.append("Horizon must be at least 1.")
    if not 0.0 < config.confidence_level < 1.0:
        errors.append(
            "Confidence level must be between 0 (exclusive) and 1 (exclusive)."
        )
    if not math.isfinite(config.domain_floor):
        errors.append("Domain floor must be a finite number.")

    _validate_rank("Rank", config.rank, config.window_size, errors)
    _validate_rank("Max rank", config.max_rank, config.window_size, errors)

    if errors:
        raise InvalidConfiguration(
            "Engine configuration is invalid.", details={"errors": errors}
        )
