"""
DTOs Package - Application Layer

This package contains Data Transfer Objects (DTOs) used to report the
outcome of a pipeline run.
"""

from .forecast_dto import (
    ComparisonPointDTO,
    EvaluationMetricsDTO,
    ForecastPointDTO,
    ForecastReportDTO,
)

__all__ = [
    "ComparisonPointDTO",
    "EvaluationMetricsDTO",
    "ForecastPointDTO",
    "ForecastReportDTO",
]
