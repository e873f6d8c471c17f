"""
Application DTOs - Forecast Report

Data Transfer Objects summarising a training pipeline run: holdout
accuracy, the actual-versus-forecast comparison and the forward forecast.
"""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field

from revenue_forecast.application.use_cases.training_pipeline_use_case import (
    PipelineResult,
)


class EvaluationMetricsDTO(BaseModel):
    """Holdout accuracy of the engine fitted on the training segment."""

    mean_absolute_error: float = Field(ge=0)
    root_mean_squared_error: float = Field(ge=0)
    points: int = Field(ge=1, description="Number of holdout periods scored")


class ForecastPointDTO(BaseModel):
    """Forecast band for one future period."""

    period: int
    lower_bound: float
    forecast: float
    upper_bound: float


class ComparisonPointDTO(ForecastPointDTO):
    """Holdout period next to its forecast band."""

    actual: float


class ForecastReportDTO(BaseModel):
    """Report printed at the end of a pipeline run."""

    series_id: str
    generated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    checkpoint_id: Optional[str] = None
    train_size: int = Field(ge=0)
    holdout_size: int = Field(ge=0)
    metrics: EvaluationMetricsDTO
    comparison: List[ComparisonPointDTO] = Field(default_factory=list)
    forecast: List[ForecastPointDTO] = Field(default_factory=list)

    @classmethod
    def from_result(cls, series_id: str, result: PipelineResult) -> "ForecastReportDTO":
        forecast = result.forecast
        return cls(
            series_id=series_id,
            checkpoint_id=result.checkpoint_id,
            train_size=result.train_size,
            holdout_size=result.holdout_size,
            metrics=EvaluationMetricsDTO(
                mean_absolute_error=result.metrics.mean_absolute_error,
                root_mean_squared_error=result.metrics.root_mean_squared_error,
                points=result.metrics.points,
            ),
            comparison=[
                ComparisonPointDTO(
                    period=row.period,
                    actual=row.actual,
                    lower_bound=row.lower_bound,
                    forecast=row.forecast,
                    upper_bound=row.upper_bound,
                )
                for row in result.comparison
            ],
            forecast=[
                ForecastPointDTO(
                    period=period,
                    lower_bound=float(lower),
                    forecast=float(point),
                    upper_bound=float(upper),
                )
                for period, lower, point, upper in zip(
                    forecast.periods,
                    forecast.lower_bound,
                    forecast.forecast,
                    forecast.upper_bound,
                )
            ],
        )
