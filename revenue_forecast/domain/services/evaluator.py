"""
Forecast Evaluator

Scores a fitted engine against held-out actuals. The holdout is expected
to start right after the last trained period; only the first
``min(len(holdout), horizon)`` steps are aligned and scored.
"""

from __future__ import annotations

from typing import List, Sequence

import numpy as np
import structlog
from sklearn.metrics import mean_absolute_error, mean_squared_error

from revenue_forecast.domain.entities.errors import InsufficientData
from revenue_forecast.domain.entities.forecast import (
    EvaluationMetrics,
    ForecastComparisonPoint,
)
from revenue_forecast.domain.entities.time_series import (
    Observation,
    observation_values,
)
from revenue_forecast.domain.services.forecast_engine import ForecastEngine

logger = structlog.get_logger(__name__)


class Evaluator:
    """Accuracy metrics for forecasts over a holdout segment."""

    def evaluate(
        self, engine: ForecastEngine, holdout: Sequence[Observation]
    ) -> EvaluationMetrics:
        """
        Compare the engine's horizon forecast with the holdout actuals.

        Args:
            engine: Fitted engine
            holdout: Observations following the last trained period

        Returns:
            MAE and RMSE over the aligned steps

        Raises:
            InsufficientData: When the holdout is empty
            EngineNotFitted: When the engine has no state
        """
        if not holdout:
            raise InsufficientData("Holdout set is empty; nothing to evaluate")

        result = engine.predict()
        steps = min(len(holdout), result.horizon)
        y_true = observation_values(holdout[:steps])
        y_pred = np.asarray(result.forecast[:steps])

        metrics = self._score(y_true, y_pred)
        logger.info(
            "evaluator.evaluated",
            points=metrics.points,
            holdout_size=len(holdout),
            mae=metrics.mean_absolute_error,
            rmse=metrics.root_mean_squared_error,
        )
        return metrics

    def compare(
        self, engine: ForecastEngine, holdout: Sequence[Observation]
    ) -> List[ForecastComparisonPoint]:
        """Side-by-side rows of actuals and forecast band for the aligned steps."""
        result = engine.predict()
        return [
            ForecastComparisonPoint(
                period=obs.period,
                actual=obs.value,
                lower_bound=float(result.lower_bound[step]),
                forecast=float(result.forecast[step]),
                upper_bound=float(result.upper_bound[step]),
            )
            for step, obs in enumerate(holdout[: result.horizon])
        ]

    def evaluate_rolling(
        self, engine: ForecastEngine, holdout: Sequence[Observation]
    ) -> EvaluationMetrics:
        """One-step-ahead replay of the whole holdout.

        Works on a clone: each actual is fed back through ``update`` after its
        forecast is taken, so the caller's engine is left as it was.
        """
        if not holdout:
            raise InsufficientData("Holdout set is empty; nothing to evaluate")

        replay = engine.clone()
        predictions = np.empty(len(holdout), dtype=np.float64)
        for index, observation in enumerate(holdout):
            predictions[index] = replay.predict().forecast[0]
            replay.update(observation)

        metrics = self._score(observation_values(holdout), predictions)
        logger.info(
            "evaluator.rolling_evaluated",
            points=metrics.points,
            mae=metrics.mean_absolute_error,
            rmse=metrics.root_mean_squared_error,
        )
        return metrics

    @staticmethod
    def _score(y_true: np.ndarray, y_pred: np.ndarray) -> EvaluationMetrics:
        mae = float(mean_absolute_error(y_true, y_pred))
        rmse = float(np.sqrt(mean_squared_error(y_true, y_pred)))
        return EvaluationMetrics(
            mean_absolute_error=mae,
            root_mean_squared_error=rmse,
            points=int(y_true.shape[0]),
        )
