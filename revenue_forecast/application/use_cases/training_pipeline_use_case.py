"""
Application Use Cases - Training Pipeline

This module contains the batch use case that loads a series, scores the
engine on a holdout segment, refits on the full series, checkpoints the
fitted state and produces the forward forecast.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

import structlog

from revenue_forecast.domain.entities.errors import CollaboratorTimeout
from revenue_forecast.domain.entities.forecast import (
    EvaluationMetrics,
    ForecastComparisonPoint,
    ForecastResult,
)
from revenue_forecast.domain.entities.model_state import EngineConfig
from revenue_forecast.domain.gateways.observation_source import IObservationSource
from revenue_forecast.domain.repositories.checkpoint_repository import (
    ICheckpointRepository,
)
from revenue_forecast.domain.services.evaluator import Evaluator
from revenue_forecast.domain.services.forecast_engine import ForecastEngine
from revenue_forecast.domain.services.split_rules import SplitRule

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class PipelineStage(str, Enum):
    LOAD = "load"
    SPLIT = "split"
    FIT_TRAIN = "fit_train"
    EVALUATE = "evaluate"
    FIT_FULL = "fit_full"
    CHECKPOINT = "checkpoint"
    FORECAST = "forecast"


@dataclass(frozen=True)
class PipelineResult:
    """Everything a pipeline run produced."""

    metrics: EvaluationMetrics
    forecast: ForecastResult
    comparison: List[ForecastComparisonPoint]
    checkpoint_id: str
    train_size: int
    holdout_size: int


class TrainingPipeline:
    """Use case running one fit / evaluate / checkpoint / forecast cycle."""

    def __init__(
        self,
        observation_source: IObservationSource,
        checkpoint_repository: ICheckpointRepository,
        split_rule: SplitRule,
        engine_config: EngineConfig,
        series_id: str,
        evaluator: Optional[Evaluator] = None,
        engine_factory: Optional[Callable[[EngineConfig], ForecastEngine]] = None,
        load_timeout_seconds: float = 60.0,
        checkpoint_timeout_seconds: float = 30.0,
    ):
        """
        Initialize the training pipeline.

        Args:
            observation_source: Gateway loading the historical series
            checkpoint_repository: Repository storing the fitted state
            split_rule: Rule separating training and holdout observations
            engine_config: Tunables of the engine to train
            series_id: Key the checkpoint is stored under
            evaluator: Holdout scorer
            engine_factory: Builds the engine from ``engine_config``
            load_timeout_seconds: Time budget for loading observations
            checkpoint_timeout_seconds: Time budget for storing the checkpoint
        """
        self.observation_source = observation_source
        self.checkpoint_repository = checkpoint_repository
        self.split_rule = split_rule
        self.engine_config = engine_config
        self.series_id = series_id
        self.evaluator = evaluator or Evaluator()
        self.engine_factory = engine_factory or ForecastEngine
        self.load_timeout_seconds = load_timeout_seconds
        self.checkpoint_timeout_seconds = checkpoint_timeout_seconds

    async def execute(self) -> PipelineResult:
        """
        Run every stage in order.

        Returns:
            Holdout metrics, the forward forecast and the checkpoint id

        Raises:
            DomainError: The error of the failing stage, unchanged
            CollaboratorTimeout: When loading or storing exceeds its budget
        """
        stage = PipelineStage.LOAD
        log = logger.bind(series_id=self.series_id)

        try:
            log.info("training_pipeline.stage", stage=stage.value)
            observations = await self._bounded(
                self.observation_source.load_observations(),
                "load_observations",
                self.load_timeout_seconds,
            )

            stage = PipelineStage.SPLIT
            log.info("training_pipeline.stage", stage=stage.value)
            split = self.split_rule.split(observations)
            log.info(
                "training_pipeline.split",
                rule=repr(self.split_rule),
                train_size=len(split.train),
                holdout_size=len(split.holdout),
            )

            stage = PipelineStage.FIT_TRAIN
            log.info("training_pipeline.stage", stage=stage.value)
            engine = self.engine_factory(self.engine_config)
            engine.fit(split.train)

            stage = PipelineStage.EVALUATE
            log.info("training_pipeline.stage", stage=stage.value)
            metrics = self.evaluator.evaluate(engine, split.holdout)
            comparison = self.evaluator.compare(engine, split.holdout)

            stage = PipelineStage.FIT_FULL
            log.info("training_pipeline.stage", stage=stage.value)
            engine.fit(list(split.train) + list(split.holdout))

            stage = PipelineStage.CHECKPOINT
            log.info("training_pipeline.stage", stage=stage.value)
            checkpoint_id = await self._bounded(
                self.checkpoint_repository.save_checkpoint(
                    self.series_id,
                    engine.checkpoint(),
                    metadata=self._checkpoint_metadata(engine, metrics),
                ),
                "save_checkpoint",
                self.checkpoint_timeout_seconds,
            )

            stage = PipelineStage.FORECAST
            log.info("training_pipeline.stage", stage=stage.value)
            forecast = engine.predict()
        except Exception as e:
            log.error(
                "training_pipeline.failed",
                stage=stage.value,
                error_type=type(e).__name__,
                error=str(e),
            )
            raise

        log.info(
            "training_pipeline.completed",
            checkpoint_id=checkpoint_id,
            mae=metrics.mean_absolute_error,
            rmse=metrics.root_mean_squared_error,
            horizon=forecast.horizon,
        )
        return PipelineResult(
            metrics=metrics,
            forecast=forecast,
            comparison=comparison,
            checkpoint_id=checkpoint_id,
            train_size=len(split.train),
            holdout_size=len(split.holdout),
        )

    @staticmethod
    async def _bounded(awaitable: Awaitable[T], operation: str, timeout: float) -> T:
        try:
            return await asyncio.wait_for(awaitable, timeout=timeout)
        except asyncio.TimeoutError as e:
            raise CollaboratorTimeout(operation, timeout) from e

    def _checkpoint_metadata(
        self, engine: ForecastEngine, metrics: EvaluationMetrics
    ) -> Dict[str, Any]:
        state = engine.state
        return {
            "series_id": self.series_id,
            "last_period": state.last_period if state else None,
            "rank": state.rank if state else None,
            "engine_config": self.engine_config.to_dict(),
            "holdout_mae": metrics.mean_absolute_error,
            "holdout_rmse": metrics.root_mean_squared_error,
        }
