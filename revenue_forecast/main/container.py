"""
Dependency container injection module - Main Layer

This module implements the dependency injection container
to simplify the management and lifecycle of dependencies
in the application.
"""

from contextlib import asynccontextmanager
from typing import Any, Optional

from dependency_injector import containers, providers
from pymongo import MongoClient

from revenue_forecast.application.use_cases.training_pipeline_use_case import (
    TrainingPipeline,
)
from revenue_forecast.domain.entities.errors import InvalidConfiguration
from revenue_forecast.domain.entities.model_state import EngineConfig
from revenue_forecast.domain.repositories.checkpoint_repository import (
    ICheckpointRepository,
)
from revenue_forecast.domain.services.evaluator import Evaluator
from revenue_forecast.domain.services.split_rules import (
    PeriodCutoffSplit,
    SplitKeyBoundary,
    SplitRule,
)
from revenue_forecast.infrastructure.database import create_sql_engine
from revenue_forecast.infrastructure.gateways.sql_observation_source import (
    SqlObservationSource,
)
from revenue_forecast.infrastructure.repositories.file_checkpoint_repository import (
    FileCheckpointRepository,
)
from revenue_forecast.infrastructure.repositories.gridfs_checkpoint_repository import (
    GridFSCheckpointRepository,
)
from revenue_forecast.shared import (
    EnumCheckpointBackend,
    EnumSplitStrategy,
    get_logger,
)

from .config import AppSettings

logger = get_logger(__name__)


def _enum_value(value: Any) -> Any:
    return value.value if hasattr(value, "value") else value


def build_split_rule(
    strategy: Any, boundary: Optional[int], inclusive: bool = True
) -> SplitRule:
    """Split rule selected by the pipeline settings."""
    if boundary is None:
        raise InvalidConfiguration(
            "A split boundary is required", details={"setting": "PIPELINE_SPLIT_BOUNDARY"}
        )
    strategy = _enum_value(strategy)
    if strategy == EnumSplitStrategy.PERIOD_CUTOFF.value:
        return PeriodCutoffSplit(cutoff=boundary, inclusive=inclusive)
    if strategy == EnumSplitStrategy.SPLIT_KEY.value:
        return SplitKeyBoundary(boundary=boundary)
    raise InvalidConfiguration(f"Unknown split strategy {strategy!r}")


def build_checkpoint_repository(
    backend: Any, directory: str, mongo_uri: str, database_name: str
) -> ICheckpointRepository:
    """Checkpoint repository selected by the checkpoint settings."""
    backend = _enum_value(backend)
    if backend == EnumCheckpointBackend.FILE.value:
        return FileCheckpointRepository(directory=directory)
    if backend == EnumCheckpointBackend.GRIDFS.value:
        return GridFSCheckpointRepository(
            mongo_client=MongoClient(mongo_uri), database_name=database_name
        )
    raise InvalidConfiguration(f"Unknown checkpoint backend {backend!r}")


class AppContainer(containers.DeclarativeContainer):
    """Composition Root using dependency-injector."""

    # Settings
    config = providers.Configuration()

    engine_config = providers.Factory(
        EngineConfig,
        window_size=config.forecast.window_size,
        series_length=config.forecast.series_length,
        train_size=config.forecast.train_size,
        horizon=config.forecast.horizon,
        confidence_level=config.forecast.confidence_level,
        domain_floor=config.forecast.domain_floor,
        rank=config.forecast.rank,
        max_rank=config.forecast.max_rank,
    )

    # Infrastructure
    sql_engine = providers.Singleton(
        create_sql_engine,
        database_url=config.database.sql_url,
    )

    observation_source = providers.Singleton(
        SqlObservationSource,
        engine=sql_engine,
        query=config.database.observations_query,
        period_column=config.database.period_column,
        value_column=config.database.value_column,
        split_key_column=config.database.split_key_column,
        period_freq=config.database.period_freq,
    )

    checkpoint_repository = providers.Singleton(
        build_checkpoint_repository,
        backend=config.checkpoint.backend,
        directory=config.checkpoint.directory,
        mongo_uri=config.checkpoint.mongo_uri,
        database_name=config.checkpoint.database_name,
    )

    # Domain
    split_rule = providers.Factory(
        build_split_rule,
        strategy=config.pipeline.split_strategy,
        boundary=config.pipeline.split_boundary,
        inclusive=config.pipeline.split_inclusive,
    )

    evaluator = providers.Factory(Evaluator)

    # Application (use cases)
    training_pipeline = providers.Factory(
        TrainingPipeline,
        observation_source=observation_source,
        checkpoint_repository=checkpoint_repository,
        split_rule=split_rule,
        engine_config=engine_config,
        series_id=config.pipeline.series_id,
        evaluator=evaluator,
        load_timeout_seconds=config.pipeline.load_timeout_seconds,
        checkpoint_timeout_seconds=config.pipeline.checkpoint_timeout_seconds,
    )


def init_container(settings: AppSettings) -> AppContainer:
    """Build a container configured from the application settings."""

    container = AppContainer()
    container.config.from_pydantic(settings)
    return container


@asynccontextmanager
async def pipeline_lifespan(container: AppContainer):
    """
    Lifecycle of the external resources used by a pipeline run.

    Yields ``container`` and disposes its SQL connection pool once the run
    is over.
    """
    sql_engine = container.sql_engine()
    try:
        logger.info("container.resources.initialized")
        yield container
    finally:
        sql_engine.dispose()
        logger.info("container.resources.shutdown")
