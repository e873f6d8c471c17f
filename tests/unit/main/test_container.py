from __future__ import annotations

import pytest

from revenue_forecast.application.use_cases.training_pipeline_use_case import (
    TrainingPipeline,
)
from revenue_forecast.domain.entities.errors import InvalidConfiguration
from revenue_forecast.domain.services.split_rules import (
    PeriodCutoffSplit,
    SplitKeyBoundary,
)
from revenue_forecast.infrastructure.gateways.sql_observation_source import (
    SqlObservationSource,
)
from revenue_forecast.infrastructure.repositories.file_checkpoint_repository import (
    FileCheckpointRepository,
)
from revenue_forecast.infrastructure.repositories.gridfs_checkpoint_repository import (
    GridFSCheckpointRepository,
)
from revenue_forecast.main.config import AppSettings
from revenue_forecast.main.container import (
    build_checkpoint_repository,
    build_split_rule,
    init_container,
    pipeline_lifespan,
)


@pytest.fixture()
def settings(monkeypatch, tmp_path) -> AppSettings:
    monkeypatch.setenv("DB_SQL_URL", f"sqlite:///{tmp_path / 'revenue.db'}")
    monkeypatch.setenv("CHECKPOINT_DIRECTORY", str(tmp_path / "checkpoints"))
    monkeypatch.setenv("PIPELINE_SPLIT_BOUNDARY", "2023")
    monkeypatch.setenv("PIPELINE_SERIES_ID", "tenant-7")
    monkeypatch.setenv("FORECAST_WINDOW_SIZE", "6")
    return AppSettings()


def test_init_container_wires_the_pipeline(settings: AppSettings) -> None:
    container = init_container(settings)

    pipeline = container.training_pipeline()
    assert isinstance(pipeline, TrainingPipeline)
    assert isinstance(pipeline.observation_source, SqlObservationSource)
    assert isinstance(pipeline.checkpoint_repository, FileCheckpointRepository)
    assert isinstance(pipeline.split_rule, SplitKeyBoundary)
    assert pipeline.series_id == "tenant-7"
    assert pipeline.engine_config.window_size == 6
    assert pipeline.engine_config == settings.to_engine_config()


def test_each_init_builds_an_independent_container(settings: AppSettings) -> None:
    first = init_container(settings)
    second = init_container(settings)

    assert first is not second
    assert first.sql_engine() is not second.sql_engine()


@pytest.mark.asyncio
async def test_pipeline_lifespan_yields_container(settings: AppSettings) -> None:
    container = init_container(settings)

    async with pipeline_lifespan(container) as active:
        assert active is container


def test_build_split_rule() -> None:
    assert isinstance(build_split_rule("period_cutoff", 10, False), PeriodCutoffSplit)
    assert isinstance(build_split_rule("split_key", 2023), SplitKeyBoundary)
    with pytest.raises(InvalidConfiguration):
        build_split_rule("split_key", None)
    with pytest.raises(InvalidConfiguration):
        build_split_rule("random", 1)


def test_build_checkpoint_repository(tmp_path) -> None:
    file_repository = build_checkpoint_repository(
        "file", str(tmp_path), "mongodb://localhost:27017", "forecast"
    )
    gridfs_repository = build_checkpoint_repository(
        "gridfs", str(tmp_path), "mongodb://localhost:27017", "forecast"
    )

    assert isinstance(file_repository, FileCheckpointRepository)
    assert isinstance(gridfs_repository, GridFSCheckpointRepository)
    with pytest.raises(InvalidConfiguration):
        build_checkpoint_repository("s3", str(tmp_path), "", "")
