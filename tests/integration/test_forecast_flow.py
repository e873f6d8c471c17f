from __future__ import annotations

import json

import numpy as np
import pandas as pd
import pytest

from revenue_forecast.domain.services.forecast_engine import ForecastEngine
from revenue_forecast.infrastructure.database import create_sql_engine
from revenue_forecast.main import __main__ as entrypoint
from revenue_forecast.main.config import AppSettings
from revenue_forecast.main.container import init_container
from tests.conftest import monthly_revenue


@pytest.fixture()
def revenue_db(tmp_path) -> str:
    url = f"sqlite:///{tmp_path / 'revenue.db'}"
    months = pd.date_range("2021-01-01", periods=36, freq="MS")
    frame = pd.DataFrame(
        {
            "month": months.strftime("%Y-%m-%d"),
            "revenue": monthly_revenue(36),
            "year": months.year,
        }
    )
    engine = create_sql_engine(url)
    frame.to_sql("monthly_revenue", engine, index=False)
    engine.dispose()
    return url


@pytest.fixture()
def environment(monkeypatch, tmp_path, revenue_db) -> None:
    monkeypatch.setenv("DB_SQL_URL", revenue_db)
    monkeypatch.setenv("CHECKPOINT_DIRECTORY", str(tmp_path / "checkpoints"))
    monkeypatch.setenv("PIPELINE_SERIES_ID", "tenant-1")
    monkeypatch.setenv("PIPELINE_SPLIT_STRATEGY", "split_key")
    monkeypatch.setenv("PIPELINE_SPLIT_BOUNDARY", "2023")
    monkeypatch.setenv("FORECAST_WINDOW_SIZE", "6")
    monkeypatch.setenv("FORECAST_SERIES_LENGTH", "24")
    monkeypatch.setenv("FORECAST_TRAIN_SIZE", "36")
    monkeypatch.setenv("FORECAST_HORIZON", "6")
    monkeypatch.setenv("FORECAST_CONFIDENCE_LEVEL", "0.9")


@pytest.mark.asyncio
async def test_pipeline_run_persists_a_restorable_checkpoint(environment) -> None:
    report = await entrypoint.run(AppSettings())

    assert report.series_id == "tenant-1"
    assert report.train_size == 24
    assert report.holdout_size == 12
    assert report.metrics.points == 6
    assert len(report.forecast) == 6
    january_2024 = (2024 - 1970) * 12
    assert report.forecast[0].period == january_2024
    for point in report.forecast:
        assert 0.0 <= point.lower_bound <= point.forecast <= point.upper_bound

    repository = init_container(AppSettings()).checkpoint_repository()
    blob = await repository.load_checkpoint("tenant-1")
    restored = ForecastEngine.from_checkpoint(blob)
    np.testing.assert_allclose(
        restored.predict().forecast, [point.forecast for point in report.forecast]
    )


def test_main_prints_report(environment, capsys) -> None:
    assert entrypoint.main() == 0

    payload = json.loads(capsys.readouterr().out)
    assert payload["series_id"] == "tenant-1"
    assert len(payload["comparison"]) == 6


def test_main_reports_failure(environment, monkeypatch) -> None:
    monkeypatch.setenv("PIPELINE_SPLIT_BOUNDARY", "1990")

    assert entrypoint.main() == 1
