from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

import numpy as np
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from revenue_forecast.domain.entities.model_state import EngineConfig  # noqa: E402
from revenue_forecast.domain.entities.time_series import Observation  # noqa: E402
from revenue_forecast.domain.gateways.observation_source import (  # noqa: E402
    IObservationSource,
)
from revenue_forecast.domain.repositories.checkpoint_repository import (  # noqa: E402
    CheckpointArtifact,
    ICheckpointRepository,
)


def build_observations(
    values: Iterable[float],
    start: int = 0,
    split_keys: Optional[Sequence[Optional[int]]] = None,
) -> List[Observation]:
    observations = []
    for index, value in enumerate(values):
        key = split_keys[index] if split_keys is not None else None
        observations.append(
            Observation(period=start + index, value=float(value), split_key=key)
        )
    return observations


def monthly_revenue(
    months: int = 36, seed: int = 7, noise: float = 10.0
) -> np.ndarray:
    """Trend plus yearly seasonality plus gaussian noise of std ``noise``."""
    rng = np.random.default_rng(seed)
    t = np.arange(months)
    return 1000.0 + 5.0 * t + 120.0 * np.sin(2 * np.pi * t / 12) + rng.normal(
        0.0, noise, months
    )


@pytest.fixture()
def ramp_config() -> EngineConfig:
    return EngineConfig(
        window_size=4,
        series_length=12,
        train_size=12,
        horizon=3,
        confidence_level=0.05,
    )


@pytest.fixture()
def ramp_observations() -> List[Observation]:
    return build_observations(range(1, 13), start=1)


@pytest.fixture()
def seasonal_config() -> EngineConfig:
    return EngineConfig(
        window_size=6,
        series_length=24,
        train_size=36,
        horizon=6,
        confidence_level=0.9,
    )


@pytest.fixture()
def seasonal_observations() -> List[Observation]:
    values = monthly_revenue()
    years = [2021 + index // 12 for index in range(len(values))]
    return build_observations(values, start=0, split_keys=years)


class InMemoryObservationSource(IObservationSource):
    def __init__(self, observations: Sequence[Observation], delay: float = 0.0):
        self.observations = list(observations)
        self.delay = delay
        self.calls = 0

    async def load_observations(self) -> List[Observation]:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        return list(self.observations)


class InMemoryCheckpointRepository(ICheckpointRepository):
    def __init__(self, delay: float = 0.0) -> None:
        self.artifacts: Dict[str, CheckpointArtifact] = {}
        self.delay = delay
        self._counter = 0

    async def save_checkpoint(
        self,
        series_id: str,
        content: bytes,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> str:
        if self.delay:
            await asyncio.sleep(self.delay)
        self._counter += 1
        checkpoint_id = f"{series_id}-{self._counter}"
        self.artifacts[series_id] = CheckpointArtifact(
            checkpoint_id=checkpoint_id,
            series_id=series_id,
            content=content,
            metadata=metadata,
        )
        return checkpoint_id

    async def get_checkpoint(self, series_id: str) -> Optional[CheckpointArtifact]:
        return self.artifacts.get(series_id)

    async def delete_checkpoints(self, series_id: str) -> int:
        return 1 if self.artifacts.pop(series_id, None) is not None else 0


@pytest.fixture()
def checkpoint_repository() -> InMemoryCheckpointRepository:
    return InMemoryCheckpointRepository()
