"""Domain entities for time-series / historic data."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np


@dataclass(frozen=True, slots=True)
class Observation:
    """A single recorded value of the metric for one discrete period."""

    period: int
    value: float
    split_key: Optional[int] = None


@dataclass(frozen=True, slots=True)
class SeriesSplit:
    """Training and holdout segments produced by a split rule."""

    train: List[Observation]
    holdout: List[Observation]


def observation_values(observations: Sequence[Observation]) -> np.ndarray:
    """Return the observation values as a float64 array."""
    return np.asarray([obs.value for obs in observations], dtype=np.float64)
