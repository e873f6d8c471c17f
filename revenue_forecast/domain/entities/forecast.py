"""Domain entities for forecast output and accuracy reporting."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

import numpy as np


@dataclass(frozen=True, eq=False)
class ForecastResult:
    """Point forecast and confidence band for periods after the last trained one.

    ``forecast[i]``, ``lower_bound[i]`` and ``upper_bound[i]`` refer to
    period ``start_period + i``.
    """

    start_period: int
    forecast: np.ndarray
    lower_bound: np.ndarray
    upper_bound: np.ndarray

    def __post_init__(self) -> None:
        lengths = {len(self.forecast), len(self.lower_bound), len(self.upper_bound)}
        if len(lengths) != 1:
            raise ValueError("forecast, lower_bound and upper_bound must align")

    def __len__(self) -> int:
        return len(self.forecast)

    @property
    def horizon(self) -> int:
        return len(self.forecast)

    @property
    def periods(self) -> List[int]:
        return [self.start_period + step for step in range(self.horizon)]

    def to_integer_rows(self) -> List[List[int]]:
        """Return ``[lower, forecast, upper]`` per period, truncated to integers."""
        return [
            [int(lower), int(point), int(upper)]
            for lower, point, upper in zip(
                self.lower_bound, self.forecast, self.upper_bound
            )
        ]


@dataclass(frozen=True, slots=True)
class EvaluationMetrics:
    """Accuracy of a forecast against held-out actuals."""

    mean_absolute_error: float
    root_mean_squared_error: float
    points: int


@dataclass(frozen=True, slots=True)
class ForecastComparisonPoint:
    """One holdout period next to what the engine forecast for it."""

    period: int
    actual: float
    lower_bound: float
    forecast: float
    upper_bound: float


def readonly(values: np.ndarray) -> np.ndarray:
    out = np.asarray(values, dtype=np.float64).copy()
    out.setflags(write=False)
    return out
