"""
Domain Entities - Forecast Model

This module defines the engine configuration and the fitted model state
produced by the singular spectrum decomposition. The state is immutable:
fit, update and restore build a new state and swap it in.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional, Tuple

import numpy as np

from revenue_forecast.domain.entities.time_series import Observation


def default_max_rank(window_size: int) -> int:
    """Cap for the automatic rank choice when none is configured."""
    return max(1, window_size // 2)


@dataclass(frozen=True)
class EngineConfig:
    """Tunables of a :class:`ForecastEngine`.

    ``confidence_level`` parameterises the band width directly: a lower value
    gives tighter bounds. It is not a coverage probability.
    """

    window_size: int
    series_length: int
    train_size: int
    horizon: int
    confidence_level: float
    domain_floor: float = 0.0
    # fixed signal rank; chosen from the eigen spectrum when None
    rank: Optional[int] = None
    # cap for the automatic rank choice, max(1, window_size // 2) when None
    max_rank: Optional[int] = None

    @property
    def lag_count(self) -> int:
        """Number of lagged values feeding the linear recurrence."""
        return self.window_size - 1

    @property
    def min_fit_points(self) -> int:
        return self.window_size + 1

    def effective_max_rank(self) -> int:
        if self.max_rank is not None:
            return self.max_rank
        return default_max_rank(self.window_size)

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-serialisable representation."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EngineConfig":
        return cls(
            window_size=int(data["window_size"]),
            series_length=int(data["series_length"]),
            train_size=int(data["train_size"]),
            horizon=int(data["horizon"]),
            confidence_level=float(data["confidence_level"]),
            domain_floor=float(data.get("domain_floor", 0.0)),
            rank=None if data.get("rank") is None else int(data["rank"]),
            max_rank=None if data.get("max_rank") is None else int(data["max_rank"]),
        )


def _frozen(array: np.ndarray) -> np.ndarray:
    out = np.array(array, dtype=np.float64, copy=True)
    out.setflags(write=False)
    return out


@dataclass(frozen=True, eq=False)
class ForecastModelState:
    """Fitted decomposition plus the running state needed to continue it."""

    eigenvalues: np.ndarray
    eigenvectors: np.ndarray
    coefficients: np.ndarray
    trailing_lags: np.ndarray
    residual_sum_squares: float
    residual_count: int
    last_period: int
    window: Tuple[Observation, ...]

    def __post_init__(self) -> None:
        for name in ("eigenvalues", "eigenvectors", "coefficients", "trailing_lags"):
            object.__setattr__(self, name, _frozen(getattr(self, name)))
        object.__setattr__(self, "window", tuple(self.window))

    @property
    def rank(self) -> int:
        return int(self.eigenvalues.shape[0])

    @property
    def residual_stderr(self) -> float:
        """Root mean square of the one-step-ahead recurrence errors."""
        if self.residual_count <= 0:
            return 0.0
        return math.sqrt(self.residual_sum_squares / self.residual_count)

    def components(self) -> Dict[int, Tuple[float, np.ndarray]]:
        """Map component index to its (eigenvalue, eigenvector) pair."""
        return {
            index: (float(self.eigenvalues[index]), self.eigenvectors[:, index])
            for index in range(self.rank)
        }

    def one_step(self, lags: np.ndarray) -> float:
        """Apply the recurrence to W-1 chronologically ordered lag values."""
        return float(np.dot(self.coefficients, lags))
