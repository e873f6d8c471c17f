"""
Forecast Engine

Owns one fitted SSA state and one series window. ``fit`` replaces both,
``update`` advances the trailing-lag buffer with a new observation without
touching the decomposition, ``predict`` rolls the linear recurrence forward
over the configured horizon and wraps it in a confidence band.

Mutating calls (fit, update, restore) serialise on a per-engine lock.
``predict`` and ``checkpoint`` work on the current immutable state and may
run concurrently with each other.
"""

from __future__ import annotations

import threading
from typing import Optional, Sequence, Tuple

import numpy as np
import structlog
from scipy.stats import norm

from revenue_forecast.domain.entities.errors import (
    EngineNotFitted,
    InsufficientData,
    SerializationFailure,
)
from revenue_forecast.domain.entities.forecast import ForecastResult, readonly
from revenue_forecast.domain.entities.model_state import (
    EngineConfig,
    ForecastModelState,
)
from revenue_forecast.domain.entities.time_series import Observation
from revenue_forecast.domain.services.checkpoint_codec import (
    deserialize_state,
    serialize_state,
)
from revenue_forecast.domain.services.config_validator import (
    validate_engine_configuration,
)
from revenue_forecast.domain.services.series_window import SeriesWindow
from revenue_forecast.domain.services.ssa_decomposer import SSADecomposer

logger = structlog.get_logger(__name__)


def band_multiplier(confidence_level: float) -> float:
    """z(c) = normal quantile at 0.5 + c / 2; grows with ``confidence_level``."""
    return float(norm.ppf(0.5 + confidence_level / 2.0))


class ForecastEngine:
    """SSA forecaster with checkpoint and incremental update support."""

    def __init__(
        self, config: EngineConfig, decomposer: Optional[SSADecomposer] = None
    ):
        """
        Initialize the engine.

        Args:
            config: Engine tunables, validated here
            decomposer: Decomposer to fit with; built from ``config`` when omitted

        Raises:
            InvalidConfiguration: When the tunables violate their constraints
        """
        validate_engine_configuration(config)
        self._config = config
        self._decomposer = decomposer or SSADecomposer(
            window_size=config.window_size,
            rank=config.rank,
            max_rank=config.effective_max_rank(),
        )
        self._z = band_multiplier(config.confidence_level)
        self._lock = threading.RLock()
        self._window = SeriesWindow(config.series_length)
        self._state: Optional[ForecastModelState] = None

    @property
    def config(self) -> EngineConfig:
        return self._config

    @property
    def state(self) -> Optional[ForecastModelState]:
        return self._state

    @property
    def is_fitted(self) -> bool:
        return self._state is not None

    def window(self) -> Tuple[Observation, ...]:
        return self._window.snapshot()

    def fit(self, observations: Sequence[Observation]) -> "ForecastEngine":
        """Fit the decomposition on the last ``train_size`` observations.

        Raises:
            InvalidInput: If periods are not strictly increasing
            InsufficientData: If fewer than ``window_size + 1`` points remain
        """
        cfg = self._config
        ordered = SeriesWindow(len(observations) or 1, observations).snapshot()
        training = ordered[-cfg.train_size :]

        if len(training) < cfg.min_fit_points:
            raise InsufficientData(
                f"Fit needs at least {cfg.min_fit_points} observations, "
                f"got {len(training)}",
                details={"required": cfg.min_fit_points, "received": len(training)},
            )

        values = np.array([obs.value for obs in training], dtype=np.float64)
        decomposition = self._decomposer.decompose(values)
        residuals = self._decomposer.one_step_residuals(
            values, decomposition.coefficients
        )

        window = SeriesWindow(cfg.series_length, training)
        state = ForecastModelState(
            eigenvalues=decomposition.eigenvalues,
            eigenvectors=decomposition.eigenvectors,
            coefficients=decomposition.coefficients,
            trailing_lags=values[-cfg.lag_count :],
            residual_sum_squares=float(np.dot(residuals, residuals)),
            residual_count=int(residuals.shape[0]),
            last_period=training[-1].period,
            window=window.snapshot(),
        )

        with self._lock:
            self._window = window
            self._state = state

        logger.info(
            "forecast_engine.fit_completed",
            points=len(training),
            first_period=training[0].period,
            last_period=state.last_period,
            rank=state.rank,
            residual_stderr=state.residual_stderr,
        )
        return self

    def predict(self) -> ForecastResult:
        """Roll the recurrence ``horizon`` steps ahead of the last period."""
        state = self._require_state("predict")
        cfg = self._config
        lag_count = cfg.lag_count

        buffer = np.empty(lag_count + cfg.horizon, dtype=np.float64)
        buffer[:lag_count] = state.trailing_lags
        for step in range(cfg.horizon):
            buffer[lag_count + step] = state.one_step(
                buffer[step : step + lag_count]
            )
        point = buffer[lag_count:]

        half_width = (
            self._z * state.residual_stderr * np.sqrt(np.arange(1, cfg.horizon + 1))
        )
        floor = cfg.domain_floor

        return ForecastResult(
            start_period=state.last_period + 1,
            forecast=readonly(np.maximum(floor, point)),
            lower_bound=readonly(np.maximum(floor, point - half_width)),
            upper_bound=readonly(np.maximum(floor, point + half_width)),
        )

    def update(self, observation: Observation) -> None:
        """Append a new observation and advance the trailing-lag buffer.

        The eigenvectors and recurrence coefficients are kept; only a full
        ``fit`` absorbs new trend or seasonal structure.

        Raises:
            InvalidInput: If the observation does not follow the newest period
        """
        with self._lock:
            state = self._require_state("update")
            self._window.append(observation)

            error = observation.value - state.one_step(state.trailing_lags)
            lags = np.append(state.trailing_lags[1:], observation.value)
            self._state = ForecastModelState(
                eigenvalues=state.eigenvalues,
                eigenvectors=state.eigenvectors,
                coefficients=state.coefficients,
                trailing_lags=lags,
                residual_sum_squares=state.residual_sum_squares + error * error,
                residual_count=state.residual_count + 1,
                last_period=observation.period,
                window=self._window.snapshot(),
            )

        logger.debug(
            "forecast_engine.updated",
            period=observation.period,
            one_step_error=error,
        )

    def checkpoint(self) -> bytes:
        """Serialise the current state into an opaque blob."""
        state = self._require_state("checkpoint")
        blob = serialize_state(self._config, state)
        logger.info(
            "forecast_engine.checkpoint_created",
            last_period=state.last_period,
            size_bytes=len(blob),
        )
        return blob

    def restore(self, blob: bytes) -> "ForecastEngine":
        """Replace the current state with one decoded from ``blob``.

        Raises:
            SerializationFailure: If the blob is malformed, of an unsupported
                version, or was fitted with another window size or series length
        """
        config, state = deserialize_state(blob)
        if (
            config.window_size != self._config.window_size
            or config.series_length != self._config.series_length
        ):
            raise SerializationFailure(
                "Checkpoint was created with an incompatible configuration",
                details={
                    "checkpoint_window_size": config.window_size,
                    "engine_window_size": self._config.window_size,
                    "checkpoint_series_length": config.series_length,
                    "engine_series_length": self._config.series_length,
                },
            )

        window = SeriesWindow(self._config.series_length, state.window)
        with self._lock:
            self._window = window
            self._state = state

        logger.info(
            "forecast_engine.restored",
            last_period=state.last_period,
            rank=state.rank,
        )
        return self

    @classmethod
    def from_checkpoint(cls, blob: bytes) -> "ForecastEngine":
        """Build an engine with the configuration embedded in ``blob``."""
        config, _ = deserialize_state(blob)
        return cls(config).restore(blob)

    def clone(self) -> "ForecastEngine":
        """Independent copy of this engine, state included."""
        engine = ForecastEngine(self._config, self._decomposer)
        if self._state is not None:
            engine.restore(self.checkpoint())
        return engine

    def _require_state(self, operation: str) -> ForecastModelState:
        state = self._state
        if state is None:
            raise EngineNotFitted(operation)
        return state
