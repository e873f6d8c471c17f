from __future__ import annotations

import threading
from dataclasses import replace
from typing import List

import numpy as np
import pytest

from revenue_forecast.domain.entities.errors import (
    EngineNotFitted,
    InsufficientData,
    InvalidInput,
    SerializationFailure,
)
from revenue_forecast.domain.entities.model_state import EngineConfig
from revenue_forecast.domain.entities.time_series import Observation
from revenue_forecast.domain.services.forecast_engine import (
    ForecastEngine,
    band_multiplier,
)
from tests.conftest import build_observations


def _noisy(level: float = 100.0, size: int = 120, seed: int = 3) -> List[Observation]:
    rng = np.random.default_rng(seed)
    return build_observations(level + rng.normal(0.0, 2.0, size))


def test_linear_ramp_forecast(
    ramp_config: EngineConfig, ramp_observations: List[Observation]
) -> None:
    result = ForecastEngine(ramp_config).fit(ramp_observations).predict()

    assert result.start_period == 13
    assert result.periods == [13, 14, 15]
    np.testing.assert_allclose(result.forecast, [13.0, 14.0, 15.0], atol=1e-6)
    np.testing.assert_allclose(result.upper_bound - result.lower_bound, 0.0, atol=1e-5)
    assert result.to_integer_rows()[0][0] in (12, 13)


def test_bounds_are_ordered(seasonal_config: EngineConfig, seasonal_observations) -> None:
    result = ForecastEngine(seasonal_config).fit(seasonal_observations).predict()

    assert np.all(result.lower_bound <= result.forecast)
    assert np.all(result.forecast <= result.upper_bound)


def test_results_are_clamped_to_domain_floor(ramp_config: EngineConfig) -> None:
    falling = build_observations(range(12, 0, -1), start=1)

    result = ForecastEngine(ramp_config).fit(falling).predict()

    assert np.all(result.lower_bound >= 0.0)
    assert np.all(result.forecast >= 0.0)
    assert result.forecast[1] == 0.0
    assert result.forecast[2] == 0.0
    assert np.all(result.lower_bound <= result.forecast)
    assert np.all(result.forecast <= result.upper_bound)


def test_custom_floor(ramp_config: EngineConfig) -> None:
    falling = build_observations(range(12, 0, -1), start=1)
    config = replace(ramp_config, domain_floor=-1.5)

    result = ForecastEngine(config).fit(falling).predict()

    np.testing.assert_allclose(result.forecast, [0.0, -1.0, -1.5], atol=1e-6)


def test_half_width_grows_with_horizon() -> None:
    config = EngineConfig(
        window_size=8,
        series_length=60,
        train_size=120,
        horizon=10,
        confidence_level=0.9,
        domain_floor=-1e9,
    )
    result = ForecastEngine(config).fit(_noisy()).predict()

    half_width = result.upper_bound - result.forecast
    assert np.all(half_width > 0)
    assert np.all(np.diff(half_width) > 0)
    np.testing.assert_allclose(result.forecast - result.lower_bound, half_width)


def test_lower_confidence_level_gives_tighter_band() -> None:
    base = EngineConfig(
        window_size=8,
        series_length=60,
        train_size=120,
        horizon=5,
        confidence_level=0.5,
    )
    narrow = ForecastEngine(base).fit(_noisy()).predict()
    wide = ForecastEngine(replace(base, confidence_level=0.95)).fit(_noisy()).predict()

    assert np.all(
        narrow.upper_bound - narrow.lower_bound < wide.upper_bound - wide.lower_bound
    )
    assert band_multiplier(0.5) < band_multiplier(0.95)


def test_fit_uses_last_train_size_observations(ramp_config: EngineConfig) -> None:
    config = replace(ramp_config, train_size=8, series_length=6)
    engine = ForecastEngine(config).fit(build_observations(range(1, 21), start=1))

    assert engine.state.last_period == 20
    assert engine.state.residual_count == 8 - 3
    assert [obs.period for obs in engine.window()] == list(range(15, 21))
    np.testing.assert_allclose(engine.predict().forecast, [21.0, 22.0, 23.0], atol=1e-6)


def test_fit_requires_window_plus_one_points(ramp_config: EngineConfig) -> None:
    with pytest.raises(InsufficientData):
        ForecastEngine(ramp_config).fit(build_observations([1.0, 2.0, 3.0, 4.0]))


def test_fit_rejects_unordered_observations(ramp_config: EngineConfig) -> None:
    observations = build_observations(range(1, 13), start=1)
    observations[3], observations[4] = observations[4], observations[3]

    with pytest.raises(InvalidInput):
        ForecastEngine(ramp_config).fit(observations)


def test_operations_before_fit_raise(ramp_config: EngineConfig) -> None:
    engine = ForecastEngine(ramp_config)

    assert engine.is_fitted is False
    with pytest.raises(EngineNotFitted):
        engine.predict()
    with pytest.raises(EngineNotFitted):
        engine.checkpoint()
    with pytest.raises(EngineNotFitted):
        engine.update(Observation(period=1, value=1.0))


def test_refit_replaces_state(
    ramp_config: EngineConfig, ramp_observations: List[Observation]
) -> None:
    engine = ForecastEngine(ramp_config).fit(ramp_observations)
    engine.fit(build_observations(range(101, 113), start=50))

    assert engine.state.last_period == 61
    np.testing.assert_allclose(engine.predict().forecast, [113.0, 114.0, 115.0], atol=1e-5)


def test_checkpoint_restore_is_bit_identical(
    seasonal_config: EngineConfig, seasonal_observations
) -> None:
    engine = ForecastEngine(seasonal_config).fit(seasonal_observations)
    before = engine.predict()

    restored = ForecastEngine.from_checkpoint(engine.checkpoint())
    after = restored.predict()

    assert restored.config == seasonal_config
    assert after.start_period == before.start_period
    np.testing.assert_array_equal(after.forecast, before.forecast)
    np.testing.assert_array_equal(after.lower_bound, before.lower_bound)
    np.testing.assert_array_equal(after.upper_bound, before.upper_bound)


def test_restore_rejects_incompatible_window(
    ramp_config: EngineConfig, ramp_observations: List[Observation]
) -> None:
    blob = ForecastEngine(ramp_config).fit(ramp_observations).checkpoint()
    other = ForecastEngine(replace(ramp_config, window_size=5))

    with pytest.raises(SerializationFailure):
        other.restore(blob)
    assert other.is_fitted is False


def test_restore_rejects_garbage(ramp_config: EngineConfig) -> None:
    with pytest.raises(SerializationFailure):
        ForecastEngine(ramp_config).restore(b"\x00\x01\x02")


def test_update_advances_lags_without_refitting(
    ramp_config: EngineConfig, ramp_observations: List[Observation]
) -> None:
    engine = ForecastEngine(ramp_config).fit(ramp_observations)
    coefficients = engine.state.coefficients.copy()
    count = engine.state.residual_count

    engine.update(Observation(period=13, value=13.0))

    result = engine.predict()
    assert result.start_period == 14
    np.testing.assert_allclose(result.forecast, [14.0, 15.0, 16.0], atol=1e-6)
    np.testing.assert_array_equal(engine.state.coefficients, coefficients)
    assert engine.state.residual_count == count + 1
    assert engine.window()[-1].period == 13
    assert len(engine.window()) == ramp_config.series_length


def test_update_scores_surprises_into_the_band(
    ramp_config: EngineConfig, ramp_observations: List[Observation]
) -> None:
    engine = ForecastEngine(ramp_config).fit(ramp_observations)
    before = engine.state.residual_sum_squares

    engine.update(Observation(period=13, value=23.0))

    assert engine.state.residual_sum_squares == pytest.approx(before + 100.0, rel=1e-6)


def test_update_rejects_stale_period(
    ramp_config: EngineConfig, ramp_observations: List[Observation]
) -> None:
    engine = ForecastEngine(ramp_config).fit(ramp_observations)
    with pytest.raises(InvalidInput):
        engine.update(Observation(period=12, value=12.0))
    assert engine.state.last_period == 12


def test_checkpoint_after_update_round_trips(
    ramp_config: EngineConfig, ramp_observations: List[Observation]
) -> None:
    engine = ForecastEngine(ramp_config).fit(ramp_observations)
    engine.update(Observation(period=13, value=13.5))

    restored = ForecastEngine(ramp_config).restore(engine.checkpoint())

    np.testing.assert_array_equal(restored.predict().forecast, engine.predict().forecast)
    assert restored.state.residual_count == engine.state.residual_count


def test_clone_is_independent(
    ramp_config: EngineConfig, ramp_observations: List[Observation]
) -> None:
    engine = ForecastEngine(ramp_config).fit(ramp_observations)
    clone = engine.clone()

    clone.update(Observation(period=13, value=13.0))

    assert engine.state.last_period == 12
    assert clone.state.last_period == 13


def test_state_arrays_are_read_only(
    ramp_config: EngineConfig, ramp_observations: List[Observation]
) -> None:
    engine = ForecastEngine(ramp_config).fit(ramp_observations)
    result = engine.predict()

    with pytest.raises(ValueError):
        engine.state.coefficients[0] = 1.0
    with pytest.raises(ValueError):
        result.forecast[0] = 1.0


def test_concurrent_predictions_during_updates(
    ramp_config: EngineConfig, ramp_observations: List[Observation]
) -> None:
    engine = ForecastEngine(ramp_config).fit(ramp_observations)
    errors: List[Exception] = []

    def read() -> None:
        try:
            for _ in range(200):
                result = engine.predict()
                assert np.all(result.lower_bound <= result.upper_bound)
        except Exception as exc:
            errors.append(exc)

    readers = [threading.Thread(target=read) for _ in range(4)]
    for reader in readers:
        reader.start()
    for period in range(13, 63):
        engine.update(Observation(period=period, value=float(period)))
    for reader in readers:
        reader.join()

    assert errors == []
    assert engine.state.last_period == 62
