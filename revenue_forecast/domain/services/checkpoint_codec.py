"""
Checkpoint Codec

Serialises a fitted :class:`ForecastModelState` (and the configuration it was
fitted with) into an opaque byte blob and back. The blob is a NumPy ``.npz``
zip container: float arrays are stored in binary so a restored state
reproduces predictions bit for bit, and a JSON header carries the format
name, version and scalar fields.
"""

from __future__ import annotations

import io
import json
import zipfile
import zlib
from typing import Any, Dict, Tuple

import numpy as np

from revenue_forecast.domain.entities.errors import DomainError, SerializationFailure
from revenue_forecast.domain.entities.model_state import (
    EngineConfig,
    ForecastModelState,
)
from revenue_forecast.domain.entities.time_series import Observation
from revenue_forecast.domain.services.config_validator import (
    validate_engine_configuration,
)

CHECKPOINT_FORMAT = "revenue-forecast/ssa-state"
CHECKPOINT_VERSION = 1

_ARRAY_KEYS = (
    "eigenvalues",
    "eigenvectors",
    "coefficients",
    "trailing_lags",
    "residual_sum_squares",
    "window_periods",
    "window_values",
    "window_split_keys",
    "window_has_split_key",
)

_DECODE_ERRORS = (
    OSError,
    EOFError,
    ValueError,
    KeyError,
    TypeError,
    zipfile.BadZipFile,
    zlib.error,
)


def serialize_state(config: EngineConfig, state: ForecastModelState) -> bytes:
    """Encode ``state`` and its engine configuration into a checkpoint blob."""
    header: Dict[str, Any] = {
        "format": CHECKPOINT_FORMAT,
        "version": CHECKPOINT_VERSION,
        "config": config.to_dict(),
        "residual_count": state.residual_count,
        "last_period": state.last_period,
    }
    window = state.window
    buffer = io.BytesIO()
    np.savez_compressed(
        buffer,
        header=np.frombuffer(json.dumps(header).encode("utf-8"), dtype=np.uint8),
        eigenvalues=state.eigenvalues,
        eigenvectors=state.eigenvectors,
        coefficients=state.coefficients,
        trailing_lags=state.trailing_lags,
        residual_sum_squares=np.array([state.residual_sum_squares], dtype=np.float64),
        window_periods=np.array([obs.period for obs in window], dtype=np.int64),
        window_values=np.array([obs.value for obs in window], dtype=np.float64),
        window_split_keys=np.array(
            [obs.split_key if obs.split_key is not None else 0 for obs in window],
            dtype=np.int64,
        ),
        window_has_split_key=np.array(
            [obs.split_key is not None for obs in window], dtype=np.bool_
        ),
    )
    return buffer.getvalue()


def deserialize_state(blob: bytes) -> Tuple[EngineConfig, ForecastModelState]:
    """Decode a checkpoint blob.

    Raises:
        SerializationFailure: If the blob is malformed, of another format or
            of an unsupported version.
    """
    if not isinstance(blob, (bytes, bytearray, memoryview)):
        raise SerializationFailure(
            f"Checkpoint must be bytes, got {type(blob).__name__}"
        )

    try:
        archive = np.load(io.BytesIO(bytes(blob)), allow_pickle=False)
        if not hasattr(archive, "files"):
            raise SerializationFailure("Checkpoint is not an archive of arrays")
        with archive:
            missing = [key for key in ("header",) + _ARRAY_KEYS if key not in archive]
            if missing:
                raise SerializationFailure(
                    "Checkpoint is missing entries", details={"missing": missing}
                )
            header = json.loads(archive["header"].tobytes().decode("utf-8"))
            arrays = {key: archive[key] for key in _ARRAY_KEYS}
    except SerializationFailure:
        raise
    except _DECODE_ERRORS as e:
        raise SerializationFailure(f"Checkpoint could not be decoded: {e}") from e

    _check_header(header)

    try:
        config = EngineConfig.from_dict(header["config"])
        validate_engine_configuration(config)
        state = _build_state(header, arrays, config)
    except SerializationFailure:
        raise
    except (DomainError, KeyError, TypeError, ValueError) as e:
        raise SerializationFailure(f"Checkpoint content is invalid: {e}") from e

    return config, state


def _check_header(header: Any) -> None:
    if not isinstance(header, dict) or header.get("format") != CHECKPOINT_FORMAT:
        raise SerializationFailure("Blob is not a forecast engine checkpoint")
    version = header.get("version")
    if version != CHECKPOINT_VERSION:
        raise SerializationFailure(
            f"Unsupported checkpoint version {version!r}",
            details={"supported": CHECKPOINT_VERSION, "found": version},
        )


def _build_state(
    header: Dict[str, Any], arrays: Dict[str, np.ndarray], config: EngineConfig
) -> ForecastModelState:
    lag_count = config.lag_count
    eigenvalues = arrays["eigenvalues"]
    eigenvectors = arrays["eigenvectors"]

    if arrays["coefficients"].shape != (lag_count,):
        raise SerializationFailure("Recurrence coefficients do not match window size")
    if arrays["trailing_lags"].shape != (lag_count,):
        raise SerializationFailure("Trailing lags do not match window size")
    if eigenvectors.ndim != 2 or eigenvectors.shape != (
        config.window_size,
        eigenvalues.shape[0],
    ):
        raise SerializationFailure("Eigenvectors do not match the stored spectrum")

    window = tuple(
        Observation(
            period=int(period),
            value=float(value),
            split_key=int(key) if has_key else None,
        )
        for period, value, key, has_key in zip(
            arrays["window_periods"],
            arrays["window_values"],
            arrays["window_split_keys"],
            arrays["window_has_split_key"],
        )
    )

    return ForecastModelState(
        eigenvalues=eigenvalues,
        eigenvectors=eigenvectors,
        coefficients=arrays["coefficients"],
        trailing_lags=arrays["trailing_lags"],
        residual_sum_squares=float(arrays["residual_sum_squares"][0]),
        residual_count=int(header["residual_count"]),
        last_period=int(header["last_period"]),
        window=window,
    )
