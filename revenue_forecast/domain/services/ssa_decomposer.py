"""
Singular Spectrum Decomposition

This module embeds a series into its trajectory matrix, extracts the
dominant eigen-triples of the lag-covariance matrix and derives the linear
recurrence that continues the signal subspace:

    x[n] = sum_{j=1..W-1} R[W-1-j] * x[n-j]

with ``R = U_head . nu / (1 - nu^2)`` where ``nu`` is the last row of the
retained eigenvectors and ``U_head`` their first ``W - 1`` rows.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
import structlog
from numpy.lib.stride_tricks import sliding_window_view

from revenue_forecast.domain.entities.errors import InsufficientData
from revenue_forecast.domain.entities.model_state import default_max_rank

logger = structlog.get_logger(__name__)

# eigenvalues below this fraction of the largest one are treated as noise floor
_SPECTRUM_FLOOR = 1e-12
# signal eigenvalues exceed this multiple of the noise level
_NOISE_MULTIPLE = 3.0
# nu^2 must stay below 1 for the recurrence to exist
_VERTICALITY_LIMIT = 1.0 - 1e-9


@dataclass(frozen=True, eq=False)
class SSADecomposition:
    """Retained eigen-triples and the recurrence derived from them."""

    spectrum: np.ndarray
    eigenvalues: np.ndarray
    eigenvectors: np.ndarray
    coefficients: np.ndarray
    verticality: float

    @property
    def rank(self) -> int:
        return int(self.eigenvalues.shape[0])


class SSADecomposer:
    """Fits the signal subspace of a windowed series."""

    def __init__(
        self,
        window_size: int,
        rank: Optional[int] = None,
        max_rank: Optional[int] = None,
    ):
        self.window_size = window_size
        self.rank = rank
        self.max_rank = (
            max_rank if max_rank is not None else default_max_rank(window_size)
        )

    def trajectory_matrix(self, values: np.ndarray) -> np.ndarray:
        """Return the W x K matrix whose columns are the lagged windows."""
        return sliding_window_view(values, self.window_size).T

    def decompose(self, values: np.ndarray) -> SSADecomposition:
        """Decompose ``values`` and derive the recurrence coefficients.

        Raises:
            InsufficientData: If fewer than ``window_size + 1`` values are given.
        """
        values = np.asarray(values, dtype=np.float64)
        if values.ndim != 1 or values.shape[0] < self.window_size + 1:
            raise InsufficientData(
                f"Need at least {self.window_size + 1} observations to decompose, "
                f"got {values.shape[0] if values.ndim == 1 else 0}",
                details={"required": self.window_size + 1},
            )

        trajectory = self.trajectory_matrix(values)
        lag_covariance = trajectory @ trajectory.T

        spectrum, vectors = np.linalg.eigh(lag_covariance)
        order = np.argsort(spectrum)[::-1]
        spectrum = np.clip(spectrum[order], 0.0, None)
        vectors = vectors[:, order]

        rank = self.select_rank(spectrum)
        coefficients, verticality, rank = self.recurrence_coefficients(
            vectors[:, :rank]
        )

        logger.debug(
            "ssa_decomposer.decomposed",
            points=int(values.shape[0]),
            window_size=self.window_size,
            rank=rank,
            verticality=verticality,
            retained_share=(
                float(spectrum[:rank].sum() / spectrum.sum())
                if spectrum.sum() > 0
                else 0.0
            ),
        )

        return SSADecomposition(
            spectrum=spectrum,
            eigenvalues=spectrum[:rank].copy(),
            eigenvectors=vectors[:, :rank].copy(),
            coefficients=coefficients,
            verticality=verticality,
        )

    def select_rank(self, spectrum: np.ndarray) -> int:
        """Number of leading components treated as signal.

        A configured rank wins. Otherwise the eigenvalues past ``max_rank``
        are taken as noise, and the leading components whose eigenvalue
        exceeds ``_NOISE_MULTIPLE`` times their median are kept (at least one,
        at most ``max_rank``).
        """
        if spectrum.size == 0 or spectrum[0] <= 0.0:
            return 0
        if self.rank is not None:
            return min(self.rank, self.window_size - 1)

        cap = min(self.max_rank, self.window_size - 1)
        floored = np.maximum(spectrum, spectrum[0] * _SPECTRUM_FLOOR)
        noise_level = float(np.median(floored[cap:]))
        signal = int(np.count_nonzero(floored[:cap] > _NOISE_MULTIPLE * noise_level))
        return max(1, signal)

    def recurrence_coefficients(
        self, eigenvectors: np.ndarray
    ) -> Tuple[np.ndarray, float, int]:
        """Return (coefficients, verticality, rank actually used).

        Trailing components are dropped while the verticality coefficient
        reaches 1. Rank 0 gives all-zero coefficients.
        """
        for rank in range(eigenvectors.shape[1], 0, -1):
            retained = eigenvectors[:, :rank]
            nu = retained[-1, :]
            verticality = float(nu @ nu)
            if verticality < _VERTICALITY_LIMIT:
                coefficients = retained[:-1, :] @ nu / (1.0 - verticality)
                return coefficients, verticality, rank
            logger.warning(
                "ssa_decomposer.component_dropped",
                rank=rank,
                verticality=verticality,
            )
        return np.zeros(self.window_size - 1, dtype=np.float64), 0.0, 0

    def one_step_residuals(
        self, values: np.ndarray, coefficients: np.ndarray
    ) -> np.ndarray:
        """Actual minus one-step-ahead recurrence prediction over ``values``."""
        values = np.asarray(values, dtype=np.float64)
        lag_count = self.window_size - 1
        lags = sliding_window_view(values[:-1], lag_count)
        predictions = lags @ coefficients
        return values[lag_count:] - predictions
