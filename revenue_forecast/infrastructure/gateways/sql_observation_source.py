"""
SQL Observation Source - Infrastructure Layer

Loads the historical series with a configured SQL query. The period column
may hold integer period indices or dates; dates are converted to period
ordinals at the configured pandas frequency (monthly by default), so
consecutive months map to consecutive integers.
"""

import asyncio
from typing import List, Optional

import numpy as np
import pandas as pd
import structlog
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from revenue_forecast.domain.entities.errors import CollaboratorError, InvalidInput
from revenue_forecast.domain.entities.time_series import Observation
from revenue_forecast.domain.gateways.observation_source import IObservationSource

logger = structlog.get_logger(__name__)


class SqlObservationSource(IObservationSource):
    """SQLAlchemy + pandas implementation of the observation source."""

    def __init__(
        self,
        engine: Engine,
        query: str,
        period_column: str,
        value_column: str,
        split_key_column: Optional[str] = None,
        period_freq: str = "M",
    ):
        """
        Initialize the SQL observation source.

        Args:
            engine: SQLAlchemy engine to read from
            query: SELECT statement returning one row per period
            period_column: Column holding the period (integer or date-like)
            value_column: Column holding the metric value
            split_key_column: Optional column holding the split key (e.g. year)
            period_freq: pandas period frequency for date-like period columns
        """
        self.engine = engine
        self.query = query
        self.period_column = period_column
        self.value_column = value_column
        self.split_key_column = split_key_column
        self.period_freq = period_freq

    async def load_observations(self) -> List[Observation]:
        try:
            frame = await asyncio.to_thread(self._read_frame)
        except (SQLAlchemyError, pd.errors.DatabaseError) as e:
            logger.error(
                "sql_observation_source.query_failed",
                error_type=type(e).__name__,
                error=str(e),
            )
            raise CollaboratorError(f"Failed to load observations: {e}") from e

        observations = self.to_observations(frame)
        logger.info(
            "sql_observation_source.loaded",
            rows=len(observations),
            first_period=observations[0].period if observations else None,
            last_period=observations[-1].period if observations else None,
        )
        return observations

    def _read_frame(self) -> pd.DataFrame:
        with self.engine.connect() as connection:
            return pd.read_sql_query(text(self.query), connection)

    def to_observations(self, frame: pd.DataFrame) -> List[Observation]:
        """Convert a query result to ordered observations.

        Raises:
            InvalidInput: On missing columns, non-numeric or missing values,
                or duplicate periods
        """
        required = [self.period_column, self.value_column]
        if self.split_key_column:
            required.append(self.split_key_column)
        missing = [column for column in required if column not in frame.columns]
        if missing:
            raise InvalidInput(
                "Query result is missing required columns",
                details={"missing": missing, "columns": list(frame.columns)},
            )

        if frame.empty:
            return []

        split_keys: List[Optional[int]] = [None] * len(frame)
        try:
            periods = self._periods(frame[self.period_column])
            values = pd.to_numeric(frame[self.value_column], errors="raise").to_numpy(
                dtype=np.float64
            )
            if self.split_key_column:
                split_keys = [
                    None if pd.isna(key) else int(key)
                    for key in frame[self.split_key_column]
                ]
        except (TypeError, ValueError, OverflowError) as e:
            raise InvalidInput(f"Query result could not be converted: {e}") from e

        if not np.all(np.isfinite(values)):
            raise InvalidInput(
                "Query result contains missing or non-finite values",
                details={"column": self.value_column},
            )

        order = np.argsort(periods, kind="stable")
        periods = periods[order]
        duplicated = periods[1:][periods[1:] == periods[:-1]]
        if duplicated.size:
            raise InvalidInput(
                "Query result contains duplicate periods",
                details={"periods": sorted({int(p) for p in duplicated})},
            )

        return [
            Observation(
                period=int(periods[position]),
                value=float(values[index]),
                split_key=split_keys[index],
            )
            for position, index in enumerate(order)
        ]

    def _periods(self, column: pd.Series) -> np.ndarray:
        if column.isna().any():
            raise ValueError(f"column {self.period_column!r} has missing periods")
        if pd.api.types.is_integer_dtype(column):
            return column.to_numpy(dtype=np.int64)
        if pd.api.types.is_float_dtype(column):
            raw = column.to_numpy(dtype=np.float64)
            if not np.all(raw == np.round(raw)):
                raise ValueError(f"column {self.period_column!r} has fractional periods")
            return raw.astype(np.int64)
        dates = pd.to_datetime(column)
        if dates.dt.tz is not None:
            dates = dates.dt.tz_localize(None)
        return dates.dt.to_period(self.period_freq).array.asi8.astype(np.int64)
