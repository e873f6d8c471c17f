"""Fixed-capacity FIFO buffer of the most recent observations."""

from __future__ import annotations

import math
from collections import deque
from typing import Deque, Iterable, Optional, Tuple

from revenue_forecast.domain.entities.errors import InvalidInput
from revenue_forecast.domain.entities.time_series import Observation


class SeriesWindow:
    """Ordered working memory of a forecast engine.

    Holds at most ``capacity`` observations; appending to a full window
    evicts the oldest one. Periods must be strictly increasing.
    """

    def __init__(
        self, capacity: int, observations: Optional[Iterable[Observation]] = None
    ):
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._capacity = capacity
        self._buffer: Deque[Observation] = deque(maxlen=capacity)
        if observations is not None:
            self.extend(observations)

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def newest(self) -> Optional[Observation]:
        return self._buffer[-1] if self._buffer else None

    def __len__(self) -> int:
        return len(self._buffer)

    def append(self, observation: Observation) -> None:
        """Add the newest observation, evicting the oldest when full.

        Raises:
            InvalidInput: If the period does not follow the newest one or the
                value is not a finite number.
        """
        if not math.isfinite(observation.value):
            raise InvalidInput(
                f"Observation for period {observation.period} has a non-finite value",
                details={"period": observation.period, "value": observation.value},
            )
        newest = self.newest
        if newest is not None and observation.period <= newest.period:
            raise InvalidInput(
                f"Observation period {observation.period} must be greater than "
                f"the newest period {newest.period}",
                details={"period": observation.period, "newest": newest.period},
            )
        self._buffer.append(observation)

    def extend(self, observations: Iterable[Observation]) -> None:
        for observation in observations:
            self.append(observation)

    def snapshot(self) -> Tuple[Observation, ...]:
        """Return an immutable ordered copy of the window contents."""
        return tuple(self._buffer)
