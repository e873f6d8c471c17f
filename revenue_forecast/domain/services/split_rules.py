"""
Split Rules

Explicit rules partitioning a loaded series into a training segment and a
holdout segment. Each deployment picks one and configures its boundary.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Sequence

from revenue_forecast.domain.entities.errors import InvalidInput
from revenue_forecast.domain.entities.time_series import Observation, SeriesSplit


class SplitRule(ABC):
    """Partition observations into train and holdout."""

    def split(self, observations: Sequence[Observation]) -> SeriesSplit:
        """
        Apply the rule.

        Raises:
            InvalidInput: When the rule cannot be applied, or a holdout period
                does not come after every training period
        """
        train: List[Observation] = []
        holdout: List[Observation] = []
        for observation in observations:
            if self.is_training(observation):
                train.append(observation)
            else:
                holdout.append(observation)

        if train and holdout:
            last_train = max(obs.period for obs in train)
            first_holdout = min(obs.period for obs in holdout)
            if first_holdout <= last_train:
                raise InvalidInput(
                    "Holdout periods must follow every training period",
                    details={
                        "last_train_period": last_train,
                        "first_holdout_period": first_holdout,
                    },
                )
        return SeriesSplit(train=train, holdout=holdout)

    @abstractmethod
    def is_training(self, observation: Observation) -> bool:
        pass


class PeriodCutoffSplit(SplitRule):
    """Train on periods up to ``cutoff``; the rest is held out."""

    def __init__(self, cutoff: int, inclusive: bool = True):
        self.cutoff = cutoff
        self.inclusive = inclusive

    def is_training(self, observation: Observation) -> bool:
        if self.inclusive:
            return observation.period <= self.cutoff
        return observation.period < self.cutoff

    def __repr__(self) -> str:
        return f"PeriodCutoffSplit(cutoff={self.cutoff}, inclusive={self.inclusive})"


class SplitKeyBoundary(SplitRule):
    """Train on ``split_key < boundary``, hold out ``split_key >= boundary``.

    Typically the split key is a fiscal year and the boundary the first
    year to hold out.
    """

    def __init__(self, boundary: int):
        self.boundary = boundary

    def is_training(self, observation: Observation) -> bool:
        if observation.split_key is None:
            raise InvalidInput(
                f"Observation for period {observation.period} has no split key",
                details={"period": observation.period},
            )
        return observation.split_key < self.boundary

    def __repr__(self) -> str:
        return f"SplitKeyBoundary(boundary={self.boundary})"
