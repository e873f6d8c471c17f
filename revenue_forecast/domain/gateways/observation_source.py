"""
Domain Gateway - Observation Source

This module defines the gateway interface for loading the historical
series a forecast is trained on.
"""

from abc import ABC, abstractmethod
from typing import List

from revenue_forecast.domain.entities.time_series import Observation


class IObservationSource(ABC):
    """Interface for historical observation sources."""

    @abstractmethod
    async def load_observations(self) -> List[Observation]:
        """
        Load the full historical series.

        Returns:
            Observations ordered by strictly increasing period

        Raises:
            InvalidInput: When the stored series has duplicate periods or
                non-numeric values
            CollaboratorError: When the underlying store cannot be read
        """
        pass
