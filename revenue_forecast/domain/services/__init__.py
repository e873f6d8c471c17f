"""Domain services: windowing, decomposition, forecasting and evaluation."""

from .checkpoint_codec import CHECKPOINT_FORMAT, CHECKPOINT_VERSION
from .config_validator import validate_engine_configuration
from .evaluator import Evaluator
from .forecast_engine import ForecastEngine, band_multiplier
from .series_window import SeriesWindow
from .split_rules import PeriodCutoffSplit, SplitKeyBoundary, SplitRule
from .ssa_decomposer import SSADecomposer, SSADecomposition

__all__ = [
    "CHECKPOINT_FORMAT",
    "CHECKPOINT_VERSION",
    "validate_engine_configuration",
    "Evaluator",
    "ForecastEngine",
    "band_multiplier",
    "SeriesWindow",
    "PeriodCutoffSplit",
    "SplitKeyBoundary",
    "SplitRule",
    "SSADecomposer",
    "SSADecomposition",
]
