"""
Application Layer Package

This package contains the application-specific use cases. It orchestrates
the flow of observations through the forecasting engine and its external
collaborators, and shapes the results for reporting.
"""

# Re-export submodules
from revenue_forecast.application import dtos, use_cases

__all__ = ["dtos", "use_cases"]
