"""
Application Settings - Main Layer

Use Pydantic Settings for configuration management.
This module handles configuration settings provided using
environment variables, .env files and default values.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from revenue_forecast.domain.entities.model_state import EngineConfig
from revenue_forecast.shared import (
    EnumCheckpointBackend,
    EnumEnvironment,
    EnumLogLevel,
    EnumSplitStrategy,
)


class ForecastSettings(BaseSettings):
    """Tunables of the forecast engine."""

    window_size: int = Field(
        default=12, description="Embedding window of the decomposition (periods)"
    )
    series_length: int = Field(
        default=36, description="Observations kept in the engine's working window"
    )
    train_size: int = Field(
        default=365,
        description="Maximum number of most recent observations used to fit",
    )
    horizon: int = Field(default=12, description="Number of periods to forecast")
    confidence_level: float = Field(
        default=0.95,
        description="Band width parameter in (0, 1); lower values tighten bounds",
    )
    domain_floor: float = Field(
        default=0.0, description="Lowest value a forecast or bound may take"
    )
    rank: Optional[int] = Field(
        default=None, description="Fixed signal rank; chosen automatically if unset"
    )
    max_rank: Optional[int] = Field(
        default=None, description="Cap for the automatic rank choice"
    )

    model_config = SettingsConfigDict(
        env_prefix="FORECAST_", case_sensitive=False, extra="ignore"
    )


class PipelineSettings(BaseSettings):
    """Training pipeline settings."""

    series_id: str = Field(
        default="revenue", description="Key the checkpoint is stored under"
    )
    split_strategy: EnumSplitStrategy = Field(
        default=EnumSplitStrategy.SPLIT_KEY,
        description="How observations are divided into train and holdout",
    )
    split_boundary: Optional[int] = Field(
        default=None,
        description="Period cutoff or first holdout split key, per strategy",
    )
    split_inclusive: bool = Field(
        default=True, description="Whether the period cutoff belongs to training"
    )
    load_timeout_seconds: float = Field(
        default=60.0, gt=0, description="Time budget for loading observations"
    )
    checkpoint_timeout_seconds: float = Field(
        default=30.0, gt=0, description="Time budget for storing the checkpoint"
    )

    model_config = SettingsConfigDict(
        env_prefix="PIPELINE_", case_sensitive=False, extra="ignore"
    )


class DatabaseSettings(BaseSettings):
    """SQL source configuration settings."""

    sql_url: str = Field(
        default="sqlite:///revenue.db", description="SQLAlchemy database URL"
    )
    observations_query: str = Field(
        default="SELECT month, revenue, year FROM monthly_revenue ORDER BY month",
        description="Query returning one row per period",
    )
    period_column: str = Field(default="month", description="Period column")
    value_column: str = Field(default="revenue", description="Metric column")
    split_key_column: Optional[str] = Field(
        default="year", description="Split key column, if any"
    )
    period_freq: str = Field(
        default="M", description="pandas period frequency for date periods"
    )

    model_config = SettingsConfigDict(
        env_prefix="DB_", case_sensitive=False, extra="ignore"
    )


class CheckpointSettings(BaseSettings):
    """Checkpoint storage settings."""

    backend: EnumCheckpointBackend = Field(
        default=EnumCheckpointBackend.FILE, description="Checkpoint storage backend"
    )
    directory: str = Field(
        default="checkpoints", description="Directory used by the file backend"
    )
    mongo_uri: str = Field(
        default="mongodb://localhost:27017/forecast_db",
        description="MongoDB connection URI used by the GridFS backend",
    )
    database_name: str = Field(
        default="forecast_db", description="Name of the MongoDB database"
    )

    model_config = SettingsConfigDict(
        env_prefix="CHECKPOINT_", case_sensitive=False, extra="ignore"
    )


class LoggingSettings(BaseSettings):
    """Logging configuration settings."""

    level: EnumLogLevel = Field(default=EnumLogLevel.INFO, description="Logging level")
    file_path: Optional[str] = Field(
        default=None, description="Log file path (if None, logs to console)"
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_", case_sensitive=False, extra="ignore"
    )


class AppSettings(BaseSettings):
    """Main application settings, aggregating all sub-settings."""

    environment: EnumEnvironment = Field(
        default=EnumEnvironment.DEVELOPMENT, description="Application environment"
    )

    forecast: ForecastSettings = Field(default_factory=ForecastSettings)
    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    checkpoint: CheckpointSettings = Field(default_factory=CheckpointSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_nested_delimiter="__",
        extra="ignore",
    )

    def to_engine_config(self) -> EngineConfig:
        """Build the domain engine configuration from the forecast settings."""
        forecast = self.forecast
        return EngineConfig(
            window_size=forecast.window_size,
            series_length=forecast.series_length,
            train_size=forecast.train_size,
            horizon=forecast.horizon,
            confidence_level=forecast.confidence_level,
            domain_floor=forecast.domain_floor,
            rank=forecast.rank,
            max_rank=forecast.max_rank,
        )


def get_settings() -> AppSettings:
    """
    Get application settings instance Factory.

    Used to be mocked in tests, allowing different settings based on environment.
    """
    return AppSettings()
