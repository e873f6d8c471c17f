"""
Command line entry point.

Runs one training pipeline cycle and prints the forecast report as JSON:

    python -m revenue_forecast.main
"""

import asyncio
import sys

from revenue_forecast.application.dtos.forecast_dto import ForecastReportDTO
from revenue_forecast.domain.entities.errors import DomainError
from revenue_forecast.main.config import AppSettings, get_settings
from revenue_forecast.main.container import init_container, pipeline_lifespan
from revenue_forecast.shared import (
    configure_logging,
    get_logger,
    update_logging_from_settings,
)

logger = get_logger(__name__)


async def run(settings: AppSettings) -> ForecastReportDTO:
    """Build the container and run the training pipeline once."""
    async with pipeline_lifespan(init_container(settings)) as container:
        pipeline = container.training_pipeline()
        result = await pipeline.execute()
    return ForecastReportDTO.from_result(settings.pipeline.series_id, result)


def main() -> int:
    configure_logging()
    settings = get_settings()
    update_logging_from_settings(settings)

    try:
        report = asyncio.run(run(settings))
    except DomainError as e:
        logger.error(
            "main.run_failed",
            error_type=type(e).__name__,
            error=e.message,
            details=e.details,
        )
        return 1

    print(report.model_dump_json(indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
