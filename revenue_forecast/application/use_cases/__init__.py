"""
Use Cases Package - Application Layer

This package contains the use cases orchestrating the forecasting engine
together with the observation source and the checkpoint repository.
"""

from .training_pipeline_use_case import PipelineResult, PipelineStage, TrainingPipeline

__all__ = ["PipelineResult", "PipelineStage", "TrainingPipeline"]
