"""Pipeline orchestrators for video generation."""

from videogen.pipelines.generation_pipeline import GenerationPipeline, create_pipeline
from videogen.pipelines.run_generation import main

__all__ = ["GenerationPipeline", "create_pipeline", "main"]
