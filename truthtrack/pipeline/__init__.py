"""Pipeline module for the TruthTrack transparency pipeline."""

from truthtrack.pipeline.orchestrator import (
    PipelineError,
    ReportGenerationError,
    ReportStateDict,
    SubmissionError,
    TransparencyPipeline,
    analyze_product,
)

__all__ = [
    "TransparencyPipeline",
    "PipelineError",
    "SubmissionError",
    "ReportGenerationError",
    "ReportStateDict",
    "analyze_product",
]
