"""
TruthTrack - Product Transparency Scoring.

Assembles a per-product questionnaire (fixed base questions plus AI-generated
or category fallback questions), scores the answers on four 0-25 dimensions,
and produces a stored transparency report with insights and recommendations.
"""

__version__ = "1.0.0"
__author__ = "TruthTrack Team"

# Lazy imports to avoid circular dependencies
def get_pipeline():
    """Get the TransparencyPipeline class (lazy import)."""
    from truthtrack.pipeline.orchestrator import TransparencyPipeline
    return TransparencyPipeline

__all__ = ["get_pipeline", "__version__"]
