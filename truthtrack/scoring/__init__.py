"""
Scoring package for the TruthTrack transparency pipeline.

Pure, synchronous functions: lexicons, the score calculator, the
insight/recommendation synthesizer and the report assembler.
"""

from truthtrack.scoring.calculator import (
    calculate_score,
    category_specific_score,
    completeness_score,
    keyword_hits,
    provisional_score,
    quality_score,
    transparency_level_score,
)
from truthtrack.scoring.insights import (
    CLOSING_BANDS,
    INSIGHT_RULES,
    RECOMMENDATION_RULES,
    generate_insights,
    generate_recommendations,
    synthesize,
)
from truthtrack.scoring.lexicons import (
    CATEGORY_KEYWORDS,
    TRANSPARENCY_KEYWORDS,
    category_keywords,
)
from truthtrack.scoring.report import assemble_report, score_answers

__all__ = [
    "calculate_score",
    "completeness_score",
    "quality_score",
    "transparency_level_score",
    "category_specific_score",
    "keyword_hits",
    "provisional_score",
    "INSIGHT_RULES",
    "RECOMMENDATION_RULES",
    "CLOSING_BANDS",
    "generate_insights",
    "generate_recommendations",
    "synthesize",
    "TRANSPARENCY_KEYWORDS",
    "CATEGORY_KEYWORDS",
    "category_keywords",
    "assemble_report",
    "score_answers",
]
