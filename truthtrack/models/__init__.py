"""Data models module for the TruthTrack transparency pipeline."""

from truthtrack.models.schemas import (
    # Base Models
    BaseModel,

    # Enums
    ProductCategory,
    QuestionType,
    Priority,
    QuestionSource,
    ScoreBand,

    # Input Models
    Product,
    QuestionDraft,
    Question,
    Answer,

    # AI question service
    GeneratedQuestion,
    GeneratedQuestionSet,

    # Score and Report Models
    ScoreBreakdown,
    ProvisionalScore,
    TransparencyReport,
)

__all__ = [
    "BaseModel",
    "ProductCategory",
    "QuestionType",
    "Priority",
    "QuestionSource",
    "ScoreBand",
    "Product",
    "QuestionDraft",
    "Question",
    "Answer",
    "GeneratedQuestion",
    "GeneratedQuestionSet",
    "ScoreBreakdown",
    "ProvisionalScore",
    "TransparencyReport",
]
