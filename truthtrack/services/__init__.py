"""
Services package for the TruthTrack transparency pipeline.

Services:
    - ClaudeService: LLM question generation using Anthropic Claude
    - QuestionGenerator: Port for AI-generated questions (Claude / unconfigured)
    - ScoreEnhancer: Best-effort display-only score refinement
    - DataStore: Product, question, answer and report persistence
    - ValidationService: Input validation and sanitization
"""

from truthtrack.services.enhancement_service import (
    HttpScoreEnhancer,
    NullScoreEnhancer,
    ScoreEnhancer,
    create_score_enhancer,
)
from truthtrack.services.llm_service import ClaudeService, TokenUsage
from truthtrack.services.question_service import (
    ClaudeQuestionGenerator,
    GenerationResult,
    QuestionGenerator,
    UnconfiguredQuestionGenerator,
    create_question_generator,
)
from truthtrack.services.storage import DataStore, InMemoryDataStore, JsonFileDataStore
from truthtrack.services.validation_service import ValidationService

__all__ = [
    "ClaudeService",
    "TokenUsage",
    "GenerationResult",
    "QuestionGenerator",
    "ClaudeQuestionGenerator",
    "UnconfiguredQuestionGenerator",
    "create_question_generator",
    "ScoreEnhancer",
    "HttpScoreEnhancer",
    "NullScoreEnhancer",
    "create_score_enhancer",
    "DataStore",
    "InMemoryDataStore",
    "JsonFileDataStore",
    "ValidationService",
]
