"""Questionnaire assembly for the TruthTrack transparency pipeline."""

from truthtrack.questions.assembler import (
    BASE_QUESTIONS,
    FALLBACK_QUESTIONS,
    QuestionAssembler,
    assemble_questions,
    fallback_questions,
    is_usable_generated_set,
    is_well_formed,
)

__all__ = [
    "BASE_QUESTIONS",
    "FALLBACK_QUESTIONS",
    "QuestionAssembler",
    "assemble_questions",
    "fallback_questions",
    "is_usable_generated_set",
    "is_well_formed",
]
