"""Report assembly: a structural merge of the scoring outputs."""

from datetime import datetime
from typing import Optional, Sequence

from truthtrack.models.schemas import (
    Answer,
    Product,
    ScoreBreakdown,
    TransparencyReport,
    utcnow,
)
from truthtrack.scoring.calculator import calculate_score
from truthtrack.scoring.insights import synthesize


def assemble_report(
    product: Product,
    answers: Sequence[Answer],
    breakdown: ScoreBreakdown,
    total: int,
    insights: Sequence[str],
    recommendations: Sequence[str],
    generated_at: Optional[datetime] = None,
) -> TransparencyReport:
    """
    Build the canonical report payload for one scoring run.

    No scoring happens here; ``questions_answered`` is the number of answers
    passed in, including empty ones.
    """
    return TransparencyReport(
        product=product,
        breakdown=breakdown,
        total=total,
        insights=list(insights),
        recommendations=list(recommendations),
        questions_answered=len(answers),
        generated_at=generated_at or utcnow(),
    )


def score_answers(
    product: Product,
    answers: Sequence[Answer],
    generated_at: Optional[datetime] = None,
) -> TransparencyReport:
    """Run calculator, synthesizer and assembler in one call."""
    breakdown = calculate_score(answers, product)
    insights, recommendations = synthesize(answers, breakdown, breakdown.total)
    return assemble_report(
        product,
        answers,
        breakdown,
        breakdown.total,
        insights,
        recommendations,
        generated_at=generated_at,
    )
