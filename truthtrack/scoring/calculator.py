"""
Deterministic transparency score calculator.

Computes the four-part breakdown from the submitted answers:

    completeness        share of non-empty answers, scaled to 25
    quality             length tiers per answer, capped at 25
    transparency_level  general transparency keyword hits, capped at 25
    category_specific   category keyword hits (2 points each), capped at 25

The calculator is driven by the answer set alone: a question that was never
submitted as an answer is absent from the completeness denominator.
"""

import math
import random
from typing import Iterable, Optional, Sequence, Union

from truthtrack.models.schemas import (
    SUB_SCORE_MAX,
    TOTAL_MAX,
    Answer,
    Product,
    ProvisionalScore,
    ScoreBreakdown,
    clamp,
)
from truthtrack.scoring.lexicons import TRANSPARENCY_KEYWORDS, category_keywords
from truthtrack.utils.logger import get_logger

logger = get_logger(__name__)

# Quality tiers: (minimum exclusive length, points)
QUALITY_TIERS: tuple[tuple[int, int], ...] = (
    (50, 3),
    (20, 2),
    (0, 1),
)

CATEGORY_KEYWORD_POINTS = 2
TRANSPARENCY_KEYWORD_POINTS = 1

PROVISIONAL_BASE = 60
PROVISIONAL_PER_ANSWER = 5
PROVISIONAL_JITTER = 20
PROVISIONAL_CAP = 90


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative values."""
    return int(math.floor(value + 0.5))


def keyword_hits(text: str, keywords: Iterable[str]) -> int:
    """Number of distinct keywords contained in ``text`` (case-insensitive)."""
    lowered = text.lower()
    return sum(1 for keyword in keywords if keyword in lowered)


def completeness_score(answers: Sequence[Answer]) -> int:
    answered = sum(1 for answer in answers if answer.is_answered)
    return clamp(
        round_half_up(SUB_SCORE_MAX * answered / max(len(answers), 1)),
        0,
        SUB_SCORE_MAX,
    )


def answer_quality_points(value: str) -> int:
    length = len(value)
    for threshold, points in QUALITY_TIERS:
        if length > threshold:
            return points
    return 0


def quality_score(answers: Sequence[Answer]) -> int:
    return clamp(sum(answer_quality_points(a.value) for a in answers), 0, SUB_SCORE_MAX)


def transparency_level_score(answers: Sequence[Answer]) -> int:
    hits = sum(keyword_hits(a.value, TRANSPARENCY_KEYWORDS) for a in answers)
    return clamp(hits * TRANSPARENCY_KEYWORD_POINTS, 0, SUB_SCORE_MAX)


def category_specific_score(answers: Sequence[Answer], category: str) -> int:
    keywords = category_keywords(category)
    if not keywords:
        return 0
    hits = sum(keyword_hits(a.value, keywords) for a in answers)
    return clamp(hits * CATEGORY_KEYWORD_POINTS, 0, SUB_SCORE_MAX)


def calculate_score(
    answers: Sequence[Answer],
    product: Union[Product, str],
) -> ScoreBreakdown:
    """
    Compute the score breakdown for a set of answers.

    Args:
        answers: Answers collected for the product (may be empty)
        product: The product, or just its category

    Returns:
        ScoreBreakdown; ``breakdown.total`` is the clamped sum
    """
    category = product.category if isinstance(product, Product) else product

    breakdown = ScoreBreakdown(
        completeness=completeness_score(answers),
        quality=quality_score(answers),
        transparency_level=transparency_level_score(answers),
        category_specific=category_specific_score(answers, category),
    )

    logger.debug(
        "Score calculated",
        category=category,
        answers=len(answers),
        completeness=breakdown.completeness,
        quality=breakdown.quality,
        transparency_level=breakdown.transparency_level,
        category_specific=breakdown.category_specific,
        total=breakdown.total,
    )
    return breakdown


def provisional_score(
    answer_count: int,
    rng: Optional[random.Random] = None,
) -> ProvisionalScore:
    """
    Quick placeholder score for display before the real calculation lands.

    Uses a random component, so it must never be stored as a report score.
    """
    rng = rng or random.Random()
    value = math.floor(
        PROVISIONAL_BASE
        + answer_count * PROVISIONAL_PER_ANSWER
        + rng.random() * PROVISIONAL_JITTER
    )
    return ProvisionalScore(value=clamp(min(PROVISIONAL_CAP, value), 0, TOTAL_MAX))
