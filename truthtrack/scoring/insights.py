"""
Rule-based insight and recommendation synthesis.

Both rule sets are declarative tables evaluated in order, so each rule can be
listed, tested and documented on its own. Insight rules look at the raw
answers and the total; recommendation rules look at the breakdown.
"""

from dataclasses import dataclass
from typing import Callable, Sequence

from truthtrack.models.schemas import Answer, ScoreBreakdown


# =============================================================================
# Rule types
# =============================================================================

@dataclass(frozen=True)
class InsightRule:
    name: str
    predicate: Callable[[Sequence[Answer], int], bool]
    message: str


@dataclass(frozen=True)
class RecommendationRule:
    name: str
    predicate: Callable[[ScoreBreakdown], bool]
    message: str


@dataclass(frozen=True)
class ClosingBand:
    name: str
    min_total: int
    message: str


def _any_value(answers: Sequence[Answer], test: Callable[[str], bool]) -> bool:
    return any(test(answer.value.lower()) for answer in answers)


def _contains_any(*terms: str) -> Callable[[str], bool]:
    return lambda text: any(term in text for term in terms)


# =============================================================================
# Insight rules (fixed priority order)
# =============================================================================

INSIGHT_RULES: tuple[InsightRule, ...] = (
    InsightRule(
        name="ingredient_disclosure",
        predicate=lambda answers, total: _any_value(
            answers, lambda text: "ingredient" in text and len(text) > 30
        ),
        message="Comprehensive ingredient disclosure provided",
    ),
    InsightRule(
        name="certifications",
        predicate=lambda answers, total: _any_value(
            answers, _contains_any("certified", "certification")
        ),
        message="Product includes third-party certifications",
    ),
    InsightRule(
        name="supply_chain_origin",
        predicate=lambda answers, total: _any_value(
            answers, _contains_any("origin", "source", "manufactured")
        ),
        message="Supply chain origin information provided",
    ),
    InsightRule(
        name="high_transparency",
        predicate=lambda answers, total: total > 75,
        message="High transparency score indicates strong commitment to disclosure",
    ),
)


# =============================================================================
# Recommendation rules
# =============================================================================

RECOMMENDATION_RULES: tuple[RecommendationRule, ...] = (
    RecommendationRule(
        name="completeness",
        predicate=lambda b: b.completeness < 20,
        message="Complete all required questions to improve transparency score",
    ),
    RecommendationRule(
        name="quality",
        predicate=lambda b: b.quality < 15,
        message="Provide more detailed responses with specific information",
    ),
    RecommendationRule(
        name="transparency_level",
        predicate=lambda b: b.transparency_level < 15,
        message="Include more transparency-related information like certifications and standards",
    ),
    RecommendationRule(
        name="category_specific",
        predicate=lambda b: b.category_specific < 15,
        message="Add more category-specific details relevant to your product type",
    ),
)

# Highest band first; the first band whose minimum is met wins.
CLOSING_BANDS: tuple[ClosingBand, ...] = (
    ClosingBand(
        name="excellent",
        min_total=80,
        message="Excellent transparency! Consider publishing this report to build consumer trust",
    ),
    ClosingBand(
        name="good",
        min_total=60,
        message="Good transparency level. Focus on the areas above to reach excellence",
    ),
    ClosingBand(
        name="needs_improvement",
        min_total=0,
        message="Significant improvements needed. Focus on providing comprehensive product information",
    ),
)


# =============================================================================
# Synthesis
# =============================================================================

def generate_insights(answers: Sequence[Answer], total: int) -> list[str]:
    return [rule.message for rule in INSIGHT_RULES if rule.predicate(answers, total)]


def closing_recommendation(total: int) -> str:
    for band in CLOSING_BANDS:
        if total >= band.min_total:
            return band.message
    return CLOSING_BANDS[-1].message


def generate_recommendations(breakdown: ScoreBreakdown, total: int) -> list[str]:
    recommendations = [
        rule.message for rule in RECOMMENDATION_RULES if rule.predicate(breakdown)
    ]
    recommendations.append(closing_recommendation(total))
    return recommendations


def synthesize(
    answers: Sequence[Answer],
    breakdown: ScoreBreakdown,
    total: int,
) -> tuple[list[str], list[str]]:
    """Derive (insights, recommendations) from answers and their score."""
    return generate_insights(answers, total), generate_recommendations(breakdown, total)
