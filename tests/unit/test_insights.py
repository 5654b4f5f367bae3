from uuid import uuid4

import pytest

from truthtrack.models.schemas import Answer, ScoreBreakdown
from truthtrack.scoring.insights import (
    CLOSING_BANDS,
    INSIGHT_RULES,
    RECOMMENDATION_RULES,
    closing_recommendation,
    generate_insights,
    generate_recommendations,
    synthesize,
)

INGREDIENTS = "Comprehensive ingredient disclosure provided"
CERTIFICATIONS = "Product includes third-party certifications"
SUPPLY_CHAIN = "Supply chain origin information provided"
HIGH_SCORE = "High transparency score indicates strong commitment to disclosure"

COMPLETE = "Complete all required questions to improve transparency score"
DETAIL = "Provide more detailed responses with specific information"
TRANSPARENCY = "Include more transparency-related information like certifications and standards"
CATEGORY = "Add more category-specific details relevant to your product type"
EXCELLENT = "Excellent transparency! Consider publishing this report to build consumer trust"
GOOD = "Good transparency level. Focus on the areas above to reach excellence"
LOW = "Significant improvements needed. Focus on providing comprehensive product information"


def make_answers(*values):
    return [Answer(question_id=uuid4(), value=v) for v in values]


# =============================================================================
# Insights
# =============================================================================

def test_rule_tables_are_ordered():
    assert [r.name for r in INSIGHT_RULES] == [
        "ingredient_disclosure",
        "certifications",
        "supply_chain_origin",
        "high_transparency",
    ]
    assert [r.name for r in RECOMMENDATION_RULES] == [
        "completeness",
        "quality",
        "transparency_level",
        "category_specific",
    ]
    assert [b.min_total for b in CLOSING_BANDS] == [80, 60, 0]


def test_ingredient_insight_needs_long_answer():
    assert generate_insights(make_answers("ingredient: oats"), 0) == []
    assert generate_insights(
        make_answers("Every ingredient is listed on the back of the pack"), 0
    ) == [INGREDIENTS]


def test_certification_insight_matches_either_term():
    assert generate_insights(make_answers("Certified B Corp"), 0) == [CERTIFICATIONS]
    assert generate_insights(make_answers("pending certification"), 0) == [CERTIFICATIONS]


@pytest.mark.parametrize("value", ["Country of origin: Peru", "We source locally", "Manufactured in Ohio"])
def test_supply_chain_insight(value):
    assert generate_insights(make_answers(value), 0) == [SUPPLY_CHAIN]


def test_high_score_insight_is_strictly_above_75():
    assert generate_insights([], 75) == []
    assert generate_insights([], 76) == [HIGH_SCORE]


def test_insights_keep_rule_order():
    answers = make_answers(
        "Manufactured in Vermont",
        "USDA certified",
        "Each ingredient comes from a single named farm",
    )
    assert generate_insights(answers, 90) == [INGREDIENTS, CERTIFICATIONS, SUPPLY_CHAIN, HIGH_SCORE]


def test_each_insight_at_most_once():
    answers = make_answers(*["certified organic, manufactured locally"] * 4)
    insights = generate_insights(answers, 0)
    assert len(insights) == len(set(insights))


# =============================================================================
# Recommendations
# =============================================================================

def test_empty_breakdown_gets_all_recommendations():
    assert generate_recommendations(ScoreBreakdown(), 0) == [
        COMPLETE, DETAIL, TRANSPARENCY, CATEGORY, LOW,
    ]


def test_thresholds_are_exclusive():
    breakdown = ScoreBreakdown(
        completeness=20, quality=15, transparency_level=15, category_specific=15
    )
    assert generate_recommendations(breakdown, breakdown.total) == [GOOD]


def test_only_category_recommendation_below_threshold():
    breakdown = ScoreBreakdown(
        completeness=25, quality=15, transparency_level=10, category_specific=10
    )
    recommendations = generate_recommendations(breakdown, breakdown.total)
    assert COMPLETE not in recommendations
    assert DETAIL not in recommendations
    assert TRANSPARENCY in recommendations
    assert CATEGORY in recommendations
    assert recommendations[-1] == GOOD


@pytest.mark.parametrize("total, message", [
    (100, EXCELLENT),
    (80, EXCELLENT),
    (79, GOOD),
    (60, GOOD),
    (59, LOW),
    (0, LOW),
])
def test_closing_band_boundaries(total, message):
    assert closing_recommendation(total) == message


def test_exactly_one_closing_message():
    breakdown = ScoreBreakdown(completeness=25, quality=25, transparency_level=25, category_specific=25)
    recommendations = generate_recommendations(breakdown, 100)
    closing = [r for r in recommendations if r in (EXCELLENT, GOOD, LOW)]
    assert closing == [EXCELLENT]
    assert recommendations[-1] == EXCELLENT


# =============================================================================
# Synthesis
# =============================================================================

def test_synthesize_empty_answers():
    insights, recommendations = synthesize([], ScoreBreakdown(), 0)
    assert insights == []
    assert recommendations == [COMPLETE, DETAIL, TRANSPARENCY, CATEGORY, LOW]


def test_synthesize_sample(sample_answers):
    breakdown = ScoreBreakdown(completeness=25, quality=11, transparency_level=4, category_specific=8)
    insights, recommendations = synthesize(sample_answers, breakdown, breakdown.total)

    assert insights == [INGREDIENTS, CERTIFICATIONS, SUPPLY_CHAIN]
    assert recommendations == [DETAIL, TRANSPARENCY, CATEGORY, LOW]
