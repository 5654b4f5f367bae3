"""
Keyword lexicons used by the score calculator.

Terms are lower-case and matched by substring containment against the
lower-cased answer text, so multi-word terms ("fair trade") and hyphenated
terms ("cruelty-free") are matched literally.
"""

from truthtrack.models.schemas import ProductCategory

TRANSPARENCY_KEYWORDS: tuple[str, ...] = (
    "certified",
    "organic",
    "sustainable",
    "recyclable",
    "biodegradable",
    "fair trade",
    "cruelty-free",
    "non-toxic",
    "locally sourced",
    "transparency",
    "disclosure",
    "verified",
    "tested",
    "compliant",
)

CATEGORY_KEYWORDS: dict[str, tuple[str, ...]] = {
    ProductCategory.FOOD_BEVERAGES.value: (
        "ingredients",
        "allergens",
        "nutrition",
        "preservatives",
        "additives",
        "source",
        "farm",
        "organic",
        "gmo",
        "shelf life",
    ),
    ProductCategory.COSMETICS.value: (
        "ingredients",
        "testing",
        "cruelty",
        "parabens",
        "sulfates",
        "natural",
        "dermatologist",
        "hypoallergenic",
        "fragrance",
    ),
    ProductCategory.ELECTRONICS.value: (
        "materials",
        "recycling",
        "energy",
        "conflict minerals",
        "warranty",
        "repair",
        "lifecycle",
        "disposal",
        "manufacturing",
    ),
}


def category_keywords(category: str) -> tuple[str, ...]:
    """Lexicon for a category; empty for categories without one."""
    return CATEGORY_KEYWORDS.get(category, ())
