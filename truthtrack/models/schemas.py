"""
Pydantic models and schemas for the TruthTrack transparency pipeline.

This module defines all data structures used throughout the pipeline,
ensuring type safety, validation, and serialization consistency.

Models:
    - Product: Submitted product, immutable during a scoring run
    - QuestionDraft / Question: Questionnaire entries before and after storage
    - Answer: A respondent's value for one question
    - ScoreBreakdown: Four clamped sub-scores and the derived total
    - TransparencyReport: Complete report payload
    - GeneratedQuestion / GeneratedQuestionSet: AI question service response
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Self
from uuid import UUID, uuid4

from pydantic import (
    BaseModel as PydanticBaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_serializer,
    field_validator,
    model_validator,
)


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


# =============================================================================
# Base Configuration
# =============================================================================

class BaseModel(PydanticBaseModel):
    """Base model with common configuration for all schemas."""

    model_config = ConfigDict(
        str_strip_whitespace=False,
        populate_by_name=True,
        use_enum_values=True,
    )

    def to_json(self, **kwargs) -> str:
        """Serialize model to JSON string."""
        return self.model_dump_json(indent=2, **kwargs)

    def to_dict(self, **kwargs) -> dict[str, Any]:
        """Serialize model to dictionary."""
        return self.model_dump(mode="json", **kwargs)

    @classmethod
    def from_json(cls, json_str: str) -> Self:
        """Deserialize model from JSON string."""
        return cls.model_validate_json(json_str)


# =============================================================================
# Enums
# =============================================================================

class ProductCategory(str, Enum):
    """Closed set of categories a product can be submitted under."""
    FOOD_BEVERAGES = "Food & Beverages"
    COSMETICS = "Cosmetics & Personal Care"
    ELECTRONICS = "Electronics"
    CLOTHING = "Clothing & Textiles"
    PHARMACEUTICALS = "Pharmaceuticals"
    HOME_GARDEN = "Home & Garden"
    SPORTS = "Sports & Recreation"
    OTHER = "Other"


class QuestionType(str, Enum):
    """How a question is presented and answered."""
    TEXT = "text"
    TEXTAREA = "textarea"
    SELECT = "select"


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class QuestionSource(str, Enum):
    """Where a question in the assembled questionnaire came from."""
    BASE = "base"
    AI_GENERATED = "ai_generated"
    CATEGORY_FALLBACK = "category_fallback"


class ScoreBand(str, Enum):
    """Display band for a total score."""
    EXCELLENT = "excellent"
    GOOD = "good"
    NEEDS_IMPROVEMENT = "needs_improvement"

    @classmethod
    def for_total(cls, total: int) -> "ScoreBand":
        if total >= 80:
            return cls.EXCELLENT
        if total >= 60:
            return cls.GOOD
        return cls.NEEDS_IMPROVEMENT


# =============================================================================
# Product
# =============================================================================

class Product(BaseModel):
    """
    Submitted product.

    Frozen so that a scoring run always sees the same snapshot. The category
    is kept as a plain string: values outside ProductCategory are rejected by
    the validation service on submission, but a stored product with an
    unknown category still scores (with a zero category-specific sub-score).

    Example:
        >>> product = Product(name="Granola Bar", category="Food & Beverages")
        >>> product.category
        'Food & Beverages'
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: UUID = Field(default_factory=uuid4, description="Product identity")
    name: str = Field(..., min_length=1, description="Product name")
    brand: Optional[str] = None
    category: str = Field(..., min_length=1, description="Product category")
    description: Optional[str] = None
    submitted_by: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)

    @field_validator("name", "category")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()

    @field_validator("brand", "description", "submitted_by")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None

    def request_payload(self) -> dict[str, Any]:
        """Product fields sent to the AI question service."""
        payload: dict[str, Any] = {"name": self.name, "category": self.category}
        if self.brand:
            payload["brand"] = self.brand
        if self.description:
            payload["description"] = self.description
        return payload


# =============================================================================
# Questions and Answers
# =============================================================================

class QuestionDraft(BaseModel):
    """A question as produced by the assembler, before it is stored."""

    text: str = Field(..., min_length=1, description="Question text")
    type: QuestionType = Field(..., description="Presentation type")
    options: Optional[list[str]] = Field(
        default=None,
        description="Choices, present iff type is select",
    )
    ai_generated: bool = Field(default=False)
    order_index: int = Field(default=0, ge=0, description="Position in the questionnaire")
    priority: Optional[Priority] = Field(default=None)
    source: QuestionSource = Field(default=QuestionSource.BASE)

    @model_validator(mode="after")
    def options_match_type(self) -> Self:
        if self.type == QuestionType.SELECT.value:
            if not self.options:
                raise ValueError("select questions need at least one option")
        elif self.options is not None:
            # Options are meaningless for free-text questions.
            self.options = None
        return self


class Question(QuestionDraft):
    """A stored question belonging to exactly one product."""

    id: UUID = Field(default_factory=uuid4)
    product_id: UUID

    @classmethod
    def from_draft(cls, draft: QuestionDraft, product_id: UUID) -> "Question":
        return cls(product_id=product_id, **draft.model_dump())


class Answer(BaseModel):
    """A respondent's answer to one question."""

    question_id: UUID
    value: str = Field(default="", description="Free-text or selected option")

    @field_validator("value", mode="before")
    @classmethod
    def none_is_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @property
    def is_answered(self) -> bool:
        return bool(self.value.strip())


# =============================================================================
# AI question service response
# =============================================================================

class GeneratedQuestion(BaseModel):
    """One entry of the AI question service response (raw, lenient)."""

    question_text: Optional[str] = None
    question_type: Optional[str] = None
    options: Optional[list[str]] = None
    priority: Optional[str] = None


class GeneratedQuestionSet(BaseModel):
    questions: list[GeneratedQuestion] = Field(default_factory=list)


# =============================================================================
# Scores
# =============================================================================

SUB_SCORE_MAX = 25
TOTAL_MAX = 100


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


class ScoreBreakdown(BaseModel):
    """Four independently clamped sub-scores. The total is always derived."""

    completeness: int = Field(default=0, ge=0, le=SUB_SCORE_MAX)
    quality: int = Field(default=0, ge=0, le=SUB_SCORE_MAX)
    transparency_level: int = Field(default=0, ge=0, le=SUB_SCORE_MAX)
    category_specific: int = Field(default=0, ge=0, le=SUB_SCORE_MAX)

    @computed_field
    @property
    def total(self) -> int:
        return clamp(
            self.completeness + self.quality + self.transparency_level + self.category_specific,
            0,
            TOTAL_MAX,
        )

    @property
    def band(self) -> ScoreBand:
        return ScoreBand.for_total(self.total)


class ProvisionalScore(BaseModel):
    """
    Placeholder value shown while the authoritative calculation runs.

    Never stored: the data store only accepts TransparencyReport.
    """

    value: int = Field(..., ge=0, le=TOTAL_MAX)
    provisional: bool = True


# =============================================================================
# Report
# =============================================================================

class TransparencyReport(BaseModel):
    """
    Complete report structure - the single payload persisted and rendered.

    Fully derived from a product snapshot and its answers; holds no state of
    its own beyond the generation timestamp and identity.
    """

    report_id: UUID = Field(default_factory=uuid4)
    product: Product
    breakdown: ScoreBreakdown = Field(default_factory=ScoreBreakdown)
    total: int = Field(default=0, ge=0, le=TOTAL_MAX)
    insights: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    questions_answered: int = Field(default=0, ge=0)
    generated_at: datetime = Field(default_factory=utcnow)
    enhanced_score: Optional[int] = Field(
        default=None,
        ge=0,
        le=TOTAL_MAX,
        description="Display-only refinement from the score enhancement service",
    )

    @field_serializer("generated_at")
    def serialize_datetime(self, value: datetime) -> str:
        if value.tzinfo is None:
            return value.isoformat() + "Z"
        return value.isoformat()

    @property
    def product_id(self) -> UUID:
        return self.product.id

    @property
    def band(self) -> ScoreBand:
        return ScoreBand.for_total(self.total)

    def to_payload(self) -> dict[str, Any]:
        """
        Flatten the report for the data store and the renderer.

        Every field the renderer references is present, so it never has to
        handle missing values.
        """
        product = self.product
        return {
            "id": str(self.report_id),
            "product_id": str(product.id),
            "product": {
                "name": product.name,
                "brand": product.brand or "",
                "category": product.category,
                "description": product.description or "",
                "submitted_by": product.submitted_by or "",
            },
            "score_breakdown": {
                "completeness": self.breakdown.completeness or 0,
                "quality": self.breakdown.quality or 0,
                "transparency_level": self.breakdown.transparency_level or 0,
                "category_specific": self.breakdown.category_specific or 0,
            },
            "total_score": self.total,
            "score_band": self.band.value,
            "insights": list(self.insights or []),
            "recommendations": list(self.recommendations or []),
            "questions_answered": self.questions_answered,
            "generated_at": self.serialize_datetime(self.generated_at),
        }


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
    "SUB_SCORE_MAX",
    "TOTAL_MAX",
    "clamp",
    "utcnow",
]
