"""
Question assembly.

The questionnaire for a product is built from three sources:

    BASE               three fixed questions, always first
    AI_GENERATED       questions from the QuestionGenerator, if usable
    CATEGORY_FALLBACK  deterministic per-category questions otherwise

``assemble_questions`` is the pure merge; ``QuestionAssembler`` adds the call
to the generator and turns every failure of that call into the fallback path.
"""

from typing import Optional, Sequence

from truthtrack.models.schemas import (
    GeneratedQuestion,
    Priority,
    Product,
    ProductCategory,
    QuestionDraft,
    QuestionSource,
    QuestionType,
)
from truthtrack.services.question_service import GenerationResult, QuestionGenerator
from truthtrack.utils.logger import get_logger

logger = get_logger(__name__)

VALID_TYPES = frozenset(t.value for t in QuestionType)
VALID_PRIORITIES = frozenset(p.value for p in Priority)


# =============================================================================
# Question tables
# =============================================================================

BASE_QUESTIONS: tuple[QuestionDraft, ...] = (
    QuestionDraft(
        text="What are the main ingredients or materials used in this product?",
        type=QuestionType.TEXTAREA,
        ai_generated=False,
        source=QuestionSource.BASE,
    ),
    QuestionDraft(
        text="Where is this product manufactured?",
        type=QuestionType.TEXT,
        ai_generated=False,
        source=QuestionSource.BASE,
    ),
    QuestionDraft(
        text="What certifications does this product have?",
        type=QuestionType.TEXTAREA,
        ai_generated=False,
        source=QuestionSource.BASE,
    ),
)


def _fallback(text: str, type_: QuestionType, priority: Priority, options=None) -> QuestionDraft:
    return QuestionDraft(
        text=text,
        type=type_,
        options=options,
        priority=priority,
        ai_generated=True,
        source=QuestionSource.CATEGORY_FALLBACK,
    )


FALLBACK_QUESTIONS: dict[str, tuple[QuestionDraft, ...]] = {
    ProductCategory.FOOD_BEVERAGES.value: (
        _fallback(
            "List all allergens present in this product",
            QuestionType.TEXTAREA,
            Priority.HIGH,
        ),
        _fallback(
            "What is the shelf life of this product?",
            QuestionType.TEXT,
            Priority.MEDIUM,
        ),
        _fallback(
            "Are there any artificial preservatives, colors, or flavors?",
            QuestionType.SELECT,
            Priority.MEDIUM,
            options=["Yes", "No", "Some artificial ingredients"],
        ),
    ),
    ProductCategory.COSMETICS.value: (
        _fallback(
            "Is this product tested on animals?",
            QuestionType.SELECT,
            Priority.HIGH,
            options=["Yes", "No", "Unknown"],
        ),
        _fallback(
            "What is the product's sustainability packaging approach?",
            QuestionType.TEXTAREA,
            Priority.MEDIUM,
        ),
    ),
    ProductCategory.ELECTRONICS.value: (
        _fallback(
            "What is the expected lifespan of this product?",
            QuestionType.TEXT,
            Priority.MEDIUM,
        ),
        _fallback(
            "Are replacement parts available?",
            QuestionType.SELECT,
            Priority.MEDIUM,
            options=["Yes", "No", "Limited availability"],
        ),
    ),
}


def fallback_questions(category: str) -> list[QuestionDraft]:
    """Deterministic questions for a category; empty for unknown categories."""
    return [q.model_copy() for q in FALLBACK_QUESTIONS.get(category, ())]


# =============================================================================
# Generated question validation
# =============================================================================

def is_well_formed(question: GeneratedQuestion) -> bool:
    """A generated entry needs non-blank text, a known type, and options for select."""
    if not question.question_text or not question.question_text.strip():
        return False
    if question.question_type not in VALID_TYPES:
        return False
    if question.question_type == QuestionType.SELECT.value:
        return bool(question.options) and all(
            isinstance(o, str) and o.strip() for o in question.options
        )
    return True


def is_usable_generated_set(questions: Optional[Sequence[GeneratedQuestion]]) -> bool:
    """The generated set replaces the fallback only if it is non-empty and fully well-formed."""
    return bool(questions) and all(is_well_formed(q) for q in questions)


def to_draft(question: GeneratedQuestion) -> QuestionDraft:
    priority = question.priority if question.priority in VALID_PRIORITIES else None
    return QuestionDraft(
        text=question.question_text.strip(),
        type=question.question_type,
        options=question.options if question.question_type == QuestionType.SELECT.value else None,
        priority=priority,
        ai_generated=True,
        source=QuestionSource.AI_GENERATED,
    )


# =============================================================================
# Assembly
# =============================================================================

def assemble_questions(product: Product, generation: GenerationResult) -> list[QuestionDraft]:
    """
    Merge base questions with the generated or fallback set.

    ``order_index`` is the position in the returned list.
    """
    if generation.available and is_usable_generated_set(generation.questions):
        chosen = [to_draft(q) for q in generation.questions]
        source = QuestionSource.AI_GENERATED
    else:
        if generation.available:
            logger.warning(
                "Generated questions unusable, using fallback",
                product_id=str(product.id),
                count=len(generation.questions),
            )
        chosen = fallback_questions(product.category)
        source = QuestionSource.CATEGORY_FALLBACK

    drafts = [q.model_copy() for q in BASE_QUESTIONS] + chosen
    for index, draft in enumerate(drafts):
        draft.order_index = index

    logger.info(
        "Questions assembled",
        product_id=str(product.id),
        category=product.category,
        source=source.value,
        total=len(drafts),
    )
    return drafts


class QuestionAssembler:
    """
    Builds the questionnaire for a product.

    Example:
        >>> assembler = QuestionAssembler(UnconfiguredQuestionGenerator())
        >>> drafts = await assembler.assemble(product)
    """

    def __init__(self, generator: QuestionGenerator):
        self.generator = generator

    async def assemble(self, product: Product) -> list[QuestionDraft]:
        generation = await self._try_generate(product)
        return assemble_questions(product, generation)

    async def _try_generate(self, product: Product) -> GenerationResult:
        try:
            result = await self.generator.try_generate(product)
        except Exception as e:
            logger.warning(
                "Question generator failed, using fallback",
                product_id=str(product.id),
                generator=self.generator.name,
                error=str(e),
            )
            return GenerationResult.unavailable(f"error: {e}")

        if not isinstance(result, GenerationResult):
            return GenerationResult.unavailable("malformed result")
        if not result.available:
            logger.info(
                "Generated questions unavailable, using fallback",
                product_id=str(product.id),
                reason=result.reason,
            )
        return result
