"""
Question generator port and its adapters.

The question assembler never talks to an AI provider directly. It receives a
``QuestionGenerator`` whose ``try_generate`` always returns a
``GenerationResult`` (available with questions, or unavailable with a
reason). Which adapter is used is decided once, from the explicit credential
flag in settings, by ``create_question_generator``.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional

from truthtrack.config.settings import Settings, get_settings
from truthtrack.models.schemas import GeneratedQuestion, Product
from truthtrack.services.llm_service import ClaudeService
from truthtrack.utils.errors import ErrorHandler
from truthtrack.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class GenerationResult:
    """Outcome of one attempt to obtain AI-generated questions."""

    available: bool
    questions: tuple[GeneratedQuestion, ...] = field(default_factory=tuple)
    reason: Optional[str] = None

    @classmethod
    def success(cls, questions) -> "GenerationResult":
        return cls(available=True, questions=tuple(questions))

    @classmethod
    def unavailable(cls, reason: str) -> "GenerationResult":
        return cls(available=False, reason=reason)


class QuestionGenerator(ABC):
    """Port for the external AI question service."""

    name: str = "generator"

    @abstractmethod
    async def try_generate(self, product: Product) -> GenerationResult:
        """Return generated questions, or an unavailable result. Must not raise."""
        raise NotImplementedError

    async def close(self) -> None:
        return None


class UnconfiguredQuestionGenerator(QuestionGenerator):
    """Used when no AI credentials are configured."""

    name = "unconfigured"

    def __init__(self, reason: str = "AI question service not configured"):
        self.reason = reason

    async def try_generate(self, product: Product) -> GenerationResult:
        return GenerationResult.unavailable(self.reason)


class ClaudeQuestionGenerator(QuestionGenerator):
    """Generates questions with Claude, bounded by a timeout."""

    name = "claude"

    def __init__(
        self,
        llm_service: ClaudeService,
        timeout_seconds: float = 30.0,
    ):
        self.llm_service = llm_service
        self.timeout_seconds = timeout_seconds

    async def try_generate(self, product: Product) -> GenerationResult:
        try:
            question_set = await asyncio.wait_for(
                self.llm_service.generate_questions(product),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Question generation timed out",
                product_id=str(product.id),
                timeout_seconds=self.timeout_seconds,
            )
            return GenerationResult.unavailable("timeout")
        except Exception as e:
            category = ErrorHandler.categorize_error(e)
            if ErrorHandler.is_degradable(e):
                logger.warning(
                    "Question generation unavailable",
                    product_id=str(product.id),
                    error_type=category,
                    error=str(e),
                )
            else:
                logger.error(
                    "Question generation failed unexpectedly",
                    product_id=str(product.id),
                    error_type=category,
                    error=str(e),
                    exc_info=True,
                )
            return GenerationResult.unavailable(category.lower())

        if not question_set.questions:
            return GenerationResult.unavailable("empty response")

        logger.info(
            "Generated questions received",
            product_id=str(product.id),
            count=len(question_set.questions),
        )
        return GenerationResult.success(question_set.questions)

    async def close(self) -> None:
        await self.llm_service.close()


def create_question_generator(settings: Optional[Settings] = None) -> QuestionGenerator:
    """
    Pick the question generator adapter for the configured credentials.

    Args:
        settings: Optional settings override

    Returns:
        ClaudeQuestionGenerator when an API key is set, otherwise
        UnconfiguredQuestionGenerator
    """
    settings = settings or get_settings()
    if not settings.has_ai_credentials():
        logger.info("No AI credentials configured, using fallback questions")
        return UnconfiguredQuestionGenerator()

    return ClaudeQuestionGenerator(
        ClaudeService(settings=settings),
        timeout_seconds=settings.question_timeout_seconds,
    )


__all__ = [
    "GenerationResult",
    "QuestionGenerator",
    "UnconfiguredQuestionGenerator",
    "ClaudeQuestionGenerator",
    "create_question_generator",
]
