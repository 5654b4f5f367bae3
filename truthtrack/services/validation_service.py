"""
Validation service for product submissions and answer sets.

Rejects malformed submissions before they reach the data store and reports
(without rejecting) answers that do not match their question's options.
"""

import re
from typing import Any, Iterable, Mapping, Optional
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError

from truthtrack.models.schemas import Answer, Product, ProductCategory, Question, QuestionType
from truthtrack.utils.errors import ValidationError
from truthtrack.utils.logger import get_logger

logger = get_logger(__name__)

VALID_CATEGORIES = tuple(c.value for c in ProductCategory)


class ValidationService:
    """Service for validating inputs entering the pipeline."""

    CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
    FREE_TEXT_FIELDS = ("brand", "description", "submitted_by")

    def validate_product_input(self, data: Mapping[str, Any]) -> Product:
        """
        Validate and parse a product submission.

        Names are free text apart from control characters. Brand, description
        and submitter are sanitized before the product is built.
        """
        if not isinstance(data, Mapping):
            raise ValidationError(
                code="INVALID_INPUT_FORMAT",
                message="Product submission must be an object",
            )

        category = data.get("category")
        if category is not None and category not in VALID_CATEGORIES:
            raise ValidationError(
                code="INVALID_CATEGORY",
                message=f"Invalid category '{category}'. Valid: {', '.join(VALID_CATEGORIES)}",
                details={"category": category},
            )

        name = data.get("name")
        if isinstance(name, str) and self.CONTROL_CHARS.search(name):
            raise ValidationError(
                code="INVALID_PRODUCT_NAME",
                message="Product name contains control characters",
                details={"name": name},
            )

        fields = dict(data)
        for key in self.FREE_TEXT_FIELDS:
            if isinstance(fields.get(key), str):
                fields[key] = self.sanitize_text(fields[key])

        try:
            product = Product(**fields)
        except (PydanticValidationError, TypeError) as e:
            logger.error("Product input validation failed", error=str(e))
            raise ValidationError(
                code="INVALID_INPUT_FORMAT",
                message=f"Invalid product submission: {e}",
                details={"input": dict(data)},
            ) from e

        return product

    def parse_answers(self, data: Any) -> list[Answer]:
        """
        Parse answers from either a ``{question_id: value}`` mapping or a list
        of ``{"question_id": ..., "value": ...}`` objects. Later entries for
        the same question replace earlier ones.
        """
        if isinstance(data, Mapping):
            items: Iterable[Any] = (
                {"question_id": key, "value": value} for key, value in data.items()
            )
        elif isinstance(data, list):
            items = data
        else:
            raise ValidationError(
                code="INVALID_INPUT_FORMAT",
                message="Answers must be an object or a list",
            )

        by_question: dict[UUID, Answer] = {}
        for item in items:
            try:
                answer = Answer.model_validate(item)
            except PydanticValidationError as e:
                raise ValidationError(
                    code="INVALID_INPUT_FORMAT",
                    message=f"Invalid answer: {e}",
                    details={"answer": item},
                ) from e
            by_question[answer.question_id] = answer
        return list(by_question.values())

    def check_answers(
        self,
        answers: Iterable[Answer],
        questions: Iterable[Question],
    ) -> list[str]:
        """
        Check answers against the product's questions.

        Unknown question ids are rejected. A select answer that is not one of
        the options is only reported: scoring still accepts it.

        Returns:
            Warnings for option mismatches
        """
        by_id = {q.id: q for q in questions}
        warnings = []
        for answer in answers:
            question = by_id.get(answer.question_id)
            if question is None:
                raise ValidationError(
                    code="UNKNOWN_QUESTION",
                    message=f"Answer refers to unknown question {answer.question_id}",
                    details={"question_id": str(answer.question_id)},
                )
            if (
                question.type == QuestionType.SELECT.value
                and answer.is_answered
                and answer.value not in (question.options or [])
            ):
                warnings.append(
                    f"Answer '{answer.value}' is not an option of question '{question.text}'"
                )

        for warning in warnings:
            logger.warning("Answer option mismatch", detail=warning)
        return warnings

    def sanitize_text(self, text: Optional[str]) -> str:
        """Strip markup and control characters, collapse whitespace."""
        if not text:
            return ""
        sanitized = re.sub(r"<[^>]+>", "", text)
        sanitized = self.CONTROL_CHARS.sub("", sanitized)
        return re.sub(r"\s+", " ", sanitized).strip()
