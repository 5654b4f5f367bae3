"""
Claude API service used to generate questionnaire questions.

This module wraps Anthropic's async client for the one task the pipeline
delegates to an LLM: proposing category-specific transparency questions for a
product. Calls are single-shot; callers fall back to deterministic questions
on any failure, so this service never retries on its own.

Example:
    >>> service = ClaudeService(settings)
    >>> question_set = await service.generate_questions(product)
"""

from __future__ import annotations

import json
import re
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

import anthropic
from anthropic import APIError, APIStatusError, APITimeoutError
from pydantic import ValidationError as PydanticValidationError

from truthtrack.config.settings import Settings, get_settings
from truthtrack.models.schemas import GeneratedQuestionSet, Product
from truthtrack.utils.errors import (
    AppTimeoutError,
    ConfigurationError,
    MalformedResponseError,
    ServiceUnavailableError,
)
from truthtrack.utils.logger import get_logger

logger = get_logger(__name__)


# =============================================================================
# Constants
# =============================================================================

# Token costs per model (per 1K tokens)
TOKEN_COSTS = {
    "claude-sonnet-4-20250514": {"input": 0.003, "output": 0.015},
    "claude-3-5-sonnet-20241022": {"input": 0.003, "output": 0.015},
    "claude-3-5-haiku-20241022": {"input": 0.0008, "output": 0.004},
}


# =============================================================================
# Prompt Templates
# =============================================================================

QUESTION_SYSTEM_PROMPT = (
    "You are an expert in product transparency and supply chain analysis. "
    "Generate specific, actionable questions that would help assess product "
    "transparency. Always respond with valid JSON."
)

QUESTION_PROMPT_TEMPLATE = """As a product transparency expert, generate 5-8 specific, actionable questions for analyzing the transparency of this product:

Product: {name}
Brand: {brand}
Category: {category}
Description: {description}

Generate questions that would help assess:
1. Supply chain transparency
2. Environmental impact
3. Safety and quality standards
4. Ethical manufacturing practices
5. Ingredient/material disclosure

For each question, provide:
- The question text
- Question type (text, textarea, or select)
- If select type, provide 3-4 realistic options
- Priority level (high, medium, low)

Format as JSON with this structure:
{{
  "questions": [
    {{
      "question_text": "Question here?",
      "question_type": "select",
      "options": ["Option 1", "Option 2", "Option 3"],
      "priority": "high"
    }}
  ]
}}

Focus on questions specific to the {category} category and avoid generic questions."""


# =============================================================================
# Data Classes
# =============================================================================

@dataclass
class TokenUsage:
    """Token usage tracking for a single request."""
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0
    estimated_cost: float = 0.0
    model: str = ""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def calculate_cost(self, model: str) -> float:
        """Calculate estimated cost based on token usage."""
        if model in TOKEN_COSTS:
            costs = TOKEN_COSTS[model]
            input_cost = (self.input_tokens / 1000) * costs["input"]
            output_cost = (self.output_tokens / 1000) * costs["output"]
            self.estimated_cost = input_cost + output_cost
        return self.estimated_cost


# =============================================================================
# Main Service Class
# =============================================================================

class ClaudeService:
    """
    Thin async client for question generation.

    Attributes:
        settings: Application settings
        client: Anthropic API client
        token_usage_history: List of token usage records
        total_cost: Running total of API costs
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        api_key: Optional[str] = None,
    ):
        self.settings = settings or get_settings()

        if api_key is None and self.settings.anthropic_api_key is not None:
            api_key = self.settings.anthropic_api_key.get_secret_value()
        if not api_key:
            raise ConfigurationError("Anthropic API key not configured")

        self.client = anthropic.AsyncAnthropic(
            api_key=api_key,
            timeout=self.settings.question_timeout_seconds,
            max_retries=0,
        )
        self.token_usage_history: list[TokenUsage] = []
        self.total_cost: float = 0.0

        logger.info("ClaudeService initialized", model=self.settings.claude_model)

    async def __aenter__(self) -> "ClaudeService":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the client connection."""
        await self.client.close()
        logger.info("ClaudeService closed", **self.get_usage_stats())

    # =========================================================================
    # Core API Methods
    # =========================================================================

    async def _call_api(
        self,
        messages: list[dict[str, str]],
        system: str = "",
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> tuple[str, TokenUsage]:
        """
        Make a single API call.

        Returns:
            Tuple of (response_text, token_usage)

        Raises:
            ConfigurationError: On authentication failure
            ServiceUnavailableError: On any other API or transport error
        """
        temperature = self.settings.question_temperature if temperature is None else temperature
        max_tokens = max_tokens or self.settings.claude_max_tokens

        start_time = time.time()
        try:
            response = await self.client.messages.create(
                model=self.settings.claude_model,
                max_tokens=max_tokens,
                temperature=temperature,
                system=system,
                messages=messages,
            )
        except APITimeoutError as e:
            raise AppTimeoutError(f"Claude request timed out: {e}") from e
        except APIStatusError as e:
            if e.status_code == 401:
                logger.error("Authentication failed", error=str(e))
                raise ConfigurationError(f"Authentication failed: {e}") from e
            raise ServiceUnavailableError(
                f"Claude API error: {e}",
                details={"status_code": e.status_code},
            ) from e
        except APIError as e:
            raise ServiceUnavailableError(f"Claude API error: {e}") from e

        elapsed = time.time() - start_time
        response_text = "".join(
            getattr(block, "text", "") for block in response.content
        )

        usage = TokenUsage(
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
            total_tokens=response.usage.input_tokens + response.usage.output_tokens,
            model=self.settings.claude_model,
        )
        usage.calculate_cost(self.settings.claude_model)
        self.token_usage_history.append(usage)
        self.total_cost += usage.estimated_cost

        logger.info(
            "API call successful",
            elapsed_seconds=f"{elapsed:.2f}",
            input_tokens=usage.input_tokens,
            output_tokens=usage.output_tokens,
            cost=f"${usage.estimated_cost:.4f}",
        )
        return response_text, usage

    # =========================================================================
    # High-Level Methods
    # =========================================================================

    def build_question_prompt(self, product: Product) -> str:
        payload = product.request_payload()
        return QUESTION_PROMPT_TEMPLATE.format(
            name=payload["name"],
            brand=payload.get("brand", "Unknown"),
            category=payload["category"],
            description=payload.get("description", "No description provided"),
        )

    async def generate_questions(self, product: Product) -> GeneratedQuestionSet:
        """
        Ask Claude for a product-specific question set.

        The returned set is only shape-checked here; whether it is usable for
        the questionnaire is decided by the question assembler.

        Raises:
            MalformedResponseError: If the response is not the expected JSON
        """
        response_text, _ = await self._call_api(
            messages=[{"role": "user", "content": self.build_question_prompt(product)}],
            system=QUESTION_SYSTEM_PROMPT,
        )
        return self.parse_question_response(response_text)

    def parse_question_response(self, response_text: str) -> GeneratedQuestionSet:
        try:
            data: Any = json.loads(self._extract_json(response_text))
        except json.JSONDecodeError as e:
            raise MalformedResponseError(
                f"Question response is not valid JSON: {e}",
                details={"raw_response": response_text[:500]},
            ) from e

        if not isinstance(data, dict) or not isinstance(data.get("questions"), list):
            raise MalformedResponseError(
                "Question response has no 'questions' list",
                details={"raw_response": response_text[:500]},
            )

        try:
            return GeneratedQuestionSet.model_validate(data)
        except PydanticValidationError as e:
            raise MalformedResponseError(
                f"Question response failed validation: {e.error_count()} errors",
                details={"errors": [err["msg"] for err in e.errors()]},
            ) from e

    # =========================================================================
    # Utility Methods
    # =========================================================================

    def _extract_json(self, text: str) -> str:
        """Extract JSON from text that may contain markdown or other content."""
        code_block_pattern = r"```(?:json)?\s*([\s\S]*?)```"
        matches = re.findall(code_block_pattern, text)
        if matches:
            return matches[0].strip()

        json_pattern = r"(\{[\s\S]*\}|\[[\s\S]*\])"
        matches = re.findall(json_pattern, text)
        if matches:
            return max(matches, key=len)

        return text.strip()

    def get_usage_stats(self) -> dict[str, Any]:
        """Get usage statistics for the service."""
        total_tokens = sum(u.total_tokens for u in self.token_usage_history)
        return {
            "total_requests": len(self.token_usage_history),
            "total_tokens": total_tokens,
            "total_cost": self.total_cost,
        }


__all__ = [
    "ClaudeService",
    "TokenUsage",
    "QUESTION_PROMPT_TEMPLATE",
    "QUESTION_SYSTEM_PROMPT",
]
