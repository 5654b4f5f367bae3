import pytest
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import structlog

from truthtrack.config.settings import Settings, get_settings
from truthtrack.models.schemas import (
    Answer,
    GeneratedQuestion,
    Product,
    ProductCategory,
)
from truthtrack.services.question_service import (
    GenerationResult,
    QuestionGenerator,
    UnconfiguredQuestionGenerator,
)
from truthtrack.services.enhancement_service import NullScoreEnhancer
from truthtrack.services.storage import InMemoryDataStore


@pytest.fixture(autouse=True)
def reset_structlog():
    """Drop logging configuration made by a test."""
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Give every test environment-independent settings with no AI key."""
    env = {
        "ANTHROPIC_API_KEY": "",
        "SCORE_ENHANCER_URL": "",
        "APP_ENV": "development",
        "DEBUG": "false",
        "LOG_LEVEL": "INFO",
        "LOG_JSON": "false",
        "DATA_DIR": str(tmp_path / "data"),
        "OUTPUT_DIR": str(tmp_path / "reports"),
        "REPORT_FORMAT": "markdown",
    }
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()


@pytest.fixture
def mock_settings(tmp_path):
    """Real settings object with an API key, for services that need one."""
    return Settings(
        _env_file=None,
        ANTHROPIC_API_KEY="sk-ant-api-mock-key",
        CLAUDE_MODEL="claude-sonnet-4-20250514",
        QUESTION_TIMEOUT_SECONDS=5.0,
        SCORE_ENHANCER_URL=None,
        DATA_DIR=tmp_path / "data",
        OUTPUT_DIR=tmp_path / "reports",
    )


@pytest.fixture
def sample_product():
    return Product(
        name="Organic Granola Bar",
        brand="Green Valley",
        category=ProductCategory.FOOD_BEVERAGES.value,
        description="Oat and honey snack bar",
        submitted_by="qa@example.com",
    )


@pytest.fixture
def cosmetics_product():
    return Product(
        name="Rose Face Cream",
        brand="Petal",
        category=ProductCategory.COSMETICS.value,
    )


@pytest.fixture
def sample_answers():
    return [
        Answer(
            question_id=uuid4(),
            value="Whole grain oats, organic honey, almonds and sea salt. "
                  "All ingredients are certified organic.",
        ),
        Answer(question_id=uuid4(), value="Manufactured in Vermont, USA"),
        Answer(question_id=uuid4(), value="USDA Organic, Non-GMO Project Verified"),
        Answer(question_id=uuid4(), value="Contains tree nuts (almonds)"),
        Answer(question_id=uuid4(), value="12 months"),
        Answer(question_id=uuid4(), value="No"),
    ]


@pytest.fixture
def generated_questions():
    return [
        GeneratedQuestion(
            question_text="Where are the oats grown?",
            question_type="text",
            priority="high",
        ),
        GeneratedQuestion(
            question_text="Is the packaging recyclable?",
            question_type="select",
            options=["Yes", "No", "Partially"],
            priority="medium",
        ),
    ]


@pytest.fixture
def ai_generator(generated_questions):
    """A question generator that always returns the generated questions."""
    generator = MagicMock(spec=QuestionGenerator)
    generator.name = "mock"
    generator.try_generate = AsyncMock(return_value=GenerationResult.success(generated_questions))
    generator.close = AsyncMock()
    return generator


@pytest.fixture
def memory_store():
    return InMemoryDataStore()


@pytest.fixture
def offline_pipeline_kwargs(memory_store):
    """Constructor arguments for a pipeline with no external services."""
    return {
        "store": memory_store,
        "question_generator": UnconfiguredQuestionGenerator(),
        "score_enhancer": NullScoreEnhancer(),
    }
