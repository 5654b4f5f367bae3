import json
from unittest.mock import AsyncMock, MagicMock, patch

import anthropic
import httpx
import pytest

from truthtrack.models.schemas import GeneratedQuestionSet, Product
from truthtrack.services.llm_service import ClaudeService, TokenUsage
from truthtrack.utils.errors import (
    AppTimeoutError,
    ConfigurationError,
    MalformedResponseError,
    ServiceUnavailableError,
)

REQUEST = httpx.Request("POST", "https://api.anthropic.com/v1/messages")

QUESTION_JSON = json.dumps({
    "questions": [
        {
            "question_text": "Where are the oats grown?",
            "question_type": "text",
            "priority": "high",
        },
        {
            "question_text": "Is the packaging recyclable?",
            "question_type": "select",
            "options": ["Yes", "No", "Partially"],
            "priority": "medium",
        },
    ]
})


def make_response(text: str, input_tokens: int = 100, output_tokens: int = 200):
    response = MagicMock()
    response.content = [MagicMock(text=text)]
    response.usage.input_tokens = input_tokens
    response.usage.output_tokens = output_tokens
    return response


# =============================================================================
# Construction
# =============================================================================

def test_llm_service_init(mock_settings):
    service = ClaudeService(settings=mock_settings)
    assert service.settings == mock_settings
    assert service.client is not None


def test_llm_service_requires_key(isolated_settings):
    with pytest.raises(ConfigurationError):
        ClaudeService(settings=isolated_settings)


def test_llm_service_explicit_key(isolated_settings):
    service = ClaudeService(settings=isolated_settings, api_key="sk-ant-explicit")
    assert service.client is not None


# =============================================================================
# _call_api
# =============================================================================

@pytest.mark.asyncio
async def test_call_api_tracks_usage(mock_settings):
    service = ClaudeService(settings=mock_settings)

    with patch.object(service.client.messages, "create", new_callable=AsyncMock) as mock_create:
        mock_create.return_value = make_response("hello", 1000, 1000)
        text, usage = await service._call_api([{"role": "user", "content": "hi"}], system="sys")

    assert text == "hello"
    assert usage.total_tokens == 2000
    assert usage.estimated_cost == pytest.approx(0.018)
    assert service.get_usage_stats() == {
        "total_requests": 1,
        "total_tokens": 2000,
        "total_cost": pytest.approx(0.018),
    }
    kwargs = mock_create.call_args.kwargs
    assert kwargs["model"] == mock_settings.claude_model
    assert kwargs["system"] == "sys"
    assert kwargs["temperature"] == mock_settings.question_temperature


@pytest.mark.asyncio
@pytest.mark.parametrize("error, expected", [
    (anthropic.APITimeoutError(request=REQUEST), AppTimeoutError),
    (anthropic.APIConnectionError(request=REQUEST), ServiceUnavailableError),
    (
        anthropic.AuthenticationError(
            "invalid x-api-key", response=httpx.Response(401, request=REQUEST), body=None
        ),
        ConfigurationError,
    ),
    (
        anthropic.InternalServerError(
            "overloaded", response=httpx.Response(529, request=REQUEST), body=None
        ),
        ServiceUnavailableError,
    ),
])
async def test_call_api_maps_errors(mock_settings, error, expected):
    service = ClaudeService(settings=mock_settings)

    with patch.object(service.client.messages, "create", new_callable=AsyncMock) as mock_create:
        mock_create.side_effect = error
        with pytest.raises(expected):
            await service._call_api([{"role": "user", "content": "hi"}])

    # Single-shot: no retries
    assert mock_create.call_count == 1


# =============================================================================
# Question generation
# =============================================================================

def test_build_question_prompt(mock_settings, sample_product):
    service = ClaudeService(settings=mock_settings)
    prompt = service.build_question_prompt(sample_product)

    assert "Product: Organic Granola Bar" in prompt
    assert "Brand: Green Valley" in prompt
    assert "Category: Food & Beverages" in prompt
    assert "specific to the Food & Beverages category" in prompt


def test_build_question_prompt_missing_fields(mock_settings):
    service = ClaudeService(settings=mock_settings)
    prompt = service.build_question_prompt(Product(name="Cable", category="Electronics"))
    assert "Brand: Unknown" in prompt
    assert "Description: No description provided" in prompt


@pytest.mark.asyncio
async def test_generate_questions(mock_settings, sample_product):
    service = ClaudeService(settings=mock_settings)

    with patch.object(service, "_call_api", new_callable=AsyncMock) as mock_call:
        mock_call.return_value = (QUESTION_JSON, TokenUsage(input_tokens=10, output_tokens=10))
        result = await service.generate_questions(sample_product)

    assert isinstance(result, GeneratedQuestionSet)
    assert len(result.questions) == 2
    assert result.questions[1].options == ["Yes", "No", "Partially"]
    mock_call.assert_called_once()


@pytest.mark.asyncio
async def test_generate_questions_in_code_block(mock_settings, sample_product):
    service = ClaudeService(settings=mock_settings)
    wrapped = f"Here you go:\n```json\n{QUESTION_JSON}\n```\nLet me know!"

    with patch.object(service, "_call_api", new_callable=AsyncMock) as mock_call:
        mock_call.return_value = (wrapped, TokenUsage())
        result = await service.generate_questions(sample_product)

    assert len(result.questions) == 2


@pytest.mark.parametrize("text", [
    "I cannot help with that.",
    '{"questions": "none"}',
    "[1, 2, 3]",
    '{"questions": [{"question_text": 5}]}',
])
def test_parse_question_response_malformed(mock_settings, text):
    service = ClaudeService(settings=mock_settings)
    with pytest.raises(MalformedResponseError):
        service.parse_question_response(text)


def test_parse_question_response_keeps_lenient_entries(mock_settings):
    service = ClaudeService(settings=mock_settings)
    result = service.parse_question_response('{"questions": [{"question_text": "Why?"}]}')
    assert result.questions[0].question_type is None


def test_extract_json_plain(mock_settings):
    service = ClaudeService(settings=mock_settings)
    assert service._extract_json('prefix {"a": 1} suffix') == '{"a": 1}'


def test_token_usage_unknown_model():
    usage = TokenUsage(input_tokens=10, output_tokens=10)
    assert usage.calculate_cost("unknown-model") == 0.0


@pytest.mark.asyncio
async def test_close(mock_settings):
    service = ClaudeService(settings=mock_settings)
    with patch.object(service.client, "close", new_callable=AsyncMock) as mock_close:
        async with service:
            pass
    mock_close.assert_called_once()


@pytest.mark.asyncio
async def test_close_logs_usage_stats(mock_settings, mocker):
    service = ClaudeService(settings=mock_settings)
    service.total_cost = 0.5
    mocker.patch.object(service.client, "close", new_callable=AsyncMock)
    mock_logger = mocker.patch("truthtrack.services.llm_service.logger")

    await service.close()

    mock_logger.info.assert_called_once_with(
        "ClaudeService closed", total_requests=0, total_tokens=0, total_cost=0.5
    )
