"""Tests for response normalization."""

import pytest

from promptlab.core.normalizer import extract_token_usage, normalize_response
from promptlab.core.providers import Provider
from promptlab.models.conversation import ResponseFormat, TokenUsage


class TestOpenAICompatible:
    """Tests for OpenAI-compatible bodies."""

    def test_simple_answer(self):
        """Test content and usage of a basic completion."""
        body = {
            "choices": [{"message": {"content": "4"}}],
            "usage": {"prompt_tokens": 8, "completion_tokens": 1, "total_tokens": 9},
        }

        result = normalize_response(body, Provider.OPENAI, "gpt-4o", 0.42)

        assert result.content == "4"
        assert result.tokenUsage == TokenUsage(promptTokens=8, completionTokens=1, totalTokens=9)
        assert result.responseTime == 0.42

    def test_usage_mapping(self):
        """Test snake_case usage maps onto the normalized fields."""
        usage = extract_token_usage(
            {"usage": {"prompt_tokens": 10, "completion_tokens": 5, "total_tokens": 15}},
            Provider.PERPLEXITY,
        )
        assert usage.model_dump() == {"promptTokens": 10, "completionTokens": 5, "totalTokens": 15}

    def test_missing_usage_is_zero(self):
        """Test absent usage yields explicit zeros."""
        usage = extract_token_usage({"choices": [{"message": {"content": "x"}}]}, Provider.GROK)

        assert usage.promptTokens == 0
        assert usage.completionTokens == 0
        assert usage.totalTokens == 0

    def test_missing_total_is_summed(self):
        """Test a missing total is computed from the granular counts."""
        usage = extract_token_usage(
            {"usage": {"prompt_tokens": 3, "completion_tokens": 4}},
            Provider.DEEPSEEK,
        )
        assert usage.totalTokens == 7

    def test_null_content_becomes_empty(self):
        """Test a null message content is normalized to an empty string."""
        body = {"choices": [{"message": {"content": None}}]}
        assert normalize_response(body, Provider.QWEN, "qwen-plus", 1.0).content == ""

    def test_missing_choices_raises(self):
        """Test malformed success bodies are a contract violation."""
        with pytest.raises(KeyError):
            normalize_response({}, Provider.OPENAI, "gpt-4o", 1.0)


class TestOllama:
    """Tests for local inference bodies."""

    def test_content_and_counts(self):
        """Test Ollama content and eval counts."""
        body = {
            "message": {"role": "assistant", "content": "Hello"},
            "prompt_eval_count": 12,
            "eval_count": 30,
        }

        result = normalize_response(body, Provider.OLLAMA, "llama3", 2.5)

        assert result.content == "Hello"
        assert result.tokenUsage == TokenUsage(promptTokens=12, completionTokens=30, totalTokens=42)

    def test_missing_fields(self):
        """Test absent message and counts degrade to empty and zero."""
        result = normalize_response({}, Provider.OLLAMA, "llama3", 0.1)

        assert result.content == ""
        assert result.tokenUsage == TokenUsage()


class TestEcho:
    """Tests for fields stamped by the normalizer."""

    def test_echoes_requested_provider_and_model(self):
        """Test provider/model come from the request, not the body."""
        body = {"model": "something-else", "choices": [{"message": {"content": "ok"}}]}

        result = normalize_response(body, Provider.OPENROUTER, "openai/gpt-oss-20b", 1.0)

        assert result.provider == Provider.OPENROUTER
        assert result.model == "openai/gpt-oss-20b"

    def test_response_format_echoed(self):
        """Test the requested format is carried through."""
        body = {"choices": [{"message": {"content": "{}"}}]}
        result = normalize_response(body, Provider.OPENAI, "gpt-4o", 1.0, ResponseFormat.JSON)
        assert result.responseFormat == ResponseFormat.JSON

    def test_timestamp_is_set(self):
        """Test timestamp is epoch milliseconds."""
        body = {"choices": [{"message": {"content": "ok"}}]}
        result = normalize_response(body, Provider.OPENAI, "gpt-4o", 1.0)
        assert result.timestamp > 1_600_000_000_000

    def test_idempotent_apart_from_timestamp(self):
        """Test normalizing the same body twice gives equal results."""
        body = {
            "choices": [{"message": {"content": "same"}}],
            "usage": {"prompt_tokens": 1, "completion_tokens": 2, "total_tokens": 3},
        }

        first = normalize_response(body, Provider.OPENAI, "gpt-4o", 0.5)
        second = normalize_response(body, Provider.OPENAI, "gpt-4o", 0.5)

        assert first.model_dump(exclude={"timestamp"}) == second.model_dump(exclude={"timestamp"})
