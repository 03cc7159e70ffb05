"""Normalize raw provider response bodies into a single result shape.

Bodies handed to this module are assumed to be well-formed success payloads;
non-2xx statuses are turned into errors by the dispatcher beforehand.
"""

from typing import Any

from promptlab.core.providers import Provider
from promptlab.models.conversation import ResponseFormat, TokenUsage, now_ms
from promptlab.models.response import NormalizedResponse


def _count(value: Any) -> int:
    return int(value) if value else 0


def extract_content(raw_body: dict[str, Any], provider: Provider) -> str:
    """Pull the assistant text out of a response body."""
    if Provider(provider) == Provider.OLLAMA:
        message = raw_body.get("message") or {}
        return message.get("content") or ""

    return raw_body["choices"][0]["message"]["content"] or ""


def extract_token_usage(raw_body: dict[str, Any], provider: Provider) -> TokenUsage:
    """Derive token usage, reporting zeros for anything upstream left out."""
    if Provider(provider) == Provider.OLLAMA:
        prompt_tokens = _count(raw_body.get("prompt_eval_count"))
        completion_tokens = _count(raw_body.get("eval_count"))
        return TokenUsage(
            promptTokens=prompt_tokens,
            completionTokens=completion_tokens,
            totalTokens=prompt_tokens + completion_tokens,
        )

    usage = raw_body.get("usage")
    if not usage:
        return TokenUsage()

    prompt_tokens = _count(usage.get("prompt_tokens"))
    completion_tokens = _count(usage.get("completion_tokens"))
    total_tokens = usage.get("total_tokens")
    return TokenUsage(
        promptTokens=prompt_tokens,
        completionTokens=completion_tokens,
        totalTokens=_count(total_tokens) if total_tokens is not None
        else prompt_tokens + completion_tokens,
    )


def normalize_response(
    raw_body: dict[str, Any],
    provider: Provider,
    model: str,
    elapsed_seconds: float,
    response_format: ResponseFormat = ResponseFormat.MARKDOWN,
) -> NormalizedResponse:
    """Turn a provider success body into a NormalizedResponse.

    Provider and model are echoed from the request, not from the body, since
    some upstreams omit them.

    Args:
        raw_body: Parsed JSON success body.
        provider: Provider the request was sent to.
        model: Model the request asked for.
        elapsed_seconds: Wall time of the call.
        response_format: Format that was requested.

    Returns:
        NormalizedResponse with content, usage and timing.
    """
    return NormalizedResponse(
        content=extract_content(raw_body, provider),
        responseFormat=response_format,
        timestamp=now_ms(),
        provider=Provider(provider),
        model=model,
        tokenUsage=extract_token_usage(raw_body, provider),
        responseTime=elapsed_seconds,
    )
