"""Build provider-specific HTTP requests from a provider-agnostic conversation.

Two wire dialects are supported:

- OpenAI-compatible chat completions (every cloud provider).
- The Ollama ``/api/chat`` dialect used by the local inference server.

Everything here is a pure transform and never raises for missing
credentials; the dispatcher checks those before formatting.
"""

from dataclasses import dataclass
from typing import Any

from promptlab.core.providers import Provider, ProviderRegistry, default_registry
from promptlab.models.conversation import Message, ModelConfig, ResponseFormat, Role

# OpenAI model families that reject max_tokens in favour of max_completion_tokens.
COMPLETION_TOKEN_MODEL_MARKERS = ("gpt-5", "o1")


@dataclass(frozen=True)
class FormattedRequest:
    """A ready-to-send provider request."""

    url: str
    body: dict[str, Any]
    headers: dict[str, str]


def uses_completion_token_field(provider: Provider, model: str) -> bool:
    """Whether the token limit must be sent as ``max_completion_tokens``.

    Only applies to OpenAI itself; OpenAI models reached through other
    providers keep ``max_tokens``.
    """
    return provider == Provider.OPENAI and any(
        marker in model for marker in COMPLETION_TOKEN_MODEL_MARKERS
    )


def build_messages(
    conversation: list[Message],
    system_prompt: str | None = None,
) -> list[dict[str, str]]:
    """Flatten a conversation into wire messages with the system message first.

    A non-empty ``system_prompt`` wins over any inline system message; otherwise
    the first inline system message is used. Inline system messages are never
    repeated further down the list.
    """
    system_content = system_prompt or None
    if system_content is None:
        system_content = next(
            (m.content for m in conversation if m.role == Role.SYSTEM and m.content),
            None,
        )

    messages: list[dict[str, str]] = []
    if system_content:
        messages.append({"role": Role.SYSTEM.value, "content": system_content})

    for message in conversation:
        if message.role == Role.SYSTEM:
            continue
        messages.append({"role": Role(message.role).value, "content": message.content})

    return messages


def _format_ollama_body(
    messages: list[dict[str, str]],
    model_config: ModelConfig,
) -> dict[str, Any]:
    # No response_format equivalent; a JSON format request is advisory only here.
    return {
        "model": model_config.model,
        "messages": messages,
        "stream": False,
        "options": {
            "temperature": model_config.temperature,
            "num_predict": model_config.max_tokens,
        },
    }


def _format_openai_compatible_body(
    messages: list[dict[str, str]],
    model_config: ModelConfig,
    response_format: ResponseFormat,
) -> dict[str, Any]:
    body: dict[str, Any] = {
        "model": model_config.model,
        "temperature": model_config.temperature,
        "messages": messages,
    }

    if uses_completion_token_field(model_config.provider, model_config.model):
        body["max_completion_tokens"] = model_config.max_tokens
    else:
        body["max_tokens"] = model_config.max_tokens

    if response_format == ResponseFormat.JSON:
        body["response_format"] = {"type": "json_object"}

    return body


def format_request(
    conversation: list[Message],
    model_config: ModelConfig,
    response_format: ResponseFormat = ResponseFormat.MARKDOWN,
    *,
    system_prompt: str | None = None,
    api_key: str | None = None,
    registry: ProviderRegistry = default_registry,
) -> FormattedRequest:
    """Build the URL, JSON body and headers for one provider call.

    Args:
        conversation: Ordered messages; may contain an inline system message.
        model_config: Provider, model and generation parameters.
        response_format: Desired output format.
        system_prompt: Workspace or session system prompt.
        api_key: Credential for providers that require one.
        registry: Provider catalog to resolve the endpoint from.

    Returns:
        FormattedRequest for the provider in ``model_config``.
    """
    provider = Provider(model_config.provider)
    endpoint = registry.get_endpoint(provider)
    messages = build_messages(conversation, system_prompt)

    if provider == Provider.OLLAMA:
        body = _format_ollama_body(messages, model_config)
        headers = endpoint.build_headers(None)
    else:
        body = _format_openai_compatible_body(messages, model_config, response_format)
        headers = endpoint.build_headers(api_key)

    return FormattedRequest(url=endpoint.url, body=body, headers=headers)
