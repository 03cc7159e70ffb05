"""Send a conversation to a provider and return a normalized response.

One dispatch is: availability check, request formatting, exactly one HTTP
POST, error mapping and response normalization. Nothing is retried or cached;
retrying is left to the caller.
"""

import logging
import time
from collections.abc import AsyncIterator, Callable, Mapping
from contextlib import asynccontextmanager
from typing import Any

import httpx

from promptlab.core.formatter import format_request
from promptlab.core.normalizer import normalize_response
from promptlab.core.providers import Provider, ProviderRegistry, default_registry
from promptlab.models.conversation import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_TEMPERATURE,
    Message,
    ModelConfig,
    PromptState,
    ResponseFormat,
)
from promptlab.models.response import NormalizedResponse
from promptlab.utils.errors import (
    ConfigurationError,
    DispatchError,
    NetworkError,
    ProviderError,
    UnavailableError,
    UnknownError,
)

logger = logging.getLogger(__name__)

GENERIC_PROVIDER_ERROR = "Failed to get response from API"
OLLAMA_UNREACHABLE_MESSAGE = (
    "Failed to connect to Ollama. Make sure Ollama is running on localhost:11434"
)
OLLAMA_REMOTE_MESSAGE = (
    "Ollama is only available when running locally. "
    "Please use a cloud-based provider for deployed applications."
)

LocalContextPredicate = Callable[[], bool]


def extract_error_message(response: httpx.Response) -> str | None:
    """Best-effort extraction of a human-readable message from an error body."""
    try:
        data = response.json()
    except ValueError:
        return None

    if not isinstance(data, dict):
        return None

    error = data.get("error")
    if isinstance(error, dict):
        message = error.get("message")
        return str(message) if message else None
    if isinstance(error, str) and error:
        return error
    return None


class Dispatcher:
    """Provider dispatcher bound to one caller's credentials and context.

    Args:
        credentials: Read-only provider -> API key mapping.
        is_local_context: Predicate telling whether the local inference
            server may be used from the current caller.
        client: Shared HTTP client. When omitted, each call opens its own.
        registry: Provider catalog.
    """

    def __init__(
        self,
        credentials: Mapping[Provider, str],
        is_local_context: LocalContextPredicate,
        *,
        client: httpx.AsyncClient | None = None,
        registry: ProviderRegistry = default_registry,
    ):
        self._credentials = credentials
        self._is_local_context = is_local_context
        self._client = client
        self.registry = registry

    @asynccontextmanager
    async def _http_client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient() as client:
            yield client

    def _resolve_credential(self, provider: Provider) -> str | None:
        """Fail fast, before any I/O, when the provider cannot be called."""
        if not self.registry.requires_credential(provider):
            if not self._is_local_context():
                raise UnavailableError(OLLAMA_REMOTE_MESSAGE, provider=provider.value)
            return None

        api_key = self._credentials.get(provider)
        if not api_key:
            raise ConfigurationError(
                f"API key for {provider.value} is not set",
                provider=provider.value,
            )
        return api_key

    async def send(
        self,
        conversation: list[Message],
        model_config: ModelConfig,
        system_prompt: str | None = None,
        response_format: ResponseFormat = ResponseFormat.MARKDOWN,
    ) -> NormalizedResponse:
        """Dispatch a conversation to the provider in ``model_config``.

        Raises:
            ConfigurationError: Required credential is missing.
            UnavailableError: Local inference selected from a non-local context.
            ProviderError: Provider answered non-2xx or with an unparseable body.
            NetworkError: Transport failure, including client timeouts.
            UnknownError: Anything else.
        """
        provider = Provider(model_config.provider)
        api_key = self._resolve_credential(provider)

        start_time = time.perf_counter()
        request = format_request(
            conversation,
            model_config,
            response_format,
            system_prompt=system_prompt,
            api_key=api_key,
            registry=self.registry,
        )

        logger.info(
            f"Dispatching to {provider.value}/{model_config.model}",
            extra={
                "provider": provider.value,
                "model": model_config.model,
                "messages": len(request.body["messages"]),
            },
        )

        try:
            async with self._http_client() as client:
                response = await client.post(request.url, headers=request.headers, json=request.body)

            elapsed = time.perf_counter() - start_time

            if not response.is_success:
                raise self._provider_error(provider, response)

            try:
                data = response.json()
            except ValueError as e:
                raise ProviderError(
                    "Provider returned an unreadable response",
                    provider=provider.value,
                    upstream_status=response.status_code,
                ) from e

            try:
                result = normalize_response(
                    data,
                    provider,
                    model_config.model,
                    elapsed,
                    response_format,
                )
            except (KeyError, IndexError, TypeError, AttributeError) as e:
                # Some gateways answer 200 with an error object instead of choices
                raise ProviderError(
                    extract_error_message(response) or GENERIC_PROVIDER_ERROR,
                    provider=provider.value,
                    upstream_status=response.status_code,
                ) from e

        except DispatchError:
            raise
        except httpx.TransportError as e:
            logger.warning(
                f"Transport failure calling {provider.value}: {type(e).__name__}: {e}",
                extra={"provider": provider.value, "error_type": type(e).__name__},
            )
            raise NetworkError(
                f"Could not reach {self.registry.display_name(provider)}. "
                "Please check your connection.",
                provider=provider.value,
            ) from e
        except Exception as e:
            logger.exception(
                f"Unexpected failure dispatching to {provider.value}",
                extra={"provider": provider.value, "error_type": type(e).__name__},
            )
            raise UnknownError(provider=provider.value) from e

        logger.info(
            f"Response from {provider.value}/{model_config.model}",
            extra={
                "provider": provider.value,
                "model": model_config.model,
                "status_code": response.status_code,
                "duration_ms": int(elapsed * 1000),
                "total_tokens": result.tokenUsage.totalTokens,
            },
        )
        return result

    def _provider_error(self, provider: Provider, response: httpx.Response) -> ProviderError:
        message = extract_error_message(response)

        if provider == Provider.OLLAMA:
            message = f"Ollama error: {message or OLLAMA_UNREACHABLE_MESSAGE}"
        else:
            message = message or GENERIC_PROVIDER_ERROR

        logger.warning(
            f"{provider.value} returned {response.status_code}: {message}",
            extra={"provider": provider.value, "status_code": response.status_code},
        )
        return ProviderError(
            message,
            provider=provider.value,
            upstream_status=response.status_code,
        )

    async def send_prompt(self, prompt_state: PromptState) -> NormalizedResponse:
        """Playground mode: one system/user prompt pair."""
        return await self.send(
            prompt_state.to_messages(),
            prompt_state.modelConfig,
            system_prompt=prompt_state.systemPrompt,
            response_format=prompt_state.responseFormat,
        )

    async def send_chat_message(
        self,
        messages: list[Message],
        provider: Provider,
        model: str,
        system_prompt: str | None = None,
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: int = DEFAULT_MAX_TOKENS,
    ) -> NormalizedResponse:
        """Chat-thread mode: a whole thread, answered in markdown."""
        model_config = ModelConfig(
            provider=provider,
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
        )
        return await self.send(
            messages,
            model_config,
            system_prompt=system_prompt,
            response_format=ResponseFormat.MARKDOWN,
        )

    async def fetch_local_models(self) -> list[str]:
        """List models installed on the local inference server.

        Returns an empty list, never a made-up one, when the server cannot be
        used or does not answer.
        """
        if not self._is_local_context():
            return []

        try:
            async with self._http_client() as client:
                response = await client.get(self.registry.ollama_tags_url)
            response.raise_for_status()
            data: Any = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Could not fetch Ollama models: {type(e).__name__}: {e}")
            return []

        models = data.get("models") if isinstance(data, dict) else None
        return [m["name"] for m in models or [] if isinstance(m, dict) and m.get("name")]
