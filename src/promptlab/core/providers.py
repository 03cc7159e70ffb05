"""Static catalog of supported LLM providers.

Every provider has exactly one chat endpoint and one header rule. All
providers except the local inference server (Ollama) authenticate with a
Bearer API key; Ollama instead requires the caller to be in a local context.
"""

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum

DEFAULT_SITE_URL = "http://localhost:5173"
DEFAULT_SITE_TITLE = "AI Prompt Testing Platform"
DEFAULT_OLLAMA_BASE_URL = "http://localhost:11434"

HeaderBuilder = Callable[[str | None], dict[str, str]]


class Provider(str, Enum):
    """Supported provider identifiers."""

    OPENAI = "openai"
    OPENROUTER = "openrouter"
    PERPLEXITY = "perplexity"
    DEEPSEEK = "deepseek"
    GROK = "grok"
    QWEN = "qwen"
    OLLAMA = "ollama"


class CredentialPolicy(str, Enum):
    """How a provider authenticates outbound calls."""

    REQUIRED = "required"
    NONE = "none"


@dataclass(frozen=True)
class ProviderEntry:
    provider: Provider
    name: str
    url: str
    credential: CredentialPolicy = CredentialPolicy.REQUIRED
    models: tuple[str, ...] = ()


@dataclass(frozen=True)
class ProviderEndpoint:
    """Resolved endpoint for a provider: where to POST and how to build headers."""

    url: str
    build_headers: HeaderBuilder


PROVIDER_CATALOG: dict[Provider, ProviderEntry] = {
    Provider.OPENAI: ProviderEntry(
        provider=Provider.OPENAI,
        name="OpenAI",
        url="https://api.openai.com/v1/chat/completions",
        models=(
            "gpt-5",
            "gpt-5-mini",
            "gpt-4o",
            "gpt-4o-mini",
            "gpt-4-turbo",
            "gpt-3.5-turbo",
        ),
    ),
    Provider.OPENROUTER: ProviderEntry(
        provider=Provider.OPENROUTER,
        name="OpenRouter",
        url="https://openrouter.ai/api/v1/chat/completions",
        models=(
            "perplexity/sonar",
            "deepseek/deepseek-r1-0528:free",
            "deepseek/deepseek-r1-0528-qwen3-8b:free",
            "anthropic/claude-3.7-sonnet",
            "mistralai/mistral-7b-instruct",
            "openai/gpt-oss-20b",
            "meta-llama/llama-3.3-70b-instruct:free",
            "meta-llama/llama-3.3-70b-instruct",
        ),
    ),
    Provider.PERPLEXITY: ProviderEntry(
        provider=Provider.PERPLEXITY,
        name="Perplexity",
        url="https://api.perplexity.ai/chat/completions",
        models=(
            "sonar",
            "sonar-small",
            "sonar-pro",
            "sonar-deep-research",
            "r1-1776",
            "llama-2-13b-chat",
            "llama-3.1-sonar-small-128k-online",
        ),
    ),
    Provider.DEEPSEEK: ProviderEntry(
        provider=Provider.DEEPSEEK,
        name="DeepSeek",
        url="https://api.deepseek.com/v1/chat/completions",
        models=("deepseek-chat", "deepseek-coder"),
    ),
    Provider.GROK: ProviderEntry(
        provider=Provider.GROK,
        name="Grok",
        url="https://api.x.ai/v1/chat/completions",
        models=("grok-3", "grok-3-mini"),
    ),
    Provider.QWEN: ProviderEntry(
        provider=Provider.QWEN,
        name="Qwen",
        url="https://dashscope-intl.aliyuncs.com/compatible-mode/v1/chat/completions",
        models=("qwen-plus", "qwen-turbo"),
    ),
    # Models are discovered from the running server, never hardcoded.
    Provider.OLLAMA: ProviderEntry(
        provider=Provider.OLLAMA,
        name="Ollama",
        url=f"{DEFAULT_OLLAMA_BASE_URL}/api/chat",
        credential=CredentialPolicy.NONE,
    ),
}


def _json_headers() -> dict[str, str]:
    return {"Content-Type": "application/json"}


def _bearer_headers(api_key: str | None) -> dict[str, str]:
    headers = _json_headers()
    headers["Authorization"] = f"Bearer {api_key}"
    return headers


@dataclass(frozen=True)
class ProviderRegistry:
    """Lookup table over PROVIDER_CATALOG with deployment-specific overrides.

    Attributes:
        ollama_base_url: Base URL of the local inference server.
        site_url: Site identification sent to OpenRouter as HTTP-Referer.
        site_title: Site identification sent to OpenRouter as X-Title.
    """

    ollama_base_url: str = DEFAULT_OLLAMA_BASE_URL
    site_url: str = DEFAULT_SITE_URL
    site_title: str = DEFAULT_SITE_TITLE
    entries: Mapping[Provider, ProviderEntry] = field(default_factory=lambda: PROVIDER_CATALOG)

    def get_entry(self, provider: Provider) -> ProviderEntry:
        return self.entries[Provider(provider)]

    def get_endpoint(self, provider: Provider) -> ProviderEndpoint:
        """Resolve the chat endpoint URL and header rule for a provider."""
        provider = Provider(provider)

        if provider == Provider.OLLAMA:
            return ProviderEndpoint(
                url=f"{self.ollama_base_url.rstrip('/')}/api/chat",
                build_headers=lambda api_key: _json_headers(),
            )

        if provider == Provider.OPENROUTER:
            return ProviderEndpoint(
                url=self.get_entry(provider).url,
                build_headers=self._openrouter_headers,
            )

        return ProviderEndpoint(url=self.get_entry(provider).url, build_headers=_bearer_headers)

    def _openrouter_headers(self, api_key: str | None) -> dict[str, str]:
        headers = _bearer_headers(api_key)
        headers["HTTP-Referer"] = self.site_url
        headers["X-Title"] = self.site_title
        return headers

    @property
    def ollama_tags_url(self) -> str:
        return f"{self.ollama_base_url.rstrip('/')}/api/tags"

    def get_available_models(self, provider: Provider) -> list[str]:
        """Return the static model list; empty means "discover dynamically"."""
        return list(self.get_entry(provider).models)

    def requires_credential(self, provider: Provider) -> bool:
        return self.get_entry(provider).credential == CredentialPolicy.REQUIRED

    def display_name(self, provider: Provider) -> str:
        return self.get_entry(provider).name

    def is_available(
        self,
        provider: Provider,
        credentials: Mapping[Provider, str],
        is_local_context: Callable[[], bool],
    ) -> bool:
        """Whether a call to this provider can be attempted at all."""
        provider = Provider(provider)
        if self.requires_credential(provider):
            return bool(credentials.get(provider))
        return is_local_context()

    def combined_models(self, provider: Provider, custom_models: Iterable[str]) -> list[str]:
        """Built-in models followed by user-added ones, deduplicated by model id."""
        combined: list[str] = []
        seen: set[str] = set()
        for model in [*self.get_available_models(provider), *custom_models]:
            if model and model not in seen:
                seen.add(model)
                combined.append(model)
        return combined


default_registry = ProviderRegistry()


def get_endpoint(provider: Provider) -> ProviderEndpoint:
    return default_registry.get_endpoint(provider)


def get_available_models(provider: Provider) -> list[str]:
    return default_registry.get_available_models(provider)


def requires_credential(provider: Provider) -> bool:
    return default_registry.requires_credential(provider)
