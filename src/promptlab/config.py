"""Configuration management using Pydantic Settings.

Loads configuration from multiple sources with the following priority (highest first):
1. Explicit constructor arguments
2. Environment variables (PROMPTLAB_* prefix, plus vendor key variables)
3. .env file
4. config.local.yaml (if exists)
5. config.yaml
6. Default values
"""

from contextvars import ContextVar
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic.fields import FieldInfo
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from promptlab.core.providers import (
    DEFAULT_OLLAMA_BASE_URL,
    DEFAULT_SITE_TITLE,
    DEFAULT_SITE_URL,
    Provider,
    ProviderRegistry,
)
from promptlab.models.conversation import DEFAULT_MAX_TOKENS, DEFAULT_TEMPERATURE

PROVIDER_KEY_HEADER_PREFIX = "X-Provider-Key-"


def _default_allowed_headers() -> list[str]:
    return [
        "Content-Type",
        "X-Request-ID",
        *(
            f"{PROVIDER_KEY_HEADER_PREFIX}{provider.value}"
            for provider in Provider
            if provider != Provider.OLLAMA
        ),
    ]


class CorsSettings(BaseModel):
    """CORS configuration."""

    allowed_origins: list[str] = ["http://localhost:5173"]
    allowed_methods: list[str] = ["GET", "POST", "OPTIONS"]
    allowed_headers: list[str] = Field(default_factory=_default_allowed_headers)


class ServerSettings(BaseModel):
    """Server configuration."""

    host: str = "0.0.0.0"
    port: int = 8000
    cors: CorsSettings = Field(default_factory=CorsSettings)


class ProviderKeySettings(BaseModel):
    """Credential for one cloud provider."""

    api_key: str = ""


class OpenRouterSettings(ProviderKeySettings):
    """OpenRouter credential plus user-added model ids."""

    custom_models: list[str] = Field(default_factory=list)

    @field_validator("custom_models")
    @classmethod
    def strip_custom_models(cls, v: list[str]) -> list[str]:
        """Drop blank entries and surrounding whitespace."""
        return [model.strip() for model in v if model and model.strip()]


class ProvidersSettings(BaseModel):
    """Server-side provider credentials. Requests may override them per call."""

    openai: ProviderKeySettings = Field(default_factory=ProviderKeySettings)
    openrouter: OpenRouterSettings = Field(default_factory=OpenRouterSettings)
    perplexity: ProviderKeySettings = Field(default_factory=ProviderKeySettings)
    deepseek: ProviderKeySettings = Field(default_factory=ProviderKeySettings)
    grok: ProviderKeySettings = Field(default_factory=ProviderKeySettings)
    qwen: ProviderKeySettings = Field(default_factory=ProviderKeySettings)

    def credentials(self) -> dict[Provider, str]:
        """Configured, non-empty keys by provider."""
        keys = {
            Provider.OPENAI: self.openai.api_key,
            Provider.OPENROUTER: self.openrouter.api_key,
            Provider.PERPLEXITY: self.perplexity.api_key,
            Provider.DEEPSEEK: self.deepseek.api_key,
            Provider.GROK: self.grok.api_key,
            Provider.QWEN: self.qwen.api_key,
        }
        return {provider: key for provider, key in keys.items() if key}


class LocalInferenceSettings(BaseModel):
    """Local inference server (Ollama) configuration."""

    base_url: str = DEFAULT_OLLAMA_BASE_URL
    local_hosts: list[str] = Field(
        default_factory=lambda: ["localhost", "127.0.0.1"],
        description="Host names under which callers count as local",
    )


class SiteSettings(BaseModel):
    """Static site identification sent to providers that ask for it."""

    url: str = DEFAULT_SITE_URL
    title: str = DEFAULT_SITE_TITLE


class DefaultsSettings(BaseModel):
    """Generation defaults for new prompt sessions."""

    provider: Provider = Provider.OPENAI
    model: str = "gpt-4o"
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = Field(default=DEFAULT_MAX_TOKENS, ge=1)


class HttpSettings(BaseModel):
    """Outbound HTTP client configuration."""

    timeout_seconds: float = 120.0


class LoggingSettings(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "json"


class HealthSettings(BaseModel):
    """Health check configuration."""

    local_inference_check_enabled: bool = True
    timeout_seconds: int = 5


def _load_yaml_config(config_dir: Path) -> dict:
    """Load configuration from YAML files.

    Loads config.yaml and optionally overlays config.local.yaml.
    """
    config = {}

    config_file = config_dir / "config.yaml"
    if config_file.exists():
        with open(config_file) as f:
            config = yaml.safe_load(f) or {}

    local_config_file = config_dir / "config.local.yaml"
    if local_config_file.exists():
        with open(local_config_file) as f:
            local_config = yaml.safe_load(f) or {}
            config = _deep_merge(config, local_config)

    return config


def _deep_merge(base: dict, override: dict) -> dict:
    """Deep merge two dictionaries, with override taking precedence."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


# YAML values for the Settings instance currently being built
_yaml_values: ContextVar[dict | None] = ContextVar("promptlab_yaml_values", default=None)


class YamlConfigSource(PydanticBaseSettingsSource):
    """Settings source serving the values read from the config directory."""

    def get_field_value(self, field: FieldInfo, field_name: str) -> tuple[Any, str, bool]:
        return (_yaml_values.get() or {}).get(field_name), field_name, False

    def __call__(self) -> dict[str, Any]:
        return dict(_yaml_values.get() or {})


class Settings(BaseSettings):
    """Application settings loaded from environment, .env, and config files."""

    model_config = SettingsConfigDict(
        env_prefix="PROMPTLAB_",
        env_nested_delimiter="__",
        env_file=Path.home() / "promptlab.env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    server: ServerSettings = Field(default_factory=ServerSettings)
    providers: ProvidersSettings = Field(default_factory=ProvidersSettings)
    local_inference: LocalInferenceSettings = Field(default_factory=LocalInferenceSettings)
    site: SiteSettings = Field(default_factory=SiteSettings)
    defaults: DefaultsSettings = Field(default_factory=DefaultsSettings)
    http: HttpSettings = Field(default_factory=HttpSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    health: HealthSettings = Field(default_factory=HealthSettings)

    # Vendor environment variables
    openai_api_key: str | None = Field(default=None, validation_alias="OPENAI_API_KEY")
    openrouter_api_key: str | None = Field(default=None, validation_alias="OPENROUTER_API_KEY")
    perplexity_api_key: str | None = Field(default=None, validation_alias="PERPLEXITY_API_KEY")
    deepseek_api_key: str | None = Field(default=None, validation_alias="DEEPSEEK_API_KEY")
    xai_api_key: str | None = Field(default=None, validation_alias="XAI_API_KEY")
    dashscope_api_key: str | None = Field(default=None, validation_alias="DASHSCOPE_API_KEY")
    ollama_host: str | None = Field(default=None, validation_alias="OLLAMA_HOST")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            file_secret_settings,
            YamlConfigSource(settings_cls),
        )

    def __init__(self, config_dir: Path | None = None, **data):
        """Initialize settings, loading from YAML if config_dir provided."""
        token = _yaml_values.set(_load_yaml_config(config_dir) if config_dir is not None else {})
        try:
            super().__init__(**data)
        finally:
            _yaml_values.reset(token)

        # Vendor variables fill in keys that config left empty
        vendor_keys = {
            "openai": self.openai_api_key,
            "openrouter": self.openrouter_api_key,
            "perplexity": self.perplexity_api_key,
            "deepseek": self.deepseek_api_key,
            "grok": self.xai_api_key,
            "qwen": self.dashscope_api_key,
        }
        for name, key in vendor_keys.items():
            provider_settings = getattr(self.providers, name)
            if key and not provider_settings.api_key:
                provider_settings.api_key = key

        if self.ollama_host:
            host = self.ollama_host
            if "://" not in host:
                host = f"http://{host}"
            self.local_inference.base_url = host

    def build_registry(self) -> ProviderRegistry:
        """Provider registry with this deployment's overrides applied."""
        return ProviderRegistry(
            ollama_base_url=self.local_inference.base_url,
            site_url=self.site.url,
            site_title=self.site.title,
        )

    def validate_required(self) -> None:
        """Validate settings that defaults cannot fix.

        Raises:
            ValueError: If the configuration is unusable.
        """
        if not self.local_inference.local_hosts:
            raise ValueError("local_inference.local_hosts must list at least one host name")

        if not self.defaults.model:
            raise ValueError("defaults.model must not be empty")


@lru_cache
def get_settings(config_dir: Path | None = None) -> Settings:
    """Get cached settings instance.

    Args:
        config_dir: Optional path to config directory. If None, only environment
                   variables and .env file are used.

    Returns:
        Settings instance.
    """
    if config_dir is None:
        # Try to find config directory relative to project root
        project_root = Path(__file__).parent.parent.parent
        default_config_dir = project_root / "config"
        if default_config_dir.exists():
            config_dir = default_config_dir

    return Settings(config_dir=config_dir)
