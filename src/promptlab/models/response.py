"""Response data models."""

from pydantic import BaseModel, Field

from promptlab.core.providers import Provider
from promptlab.models.conversation import ModelConfig, ResponseFormat, TokenUsage, now_ms


class NormalizedResponse(BaseModel):
    """Provider-agnostic result of a successful call."""

    content: str
    responseFormat: ResponseFormat = ResponseFormat.MARKDOWN
    timestamp: int = Field(default_factory=now_ms)
    provider: Provider
    model: str
    tokenUsage: TokenUsage = Field(default_factory=TokenUsage)
    responseTime: float = Field(..., description="Elapsed wall time of the call in seconds")


class ProviderInfo(BaseModel):
    """Information about a supported provider."""

    id: Provider
    name: str
    requiresCredential: bool
    available: bool
    models: list[str]


class ProvidersResponse(BaseModel):
    """Response for the providers listing endpoint."""

    providers: list[ProviderInfo]
    defaults: ModelConfig = Field(
        default_factory=ModelConfig,
        description="Model configuration a new prompt session starts from",
    )


class ProviderModelsResponse(BaseModel):
    """Response for the per-provider models endpoint."""

    provider: Provider
    models: list[str]
