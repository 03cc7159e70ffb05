"""Conversation data models: messages, model configuration and prompt state."""

import time
import uuid
from enum import Enum

from pydantic import BaseModel, Field

from promptlab.core.providers import Provider

DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 2048


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class ResponseFormat(str, Enum):
    """Desired output format for a response."""

    MARKDOWN = "markdown"
    JSON = "json"


class Role(str, Enum):
    """Message author role."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class TokenUsage(BaseModel):
    """Token accounting for one call. Fields are always present, zero when unknown."""

    promptTokens: int = 0
    completionTokens: int = 0
    totalTokens: int = 0


class ModelConfig(BaseModel):
    """Generation parameters for a single provider/model pairing."""

    provider: Provider = Provider.OPENAI
    model: str = "gpt-4o"
    # Nominal range is [0, 2]; not enforced.
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = Field(default=DEFAULT_MAX_TOKENS, ge=1)

    def switch_provider(self, provider: Provider, available_models: list[str]) -> "ModelConfig":
        """Return a copy using a new provider, reset to its first available model."""
        return self.model_copy(
            update={
                "provider": Provider(provider),
                "model": available_models[0] if available_models else "",
            }
        )

    def switch_model(self, model: str) -> "ModelConfig":
        return self.model_copy(update={"model": model})


class Message(BaseModel):
    """One message of a chat thread.

    Assistant messages may carry the provider, model, usage and latency of the
    call that produced them.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    role: Role
    content: str
    timestamp: int = Field(default_factory=now_ms)
    provider: Provider | None = None
    model: str | None = None
    tokenUsage: TokenUsage | None = None
    responseTime: float | None = None


class PromptState(BaseModel):
    """Playground conversation unit: a single system/user prompt pair."""

    systemPrompt: str = ""
    userPrompt: str = Field(..., min_length=1)
    responseFormat: ResponseFormat = ResponseFormat.MARKDOWN
    modelConfig: ModelConfig = Field(default_factory=ModelConfig)

    def to_messages(self) -> list[Message]:
        return [Message(role=Role.USER, content=self.userPrompt)]
