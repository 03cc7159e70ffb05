"""Request body models for the prompt, chat and comparison endpoints."""

from pydantic import BaseModel, Field

from promptlab.core.providers import Provider
from promptlab.models.conversation import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_TEMPERATURE,
    Message,
    PromptState,
)


class ChatRequest(BaseModel):
    """Request body for the chat endpoint."""

    messages: list[Message]
    provider: Provider
    model: str = Field(..., min_length=1, description="Model identifier, e.g. 'gpt-4o'")
    systemPrompt: str | None = Field(
        default=None,
        description="Workspace-level system prompt, prepended once before the thread",
    )
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = Field(default=DEFAULT_MAX_TOKENS, ge=1)


class RegenerateRequest(ChatRequest):
    """Request body for regenerating one assistant message of a thread."""

    assistantIndex: int = Field(
        ...,
        ge=0,
        description="Index in messages of the assistant reply to regenerate",
    )


class SlotSelection(BaseModel):
    """Provider/model pairing requested for a comparison column."""

    provider: Provider | None = None
    model: str | None = None


class CompareRequest(BaseModel):
    """Request body for the comparison endpoint."""

    prompt: PromptState
    slots: list[SlotSelection] = Field(default_factory=list)
