"""Chat thread endpoint handlers."""

import logging

from fastapi import APIRouter, HTTPException

from promptlab.api.deps import DispatcherDep
from promptlab.core.chat import history_for_regeneration
from promptlab.models.request import ChatRequest, RegenerateRequest
from promptlab.models.response import NormalizedResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/chat", response_model=NormalizedResponse)
async def chat(request_body: ChatRequest, dispatcher: DispatcherDep) -> NormalizedResponse:
    """Send a chat thread and return the next assistant reply.

    The workspace system prompt, if any, is prepended once before the thread.

    Raises:
        HTTPException: If the thread has no messages.
    """
    if not request_body.messages:
        raise HTTPException(
            status_code=400,
            detail="Messages array cannot be empty",
        )

    logger.info(
        f"Chat request: provider={request_body.provider.value}, "
        f"model={request_body.model}, messages={len(request_body.messages)}"
    )

    return await dispatcher.send_chat_message(
        request_body.messages,
        request_body.provider,
        request_body.model,
        system_prompt=request_body.systemPrompt,
        temperature=request_body.temperature,
        max_tokens=request_body.max_tokens,
    )


@router.post("/chat/regenerate", response_model=NormalizedResponse)
async def regenerate(request_body: RegenerateRequest, dispatcher: DispatcherDep) -> NormalizedResponse:
    """Produce a fresh reply for one assistant message of a thread.

    Only the messages up to the user turn that prompted that reply are sent.
    An invalid ``assistantIndex`` surfaces as a 400 through the ValueError handler.
    """
    history = history_for_regeneration(request_body.messages, request_body.assistantIndex)

    logger.info(
        f"Regenerate request: provider={request_body.provider.value}, "
        f"model={request_body.model}, index={request_body.assistantIndex}"
    )

    return await dispatcher.send_chat_message(
        history,
        request_body.provider,
        request_body.model,
        system_prompt=request_body.systemPrompt,
        temperature=request_body.temperature,
        max_tokens=request_body.max_tokens,
    )
