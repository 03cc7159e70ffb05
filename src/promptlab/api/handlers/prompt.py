"""Playground prompt endpoint handler."""

import logging

from fastapi import APIRouter

from promptlab.api.deps import DispatcherDep
from promptlab.models.conversation import PromptState
from promptlab.models.response import NormalizedResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/prompt", response_model=NormalizedResponse)
async def send_prompt(prompt: PromptState, dispatcher: DispatcherDep) -> NormalizedResponse:
    """Send a single system/user prompt pair to the selected provider.

    Dispatch failures propagate as typed errors and are rendered by the
    application's exception handlers.
    """
    logger.info(
        f"Prompt request: provider={prompt.modelConfig.provider.value}, "
        f"model={prompt.modelConfig.model}, format={prompt.responseFormat.value}"
    )
    return await dispatcher.send_prompt(prompt)
