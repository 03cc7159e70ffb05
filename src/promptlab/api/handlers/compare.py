"""Comparison endpoint handler."""

import logging

from fastapi import APIRouter

from promptlab.api.deps import DispatcherDep
from promptlab.core.comparison import ComparisonOrchestrator
from promptlab.models.comparison import CompareResponse, ComparisonSlot
from promptlab.models.request import CompareRequest

logger = logging.getLogger(__name__)

router = APIRouter()


def _log_slot_update(index: int, slot: ComparisonSlot) -> None:
    logger.debug(
        f"Slot {index} is {slot.status.value}",
        extra={
            "slot": index,
            "provider": slot.provider.value if slot.provider else None,
            "model": slot.model,
        },
    )


@router.post("/compare", response_model=CompareResponse)
async def compare(request_body: CompareRequest, dispatcher: DispatcherDep) -> CompareResponse:
    """Run one prompt against every selected provider/model pairing.

    Each slot reports its own success or error; a failing provider never
    fails the request as a whole. Slots missing a provider or model are
    returned untouched with status ``unset``.
    """
    slots = []
    for selection in request_body.slots:
        slot = ComparisonSlot()
        slot.assign(selection.provider, selection.model)
        slots.append(slot)

    logger.info(f"Compare request: slots={len(slots)}")

    orchestrator = ComparisonOrchestrator(dispatcher, on_update=_log_slot_update)
    await orchestrator.run(request_body.prompt, slots)

    return CompareResponse(slots=slots)
