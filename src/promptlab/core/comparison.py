"""Run one prompt against several provider/model slots concurrently."""

import asyncio
import logging
from collections.abc import Callable

from promptlab.core.dispatcher import Dispatcher
from promptlab.models.comparison import ComparisonSlot
from promptlab.models.conversation import PromptState
from promptlab.utils.errors import DispatchError, get_user_message

logger = logging.getLogger(__name__)

SlotUpdateCallback = Callable[[int, ComparisonSlot], None]


class ComparisonOrchestrator:
    """Fan a prompt out to every eligible slot and settle each independently.

    Slots are updated in place. ``on_update`` is called with the slot index
    each time a slot changes state; completions arrive in no particular
    order, so consumers must key updates by index.
    """

    def __init__(self, dispatcher: Dispatcher, on_update: SlotUpdateCallback | None = None):
        self.dispatcher = dispatcher
        self.on_update = on_update

    def _notify(self, index: int, slot: ComparisonSlot) -> None:
        if self.on_update is not None:
            self.on_update(index, slot)

    async def _run_slot(self, index: int, slot: ComparisonSlot, prompt: PromptState) -> None:
        model_config = prompt.modelConfig.model_copy(
            update={"provider": slot.provider, "model": slot.model}
        )
        try:
            response = await self.dispatcher.send(
                prompt.to_messages(),
                model_config,
                system_prompt=prompt.systemPrompt,
                response_format=prompt.responseFormat,
            )
        except DispatchError as e:
            slot.mark_error(e.message)
        except Exception as e:
            logger.exception(
                f"Comparison slot {index} failed unexpectedly",
                extra={"slot": index, "error_type": type(e).__name__},
            )
            slot.mark_error(get_user_message(None))
        else:
            slot.mark_success(response)

        self._notify(index, slot)

    async def run(self, prompt: PromptState, slots: list[ComparisonSlot]) -> None:
        """Dispatch ``prompt`` to all slots that have both provider and model.

        Every eligible slot is put in ``loading`` before the first request goes
        out. Returns once every dispatched call has settled.
        """
        eligible = [(i, slot) for i, slot in enumerate(slots) if slot.is_eligible]
        if not eligible:
            return

        for index, slot in eligible:
            slot.mark_loading()
            self._notify(index, slot)

        logger.info(
            f"Running comparison across {len(eligible)} slots",
            extra={"slots": len(eligible)},
        )

        await asyncio.gather(
            *(self._run_slot(index, slot, prompt) for index, slot in eligible),
        )
