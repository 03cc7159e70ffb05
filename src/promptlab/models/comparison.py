"""Comparison slot model."""

from enum import Enum

from pydantic import BaseModel

from promptlab.core.providers import Provider
from promptlab.models.response import NormalizedResponse


class SlotStatus(str, Enum):
    """Lifecycle of a comparison slot."""

    UNSET = "unset"
    READY = "ready"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


class ComparisonSlot(BaseModel):
    """One provider/model pairing under comparison.

    A slot starts ``unset``, becomes ``ready`` once both provider and model are
    assigned, and moves through ``loading`` to ``success`` or ``error`` during a
    run. Reassigning provider or model puts it back to ``ready`` and drops any
    earlier result.
    """

    provider: Provider | None = None
    model: str | None = None
    status: SlotStatus = SlotStatus.UNSET
    response: NormalizedResponse | None = None
    error: str | None = None

    @property
    def is_eligible(self) -> bool:
        return self.provider is not None and bool(self.model)

    def assign(self, provider: Provider | None, model: str | None) -> None:
        self.provider = Provider(provider) if provider is not None else None
        self.model = model
        self.response = None
        self.error = None
        self.status = SlotStatus.READY if self.is_eligible else SlotStatus.UNSET

    def mark_loading(self) -> None:
        self.status = SlotStatus.LOADING
        self.response = None
        self.error = None

    def mark_success(self, response: NormalizedResponse) -> None:
        self.status = SlotStatus.SUCCESS
        self.response = response
        self.error = None

    def mark_error(self, message: str) -> None:
        self.status = SlotStatus.ERROR
        self.response = None
        self.error = message


class CompareResponse(BaseModel):
    """Response for the comparison endpoint, one entry per requested slot."""

    slots: list[ComparisonSlot]
