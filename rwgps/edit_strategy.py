"""Strategies for submitting an event edit.

The remote service does not reliably apply every field of a single PUT.
Submitting twice, first with ``all_day`` forced on and then with the real
values, makes it drop its cached start time and apply the rest. Whether that
is still needed depends on the service version, so the behavior is
selected by configuration.
"""
import logging
from abc import ABC, abstractmethod
from typing import Callable, Iterable, Optional

from processor.error_result import is_success_status
from processor.models import NormalizedEvent, TransportResponse

logger = logging.getLogger(__name__)

# Sends one PUT of the event with the given all_day value.
SendEdit = Callable[[Optional[bool]], TransportResponse]


class EditStrategy(ABC):
    name = 'abstract'

    @abstractmethod
    def submit(self, event: NormalizedEvent, send: SendEdit) -> TransportResponse:
        """Submit the edit and return the response that decides the outcome."""


class SinglePutStrategy(EditStrategy):
    name = 'single'

    def submit(self, event: NormalizedEvent, send: SendEdit) -> TransportResponse:
        return send(event.all_day)


class DoublePutStrategy(EditStrategy):
    """PUT with ``all_day=1`` first, then with the real ``all_day`` and fields.

    The second PUT only happens when the edit touches one of
    ``affected_fields``; otherwise a single PUT is enough.
    """
    name = 'double'

    def __init__(self, affected_fields: Iterable[str]):
        self.affected_fields = frozenset(affected_fields)

    def needs_double_put(self, event: NormalizedEvent) -> bool:
        return bool(self.affected_fields.intersection(event.set_fields()))

    def submit(self, event: NormalizedEvent, send: SendEdit) -> TransportResponse:
        if not self.needs_double_put(event):
            return send(event.all_day)

        first = send(True)
        if not is_success_status(first.status_code):
            logger.warning(
                "First PUT of double submit failed",
                extra={'status_code': first.status_code}
            )
            return first
        return send(event.all_day if event.all_day is not None else False)


def make_edit_strategy(name: str, affected_fields: Iterable[str]) -> EditStrategy:
    """
    Build the strategy named by configuration.

    Args:
        name: 'single' or 'double'
        affected_fields: Normalized field names that trigger the double PUT

    Raises:
        ValueError: For an unknown strategy name
    """
    if name == SinglePutStrategy.name:
        return SinglePutStrategy()
    if name == DoublePutStrategy.name:
        return DoublePutStrategy(affected_fields)
    raise ValueError(f"Unknown edit strategy: {name}")
