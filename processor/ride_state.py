"""Cancelled/active state of a ride, carried in the event name."""
from enum import Enum
from typing import Optional

from processor.errors import AlreadyCancelled, NotCancelled

CANCELLED_PREFIX = 'CANCELLED: '


class RideState(Enum):
    ACTIVE = 'active'
    CANCELLED = 'cancelled'

    @classmethod
    def from_name(cls, name: Optional[str]) -> 'RideState':
        if name and name.startswith(CANCELLED_PREFIX):
            return cls.CANCELLED
        return cls.ACTIVE


def cancelled_name(name: Optional[str]) -> str:
    """
    Name of the event after cancellation.

    Raises:
        AlreadyCancelled: If the name already carries the prefix
    """
    if RideState.from_name(name) is RideState.CANCELLED:
        raise AlreadyCancelled(f"Event is already cancelled: {name}")
    return f"{CANCELLED_PREFIX}{name or ''}"


def reinstated_name(name: Optional[str]) -> str:
    """
    Name of the event after reinstatement.

    Raises:
        NotCancelled: If the name does not carry the prefix
    """
    if RideState.from_name(name) is RideState.ACTIVE:
        raise NotCancelled(f"Event is not cancelled: {name}")
    return name[len(CANCELLED_PREFIX):]
