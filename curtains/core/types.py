"""
Core Types for the curtain controllers.

Shared type definitions used by the contract, the delivery subsystem
and the engines.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict


POSITION_OPEN = 0
POSITION_CLOSED = 100


class CurtainState(Enum):
    """Movement classification of a curtain."""
    OPENING = "opening"
    CLOSING = "closing"
    STOPPED = "stopped"


class DeliveryMode(Enum):
    """How emitted values are pushed to subscriptions."""
    PER_VALUE = "per_value"  # One delivery task per emitted value
    LATEST = "latest"        # Single-slot relay per subscription, coalescing


@dataclass(frozen=True)
class CurtainSnapshot:
    """Point-in-time view of a controller's state."""
    position: int
    state: CurtainState
    target: int

    def to_dict(self) -> Dict[str, Any]:
        """Convert snapshot to dictionary for serialization."""
        return {
            "position": self.position,
            "state": self.state.value,
            "target": self.target,
        }


def clamp_position(position: int) -> int:
    """Clamp a position into the [POSITION_OPEN, POSITION_CLOSED] range."""
    return max(POSITION_OPEN, min(POSITION_CLOSED, position))
