"""
Curtain Controller Protocol.

Defines the interface that all curtain controllers must implement.
This allows the home-automation layer to be backend-agnostic.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict

from .channels import Completion, Subscription
from .types import CurtainSnapshot, CurtainState


class Curtain(ABC):
    """
    Abstract base class for motorized curtain controllers.

    All curtain implementations (simulated, serial, network, etc.) must
    implement this interface. Positions run from 0 (fully open) to 100
    (fully closed).

    Commands are fire-and-forget: they never block and never raise once
    the controller exists. Results are observed asynchronously through
    the position and state subscriptions, and the end of the controller's
    life through the completion returned by init().
    """

    @abstractmethod
    async def init(self) -> Completion:
        """
        Start the controller.

        Calling init() again before the controller has finished returns
        the same completion without restarting anything.

        Returns:
            Completion resolving to None once shutdown() has completed, or
            to a CurtainConnectionError if the controller lost its device.
            A resolved controller must be discarded and a new one created.
        """
        pass

    @abstractmethod
    def set_target_position(self, position: int) -> None:
        """
        Move the curtain towards a target position.

        The last requested target wins; intermediate targets are not queued.

        Args:
            position: Target position (0 = fully open, 100 = fully closed)
        """
        pass

    @abstractmethod
    def query(self) -> None:
        """
        Ask the controller to publish its current position and state.

        Both values are pushed to the subscriptions even if they did not
        change since the last update.
        """
        pass

    @abstractmethod
    def position(self) -> Subscription[int]:
        """Get the subscription carrying position updates."""
        pass

    @abstractmethod
    def state(self) -> Subscription[CurtainState]:
        """Get the subscription carrying movement state updates."""
        pass

    @abstractmethod
    def shutdown(self) -> None:
        """
        Request graceful termination.

        Returns immediately; completion is reported through the
        completion returned by init().
        """
        pass

    @abstractmethod
    def snapshot(self) -> CurtainSnapshot:
        """Get a consistent view of position, state and target."""
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Get the name of this controller."""
        pass

    @property
    def is_running(self) -> bool:
        """Whether the controller has been started and not yet finished."""
        return False

    def get_info(self) -> Dict[str, Any]:
        """
        Get information about this controller.

        Returns:
            Dictionary with controller info
        """
        return {
            "name": self.name,
            "running": self.is_running,
            "snapshot": self.snapshot().to_dict(),
        }
