"""
Non-blocking event delivery for curtain controllers.

The worker never waits on a subscriber. Every emitted value is handed to
this module, which only schedules work on the event loop:

- PER_VALUE: one short-lived task per value. The task sends on the
  subscription and races that send against the controller's exit
  request, so a missing reader can never hold the worker up. With no
  reader at all, pending tasks accumulate until shutdown.
- LATEST: one relay task per subscription with a single slot. A value
  that has not been picked up yet is overwritten by the next one, which
  bounds memory at the cost of dropping intermediate values.

All methods must be called from the event loop thread.
"""

import asyncio
import logging
import time
from collections import defaultdict
from typing import Any, Dict, Optional, Set

from .channels import Subscription
from .types import DeliveryMode

logger = logging.getLogger(__name__)


class _LatestSlot:
    """Single pending value for one subscription."""

    def __init__(self):
        self.value: Any = None
        self.has_value = asyncio.Event()

    def put(self, value: Any) -> bool:
        """Store a value. Returns True if an undelivered value was replaced."""
        replaced = self.has_value.is_set()
        self.value = value
        self.has_value.set()
        return replaced

    def take(self) -> Any:
        value = self.value
        self.value = None
        self.has_value.clear()
        return value


class EventDelivery:
    """Best-effort publisher from a controller to its subscriptions."""

    def __init__(self, exit_requested: asyncio.Event,
                 mode: DeliveryMode = DeliveryMode.PER_VALUE,
                 source: str = "curtain"):
        self.mode = mode
        self.source = source
        self._exit_requested = exit_requested
        self._tasks: Set[asyncio.Task] = set()
        self._slots: Dict[Subscription, _LatestSlot] = {}

        self.metrics = self._new_metrics()

    @staticmethod
    def _new_metrics() -> Dict[str, Any]:
        return {
            "spawned": 0,
            "delivered": 0,
            "abandoned": 0,
            "coalesced": 0,
            "by_subscription": defaultdict(int),
            "last_delivery": 0.0,
        }

    @property
    def pending(self) -> int:
        """Number of delivery or relay tasks still running."""
        return len(self._tasks)

    def publish(self, channel: Subscription, value: Any) -> None:
        """Schedule delivery of a value. Never blocks."""
        if self._exit_requested.is_set() or channel.closed:
            logger.debug(f"[{self.source}] Dropping {channel.name}={value!r}, shutting down")
            return

        if self.mode is DeliveryMode.LATEST:
            self._publish_latest(channel, value)
        else:
            self._spawn(self._deliver(channel, value), f"{self.source}-{channel.name}-delivery")

    def _publish_latest(self, channel: Subscription, value: Any) -> None:
        slot = self._slots.get(channel)
        if slot is None:
            slot = _LatestSlot()
            self._slots[channel] = slot
            self._spawn(self._relay(channel, slot), f"{self.source}-{channel.name}-relay")

        if slot.put(value):
            self.metrics["coalesced"] += 1

    def _spawn(self, coro, name: str) -> None:
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        self.metrics["spawned"] += 1

    async def _deliver(self, channel: Subscription, value: Any) -> bool:
        """Send one value, giving up as soon as exit is requested."""
        send = asyncio.ensure_future(channel.send(value))
        exit_wait = asyncio.ensure_future(self._exit_requested.wait())
        try:
            done, _ = await asyncio.wait({send, exit_wait}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (send, exit_wait):
                if not task.done():
                    task.cancel()

        if send in done and not send.cancelled() and send.result():
            self.metrics["delivered"] += 1
            self.metrics["by_subscription"][channel.name] += 1
            self.metrics["last_delivery"] = time.time()
            return True

        self.metrics["abandoned"] += 1
        logger.debug(f"[{self.source}] Abandoned delivery {channel.name}={value!r}")
        return False

    async def _relay(self, channel: Subscription, slot: _LatestSlot) -> None:
        """Forward the latest slot value until exit is requested."""
        while not self._exit_requested.is_set():
            ready = asyncio.ensure_future(slot.has_value.wait())
            exit_wait = asyncio.ensure_future(self._exit_requested.wait())
            try:
                await asyncio.wait({ready, exit_wait}, return_when=asyncio.FIRST_COMPLETED)
            finally:
                for task in (ready, exit_wait):
                    if not task.done():
                        task.cancel()

            if self._exit_requested.is_set():
                break
            await self._deliver(channel, slot.take())

        if slot.has_value.is_set():
            slot.take()
            self.metrics["abandoned"] += 1

    async def wait_idle(self, timeout: Optional[float] = None) -> None:
        """
        Wait until every delivery and relay task has finished.

        Relays in LATEST mode only stop once exit is requested, so before
        shutdown this returns only by raising asyncio.TimeoutError, and
        never when called without a timeout. Tasks still running at the
        timeout are left alone.
        """
        while self._tasks:
            _, pending = await asyncio.wait(list(self._tasks), timeout=timeout)
            if pending:
                raise asyncio.TimeoutError(
                    f"[{self.source}] {len(pending)} delivery tasks still running"
                )

    def get_stats(self) -> Dict[str, Any]:
        """Get delivery statistics."""
        return {
            "mode": self.mode.value,
            "pending": self.pending,
            "spawned": self.metrics["spawned"],
            "delivered": self.metrics["delivered"],
            "abandoned": self.metrics["abandoned"],
            "coalesced": self.metrics["coalesced"],
            "by_subscription": dict(self.metrics["by_subscription"]),
            "last_delivery": self.metrics["last_delivery"],
        }

    def reset_metrics(self) -> None:
        """Reset all metrics."""
        self.metrics = self._new_metrics()
        logger.debug(f"[{self.source}] Delivery metrics reset")
