"""
Simulated curtain controller.

A background worker advances the position by one unit per tick towards
the requested target and publishes every change. Useful for development
and for testing consumers of the Curtain interface without hardware.
"""

import asyncio
import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from curtains.core.channels import Completion, Subscription
from curtains.core.curtain import Curtain
from curtains.core.delivery import EventDelivery
from curtains.core.errors import CurtainConfigurationError, CurtainError
from curtains.core.types import (
    POSITION_CLOSED,
    POSITION_OPEN,
    CurtainSnapshot,
    CurtainState,
    DeliveryMode,
    clamp_position,
)

logger = logging.getLogger(__name__)

DEFAULT_TICK_INTERVAL = 0.25  # seconds

Emission = Tuple[Subscription, Any]


@dataclass
class MockCurtainConfig:
    """Configuration for the simulated controller."""
    name: str = "mock"
    tick_interval: float = DEFAULT_TICK_INTERVAL
    initial_position: int = POSITION_OPEN
    delivery_mode: DeliveryMode = DeliveryMode.PER_VALUE

    def __post_init__(self):
        if isinstance(self.delivery_mode, str):
            try:
                self.delivery_mode = DeliveryMode(self.delivery_mode.lower())
            except ValueError:
                available = ", ".join(m.value for m in DeliveryMode)
                raise CurtainConfigurationError(
                    f"Unknown delivery mode: {self.delivery_mode}. "
                    f"Available modes: {available}"
                )

        try:
            self.tick_interval = float(self.tick_interval)
        except (TypeError, ValueError):
            raise CurtainConfigurationError(f"Invalid tick interval: {self.tick_interval!r}")
        if self.tick_interval <= 0:
            raise CurtainConfigurationError(
                f"Tick interval must be positive, got {self.tick_interval}"
            )

        self.initial_position = self._parse_position(self.initial_position)
        if not POSITION_OPEN <= self.initial_position <= POSITION_CLOSED:
            raise CurtainConfigurationError(
                f"Initial position must be within [{POSITION_OPEN}, {POSITION_CLOSED}], "
                f"got {self.initial_position}"
            )

    @staticmethod
    def _parse_position(value: Any) -> int:
        """Positions are whole units; accept ints, integral floats and numeric strings."""
        if isinstance(value, bool):
            raise CurtainConfigurationError(f"Invalid initial position: {value!r}")
        if isinstance(value, float):
            if not value.is_integer():
                raise CurtainConfigurationError(
                    f"Initial position must be a whole number, got {value}"
                )
            return int(value)
        try:
            return int(value)
        except (TypeError, ValueError):
            raise CurtainConfigurationError(f"Invalid initial position: {value!r}")

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "MockCurtainConfig":
        """Create from dictionary (e.g., from YAML)."""
        return cls(
            name=config.get("name", cls.name),
            tick_interval=config.get("tick_interval", cls.tick_interval),
            initial_position=config.get("initial_position", cls.initial_position),
            delivery_mode=config.get("delivery_mode", cls.delivery_mode),
        )


class MockCurtain(Curtain):
    """
    Simulated curtain controller.

    All position, target, state and shutdown bookkeeping is guarded by a
    single lock, so commands may be issued from any thread. The worker
    itself runs as a task on the event loop that called init().
    """

    def __init__(self, config: Optional[MockCurtainConfig] = None):
        self.config = config or MockCurtainConfig()

        self._lock = threading.Lock()
        self._current = self.config.initial_position
        self._target = self.config.initial_position
        self._state = CurtainState.STOPPED
        self._shutdown = False
        self._shutdown_requested = False

        self._position_sub: Subscription[int] = Subscription(f"{self.config.name}.position")
        self._state_sub: Subscription[CurtainState] = Subscription(f"{self.config.name}.state")

        self._exit_requested = asyncio.Event()
        self._delivery = EventDelivery(
            self._exit_requested,
            mode=self.config.delivery_mode,
            source=self.config.name,
        )

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._completion: Optional[Completion] = None
        self._worker: Optional[asyncio.Task] = None

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def is_running(self) -> bool:
        return self._completion is not None and not self._completion.done()

    @property
    def delivery(self) -> EventDelivery:
        return self._delivery

    # ========== LIFECYCLE ==========

    async def init(self) -> Completion:
        """Start the worker on the running event loop."""
        if self._completion is not None:
            return self._completion

        loop = asyncio.get_running_loop()
        with self._lock:
            if self._shutdown_requested:
                logger.info(f"[{self.name}] Shutdown requested before init, not starting")
                self._shutdown = True
                self._completion = Completion.resolved()
                self._finish_subscriptions()
                return self._completion
            self._loop = loop

        self._completion = Completion.create()
        self._worker = self._loop.create_task(self._run(), name=f"{self.name}-worker")
        self._worker.add_done_callback(self._on_worker_done)
        logger.info(
            f"[{self.name}] Curtain worker started "
            f"(tick={self.config.tick_interval}s, delivery={self.config.delivery_mode.value})"
        )
        return self._completion

    def shutdown(self) -> None:
        """Request the worker to stop. Never blocks."""
        with self._lock:
            if self._shutdown_requested:
                logger.debug(f"[{self.name}] Shutdown already requested")
                return
            self._shutdown_requested = True
            loop = self._loop

        if loop is None:
            logger.debug(f"[{self.name}] Shutdown requested before init")
            return

        logger.info(f"[{self.name}] Shutdown requested")
        self._call_on_loop(self._exit_requested.set)

    # ========== COMMANDS ==========

    def set_target_position(self, position: int) -> None:
        position = int(position)
        target = clamp_position(position)
        if target != position:
            logger.warning(f"[{self.name}] Target {position} out of range, clamped to {target}")

        with self._lock:
            if self._shutdown:
                logger.debug(f"[{self.name}] Ignoring target {target}, controller is shut down")
                return
            self._target = target

        logger.debug(f"[{self.name}] Target position set to {target}")

    def query(self) -> None:
        with self._lock:
            if self._shutdown:
                logger.debug(f"[{self.name}] Ignoring query, controller is shut down")
                return
            emissions = [(self._state_sub, self._state), (self._position_sub, self._current)]

        if self._loop is None:
            logger.debug(f"[{self.name}] Ignoring query, controller not started")
            return

        if self._in_loop():
            self._publish(emissions)
        else:
            self._call_on_loop(self._publish, emissions)

    def position(self) -> Subscription[int]:
        return self._position_sub

    def state(self) -> Subscription[CurtainState]:
        return self._state_sub

    def snapshot(self) -> CurtainSnapshot:
        with self._lock:
            return CurtainSnapshot(position=self._current, state=self._state, target=self._target)

    def get_info(self) -> Dict[str, Any]:
        info = super().get_info()
        info["tick_interval"] = self.config.tick_interval
        info["delivery"] = self._delivery.get_stats()
        return info

    # ========== WORKER ==========

    async def _run(self) -> None:
        """Tick at a fixed rate until exit is requested."""
        loop = asyncio.get_running_loop()
        interval = self.config.tick_interval
        next_tick = loop.time() + interval
        error: Optional[CurtainError] = None

        try:
            while not self._exit_requested.is_set():
                try:
                    await asyncio.wait_for(
                        self._exit_requested.wait(),
                        timeout=max(0.0, next_tick - loop.time()),
                    )
                    break
                except asyncio.TimeoutError:
                    pass

                # Like a ticker, drop ticks we fell behind on instead of bursting
                next_tick = max(next_tick + interval, loop.time())
                self._tick()
        except asyncio.CancelledError:
            error = CurtainError("Curtain worker was cancelled")
            raise
        except Exception as e:
            logger.error(f"[{self.name}] Curtain worker failed: {e}", exc_info=True)
            error = CurtainError(f"Curtain worker failed: {e}")
        finally:
            self._finish(error)

    def _on_worker_done(self, task: asyncio.Task) -> None:
        # A task cancelled before its first step never enters _run
        if self._completion is None or self._completion.done():
            return
        self._finish(CurtainError(f"Curtain worker {task.get_name()} was cancelled before it started"))

    def _tick(self) -> None:
        emissions: List[Emission] = []

        with self._lock:
            if self._target > self._current:
                self._update_state(CurtainState.CLOSING, emissions)
                self._update_position(self._current + 1, emissions)
            elif self._target < self._current:
                self._update_state(CurtainState.OPENING, emissions)
                self._update_position(self._current - 1, emissions)
            else:
                self._update_state(CurtainState.STOPPED, emissions)

        self._publish(emissions)

    def _update_state(self, state: CurtainState, emissions: List[Emission]) -> None:
        if self._state == state:
            return
        self._state = state
        emissions.append((self._state_sub, state))

    def _update_position(self, position: int, emissions: List[Emission]) -> None:
        if self._current == position:
            return
        self._current = position
        emissions.append((self._position_sub, position))

    def _finish(self, error: Optional[CurtainError] = None) -> None:
        """Stop everything and resolve the completion exactly once."""
        self._exit_requested.set()
        with self._lock:
            self._shutdown = True
            self._shutdown_requested = True
            self._finish_subscriptions()
            if self._completion is not None:
                self._completion.resolve(error)

        if error is None:
            logger.info(f"[{self.name}] Curtain worker stopped")
        else:
            logger.warning(f"[{self.name}] Curtain worker stopped: {error}")

    def _finish_subscriptions(self) -> None:
        self._position_sub.close()
        self._state_sub.close()

    # ========== LOOP PLUMBING ==========

    def _publish(self, emissions: List[Emission]) -> None:
        for channel, value in emissions:
            logger.debug(f"[{self.name}] {channel.name} -> {value}")
            self._delivery.publish(channel, value)

    def _in_loop(self) -> bool:
        try:
            return asyncio.get_running_loop() is self._loop
        except RuntimeError:
            return False

    def _call_on_loop(self, callback: Callable, *args: Any) -> bool:
        """Schedule a callback on the worker's loop from any thread."""
        try:
            self._loop.call_soon_threadsafe(callback, *args)
        except RuntimeError:
            logger.debug(f"[{self.name}] Event loop is closed, dropping {callback.__name__}")
            return False
        return True

    def __repr__(self) -> str:
        snap = self.snapshot()
        return (f"MockCurtain(name={self.name!r}, position={snap.position}, "
                f"state={snap.state.value}, target={snap.target})")
