"""
Subscription channels and the one-shot completion signal.

A Subscription is an unbuffered (rendezvous) channel bound to the event
loop it is used on: ``send`` completes only once a reader has taken the
value, and any number of readers may compete for values. Closing the
channel wakes every pending reader with end-of-stream and releases every
pending sender without delivering.

A Completion resolves exactly once, either to ``None`` (graceful
termination) or to an error instance describing why the controller died.
"""

import asyncio
import logging
from collections import deque
from typing import Deque, Generic, Optional, Tuple, TypeVar

from .errors import CurtainError, SubscriptionClosed

logger = logging.getLogger(__name__)

T = TypeVar('T')


class Subscription(Generic[T]):
    """Multi-value delivery channel owned by a controller."""

    def __init__(self, name: str):
        self.name = name
        self._senders: Deque[Tuple[T, asyncio.Future]] = deque()
        self._receivers: Deque[asyncio.Future] = deque()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending_senders(self) -> int:
        return len(self._senders)

    async def send(self, value: T) -> bool:
        """
        Hand a value to a reader.

        Returns:
            True once a reader took the value, False if the channel was
            closed before that happened.
        """
        if self._closed:
            return False

        while self._receivers:
            receiver = self._receivers.popleft()
            if not receiver.done():
                receiver.set_result(value)
                return True

        entry = (value, asyncio.get_running_loop().create_future())
        self._senders.append(entry)
        try:
            return await entry[1]
        except asyncio.CancelledError:
            if entry in self._senders:
                self._senders.remove(entry)
            raise

    async def receive(self) -> T:
        """
        Wait for the next value.

        Raises:
            SubscriptionClosed: If the channel is closed
        """
        while self._senders:
            value, sender = self._senders.popleft()
            if not sender.done():
                sender.set_result(True)
                return value

        if self._closed:
            raise SubscriptionClosed(f"Subscription '{self.name}' is closed")

        receiver = asyncio.get_running_loop().create_future()
        self._receivers.append(receiver)
        try:
            return await receiver
        except asyncio.CancelledError:
            if receiver in self._receivers:
                self._receivers.remove(receiver)
            raise

    def close(self) -> None:
        """Close the channel. Idempotent."""
        if self._closed:
            return
        self._closed = True

        while self._receivers:
            receiver = self._receivers.popleft()
            if not receiver.done():
                receiver.set_exception(
                    SubscriptionClosed(f"Subscription '{self.name}' is closed")
                )

        dropped = 0
        while self._senders:
            _, sender = self._senders.popleft()
            if not sender.done():
                sender.set_result(False)
                dropped += 1

        logger.debug(f"Subscription '{self.name}' closed ({dropped} pending values dropped)")

    def __aiter__(self) -> "Subscription[T]":
        return self

    async def __anext__(self) -> T:
        try:
            return await self.receive()
        except SubscriptionClosed:
            raise StopAsyncIteration

    def __repr__(self) -> str:
        return f"Subscription(name={self.name!r}, closed={self._closed})"


class Completion:
    """
    One-shot signal reporting how a controller's life ended.

    Awaiting it yields ``None`` after a graceful shutdown, or the
    CurtainError that terminated the controller. Every await, past or
    future, observes the same value.
    """

    def __init__(self, future: asyncio.Future):
        self._future = future

    @classmethod
    def create(cls) -> "Completion":
        """Create an unresolved completion bound to the running loop."""
        return cls(asyncio.get_running_loop().create_future())

    @classmethod
    def resolved(cls, error: Optional[CurtainError] = None) -> "Completion":
        """Create a completion that is already resolved."""
        completion = cls.create()
        completion.resolve(error)
        return completion

    def done(self) -> bool:
        return self._future.done()

    def result(self) -> Optional[CurtainError]:
        """
        Get the outcome without waiting.

        Raises:
            asyncio.InvalidStateError: If the completion is not resolved yet
        """
        return self._future.result()

    def resolve(self, error: Optional[CurtainError] = None) -> bool:
        """
        Resolve the completion.

        Args:
            error: None for graceful termination, otherwise the failure

        Returns:
            True if this call resolved it, False if it was already resolved
        """
        if self._future.done():
            return False
        self._future.set_result(error)
        return True

    async def wait(self, timeout: Optional[float] = None) -> Optional[CurtainError]:
        """Wait for the outcome, optionally bounded by a timeout."""
        return await asyncio.wait_for(asyncio.shield(self._future), timeout=timeout)

    def __await__(self):
        return asyncio.shield(self._future).__await__()

    def __repr__(self) -> str:
        if not self._future.done():
            return "Completion(pending)"
        return f"Completion(result={self._future.result()!r})"
