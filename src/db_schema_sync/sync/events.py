"""Publish/subscribe channel for namespace change notifications.

Notifications are plain namespace strings. Delivery is asynchronous: fire()
schedules every subscriber with loop.call_soon, which runs callbacks in FIFO
order, so subscribers see notifications in the order they were fired.
"""

import asyncio
from typing import Any, Callable, List, Optional, Set

from loguru import logger

ChangeCallback = Callable[[str], Any]


class Subscription:
    """Handle returned by ChangeEmitter.subscribe."""

    def __init__(self, emitter: "ChangeEmitter", callback: ChangeCallback):
        self._emitter = emitter
        self.callback = callback
        self.active = True

    def dispose(self) -> None:
        """Stop receiving notifications. Safe to call more than once."""
        if self.active:
            self.active = False
            self._emitter._remove(self)


class ChangeStream:
    """Async iterator over notifications, buffered in an unbounded queue.

    The stream is subscribed as soon as it is created, so nothing fired after
    ChangeEmitter.listen() returns is missed.

    Usage:
        async with emitter.listen() as stream:
            async for namespace in stream:
                ...
    """

    def __init__(self, emitter: "ChangeEmitter"):
        self._queue: asyncio.Queue[Optional[str]] = asyncio.Queue()
        self._subscription = emitter.subscribe(self._queue.put_nowait)

    def __aiter__(self) -> "ChangeStream":
        return self

    async def __anext__(self) -> str:
        namespace = await self._queue.get()
        if namespace is None:
            raise StopAsyncIteration
        return namespace

    async def __aenter__(self) -> "ChangeStream":
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.close()

    async def get(self, timeout: Optional[float] = None) -> str:
        """Wait for the next notification.

        Raises:
            EOFError: If the stream was closed
            TimeoutError: If nothing arrives within timeout seconds
        """
        namespace = await asyncio.wait_for(self._queue.get(), timeout)
        if namespace is None:
            raise EOFError("Change stream closed")
        return namespace

    def pending(self) -> List[str]:
        """Drain and return every buffered notification without waiting."""
        items = []
        while not self._queue.empty():
            namespace = self._queue.get_nowait()
            if namespace is not None:
                items.append(namespace)
        return items

    def close(self) -> None:
        if self._subscription.active:
            self._subscription.dispose()
            # wakes up a pending __anext__
            self._queue.put_nowait(None)


class ChangeEmitter:
    """Broadcasts namespace identifiers to registered subscribers."""

    def __init__(self) -> None:
        self._subscriptions: List[Subscription] = []
        self._tasks: Set[asyncio.Task] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def subscribe(self, callback: ChangeCallback) -> Subscription:
        """Register a callback. Coroutine functions are run as tasks."""
        subscription = Subscription(self, callback)
        self._subscriptions.append(subscription)
        return subscription

    def listen(self) -> ChangeStream:
        return ChangeStream(self)

    def fire(self, namespace: str) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        for subscription in list(self._subscriptions):
            if loop is not None:
                loop.call_soon(self._deliver, subscription, namespace)
            else:
                self._deliver(subscription, namespace)

    def _remove(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    def _deliver(self, subscription: Subscription, namespace: str) -> None:
        # unsubscribed between fire() and delivery
        if not subscription.active:
            return
        try:
            result = subscription.callback(namespace)
        except Exception as e:
            logger.exception(f"Change subscriber failed: namespace={namespace}, error={e}")
            return

        if asyncio.iscoroutine(result):
            try:
                task = asyncio.get_running_loop().create_task(result)
            except RuntimeError:
                result.close()
                logger.warning(f"Async subscriber skipped, no running loop: {namespace}")
                return
            self._tasks.add(task)
            task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Async change subscriber failed: {task.exception()}")
