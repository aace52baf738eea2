from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeAlias

EventPayload: TypeAlias = Dict[str, Any]
EventHandler: TypeAlias = Callable[[EventPayload], Awaitable[None]]


class EventBus:
    """Pub/sub hub for events crossing the tab boundary.

    Host-frame messages, address bar changes and user actions are published
    here; handlers run as tracked tasks so a slow handler never blocks the
    publisher.
    """

    def __init__(self) -> None:
        self._subscribers: Dict[str, List[EventHandler]] = defaultdict(list)
        # Created lazily so the bus can be built before the loop exists
        self._lock: Optional[asyncio.Lock] = None
        self._loop_id: Optional[int] = None
        self._logger = logging.getLogger(__name__)
        self._pending_tasks: set[asyncio.Task] = set()

    def _ensure_lock(self) -> asyncio.Lock:
        """Get or create the lock bound to the running loop."""
        try:
            loop_id = id(asyncio.get_running_loop())
            if self._loop_id is not None and self._loop_id != loop_id:
                self._lock = None
            if self._lock is None:
                self._lock = asyncio.Lock()
                self._loop_id = loop_id
        except RuntimeError:
            if self._lock is None:
                self._lock = asyncio.Lock()
        return self._lock

    async def subscribe(self, topic: str, handler: EventHandler) -> Callable[[], Awaitable[None]]:
        """Register an async handler for a topic.

        Returns a coroutine function that removes the subscription again.
        """
        async with self._ensure_lock():
            if handler not in self._subscribers[topic]:
                self._subscribers[topic].append(handler)

        async def _unsubscribe() -> None:
            await self.unsubscribe(topic, handler)

        return _unsubscribe

    async def unsubscribe(self, topic: str, handler: EventHandler) -> None:
        """Remove a handler from a topic."""
        async with self._ensure_lock():
            if handler in self._subscribers.get(topic, []):
                self._subscribers[topic].remove(handler)

    def has_subscribers(self, topic: str) -> bool:
        return bool(self._subscribers.get(topic))

    async def publish(self, topic: str, payload: EventPayload) -> None:
        """Publish an event to all subscribers of ``topic``."""
        async with self._ensure_lock():
            handlers = list(self._subscribers.get(topic, []))

        if not handlers:
            self._logger.debug(f"No subscribers for topic '{topic}'")
            return

        self._logger.debug(f"Publishing to topic '{topic}' with {len(handlers)} handler(s)")
        for handler in handlers:
            task = asyncio.create_task(self._safe_dispatch(topic, handler, payload))
            self._pending_tasks.add(task)
            task.add_done_callback(self._pending_tasks.discard)

    def publish_nowait(self, topic: str, payload: EventPayload) -> Optional[asyncio.Task]:
        """Schedule ``publish`` from synchronous code.

        The publishing task is tracked like handler tasks, so
        ``wait_until_idle`` also covers it. Returns None without a running loop.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._logger.debug(f"No running loop; dropped event for topic '{topic}'")
            return None
        task = loop.create_task(self.publish(topic, payload))
        self._pending_tasks.add(task)
        task.add_done_callback(self._pending_tasks.discard)
        return task

    async def wait_until_idle(self, timeout: float = 10.0) -> bool:
        """Wait for all pending handlers, including ones they spawn.

        Returns False if ``timeout`` seconds pass first.
        """
        loop = asyncio.get_running_loop()
        start_time = loop.time()
        while self._pending_tasks:
            if loop.time() - start_time > timeout:
                self._logger.warning(
                    f"EventBus: Timeout reached while waiting for {len(self._pending_tasks)} tasks"
                )
                return False
            await asyncio.gather(*list(self._pending_tasks), return_exceptions=True)
            # Let handlers that published from inside a handler register their tasks
            await asyncio.sleep(0)
        return True

    async def _safe_dispatch(
        self,
        topic: str,
        handler: EventHandler,
        payload: EventPayload,
    ) -> None:
        """Keep one failing handler from stopping the bus."""
        handler_name = getattr(handler, "__name__", str(handler))
        try:
            await handler(payload)
        except Exception as exc:
            self._logger.exception(
                f"EventBus handler error in '{handler_name}' for topic '{topic}'",
                exc_info=exc,
            )

    def clear(self) -> None:
        """Remove all subscriptions."""
        self._subscribers.clear()
