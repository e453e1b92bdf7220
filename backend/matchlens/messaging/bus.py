"""In-process message bus.

Design:
- ``publish`` enqueues on an asyncio.Queue and returns immediately
- consumer tasks dispatch each message to the handlers subscribed to its
  type (or a base type), in subscription order
- a failing handler is logged and does not prevent the others from running
- every consume is timed and logged with its correlation id bound into the
  structlog context
"""

import asyncio
import logging
import sys
import time
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from matchlens.core.config import settings
from matchlens.core.exceptions import WorkflowError
from matchlens.core.logging_config import bound_message_context
from matchlens.messaging.contracts import Message

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=Message)
Handler = Callable[[Any], Awaitable[Any]]


class MessageBus:
    """Asyncio-queue message bus with a small pool of consumer tasks."""

    def __init__(
        self,
        max_queue_size: int = 10000,
        concurrency: int = 4,
        telemetry: bool = True,
    ):
        self._queue: asyncio.Queue[Message | None] = asyncio.Queue(maxsize=max_queue_size)
        self._handlers: dict[type[Message], list[Handler]] = {}
        self._tasks: list[asyncio.Task[None]] = []
        self._concurrency = max(1, concurrency)
        self._telemetry = telemetry
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def pending_count(self) -> int:
        return self._queue.qsize()

    @property
    def free_capacity(self) -> int:
        """Messages that can still be published without hitting a full queue."""
        if self._queue.maxsize <= 0:
            return sys.maxsize
        return self._queue.maxsize - self._queue.qsize()

    def subscribe(self, message_type: type[M], handler: Callable[[M], Awaitable[Any]]) -> None:
        """Register an async handler for a message type."""
        self._handlers.setdefault(message_type, []).append(handler)
        logger.info(
            f"[MessageBus] Subscribed {getattr(handler, '__qualname__', handler)} "
            f"to {message_type.__name__}"
        )

    def handlers_for(self, message: Message) -> list[Handler]:
        handlers: list[Handler] = []
        for cls in type(message).__mro__:
            handlers.extend(self._handlers.get(cls, []))
        return handlers

    async def publish(self, message: Message) -> None:
        """Enqueue a message for asynchronous dispatch.

        Raises:
            WorkflowError: when the queue is full.
        """
        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull as e:
            logger.error(f"[MessageBus] Queue full ({self._queue.maxsize}), rejecting {message.message_type}")
            raise WorkflowError(
                "Message bus is saturated",
                details={"message_type": message.message_type, "queue_size": self._queue.maxsize},
            ) from e
        if self._telemetry:
            logger.debug(
                f"[MessageBus] Published {message.message_type} "
                f"(correlation_id={getattr(message, 'correlation_id', None)})"
            )

    async def dispatch(self, message: Message) -> None:
        """Deliver a message to its handlers in the current task."""
        handlers = self.handlers_for(message)
        if not handlers:
            logger.debug(f"[MessageBus] No handlers for {message.message_type}")
            return

        correlation_id = getattr(message, "correlation_id", None)
        with bound_message_context(message.message_type, correlation_id):
            for handler in handlers:
                name = getattr(handler, "__qualname__", repr(handler))
                start = time.perf_counter()
                if self._telemetry:
                    logger.debug(f"[MessageBus] Consuming {message.message_type} with {name}")
                try:
                    await handler(message)
                except Exception as e:
                    elapsed_ms = (time.perf_counter() - start) * 1000
                    logger.error(
                        f"[MessageBus] {name} failed on {message.message_type} "
                        f"after {elapsed_ms:.0f}ms: {e}",
                        exc_info=True,
                    )
                    continue
                if self._telemetry:
                    elapsed_ms = (time.perf_counter() - start) * 1000
                    logger.debug(
                        f"[MessageBus] Consumed {message.message_type} with {name} in {elapsed_ms:.0f}ms"
                    )

    async def drain(self) -> int:
        """Dispatch queued messages in the current task until the queue is empty.

        Messages published by handlers are processed too. Returns the number
        of messages dispatched.
        """
        count = 0
        while True:
            try:
                message = self._queue.get_nowait()
            except asyncio.QueueEmpty:
                return count
            self._queue.task_done()
            if message is None:
                continue
            await self.dispatch(message)
            count += 1

    async def start(self) -> None:
        """Start the consumer tasks."""
        if self._running:
            return
        self._running = True
        self._tasks = [
            asyncio.create_task(self._consumer_loop(i), name=f"message-bus-{i}")
            for i in range(self._concurrency)
        ]
        logger.info(f"[MessageBus] Started {self._concurrency} consumers")

    async def stop(self, timeout: float = 10.0) -> None:
        """Let consumers finish queued work, then stop them."""
        if not self._running:
            return
        self._running = False
        for _ in self._tasks:
            await self._queue.put(None)
        done, pending = await asyncio.wait(self._tasks, timeout=timeout)
        for task in pending:
            task.cancel()
        if pending:
            logger.warning(f"[MessageBus] {len(pending)} consumers cancelled after {timeout}s")
        self._tasks = []
        logger.info(f"[MessageBus] Stopped (pending={self._queue.qsize()})")

    async def _consumer_loop(self, worker: int) -> None:
        while True:
            message = await self._queue.get()
            try:
                if message is None:
                    return
                await self.dispatch(message)
            except Exception as e:
                logger.error(f"[MessageBus] Consumer {worker} error: {e}", exc_info=True)
            finally:
                self._queue.task_done()


_bus: MessageBus | None = None


def get_message_bus() -> MessageBus:
    """Get or create the process-wide message bus."""
    global _bus
    if _bus is None:
        _bus = MessageBus(
            max_queue_size=settings.message_bus_max_queue_size,
            telemetry=settings.workflow_enable_telemetry,
        )
    return _bus


def reset_message_bus() -> None:
    """Forget the singleton. Used by tests."""
    global _bus
    _bus = None
