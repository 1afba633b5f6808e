"""Minimal state containers: Cubit and Bloc.

A Cubit holds a state and lets callers replace it with emit(). A Bloc adds an
ordered inbox: events are added from anywhere, and a single consumer task
handles them one at a time in arrival order, so state is never mutated by two
handlers at once.

Observers iterate stream() to see every emitted state, including repeats.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

S = TypeVar("S")
E = TypeVar("E")


class Cubit(Generic[S]):
    """Holds a state and broadcasts every change to stream() subscribers."""

    def __init__(self, initial_state: S) -> None:
        self._state = initial_state
        self._listeners: set[asyncio.Queue[S]] = set()
        self._closed = False

    @property
    def state(self) -> S:
        return self._state

    @property
    def is_closed(self) -> bool:
        return self._closed

    def emit(self, state: S) -> None:
        if self._closed:
            raise RuntimeError(f"Cannot emit new states after {type(self).__name__} is closed")
        self._state = state
        for queue in self._listeners:
            queue.put_nowait(state)

    async def stream(self) -> AsyncIterator[S]:
        """Yield every state emitted after subscribing."""
        queue: asyncio.Queue[S] = asyncio.Queue()
        self._listeners.add(queue)
        try:
            while True:
                yield await queue.get()
        finally:
            self._listeners.discard(queue)

    async def close(self) -> None:
        self._closed = True


class Bloc(Cubit[S], Generic[E, S]):
    """A Cubit driven by events processed strictly in arrival order."""

    def __init__(self, initial_state: S) -> None:
        super().__init__(initial_state)
        self._inbox: asyncio.Queue[E] = asyncio.Queue()
        self._handlers: dict[type, Callable[[Any], Awaitable[None]]] = {}
        self._consumer: asyncio.Task[None] | None = None

    def on(self, event_type: type, handler: Callable[[Any], Awaitable[None]]) -> None:
        """Register the handler for one event type."""
        if event_type in self._handlers:
            raise ValueError(f"Handler for {event_type.__name__} is already registered")
        self._handlers[event_type] = handler

    def add(self, event: E) -> None:
        """Queue an event for the consumer."""
        if self._closed:
            raise RuntimeError(f"Cannot add new events after {type(self).__name__} is closed")
        if type(event) not in self._handlers:
            raise ValueError(f"No handler registered for {type(event).__name__}")
        self._inbox.put_nowait(event)
        if self._consumer is None:
            self._consumer = asyncio.get_running_loop().create_task(self._consume())

    async def _consume(self) -> None:
        while True:
            event = await self._inbox.get()
            try:
                await self._handlers[type(event)](event)
            except Exception:
                # One failing handler must not stop the inbox.
                logger.exception(f"{type(self).__name__} failed to handle {type(event).__name__}")
            finally:
                self._inbox.task_done()

    async def drain(self) -> None:
        """Wait until every event queued so far has been handled."""
        await self._inbox.join()

    async def close(self) -> None:
        """Stop accepting events and cancel the consumer."""
        await super().close()
        if self._consumer is not None:
            self._consumer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._consumer
            self._consumer = None
