"""
Generic event stream: an async-iterable sequence of events with a terminal
result value.
"""
from __future__ import annotations

import asyncio
from typing import Generic, TypeVar

T = TypeVar("T")  # event type
R = TypeVar("R")  # result type


class EventStream(Generic[T, R]):
    """
    An async-iterable stream of events T with a terminal result R.

    The producer side calls push(event) for every event and finishes with
    either end(result) or fail(error). Consumers iterate the events and then
    await result(); a failed stream re-raises its error from both.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[T | _Sentinel] = asyncio.Queue()
        self._result: R | None = None
        self._result_event = asyncio.Event()
        self._error: BaseException | None = None
        # Producer task, held here so it is not garbage collected mid-stream
        self.task: asyncio.Task | None = None

    @property
    def done(self) -> bool:
        return self._result_event.is_set()

    def push(self, event: T) -> None:
        """Push an event into the stream."""
        if self.done:
            raise RuntimeError("Cannot push to a finished stream")
        self._queue.put_nowait(event)

    def end(self, result: R) -> None:
        """Signal stream completion with the final result."""
        if self.done:
            return
        self._result = result
        self._result_event.set()
        self._queue.put_nowait(_SENTINEL)

    def fail(self, error: BaseException) -> None:
        """Signal stream failure with an exception."""
        if self.done:
            return
        self._error = error
        self._result_event.set()
        self._queue.put_nowait(_SENTINEL)

    async def result(self) -> R:
        """Await the final result of the stream."""
        await self._result_event.wait()
        if self._error is not None:
            raise self._error
        return self._result  # type: ignore[return-value]

    async def collect(self) -> tuple[list[T], R]:
        """Drain every remaining event, then return them with the result."""
        events = [event async for event in self]
        return events, await self.result()

    def __aiter__(self) -> "EventStream[T, R]":
        return self

    async def __anext__(self) -> T:
        item = await self._queue.get()
        if isinstance(item, _Sentinel):
            # Leave the sentinel in place so repeated iteration also stops
            self._queue.put_nowait(item)
            if self._error is not None:
                raise self._error
            raise StopAsyncIteration
        return item


class _Sentinel:
    """Sentinel value to signal stream end."""


_SENTINEL = _Sentinel()
