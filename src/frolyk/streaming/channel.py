"""Lazy, pull-driven async sequences.

``Stream`` is the async-iterator type every partition feed and processing
pipeline is expressed in.  ``PartitionStream`` is the bounded
producer/consumer channel the registry writes into: ``put()`` suspends while
the buffer is full, so a partition nobody reads applies backpressure to the
shared consumer feed instead of growing without bound.
"""

from __future__ import annotations

import asyncio
import inspect
from collections import deque
from collections.abc import AsyncIterable, AsyncIterator, Awaitable, Callable
from contextlib import suppress
from typing import Any, Generic, TypeVar

T = TypeVar("T")
U = TypeVar("U")

Mapper = Callable[[T], U | Awaitable[U]]


class Stream(AsyncIterator[T], Generic[T]):
    """Async iterator with a small set of lazy combinators."""

    def __aiter__(self) -> Stream[T]:
        return self

    async def __anext__(self) -> T:
        raise NotImplementedError

    def map(self, fn: Mapper[T, U]) -> Stream[U]:
        """Apply *fn* to each element; awaitable results are awaited in order."""
        return MappedStream(self, fn)

    def take(self, n: int) -> Stream[T]:
        """Yield at most *n* elements, then stop without pulling further."""
        if n < 0:
            msg = f"take() requires n >= 0, got {n}"
            raise ValueError(msg)
        return TakeStream(self, n)

    async def collect(self) -> list[T]:
        """Drain the stream into a list."""
        return [item async for item in self]


class IterableStream(Stream[T]):
    """Adapts any async iterable to ``Stream``."""

    def __init__(self, source: AsyncIterable[T]) -> None:
        self._source = source.__aiter__()

    async def __anext__(self) -> T:
        return await self._source.__anext__()


class MappedStream(Stream[U]):
    def __init__(self, source: Stream[Any], fn: Mapper[Any, U]) -> None:
        self._source = source
        self._fn = fn

    async def __anext__(self) -> U:
        item = await self._source.__anext__()
        result = self._fn(item)
        if inspect.isawaitable(result):
            return await result
        return result  # type: ignore[return-value]


class TakeStream(Stream[T]):
    def __init__(self, source: Stream[T], n: int) -> None:
        self._source = source
        self._remaining = n

    async def __anext__(self) -> T:
        if self._remaining <= 0:
            raise StopAsyncIteration
        item = await self._source.__anext__()
        self._remaining -= 1
        return item


class StreamClosedError(Exception):
    """``put()`` was called on a stream that has already terminated."""


class PartitionStream(Stream[T]):
    """Bounded single-writer channel, read as an async iterator.

    Buffered elements are always delivered before the terminal state:
    after ``close()`` readers drain the buffer and then stop, after
    ``fail(exc)`` they drain the buffer and then every draw raises *exc*.

    Draining is destructive; a stream is meant to have one reader.
    """

    def __init__(self, key: Any = None, *, maxsize: int = 1000) -> None:
        if maxsize < 1:
            msg = f"maxsize must be >= 1, got {maxsize}"
            raise ValueError(msg)
        self.key = key
        self._maxsize = maxsize
        self._buffer: deque[T] = deque()
        self._getters: deque[asyncio.Future[None]] = deque()
        self._putters: deque[asyncio.Future[None]] = deque()
        self._closed = False
        self._error: BaseException | None = None

    def __repr__(self) -> str:
        return (
            f"<PartitionStream key={self.key!r} buffered={len(self._buffer)} "
            f"closed={self._closed}>"
        )

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def error(self) -> BaseException | None:
        return self._error

    def qsize(self) -> int:
        return len(self._buffer)

    def full(self) -> bool:
        return len(self._buffer) >= self._maxsize

    async def put(self, item: T) -> None:
        """Append *item*, waiting while the buffer is full."""
        while not self._closed and self.full():
            await self._wait(self._putters)
        if self._closed:
            msg = f"cannot put into terminated stream {self.key!r}"
            raise StreamClosedError(msg)
        self._buffer.append(item)
        self._wake(self._getters)

    def close(self) -> None:
        """End the stream once buffered elements have been read."""
        self._terminate(None)

    def fail(self, error: BaseException) -> None:
        """End the stream with *error* once buffered elements have been read."""
        self._terminate(error)

    def _terminate(self, error: BaseException | None) -> None:
        if self._closed:
            return
        self._closed = True
        self._error = error
        self._wake(self._getters)
        self._wake(self._putters)

    async def __anext__(self) -> T:
        while not self._buffer and not self._closed:
            await self._wait(self._getters)
        if self._buffer:
            item = self._buffer.popleft()
            self._wake(self._putters)
            return item
        if self._error is not None:
            raise self._error
        raise StopAsyncIteration

    @staticmethod
    async def _wait(waiters: deque[asyncio.Future[None]]) -> None:
        waiter = asyncio.get_running_loop().create_future()
        waiters.append(waiter)
        try:
            await waiter
        finally:
            waiter.cancel()
            with suppress(ValueError):
                waiters.remove(waiter)

    @staticmethod
    def _wake(waiters: deque[asyncio.Future[None]]) -> None:
        # Waiters re-check their condition, so waking all of them is safe.
        while waiters:
            waiter = waiters.popleft()
            if not waiter.done():
                waiter.set_result(None)
