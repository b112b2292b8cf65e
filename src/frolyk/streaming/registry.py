"""Demultiplexes one consumer's feed into per-partition streams."""

from __future__ import annotations

import asyncio
from contextlib import suppress
from typing import Protocol, overload

import structlog

from frolyk.errors import UpstreamFeedError
from frolyk.streaming.channel import PartitionStream
from frolyk.streaming.consumer import MessageHandler
from frolyk.streaming.message import Message, PartitionKey

logger = structlog.get_logger()


class MessageFeed(Protocol):
    """The part of a consumer client the registry drives."""

    async def run(self, handler: MessageHandler) -> None: ...

    def stop(self) -> None: ...


class StreamRegistry:
    """Owns the (topic, partition) -> stream table for one consumer.

    The registry is the only writer: ``start()`` runs the consumer feed once
    and appends every message to the stream for its partition, creating the
    stream on first sight. ``stream()`` hands out the same stream object for
    the same key every time, and may be called before ``start()``.

    ``put()`` on a full stream suspends the shared feed, so an unread
    partition eventually pauses all partitions of this consumer.
    """

    def __init__(
        self, consumer: MessageFeed, *, max_buffered_messages: int = 1000
    ) -> None:
        self._consumer = consumer
        self._max_buffered = max_buffered_messages
        self._streams: dict[PartitionKey, PartitionStream[Message]] = {}
        self._task: asyncio.Task[None] | None = None
        # (error or None) once the feed has terminated
        self._terminal: tuple[BaseException | None] | None = None

    @overload
    def stream(self, key: PartitionKey, /) -> PartitionStream[Message]: ...

    @overload
    def stream(self, topic: str, partition: int) -> PartitionStream[Message]: ...

    def stream(
        self, topic: str | PartitionKey, partition: int | None = None
    ) -> PartitionStream[Message]:
        """Return the stream for a topic-partition, creating it if needed."""
        if isinstance(topic, PartitionKey):
            key = topic
        else:
            if partition is None:
                msg = "stream() requires a partition"
                raise TypeError(msg)
            key = PartitionKey.of(topic, partition)
        return self._get_or_create(key)

    def _get_or_create(self, key: PartitionKey) -> PartitionStream[Message]:
        stream = self._streams.get(key)
        if stream is None:
            stream = PartitionStream(key, maxsize=self._max_buffered)
            self._streams[key] = stream
            logger.debug(
                "registry.stream_created", topic=key.topic, partition=key.partition
            )
            if self._terminal is not None:
                # Late streams end the same way the feed did.
                _terminate_stream(stream, self._terminal[0])
        return stream

    @property
    def keys(self) -> list[PartitionKey]:
        return list(self._streams)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def done(self) -> bool:
        return self._terminal is not None

    @property
    def error(self) -> BaseException | None:
        """The exception that ended the feed, if it failed."""
        return self._terminal[0] if self._terminal is not None else None

    async def start(self) -> None:
        """Start routing the consumer feed; later calls are no-ops."""
        if self._task is not None:
            return
        self._task = asyncio.create_task(self._run(), name="frolyk-stream-registry")
        # Let the feed begin before returning control to the caller.
        await asyncio.sleep(0)
        logger.info("registry.started", streams=len(self._streams))

    async def stop(self, *, timeout: float = 5.0) -> None:
        """Stop the consumer feed and close every stream.

        The consumer is asked to stop first; the feed task is cancelled if it
        has not finished within *timeout* seconds (e.g. it is waiting on a
        full stream nobody reads).
        """
        if self._task is None:
            return
        self._consumer.stop()
        if not self._task.done():
            _, pending = await asyncio.wait({self._task}, timeout=timeout)
            for task in pending:
                task.cancel()
        with suppress(asyncio.CancelledError):
            await self._task
        self._terminate(None)

    async def _route(self, message: Message) -> None:
        await self._get_or_create(message.partition_key).put(message)

    async def _run(self) -> None:
        # Feed errors are delivered through the streams, not the task.
        try:
            await self._consumer.run(self._route)
        except asyncio.CancelledError:
            self._terminate(None)
            raise
        except Exception as exc:
            logger.error(
                "registry.feed_failed", error=str(exc), streams=len(self._streams)
            )
            self._terminate(exc)
            return
        logger.info("registry.feed_ended", streams=len(self._streams))
        self._terminate(None)

    def _terminate(self, exc: BaseException | None) -> None:
        if self._terminal is not None:
            return
        self._terminal = (exc,)
        for stream in self._streams.values():
            _terminate_stream(stream, exc)


def _terminate_stream(
    stream: PartitionStream[Message], exc: BaseException | None
) -> None:
    if exc is None:
        stream.close()
        return
    error = UpstreamFeedError(f"consumer feed failed for {stream.key!r}: {exc}")
    error.__cause__ = exc
    stream.fail(error)


def create_streams(
    consumer: MessageFeed, *, max_buffered_messages: int = 1000
) -> StreamRegistry:
    """Create a registry over *consumer*'s feed."""
    return StreamRegistry(consumer, max_buffered_messages=max_buffered_messages)
