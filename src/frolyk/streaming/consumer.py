"""Async wrapper around ``confluent_kafka.Consumer`` with manual commits."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import structlog
from confluent_kafka import (
    OFFSET_BEGINNING,
    Consumer,
    KafkaError,
    KafkaException,
    TopicPartition,
)

from frolyk.config.models import KafkaConfig
from frolyk.streaming.auth import client_config
from frolyk.streaming.message import Message

logger = structlog.get_logger()

MessageHandler = Callable[[Message], Awaitable[None]]
PartitionCallback = Callable[[list[tuple[str, int]]], None]


@dataclass(frozen=True, slots=True)
class TopicOffset:
    """An absolute next-to-read offset to commit for one partition."""

    topic: str
    partition: int
    offset: int
    metadata: str | None = None

    def to_topic_partition(self) -> TopicPartition:
        if self.metadata is None:
            return TopicPartition(self.topic, self.partition, self.offset)
        return TopicPartition(
            self.topic, self.partition, self.offset, metadata=self.metadata
        )


class KafkaConsumer:
    """Consumer client: ``connect``, ``subscribe``, ``run``, ``commit_offsets``.

    Polling happens in the default executor so the event loop stays free;
    the handler is awaited for each message in the order librdkafka returned
    them, so a slow handler holds back the next poll.
    """

    def __init__(
        self,
        config: KafkaConfig,
        *,
        group_id: str | None = None,
        on_assign: PartitionCallback | None = None,
        on_revoke: PartitionCallback | None = None,
    ) -> None:
        self._config = config
        self._group_id = group_id or config.group_id
        self._on_assign = on_assign
        self._on_revoke = on_revoke
        self._topics: list[str] = []
        self._from_beginning: set[str] = set()
        self._consumer: Consumer | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._running = False
        self._stopped = asyncio.Event()
        self._stopped.set()
        self._poll: asyncio.Future[list[Any]] | None = None
        self._delivery: asyncio.Task[None] | None = None

    @property
    def group_id(self) -> str:
        return self._group_id

    @property
    def topics(self) -> list[str]:
        return list(self._topics)

    @property
    def connected(self) -> bool:
        return self._consumer is not None

    def connect(self) -> None:
        """Create the underlying librdkafka consumer."""
        if self._consumer is not None:
            return
        self._consumer = Consumer(
            client_config(
                self._config,
                **{
                    "group.id": self._group_id,
                    "auto.offset.reset": self._config.auto_offset_reset,
                    "enable.auto.commit": False,
                    "session.timeout.ms": self._config.session_timeout_ms,
                    "max.poll.interval.ms": self._config.max_poll_interval_ms,
                    "fetch.min.bytes": self._config.fetch_min_bytes,
                    "fetch.wait.max.ms": self._config.fetch_max_wait_ms,
                },
            )
        )
        logger.info("consumer.connected", group_id=self._group_id)

    def subscribe(self, topic: str, *, from_beginning: bool = False) -> None:
        """Add *topic* to the subscription started by ``run()``."""
        if self._running:
            msg = "subscribe() must be called before run()"
            raise RuntimeError(msg)
        if topic not in self._topics:
            self._topics.append(topic)
        if from_beginning:
            self._from_beginning.add(topic)

    def _require_consumer(self) -> Consumer:
        if self._consumer is None:
            msg = "consumer is not connected; call connect() first"
            raise RuntimeError(msg)
        return self._consumer

    def _handle_assign(self, consumer: Any, partitions: list[Any]) -> None:
        # Runs on the poll thread inside consume().
        rewind = [tp for tp in partitions if tp.topic in self._from_beginning]
        if rewind:
            committed = consumer.committed(
                rewind, timeout=self._config.request_timeout_seconds
            )
            fresh = {(tp.topic, tp.partition) for tp in committed if tp.offset < 0}
            for tp in partitions:
                if (tp.topic, tp.partition) in fresh:
                    tp.offset = OFFSET_BEGINNING
            consumer.assign(partitions)
        if self._on_assign and self._loop:
            tps = [(tp.topic, tp.partition) for tp in partitions]
            self._loop.call_soon_threadsafe(self._on_assign, tps)

    def _handle_revoke(self, consumer: Any, partitions: list[Any]) -> None:
        if self._on_revoke and self._loop:
            tps = [(tp.topic, tp.partition) for tp in partitions]
            self._loop.call_soon_threadsafe(self._on_revoke, tps)

    async def run(self, handler: MessageHandler) -> None:
        """Poll until ``stop()``; await *handler* for every message.

        Any broker error other than partition EOF ends the loop with
        ``KafkaException``. ``stop()`` cancels a handler call that is still
        pending (e.g. waiting on a full stream), so the loop always exits.
        The librdkafka consumer is closed on exit, once no poll is in flight.
        """
        consumer = self._require_consumer()
        if not self._topics:
            msg = "no topics subscribed; call subscribe() before run()"
            raise RuntimeError(msg)
        if self._running:
            msg = "consumer is already running"
            raise RuntimeError(msg)

        self._running = True
        self._stopped.clear()
        self._loop = loop = asyncio.get_running_loop()
        consumer.subscribe(
            self._topics,
            on_assign=self._handle_assign,
            on_revoke=self._handle_revoke,
        )
        logger.info("consumer.started", topics=self._topics, group_id=self._group_id)
        try:
            while self._running:
                self._poll = loop.run_in_executor(
                    None,
                    consumer.consume,
                    self._config.poll_batch_size,
                    self._config.poll_timeout_seconds,
                )
                batch = await asyncio.shield(self._poll)
                for polled in batch:
                    if not self._running:
                        break
                    err = polled.error()
                    if err and err.code() == KafkaError._PARTITION_EOF:  # type: ignore[attr-defined]
                        continue
                    if err:
                        raise KafkaException(err)
                    if not await self._deliver(handler, Message.from_kafka(polled)):
                        break
        finally:
            self._running = False
            if self._poll is not None and not self._poll.done():
                # librdkafka must not be closed while another thread polls it
                await asyncio.wait({self._poll})
            self._poll = None
            self._close()
            logger.info("consumer.stopped", group_id=self._group_id)

    async def _deliver(self, handler: MessageHandler, message: Message) -> bool:
        """Await *handler*; False if ``stop()`` cancelled it first."""
        self._delivery = asyncio.ensure_future(handler(message))
        try:
            await self._delivery
        except asyncio.CancelledError:
            task = asyncio.current_task()
            if (
                self._running
                or not self._delivery.cancelled()
                or (task is not None and task.cancelling())
            ):
                raise
            logger.info(
                "consumer.delivery_abandoned",
                topic=message.topic,
                partition=message.partition,
                offset=message.offset,
            )
            return False
        finally:
            self._delivery = None
        return True

    async def commit_offsets(self, offsets: list[TopicOffset]) -> None:
        """Synchronously commit absolute offsets (and metadata) for this group."""
        if not offsets:
            return
        consumer = self._require_consumer()
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(
            None,
            lambda: consumer.commit(
                offsets=[o.to_topic_partition() for o in offsets],
                asynchronous=False,
            ),
        )

    def stop(self) -> None:
        """Make the poll loop exit, abandoning a handler call still pending."""
        self._running = False
        if self._delivery is not None and not self._delivery.done():
            self._delivery.cancel()

    async def disconnect(self) -> None:
        """Stop polling and wait until the librdkafka consumer is closed."""
        if self._consumer is None:
            return
        if not self._stopped.is_set():
            self.stop()
            await self._stopped.wait()
        else:
            self._close()

    def _close(self) -> None:
        if self._consumer is not None:
            self._consumer.close()
            self._consumer = None
        self._stopped.set()
