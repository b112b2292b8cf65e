"""Assignment contexts: processor chains over one partition stream.

An assignment is one (topic, partition, group) unit of work. Building a
context runs each processor factory once, in order, handing it the
assignment together with a ``commit_offset`` capability bound to that
group/topic/partition; the processors they return are applied left to right
to every message of the partition stream.

Errors are never swallowed: a failing factory fails construction, a failing
processor fails the output stream at the element that raised, and every
later draw re-raises the same error.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass
from enum import StrEnum
from functools import partial
from typing import Any, Protocol

import structlog
from confluent_kafka.admin import AdminClient  # type: ignore[attr-defined]

from frolyk.assignment.offsets import validate_commit
from frolyk.streaming.admin import alter_committed_offsets
from frolyk.streaming.channel import Stream
from frolyk.streaming.consumer import TopicOffset
from frolyk.streaming.message import PartitionKey

logger = structlog.get_logger()

Processor = Callable[[Any], Any]
ProcessorFactory = Callable[
    ["CommittableAssignment"], "Awaitable[Processor] | Processor"
]
CommitFn = Callable[[TopicOffset], Awaitable[None]]


class ContextState(StrEnum):
    CONSTRUCTING = "constructing"
    READY = "ready"
    COMPLETED = "completed"
    FAILED = "failed"


class GroupCommitter(Protocol):
    """The part of a consumer client contexts commit through."""

    @property
    def group_id(self) -> str: ...

    async def commit_offsets(self, offsets: list[TopicOffset]) -> None: ...


@dataclass(frozen=True, slots=True)
class Assignment:
    topic: str
    partition: int
    group: str

    def __post_init__(self) -> None:
        PartitionKey.of(self.topic, self.partition)
        if not self.group:
            msg = "group must be a non-empty string"
            raise ValueError(msg)

    @property
    def partition_key(self) -> PartitionKey:
        return PartitionKey(self.topic, self.partition)


class CommittableAssignment:
    """An ``Assignment`` plus ``commit_offset`` for its group/topic/partition."""

    def __init__(self, assignment: Assignment, commit: CommitFn) -> None:
        self._assignment = assignment
        self._commit = commit

    def __repr__(self) -> str:
        a = self._assignment
        return (
            f"CommittableAssignment(topic={a.topic!r}, "
            f"partition={a.partition}, group={a.group!r})"
        )

    @property
    def assignment(self) -> Assignment:
        return self._assignment

    @property
    def topic(self) -> str:
        return self._assignment.topic

    @property
    def partition(self) -> int:
        return self._assignment.partition

    @property
    def group(self) -> str:
        return self._assignment.group

    async def commit_offset(self, offset: Any, metadata: str | None = None) -> None:
        """Commit *offset* (the next offset to read) with optional metadata.

        Raises ``InvalidOffset`` without contacting the broker when *offset*
        is not a non-negative integer or decimal string.
        """
        parsed, metadata = validate_commit(offset, metadata)
        await self._commit(
            TopicOffset(
                topic=self.topic,
                partition=self.partition,
                offset=parsed,
                metadata=metadata,
            )
        )
        logger.debug(
            "context.commit",
            topic=self.topic,
            partition=self.partition,
            group=self.group,
            offset=parsed,
            metadata=metadata,
        )


def _build_committer(
    assignment: Assignment, consumer: GroupCommitter, admin: AdminClient | None
) -> CommitFn:
    if assignment.group == consumer.group_id:

        async def _commit_via_consumer(offset: TopicOffset) -> None:
            await consumer.commit_offsets([offset])

        return _commit_via_consumer

    if admin is None:
        msg = (
            f"assignment group '{assignment.group}' differs from the consumer's "
            f"group '{consumer.group_id}'; an admin client is required to commit"
        )
        raise ValueError(msg)

    async def _commit_via_admin(offset: TopicOffset) -> None:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(
            None, partial(alter_committed_offsets, admin, assignment.group, [offset])
        )

    return _commit_via_admin


class AssignmentContext:
    """The output stream and committable assignment of one processor chain."""

    def __init__(self, assignment: CommittableAssignment, source: Stream[Any]) -> None:
        self.assignment = assignment
        self.state = ContextState.CONSTRUCTING
        self.error: BaseException | None = None
        self._processors: list[Processor] = []
        self._stream = _OutputStream(self, source)

    @property
    def stream(self) -> Stream[Any]:
        return self._stream

    @property
    def processors(self) -> list[Processor]:
        return list(self._processors)

    async def _apply(self, value: Any) -> Any:
        for processor in self._processors:
            value = processor(value)
            if inspect.isawaitable(value):
                value = await value
        return value

    def _fail(self, exc: BaseException) -> None:
        if self.state == ContextState.FAILED:
            return
        self.state = ContextState.FAILED
        self.error = exc
        logger.error(
            "context.failed",
            topic=self.assignment.topic,
            partition=self.assignment.partition,
            group=self.assignment.group,
            error=str(exc),
            error_type=type(exc).__name__,
        )

    def _complete(self) -> None:
        if self.state == ContextState.READY:
            self.state = ContextState.COMPLETED
            logger.info(
                "context.completed",
                topic=self.assignment.topic,
                partition=self.assignment.partition,
                group=self.assignment.group,
            )


class _OutputStream(Stream[Any]):
    """Pulls one message at a time through the context's processor chain."""

    def __init__(self, context: AssignmentContext, source: Stream[Any]) -> None:
        self._context = context
        self._source = source

    async def __anext__(self) -> Any:
        context = self._context
        if context.state == ContextState.FAILED:
            assert context.error is not None
            raise context.error
        if context.state == ContextState.COMPLETED:
            raise StopAsyncIteration
        try:
            message = await self._source.__anext__()
        except StopAsyncIteration:
            context._complete()
            raise
        except Exception as exc:
            context._fail(exc)
            raise
        try:
            return await context._apply(message)
        except Exception as exc:
            context._fail(exc)
            raise


async def create_assignment_context(
    *,
    assignment: Assignment | Mapping[str, Any],
    consumer: GroupCommitter,
    processors: Sequence[ProcessorFactory],
    stream: Stream[Any],
    admin: AdminClient | None = None,
) -> AssignmentContext:
    """Initialise *processors* in order and compose them over *stream*.

    Each factory receives the committable assignment and returns (or
    resolves to) a processor; factory *i + 1* is not called until factory
    *i* has resolved. A factory error propagates unchanged.
    """
    if isinstance(assignment, Mapping):
        assignment = Assignment(**assignment)
    key = getattr(stream, "key", None)
    if isinstance(key, PartitionKey) and key != assignment.partition_key:
        msg = f"stream for {key} does not match assignment {assignment.partition_key}"
        raise ValueError(msg)

    committable = CommittableAssignment(
        assignment, _build_committer(assignment, consumer, admin)
    )
    context = AssignmentContext(committable, stream)
    log = logger.bind(
        topic=assignment.topic, partition=assignment.partition, group=assignment.group
    )

    for index, factory in enumerate(processors):
        try:
            processor = factory(committable)
            if inspect.isawaitable(processor):
                processor = await processor
        except Exception as exc:
            context._fail(exc)
            raise
        if not callable(processor):
            error = TypeError(
                f"processor factory #{index} returned {type(processor).__name__}, "
                "expected a callable"
            )
            context._fail(error)
            raise error
        context._processors.append(processor)

    context.state = ContextState.READY
    log.info("context.ready", processors=len(context._processors))
    return context
