"""Partition identity and the immutable message record."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, NamedTuple

from confluent_kafka import TIMESTAMP_NOT_AVAILABLE

Headers = tuple[tuple[str, bytes | None], ...]


class PartitionKey(NamedTuple):
    """(topic, partition) identity of one partition stream."""

    topic: str
    partition: int

    @classmethod
    def of(cls, topic: str, partition: int) -> PartitionKey:
        """Build a validated key."""
        if not topic:
            msg = "topic must be a non-empty string"
            raise ValueError(msg)
        if isinstance(partition, bool) or not isinstance(partition, int):
            msg = f"partition must be an int, got {type(partition).__name__}"
            raise TypeError(msg)
        if partition < 0:
            msg = f"partition must be >= 0, got {partition}"
            raise ValueError(msg)
        return cls(topic, partition)


@dataclass(frozen=True, slots=True)
class Message:
    """A consumed Kafka record, detached from the librdkafka message object."""

    topic: str
    partition: int
    offset: int
    key: bytes | None
    value: bytes | None
    timestamp: int | None = None
    headers: Headers = ()
    raw: Any = field(default=None, repr=False, compare=False)

    @property
    def partition_key(self) -> PartitionKey:
        return PartitionKey(self.topic, self.partition)

    @classmethod
    def from_kafka(cls, msg: Any) -> Message:
        """Convert a ``confluent_kafka.Message``."""
        topic = msg.topic()
        partition = msg.partition()
        offset = msg.offset()
        assert topic is not None
        assert partition is not None
        assert offset is not None
        ts_type, ts = msg.timestamp()
        return cls(
            topic=topic,
            partition=partition,
            offset=offset,
            key=msg.key(),
            value=msg.value(),
            timestamp=None if ts_type == TIMESTAMP_NOT_AVAILABLE else ts,
            headers=tuple(msg.headers() or ()),
            raw=msg,
        )
