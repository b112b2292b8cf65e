"""Kafka admin utilities: topic lifecycle and consumer-group offsets."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

import structlog
from confluent_kafka import ConsumerGroupTopicPartitions, TopicPartition
from confluent_kafka.admin import AdminClient, NewTopic  # type: ignore[attr-defined]

from frolyk.config.models import KafkaConfig
from frolyk.streaming.auth import client_config
from frolyk.streaming.consumer import TopicOffset

logger = structlog.get_logger()


@dataclass(frozen=True, slots=True)
class CommittedOffset:
    """A group's committed position for one partition."""

    topic: str
    partition: int
    offset: int
    metadata: str | None


def create_admin(config: KafkaConfig) -> AdminClient:
    return AdminClient(client_config(config))


def ensure_topics(
    admin: AdminClient,
    topics: Iterable[str],
    *,
    num_partitions: int = 1,
    replication_factor: int = 1,
    timeout: float = 10.0,
) -> None:
    """Create topics that don't exist yet and wait for the brokers to confirm."""
    wanted = list(topics)
    existing = set(admin.list_topics(timeout=timeout).topics.keys())
    to_create = [
        NewTopic(
            t, num_partitions=num_partitions, replication_factor=replication_factor
        )
        for t in wanted
        if t not in existing
    ]
    if not to_create:
        logger.info("topics.all_exist", count=len(wanted))
        return
    futures = admin.create_topics(to_create, operation_timeout=timeout)
    failed: list[str] = []
    for topic, future in futures.items():
        try:
            future.result()
            logger.info("topic.created", topic=topic, partitions=num_partitions)
        except Exception as exc:
            logger.error("topic.create_failed", topic=topic, error=str(exc))
            failed.append(f"{topic}: {exc}")
    if failed:
        msg = f"Failed to create {len(failed)} topic(s): {'; '.join(failed)}"
        raise RuntimeError(msg)


def delete_topics(
    admin: AdminClient, topics: Iterable[str], *, timeout: float = 10.0
) -> None:
    """Delete topics; topics that are already gone are ignored."""
    futures = admin.delete_topics(list(topics), operation_timeout=timeout)
    for topic, future in futures.items():
        try:
            future.result()
            logger.info("topic.deleted", topic=topic)
        except Exception as exc:
            logger.warning("topic.delete_failed", topic=topic, error=str(exc))


def fetch_committed_offset(
    admin: AdminClient,
    group: str,
    topic: str,
    partition: int,
    *,
    timeout: float = 10.0,
) -> CommittedOffset | None:
    """Return *group*'s committed offset for one partition, or None if unset."""
    request = ConsumerGroupTopicPartitions(group, [TopicPartition(topic, partition)])
    futures = admin.list_consumer_group_offsets([request], request_timeout=timeout)
    result = futures[group].result()
    for tp in result.topic_partitions:
        if tp.topic == topic and tp.partition == partition:
            if tp.error is not None:
                raise RuntimeError(
                    f"offset fetch failed for {topic}[{partition}]: {tp.error}"
                )
            if tp.offset < 0:
                return None
            return CommittedOffset(
                topic=tp.topic,
                partition=tp.partition,
                offset=tp.offset,
                metadata=tp.metadata or None,
            )
    return None


def alter_committed_offsets(
    admin: AdminClient,
    group: str,
    offsets: list[TopicOffset],
    *,
    timeout: float = 10.0,
) -> None:
    """Commit offsets for a group this process is not a member of.

    The broker only accepts this while the group has no active members.
    """
    if not offsets:
        return
    request = ConsumerGroupTopicPartitions(
        group, [o.to_topic_partition() for o in offsets]
    )
    futures = admin.alter_consumer_group_offsets([request], request_timeout=timeout)
    result = futures[group].result()
    for tp in result.topic_partitions:
        if tp.error is not None:
            raise RuntimeError(
                f"offset commit failed for {tp.topic}[{tp.partition}]: {tp.error}"
            )
