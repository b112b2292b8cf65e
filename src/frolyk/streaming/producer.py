"""Kafka producer helpers used by tooling and tests."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

import structlog
from confluent_kafka import KafkaException, Producer

from frolyk.config.models import KafkaConfig
from frolyk.streaming.auth import client_config

logger = structlog.get_logger()


def create_producer(config: KafkaConfig, *, acks: str = "1") -> Producer:
    return Producer(client_config(config, acks=acks))


def _encode(value: Any) -> bytes | None:
    if value is None or isinstance(value, bytes):
        return value
    return str(value).encode()


def produce_messages(
    producer: Producer,
    topic: str,
    messages: Iterable[Mapping[str, Any]],
    *,
    timeout: float = 10.0,
) -> int:
    """Produce ``{"key", "value", "partition"?, "headers"?}`` mappings and flush.

    Returns the number of messages delivered; raises if any delivery failed.
    """
    errors: list[str] = []

    def _on_delivery(err: Any, _msg: Any) -> None:
        if err is not None:
            errors.append(str(err))

    count = 0
    for message in messages:
        kwargs: dict[str, Any] = {
            "key": _encode(message.get("key")),
            "value": _encode(message.get("value")),
            "on_delivery": _on_delivery,
        }
        if message.get("partition") is not None:
            kwargs["partition"] = message["partition"]
        if message.get("headers"):
            kwargs["headers"] = [
                (k, _encode(v)) for k, v in message["headers"].items()
            ]
        producer.produce(topic, **kwargs)
        producer.poll(0)
        count += 1

    remaining = producer.flush(timeout=timeout)
    if remaining:
        msg = f"{remaining} message(s) to {topic} not delivered within {timeout}s"
        raise KafkaException(msg)
    if errors:
        msg = f"Failed to deliver {len(errors)} message(s) to {topic}: {errors[0]}"
        raise KafkaException(msg)
    logger.debug("producer.delivered", topic=topic, count=count)
    return count
