"""Broker fixtures for integration tests.

Point ``FROLYK_TEST_BOOTSTRAP`` at a running Kafka broker (default
``localhost:9092``); tests are skipped when it cannot be reached.
"""

from __future__ import annotations

import os
import secrets
import uuid
from collections.abc import AsyncIterator, Iterator

import pytest
from confluent_kafka.admin import AdminClient

from frolyk.config.models import KafkaConfig
from frolyk.streaming.admin import create_admin, delete_topics, ensure_topics
from frolyk.streaming.consumer import KafkaConsumer
from frolyk.streaming.producer import create_producer, produce_messages
from frolyk.streaming.registry import StreamRegistry, create_streams

BOOTSTRAP = os.environ.get("FROLYK_TEST_BOOTSTRAP", "localhost:9092")


def secure_random(length: int = 10) -> str:
    return f"{secrets.token_hex(length)}-{os.getpid()}-{uuid.uuid4()}"


def _broker_available(config: KafkaConfig) -> bool:
    try:
        create_admin(config).list_topics(timeout=5)
    except Exception:
        return False
    return True


@pytest.fixture(scope="session")
def kafka_config() -> KafkaConfig:
    config = KafkaConfig(
        bootstrap_servers=BOOTSTRAP,
        client_id="frolyk-tests",
        auto_offset_reset="earliest",
        fetch_max_wait_ms=100,
        session_timeout_ms=6000,
    )
    if not _broker_available(config):
        pytest.skip(f"Kafka broker not reachable at {BOOTSTRAP}")
    return config


@pytest.fixture
def admin(kafka_config: KafkaConfig) -> AdminClient:
    return create_admin(kafka_config)


@pytest.fixture
def topic(admin: AdminClient) -> Iterator[str]:
    """A fresh two-partition topic, deleted after the test."""
    name = f"topic-{secure_random()}"
    ensure_topics(admin, [name], num_partitions=2)
    yield name
    delete_topics(admin, [name])


@pytest.fixture
def group() -> str:
    return f"group-{secure_random()}"


@pytest.fixture
async def consumer(
    kafka_config: KafkaConfig, group: str
) -> AsyncIterator[KafkaConsumer]:
    consumer = KafkaConsumer(kafka_config, group_id=group)
    consumer.connect()
    yield consumer
    await consumer.disconnect()


def _make_messages(n: int, partition: int | None = 0) -> list[dict[str, object]]:
    messages = []
    for _ in range(n):
        value = secure_random()
        messages.append(
            {"key": f"key-{value}", "value": f"value-{value}", "partition": partition}
        )
    return messages


@pytest.fixture
def make_messages():
    return _make_messages


@pytest.fixture
def produce(kafka_config: KafkaConfig):
    producer = create_producer(kafka_config)

    def _produce(topic: str, messages: list[dict[str, object]]) -> int:
        return produce_messages(producer, topic, messages)

    return _produce


@pytest.fixture
async def streams(consumer: KafkaConsumer) -> AsyncIterator[StreamRegistry]:
    registry = create_streams(consumer)
    yield registry
    await registry.stop()
