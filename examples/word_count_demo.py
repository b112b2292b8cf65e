#!/usr/bin/env python3
"""Runnable demo: count words per partition and commit as you go.

Prerequisites:
    a Kafka broker on localhost:9092 (or FROLYK_BOOTSTRAP_SERVERS)
    python examples/word_count_demo.py
"""

from __future__ import annotations

import asyncio
from collections import Counter

from rich.console import Console

from frolyk import KafkaConsumer, create_assignment_context, create_streams
from frolyk.config import load_config
from frolyk.observability.logging import configure_logging
from frolyk.streaming.admin import create_admin, ensure_topics
from frolyk.streaming.producer import create_producer, produce_messages

TOPIC = "frolyk-demo-words"
LINES = [
    "the quick brown fox",
    "jumps over the lazy dog",
    "the dog sleeps",
]

console = Console()


async def main() -> None:
    config = load_config()
    configure_logging(config.logging.level)

    # 1. Topic and some input
    admin = create_admin(config.kafka)
    ensure_topics(admin, [TOPIC])
    produce_messages(
        create_producer(config.kafka),
        TOPIC,
        [{"key": str(i), "value": line} for i, line in enumerate(LINES)],
    )

    # 2. One consumer feeds every partition stream
    consumer = KafkaConsumer(config.kafka, group_id="frolyk-demo")
    consumer.connect()
    consumer.subscribe(TOPIC, from_beginning=True)
    streams = create_streams(consumer)
    stream = streams.stream(TOPIC, 0)
    await streams.start()

    # 3. Processor chain: decode, count, commit
    counts: Counter[str] = Counter()

    async def decode(assignment):
        return lambda message: (message.offset, message.value.decode())

    async def count(assignment):
        async def process(record):
            offset, line = record
            counts.update(line.split())
            await assignment.commit_offset(offset + 1)
            return line

        return process

    context = await create_assignment_context(
        assignment={"topic": TOPIC, "partition": 0, "group": consumer.group_id},
        consumer=consumer,
        processors=[decode, count],
        stream=stream,
    )

    try:
        async for line in context.stream.take(len(LINES)):
            console.print(f"[cyan]processed[/cyan] {line}")
    finally:
        await streams.stop()
        await consumer.disconnect()

    for word, n in counts.most_common(5):
        console.print(f"  {word:<8} {n}")


if __name__ == "__main__":
    asyncio.run(main())
