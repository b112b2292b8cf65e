"""Typer CLI for inspecting partition streams and committed offsets."""

from __future__ import annotations

import asyncio
from pathlib import Path

import structlog
import typer
from rich.console import Console
from rich.table import Table

from frolyk.assignment.offsets import parse_offset
from frolyk.config.loader import load_config
from frolyk.config.models import FrolykConfig
from frolyk.errors import FrolykError, InvalidOffset
from frolyk.observability.logging import configure_logging
from frolyk.streaming.admin import (
    alter_committed_offsets,
    create_admin,
    fetch_committed_offset,
)
from frolyk.streaming.consumer import KafkaConsumer, TopicOffset
from frolyk.streaming.message import Message
from frolyk.streaming.registry import create_streams

logger = structlog.get_logger()
console = Console()
app = typer.Typer(name="frolyk", help="Kafka partition stream tooling")


def _load(config_path: str | None) -> FrolykConfig:
    if config_path is not None and not Path(config_path).exists():
        console.print(f"[red]Config file not found: {config_path}[/red]")
        raise typer.Exit(1)
    try:
        config = load_config(config_path)
    except ValueError as exc:
        console.print(f"[red]Invalid config:[/red] {exc}")
        raise typer.Exit(1) from exc
    configure_logging(config.logging.level, json_output=config.logging.json_output)
    return config


def _render(message: Message) -> str:
    key = message.key.decode(errors="replace") if message.key is not None else "-"
    value = (
        message.value.decode(errors="replace") if message.value is not None else "-"
    )
    return (
        f"[cyan]{message.topic}[/cyan] p={message.partition} "
        f"o={message.offset}  {key} => {value}"
    )


@app.command()
def validate(
    config_path: str | None = typer.Option(
        None, "--config", "-c", help="Config YAML"
    ),
) -> None:
    """Load and print the effective configuration."""
    config = _load(config_path)
    console.print(f"[green]Valid[/green]: {config_path or '(defaults)'}")
    console.print(f"  kafka:   {config.kafka.bootstrap_servers}")
    console.print(f"  group:   {config.kafka.group_id}")
    console.print(f"  auth:    {config.kafka.auth_mechanism}")
    console.print(f"  buffer:  {config.streams.max_buffered_messages} msgs/partition")


@app.command()
def tail(
    topic: str = typer.Argument(..., help="Topic to read"),
    partition: int = typer.Option(0, "--partition", "-p", min=0),
    group: str | None = typer.Option(None, "--group", "-g", help="Consumer group"),
    from_beginning: bool = typer.Option(False, "--from-beginning"),
    limit: int = typer.Option(
        0, "--limit", "-n", min=0, help="Stop after N messages (0 = run forever)"
    ),
    config_path: str | None = typer.Option(
        None, "--config", "-c", help="Config YAML"
    ),
) -> None:
    """Print the messages of one partition as they arrive."""
    config = _load(config_path)

    async def _tail() -> int:
        consumer = KafkaConsumer(config.kafka, group_id=group)
        consumer.connect()
        consumer.subscribe(topic, from_beginning=from_beginning)
        registry = create_streams(
            consumer, max_buffered_messages=config.streams.max_buffered_messages
        )
        stream = registry.stream(topic, partition)
        await registry.start()
        source = stream.take(limit) if limit else stream
        seen = 0
        try:
            async for message in source:
                console.print(_render(message))
                seen += 1
        finally:
            await registry.stop()
            await consumer.disconnect()
        return seen

    console.print(f"[yellow]Tailing[/yellow] {topic}[{partition}]")
    try:
        seen = asyncio.run(_tail())
    except KeyboardInterrupt:
        raise typer.Exit(0) from None
    except FrolykError as exc:
        console.print(f"[red]Feed failed:[/red] {exc}")
        raise typer.Exit(1) from exc
    console.print(f"[green]{seen} message(s)[/green]")


@app.command()
def offsets(
    topic: str = typer.Argument(..., help="Topic"),
    group: str = typer.Option(..., "--group", "-g", help="Consumer group"),
    partition: int = typer.Option(0, "--partition", "-p", min=0),
    config_path: str | None = typer.Option(
        None, "--config", "-c", help="Config YAML"
    ),
) -> None:
    """Show a group's committed offset for a partition."""
    config = _load(config_path)
    admin = create_admin(config.kafka)
    committed = fetch_committed_offset(
        admin, group, topic, partition, timeout=config.kafka.request_timeout_seconds
    )

    table = Table(title=f"Committed offsets: {group}")
    table.add_column("Topic", style="cyan")
    table.add_column("Partition")
    table.add_column("Offset")
    table.add_column("Metadata")
    if committed is None:
        table.add_row(topic, str(partition), "[yellow]none[/yellow]", "")
    else:
        table.add_row(
            committed.topic,
            str(committed.partition),
            str(committed.offset),
            committed.metadata if committed.metadata is not None else "",
        )
    console.print(table)


@app.command()
def commit(
    topic: str = typer.Argument(..., help="Topic"),
    offset: str = typer.Argument(..., help="Next offset to read"),
    group: str = typer.Option(
        ..., "--group", "-g", help="Consumer group (must be idle)"
    ),
    partition: int = typer.Option(0, "--partition", "-p", min=0),
    metadata: str | None = typer.Option(None, "--metadata", "-m"),
    config_path: str | None = typer.Option(
        None, "--config", "-c", help="Config YAML"
    ),
) -> None:
    """Commit an offset for an idle consumer group."""
    try:
        parsed = parse_offset(offset)
    except InvalidOffset as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1) from exc

    config = _load(config_path)
    admin = create_admin(config.kafka)
    alter_committed_offsets(
        admin,
        group,
        [TopicOffset(topic, partition, parsed, metadata)],
        timeout=config.kafka.request_timeout_seconds,
    )
    logger.info(
        "cli.offset_committed",
        topic=topic,
        partition=partition,
        group=group,
        offset=parsed,
    )
    console.print(
        f"[green]Committed[/green] {topic}[{partition}] @ {parsed} for {group}"
    )
