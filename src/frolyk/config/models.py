"""Pydantic configuration models."""

from __future__ import annotations

from enum import StrEnum
from typing import Literal, Self

from pydantic import BaseModel, Field, SecretStr, model_validator


class KafkaAuthMechanism(StrEnum):
    """Kafka SASL authentication mechanisms."""

    NONE = "none"
    SASL_PLAIN = "sasl_plain"
    SASL_SCRAM_256 = "sasl_scram_256"
    SASL_SCRAM_512 = "sasl_scram_512"


class KafkaConfig(BaseModel):
    """Kafka broker and consumer settings."""

    bootstrap_servers: str = "localhost:9092"
    client_id: str = "frolyk"
    group_id: str = "frolyk"
    auto_offset_reset: Literal["earliest", "latest"] = "latest"
    # Consumer tuning
    session_timeout_ms: int = Field(default=45000, ge=1000)
    max_poll_interval_ms: int = Field(default=300000, ge=1000)
    fetch_min_bytes: int = Field(default=1, ge=1)
    fetch_max_wait_ms: int = Field(default=100, ge=0)
    poll_batch_size: int = Field(default=100, ge=1)
    poll_timeout_seconds: float = Field(default=0.5, gt=0)
    # Admin / commit round trips
    request_timeout_seconds: float = Field(default=10.0, gt=0)
    # Auth / security
    security_protocol: str = "PLAINTEXT"
    auth_mechanism: KafkaAuthMechanism = KafkaAuthMechanism.NONE
    sasl_username: str | None = None
    sasl_password: SecretStr | None = None
    ssl_ca_location: str | None = None
    ssl_certificate_location: str | None = None
    ssl_key_location: str | None = None

    @model_validator(mode="after")
    def check_auth_requirements(self) -> Self:
        """Validate that SASL credentials are present when a mechanism is set."""
        if self.auth_mechanism != KafkaAuthMechanism.NONE and (
            not self.sasl_username or not self.sasl_password
        ):
            msg = (
                "sasl_username and sasl_password are required "
                f"when auth_mechanism is '{self.auth_mechanism.value}'"
            )
            raise ValueError(msg)
        return self


class StreamsConfig(BaseModel):
    """Per-partition stream buffering."""

    # Unread messages a partition stream holds before the shared feed waits
    max_buffered_messages: int = Field(default=1000, ge=1)


class LoggingConfig(BaseModel, populate_by_name=True):
    level: Literal["debug", "info", "warning", "error"] = "info"
    json_output: bool = Field(default=False, alias="json")


class FrolykConfig(BaseModel, extra="forbid"):
    """Top-level configuration."""

    kafka: KafkaConfig = KafkaConfig()
    streams: StreamsConfig = StreamsConfig()
    logging: LoggingConfig = LoggingConfig()
