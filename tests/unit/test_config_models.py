"""Unit tests for configuration Pydantic models."""

import pytest
from pydantic import SecretStr, ValidationError

from frolyk.config.models import (
    FrolykConfig,
    KafkaAuthMechanism,
    KafkaConfig,
    LoggingConfig,
    StreamsConfig,
)


class TestKafkaConfig:
    def test_defaults(self):
        cfg = KafkaConfig()
        assert cfg.bootstrap_servers == "localhost:9092"
        assert cfg.auto_offset_reset == "latest"
        assert cfg.auth_mechanism == KafkaAuthMechanism.NONE
        assert cfg.poll_batch_size == 100

    def test_invalid_offset_reset(self):
        with pytest.raises(ValidationError):
            KafkaConfig(auto_offset_reset="middle")

    def test_poll_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            KafkaConfig(poll_timeout_seconds=0)

    def test_password_is_secret(self):
        cfg = KafkaConfig(
            auth_mechanism=KafkaAuthMechanism.SASL_PLAIN,
            sasl_username="user",
            sasl_password=SecretStr("s3cret"),
        )
        assert cfg.sasl_password is not None
        assert cfg.sasl_password.get_secret_value() == "s3cret"
        assert "s3cret" not in repr(cfg)
        assert "s3cret" not in cfg.model_dump_json()

    def test_mechanism_from_string(self):
        cfg = KafkaConfig(
            auth_mechanism="sasl_scram_512", sasl_username="u", sasl_password="p"
        )
        assert cfg.auth_mechanism == KafkaAuthMechanism.SASL_SCRAM_512


class TestStreamsConfig:
    def test_buffer_must_be_positive(self):
        with pytest.raises(ValidationError):
            StreamsConfig(max_buffered_messages=0)


class TestLoggingConfig:
    def test_json_alias(self):
        assert LoggingConfig.model_validate({"json": True}).json_output is True
        assert LoggingConfig(json_output=True).json_output is True

    def test_invalid_level(self):
        with pytest.raises(ValidationError):
            LoggingConfig(level="verbose")


class TestFrolykConfig:
    def test_defaults(self):
        cfg = FrolykConfig()
        assert cfg.kafka.group_id == "frolyk"
        assert cfg.streams.max_buffered_messages == 1000

    def test_extra_sections_forbidden(self):
        with pytest.raises(ValidationError):
            FrolykConfig.model_validate({"sinks": {}})
