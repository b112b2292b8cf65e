"""Unit tests for Kafka auth config builder."""

from __future__ import annotations

import pytest
from pydantic import SecretStr, ValidationError

from frolyk.config.models import KafkaAuthMechanism, KafkaConfig
from frolyk.streaming.auth import build_kafka_auth_config, client_config


class TestBuildKafkaAuthConfig:
    def test_none_mechanism_returns_empty(self):
        config = KafkaConfig()
        result = build_kafka_auth_config(config)
        assert result == {}

    def test_sasl_plain(self):
        config = KafkaConfig(
            auth_mechanism=KafkaAuthMechanism.SASL_PLAIN,
            security_protocol="SASL_SSL",
            sasl_username="user",
            sasl_password=SecretStr("pass"),
        )
        result = build_kafka_auth_config(config)
        assert result["security.protocol"] == "SASL_SSL"
        assert result["sasl.mechanism"] == "PLAIN"
        assert result["sasl.username"] == "user"
        assert result["sasl.password"] == "pass"

    def test_sasl_scram_256(self):
        config = KafkaConfig(
            auth_mechanism=KafkaAuthMechanism.SASL_SCRAM_256,
            security_protocol="SASL_SSL",
            sasl_username="user",
            sasl_password=SecretStr("pass"),
        )
        result = build_kafka_auth_config(config)
        assert result["sasl.mechanism"] == "SCRAM-SHA-256"

    def test_sasl_scram_512(self):
        config = KafkaConfig(
            auth_mechanism=KafkaAuthMechanism.SASL_SCRAM_512,
            security_protocol="SASL_SSL",
            sasl_username="user",
            sasl_password=SecretStr("pass"),
        )
        result = build_kafka_auth_config(config)
        assert result["sasl.mechanism"] == "SCRAM-SHA-512"

    def test_ssl_only(self):
        config = KafkaConfig(security_protocol="SSL", ssl_ca_location="/ca.pem")
        result = build_kafka_auth_config(config)
        assert result == {"security.protocol": "SSL", "ssl.ca.location": "/ca.pem"}

    def test_ssl_locations_included(self):
        config = KafkaConfig(
            auth_mechanism=KafkaAuthMechanism.SASL_PLAIN,
            security_protocol="SASL_SSL",
            sasl_username="user",
            sasl_password=SecretStr("pass"),
            ssl_ca_location="/ca.pem",
            ssl_certificate_location="/cert.pem",
            ssl_key_location="/key.pem",
        )
        result = build_kafka_auth_config(config)
        assert result["ssl.ca.location"] == "/ca.pem"
        assert result["ssl.certificate.location"] == "/cert.pem"
        assert result["ssl.key.location"] == "/key.pem"


class TestClientConfig:
    def test_base_settings(self):
        config = KafkaConfig(bootstrap_servers="broker:9092", client_id="tests")
        assert client_config(config) == {
            "bootstrap.servers": "broker:9092",
            "client.id": "tests",
        }

    def test_overrides_win(self):
        config = KafkaConfig()
        result = client_config(config, **{"client.id": "other", "group.id": "g"})
        assert result["client.id"] == "other"
        assert result["group.id"] == "g"

    def test_auth_merged(self):
        config = KafkaConfig(
            auth_mechanism=KafkaAuthMechanism.SASL_PLAIN,
            security_protocol="SASL_PLAINTEXT",
            sasl_username="user",
            sasl_password=SecretStr("pass"),
        )
        result = client_config(config)
        assert result["sasl.mechanism"] == "PLAIN"
        assert result["security.protocol"] == "SASL_PLAINTEXT"


class TestKafkaAuthValidation:
    def test_sasl_plain_requires_username_password(self):
        with pytest.raises(ValidationError, match="sasl_username"):
            KafkaConfig(
                auth_mechanism=KafkaAuthMechanism.SASL_PLAIN,
            )

    def test_sasl_scram_requires_username_password(self):
        with pytest.raises(ValidationError, match="sasl_username"):
            KafkaConfig(
                auth_mechanism=KafkaAuthMechanism.SASL_SCRAM_256,
                sasl_username="user",
            )
