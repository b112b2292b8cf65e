from unittest.mock import MagicMock, patch

import pytest
from confluent_kafka import KafkaException

from frolyk.config.models import KafkaConfig
from frolyk.streaming.producer import create_producer, produce_messages


def _producer(delivery_error=None, remaining=0) -> MagicMock:
    producer = MagicMock()

    def produce(topic, **kwargs):
        kwargs["on_delivery"](delivery_error, None)

    producer.produce.side_effect = produce
    producer.flush.return_value = remaining
    return producer


class TestCreateProducer:
    def test_uses_client_config(self):
        with patch("frolyk.streaming.producer.Producer") as producer_cls:
            create_producer(KafkaConfig(bootstrap_servers="b:9092"), acks="all")
        conf = producer_cls.call_args.args[0]
        assert conf["bootstrap.servers"] == "b:9092"
        assert conf["acks"] == "all"


class TestProduceMessages:
    def test_encodes_and_counts(self):
        producer = _producer()
        count = produce_messages(
            producer,
            "t",
            [
                {"key": "k0", "value": "v0"},
                {"key": b"k1", "value": None, "partition": 1, "headers": {"h": "x"}},
            ],
        )

        assert count == 2
        first, second = producer.produce.call_args_list
        assert first.kwargs["key"] == b"k0"
        assert first.kwargs["value"] == b"v0"
        assert "partition" not in first.kwargs
        assert second.kwargs["value"] is None
        assert second.kwargs["partition"] == 1
        assert second.kwargs["headers"] == [("h", b"x")]
        producer.flush.assert_called_once()

    def test_delivery_error_raises(self):
        producer = _producer(delivery_error="MSG_TIMED_OUT")
        with pytest.raises(KafkaException):
            produce_messages(producer, "t", [{"key": "k", "value": "v"}])

    def test_undelivered_raises(self):
        producer = _producer(remaining=1)
        with pytest.raises(KafkaException):
            produce_messages(producer, "t", [{"key": "k", "value": "v"}])
