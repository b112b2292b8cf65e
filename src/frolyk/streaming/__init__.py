from frolyk.streaming.channel import PartitionStream, Stream, StreamClosedError
from frolyk.streaming.consumer import KafkaConsumer, TopicOffset
from frolyk.streaming.message import Message, PartitionKey
from frolyk.streaming.registry import StreamRegistry, create_streams

__all__ = [
    "KafkaConsumer",
    "Message",
    "PartitionKey",
    "PartitionStream",
    "Stream",
    "StreamClosedError",
    "StreamRegistry",
    "TopicOffset",
    "create_streams",
]
