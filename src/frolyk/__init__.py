"""Per-partition streams and processor pipelines over a Kafka consumer."""

from frolyk.assignment import (
    Assignment,
    AssignmentContext,
    CommittableAssignment,
    ContextState,
    create_assignment_context,
)
from frolyk.errors import FrolykError, InvalidOffset, UpstreamFeedError
from frolyk.streaming import (
    KafkaConsumer,
    Message,
    PartitionKey,
    PartitionStream,
    Stream,
    StreamRegistry,
    create_streams,
)

__version__ = "0.1.0"

__all__ = [
    "Assignment",
    "AssignmentContext",
    "CommittableAssignment",
    "ContextState",
    "FrolykError",
    "InvalidOffset",
    "KafkaConsumer",
    "Message",
    "PartitionKey",
    "PartitionStream",
    "Stream",
    "StreamRegistry",
    "UpstreamFeedError",
    "create_assignment_context",
    "create_streams",
]
