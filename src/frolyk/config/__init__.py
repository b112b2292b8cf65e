from frolyk.config.loader import load_config
from frolyk.config.models import (
    FrolykConfig,
    KafkaAuthMechanism,
    KafkaConfig,
    LoggingConfig,
    StreamsConfig,
)

__all__ = [
    "FrolykConfig",
    "KafkaAuthMechanism",
    "KafkaConfig",
    "LoggingConfig",
    "StreamsConfig",
    "load_config",
]
