"""Exception types raised by frolyk."""

from __future__ import annotations

from typing import Any


class FrolykError(Exception):
    """Base class for errors raised by frolyk itself."""


class InvalidOffset(FrolykError, ValueError):
    """A commit was requested with a value that is not a valid Kafka offset."""

    def __init__(self, value: Any, reason: str | None = None) -> None:
        self.value = value
        msg = f"Valid offset required (non-negative integer), got {value!r}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class UpstreamFeedError(FrolykError):
    """The shared consumer feed terminated with an error.

    Raised from every partition stream that was fed by the failed consumer;
    the consumer's exception is available as ``__cause__``.
    """
