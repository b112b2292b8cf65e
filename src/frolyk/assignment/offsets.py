"""Commit offset validation."""

from __future__ import annotations

import numbers
import re
from typing import Any

from frolyk.errors import InvalidOffset

# Kafka offsets are signed 64-bit on the wire.
MAX_OFFSET = 2**63 - 1

_DECIMAL = re.compile(r"[0-9]+")


def parse_offset(value: Any) -> int:
    """Parse *value* into a non-negative offset, raising ``InvalidOffset``.

    Accepts ints (and other ``numbers.Integral`` types) and strings of
    decimal digits. Floats are rejected even when integral; offsets must not
    pass through a lossy type.
    """
    if isinstance(value, bool):
        raise InvalidOffset(value, "booleans are not offsets")
    if isinstance(value, str):
        text = value.strip()
        if not _DECIMAL.fullmatch(text):
            raise InvalidOffset(value, "not a decimal integer string")
        offset = int(text)
    elif isinstance(value, numbers.Integral):
        offset = int(value)
    else:
        raise InvalidOffset(value, f"unsupported type {type(value).__name__}")

    if offset < 0:
        raise InvalidOffset(value, "offset is negative")
    if offset > MAX_OFFSET:
        raise InvalidOffset(value, "offset exceeds the 64-bit range Kafka supports")
    return offset


def validate_commit(value: Any, metadata: str | None = None) -> tuple[int, str | None]:
    """Validate a commit request; metadata passes through untouched."""
    return parse_offset(value), metadata
