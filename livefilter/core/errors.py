"""
Error taxonomy for the filter pipeline.

Each error carries enough context for a collaborator to present it; none of
them is fatal to the process.
"""

from typing import Any


class LiveFilterError(Exception):
    """Base class for all pipeline errors."""


class CapacityExceeded(LiveFilterError):
    """Chain add rejected because max_filters was reached."""

    def __init__(self, max_filters: int):
        self.max_filters = max_filters
        super().__init__(f"Filter chain is full ({max_filters} filters max)")


class DecodeFailure(LiveFilterError):
    """A static image could not be decoded."""

    def __init__(self, path: str, reason: str = ""):
        self.path = path
        self.reason = reason
        message = f"Failed to decode {path}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class SourceUnavailable(LiveFilterError):
    """A live stream could not be bound or played."""

    def __init__(self, reason: str = ""):
        self.reason = reason
        super().__init__(f"Live source unavailable: {reason}" if reason else "Live source unavailable")


class InvalidParameter(LiveFilterError):
    """A transform parameter is outside its usable domain."""

    def __init__(self, kind: Any, name: str, value: Any, reason: str = ""):
        self.kind = kind
        self.name = name
        self.value = value
        self.reason = reason
        kind_name = getattr(kind, "value", kind)
        message = f"{kind_name}.{name}={value!r} is not usable"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class SnapshotEncodeError(LiveFilterError):
    """A processed buffer could not be encoded or written."""


class UnknownFilterKind(LiveFilterError, ValueError):
    """No catalog entry for the requested filter kind."""

    def __init__(self, text: Any):
        self.text = text
        super().__init__(f"Unknown filter kind: {text!r}")
