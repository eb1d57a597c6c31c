"""Core types and errors."""
from .errors import (
    LiveFilterError,
    CapacityExceeded,
    DecodeFailure,
    SourceUnavailable,
    InvalidParameter,
    SnapshotEncodeError,
    UnknownFilterKind,
)
from .types import (
    FilterKind,
    SourceKind,
    SourceState,
    Quality,
    PixelBuffer,
    ProcessingSettings,
)

__all__ = [
    "LiveFilterError",
    "CapacityExceeded",
    "DecodeFailure",
    "SourceUnavailable",
    "InvalidParameter",
    "SnapshotEncodeError",
    "UnknownFilterKind",
    "FilterKind",
    "SourceKind",
    "SourceState",
    "Quality",
    "PixelBuffer",
    "ProcessingSettings",
]
