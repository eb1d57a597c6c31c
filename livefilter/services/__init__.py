"""Services module initialization."""
from .frame_source import FrameSource, FrameStream, ProcessingToken
from .scheduler import FrameScheduler
from .settings import Settings
from .chain_serializer import ChainSerializer

__all__ = [
    "FrameSource",
    "FrameStream",
    "ProcessingToken",
    "FrameScheduler",
    "Settings",
    "ChainSerializer",
]
