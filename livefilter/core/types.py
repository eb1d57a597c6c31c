"""
Core data types for Live Filter.

All types use @dataclass and Enum for structured representations.
No loose dicts at the internal API boundary.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional

import numpy as np

from .errors import UnknownFilterKind


class FilterKind(Enum):
    """Supported filter kinds, in catalog order."""
    GRAYSCALE = "grayscale"
    SEPIA = "sepia"
    BLUR = "blur"
    BRIGHTNESS = "brightness"
    CONTRAST = "contrast"
    SATURATION = "saturation"
    HUE_SHIFT = "hue_shift"
    EDGE_DETECT = "edge_detect"
    EMBOSS = "emboss"
    VINTAGE = "vintage"
    NEON_GLOW = "neon_glow"

    @classmethod
    def parse(cls, text: str) -> "FilterKind":
        """Parse a kind name. Accepts dashed ids and the short 'neon' alias."""
        if isinstance(text, FilterKind):
            return text
        key = str(text).strip().lower().replace("-", "_")
        if key == "neon":
            key = "neon_glow"
        try:
            return cls(key)
        except ValueError:
            raise UnknownFilterKind(text) from None


class SourceKind(Enum):
    """What a frame source is currently bound to."""
    NONE = auto()
    STATIC = auto()
    LIVE = auto()


class SourceState(Enum):
    """Frame source lifecycle."""
    IDLE = auto()
    LOADING = auto()
    READY = auto()
    PLAYING = auto()
    PAUSED = auto()


class Quality(Enum):
    """Processing quality; selects the resize filter used for the canvas."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    ULTRA = "ultra"


@dataclass
class PixelBuffer:
    """
    A width x height grid of 8-bit RGBA samples.

    `samples` is a uint8 array of shape (height, width, 4), row-major,
    channel order R, G, B, A.
    """
    width: int
    height: int
    samples: np.ndarray

    def __post_init__(self):
        if self.width < 0 or self.height < 0:
            raise ValueError(f"Invalid buffer size {self.width}x{self.height}")
        if not isinstance(self.samples, np.ndarray) or self.samples.dtype != np.uint8:
            raise ValueError("samples must be a uint8 numpy array")
        if self.samples.shape != (self.height, self.width, 4):
            raise ValueError(
                f"samples shape {self.samples.shape} does not match "
                f"{self.width}x{self.height}x4"
            )

    @classmethod
    def blank(cls, width: int, height: int, fill=(0, 0, 0, 0)) -> "PixelBuffer":
        """Create a buffer filled with a single RGBA value."""
        samples = np.empty((height, width, 4), dtype=np.uint8)
        samples[:, :] = fill
        return cls(width=width, height=height, samples=samples)

    @classmethod
    def from_array(cls, array: np.ndarray) -> "PixelBuffer":
        """
        Build a buffer from a gray, RGB or RGBA array.

        Gray and RGB inputs get an opaque alpha channel. Two-channel input is
        treated as gray + alpha. Non-uint8 data is clipped and rounded.
        """
        data = np.asarray(array)
        if data.dtype != np.uint8:
            data = np.rint(np.clip(data, 0, 255)).astype(np.uint8)

        if data.ndim == 2:
            data = data[:, :, np.newaxis]
        if data.ndim != 3:
            raise ValueError(f"Unsupported pixel array shape: {data.shape}")

        height, width, nchannels = data.shape
        out = np.empty((height, width, 4), dtype=np.uint8)
        out[:, :, 3] = 255
        if nchannels == 1:
            out[:, :, :3] = data[:, :, :1]
        elif nchannels == 2:
            out[:, :, :3] = data[:, :, :1]
            out[:, :, 3] = data[:, :, 1]
        elif nchannels == 3:
            out[:, :, :3] = data
        else:
            out[:, :, :] = data[:, :, :4]
        return cls(width=width, height=height, samples=out)

    def copy(self) -> "PixelBuffer":
        """Return an independent copy."""
        return PixelBuffer(self.width, self.height, self.samples.copy())

    def pixel(self, x: int, y: int) -> tuple:
        """RGBA tuple at (x, y)."""
        return tuple(int(v) for v in self.samples[y, x])

    def __len__(self) -> int:
        return self.samples.size

    def __eq__(self, other) -> bool:
        if not isinstance(other, PixelBuffer):
            return NotImplemented
        return (
            self.width == other.width
            and self.height == other.height
            and np.array_equal(self.samples, other.samples)
        )


@dataclass
class ProcessingSettings:
    """Runtime settings for live processing."""
    fps: int = 30
    max_filters: int = 5
    canvas_width: int = 800
    canvas_height: int = 600
    quality: Quality = Quality.MEDIUM
    snapshot_format: str = "png"

    @property
    def frame_interval_ms(self) -> int:
        """Scheduler tick interval in milliseconds."""
        return max(1, int(round(1000 / max(1, self.fps))))

    @property
    def canvas_size(self) -> Optional[tuple[int, int]]:
        """(width, height) to resize decoded images to, or None to keep size."""
        if self.canvas_width <= 0 or self.canvas_height <= 0:
            return None
        return self.canvas_width, self.canvas_height

    def to_dict(self) -> dict:
        """Serialize to dictionary."""
        return {
            "fps": self.fps,
            "max_filters": self.max_filters,
            "canvas_width": self.canvas_width,
            "canvas_height": self.canvas_height,
            "quality": self.quality.value,
            "snapshot_format": self.snapshot_format,
        }
