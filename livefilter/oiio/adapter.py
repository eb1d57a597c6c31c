"""
OpenImageIO adapter for decoding and encoding pixel buffers.

Everything that touches image files goes through here: decoding a still
image into an RGBA8 PixelBuffer, resizing it to the canvas, encoding a
processed buffer into an exportable snapshot, and reading an image
sequence as a frame stream.
"""

from pathlib import Path
from typing import List, Optional, Sequence, Tuple
import logging
import tempfile
import threading

import numpy as np
import OpenImageIO as oiio

from ..core import DecodeFailure, PixelBuffer, Quality, SnapshotEncodeError

logger = logging.getLogger(__name__)

# Formats whose writers cannot store an alpha channel
NO_ALPHA_FORMATS = {"jpg", "jpeg", "bmp"}


def get_filter_name(quality: Quality) -> str:
    """Map processing quality to an OIIO resize filter name."""
    filter_map = {
        Quality.LOW: "box",
        Quality.MEDIUM: "triangle",
        Quality.HIGH: "catmull-rom",
        Quality.ULTRA: "lanczos3",
    }
    return filter_map.get(quality, "triangle")


class OiioAdapter:
    """Thin wrapper around OIIO for RGBA8 buffers."""

    # OIIO calls are serialized; decode runs on worker threads
    _oiio_lock = threading.Lock()

    @staticmethod
    def read_image(
        filepath: str,
        size: Optional[Tuple[int, int]] = None,
        quality: Quality = Quality.MEDIUM,
    ) -> PixelBuffer:
        """
        Decode an image file into an RGBA8 PixelBuffer.

        If `size` is given, the image is resized to (width, height).
        Raises DecodeFailure if the file cannot be opened or read.
        """
        path = str(filepath)
        with OiioAdapter._oiio_lock:
            inp = oiio.ImageInput.open(path)
            if not inp:
                raise DecodeFailure(path, oiio.geterror() or "cannot open file")
            try:
                pixels = inp.read_image(oiio.UINT8)
                error = inp.geterror() if pixels is None else ""
            finally:
                inp.close()

        if pixels is None:
            raise DecodeFailure(path, error or "read_image failed")

        buffer = PixelBuffer.from_array(np.asarray(pixels).reshape(pixels.shape[0], pixels.shape[1], -1))
        if size is not None and size != (buffer.width, buffer.height):
            buffer = OiioAdapter.resize(buffer, size[0], size[1], quality)
        logger.debug("Decoded %s (%dx%d)", path, buffer.width, buffer.height)
        return buffer

    @staticmethod
    def resize(buffer: PixelBuffer, width: int, height: int, quality: Quality = Quality.MEDIUM) -> PixelBuffer:
        """Resize a buffer with ImageBufAlgo.resize."""
        src = OiioAdapter._to_imagebuf(buffer)
        roi = oiio.ROI(0, width, 0, height, 0, 1, 0, 4)
        with OiioAdapter._oiio_lock:
            result = oiio.ImageBufAlgo.resize(src, filtername=get_filter_name(quality), roi=roi)
            error = result.geterror() if result is not None else "resize returned nothing"
            if result is None or error:
                raise RuntimeError(f"resize to {width}x{height} failed: {error}")
            pixels = result.get_pixels(oiio.UINT8)
        return PixelBuffer(width, height, np.ascontiguousarray(pixels.reshape(height, width, 4)))

    @staticmethod
    def _to_imagebuf(buffer: PixelBuffer) -> "oiio.ImageBuf":
        spec = oiio.ImageSpec(buffer.width, buffer.height, 4, oiio.UINT8)
        spec.channelnames = ("R", "G", "B", "A")
        spec.alpha_channel = 3
        imagebuf = oiio.ImageBuf(spec)
        imagebuf.set_pixels(oiio.ROI(0, buffer.width, 0, buffer.height, 0, 1, 0, 4), buffer.samples)
        return imagebuf

    @staticmethod
    def write_image(buffer: PixelBuffer, output_path: Path) -> None:
        """Write a buffer to disk; the format follows the file extension."""
        output_path = Path(output_path).resolve()
        fmt = output_path.suffix.lstrip(".").lower()
        pixels = buffer.samples
        nchannels = 4
        if fmt in NO_ALPHA_FORMATS:
            pixels = np.ascontiguousarray(pixels[:, :, :3])
            nchannels = 3

        out_spec = oiio.ImageSpec(buffer.width, buffer.height, nchannels, oiio.UINT8)
        if nchannels == 4:
            out_spec.channelnames = ("R", "G", "B", "A")
            out_spec.alpha_channel = 3

        out = None
        try:
            with OiioAdapter._oiio_lock:
                output_path_str = str(output_path).replace("\\", "/")
                out = oiio.ImageOutput.create(output_path_str)
                if not out:
                    raise SnapshotEncodeError(f"No writer for {output_path.name}: {oiio.geterror()}")

                if not out.open(output_path_str, out_spec):
                    raise SnapshotEncodeError(f"out.open failed: OIIO error: {out.geterror()}")

                if not out.write_image(pixels):
                    raise SnapshotEncodeError(f"write_image failed: OIIO error: {out.geterror()}")

                out.close()
                out = None
        finally:
            if out:
                out.close()

    @staticmethod
    def encode_snapshot(buffer: PixelBuffer, fmt: str = "png") -> bytes:
        """Encode a buffer as a self-contained still image and return its bytes."""
        fmt = fmt.lower().lstrip(".")
        with tempfile.TemporaryDirectory(prefix="livefilter-") as tmp:
            path = Path(tmp) / f"snapshot.{fmt}"
            OiioAdapter.write_image(buffer, path)
            return path.read_bytes()

    @staticmethod
    def get_oiio_version() -> str:
        """Return OIIO version string."""
        return str(getattr(oiio, "__version__", "unknown"))


class ImageSequenceStream:
    """
    Frame stream over a list of image files.

    Implements the live stream protocol used by FrameSource: open(), read()
    and close(). Each read() decodes the next file; with `loop` the sequence
    wraps around, otherwise read() returns None once exhausted.
    """

    def __init__(
        self,
        paths: Sequence[str],
        loop: bool = True,
        size: Optional[Tuple[int, int]] = None,
        quality: Quality = Quality.MEDIUM,
    ):
        self.paths: List[str] = [str(p) for p in paths]
        self.loop = loop
        self.size = size
        self.quality = quality
        self.position = 0
        self.is_open = False

    def open(self) -> bool:
        missing = [p for p in self.paths if not Path(p).exists()]
        if not self.paths or missing:
            logger.warning("Cannot open image sequence; missing frames: %s", missing[:3])
            return False
        self.position = 0
        self.is_open = True
        return True

    def read(self) -> Optional[np.ndarray]:
        if not self.is_open:
            return None
        if self.position >= len(self.paths):
            if not self.loop:
                return None
            self.position = 0
        path = self.paths[self.position]
        self.position += 1
        return OiioAdapter.read_image(path, self.size, self.quality).samples

    def close(self) -> None:
        self.is_open = False
