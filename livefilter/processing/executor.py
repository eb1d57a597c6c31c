"""
Pipeline processor - folds a filter chain over a pixel buffer.

This module bridges the filter chain to the per-kind transforms, and hands
the result to collaborators as an encoded snapshot.
"""

from pathlib import Path
from typing import Callable, Iterable, List, Optional
import logging

import numpy as np
from PySide6.QtCore import QObject, Signal

from ..core import InvalidParameter, PixelBuffer
from ..oiio import OiioAdapter
from .pipeline import FilterChain, FilterInstance
from .transforms import apply_transform

logger = logging.getLogger(__name__)

SnapshotEncoder = Callable[[PixelBuffer, str], bytes]


class PipelineProcessor(QObject):
    """Applies a filter chain to pixel buffers, left to right."""

    processing_complete = Signal(bytes)  # encoded snapshot
    error = Signal(object)  # exception instance
    log = Signal(str)

    def __init__(
        self,
        rng: Optional[np.random.Generator] = None,
        encoder: Optional[SnapshotEncoder] = None,
        snapshot_format: str = "png",
    ):
        super().__init__()
        self.rng = rng
        self.encoder = encoder or OiioAdapter.encode_snapshot
        self.snapshot_format = snapshot_format
        self.last_output: Optional[PixelBuffer] = None
        self.last_snapshot: Optional[bytes] = None
        self.last_warnings: List[InvalidParameter] = []

    def process(self, source: PixelBuffer, chain: Iterable[FilterInstance]) -> PixelBuffer:
        """
        Apply every filter in the chain to the source, sequentially.

        The source buffer is consumed: transforms may mutate it in place.
        A filter whose parameters cannot be used is skipped with a warning
        and the rest of the chain still runs.
        """
        self.last_warnings = []
        result = source
        for instance in chain:
            try:
                result = apply_transform(
                    instance.kind,
                    result,
                    instance.effective_parameters(),
                    rng=self.rng,
                )
            except InvalidParameter as e:
                self.last_warnings.append(e)
                message = f"Skipped {instance.name}: {e}"
                logger.warning(message)
                self.log.emit(message)
        return result

    def run(self, source: PixelBuffer, chain: FilterChain) -> PixelBuffer:
        """Process, encode the snapshot and notify collaborators."""
        result = self.process(source, chain)
        self.last_output = result
        self.last_snapshot = self.encoder(result, self.snapshot_format)
        self.processing_complete.emit(self.last_snapshot)
        return result

    def export(self, output_path: Path) -> Path:
        """Write the last processed buffer to disk."""
        if self.last_output is None:
            raise RuntimeError("Nothing has been processed yet")
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        OiioAdapter.write_image(self.last_output, output_path)
        self.log.emit(f"Exported {self.last_output.width}x{self.last_output.height} to {output_path}")
        return output_path
