"""
Frame scheduler for live processing.

Drives repeated processor runs from a single-shot QTimer, one tick per
display frame. Each tick pulls the freshest frame, processes it and, if the
source is still playing, schedules the next tick. Processing for a source is
guarded by its processing token: a request that arrives while another run is
in flight is dropped, not queued.
"""

from typing import Optional
import logging

from PySide6.QtCore import QObject, QTimer, Signal

from ..core import LiveFilterError, PixelBuffer, ProcessingSettings, SourceState
from ..processing import FilterChain, PipelineProcessor
from .frame_source import FrameSource

logger = logging.getLogger(__name__)


class FrameScheduler(QObject):
    """Cooperative processing loop for one source/chain pair."""

    frame_processed = Signal(int)  # frame counter
    request_dropped = Signal()
    error = Signal(object)
    log = Signal(str)

    def __init__(
        self,
        source: FrameSource,
        chain: FilterChain,
        processor: PipelineProcessor,
        settings: Optional[ProcessingSettings] = None,
        auto_reprocess: bool = True,
    ):
        super().__init__()
        self.source = source
        self.chain = chain
        self.processor = processor
        self.settings = settings or source.settings
        self.frames_processed = 0
        self.dropped_requests = 0

        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.setInterval(self.settings.frame_interval_ms)
        self._timer.timeout.connect(self._tick)

        if auto_reprocess:
            # Static images (and paused streams) re-render when the chain or frame changes
            self.chain.changed.connect(self._on_input_changed)
            self.source.frame_ready.connect(self._on_input_changed)

    @property
    def is_running(self) -> bool:
        return self.source.is_playing

    def set_fps(self, fps: int) -> None:
        """Change the tick rate; takes effect from the next tick."""
        self.settings.fps = max(1, min(60, int(fps)))
        self._timer.setInterval(self.settings.frame_interval_ms)

    def start(self) -> None:
        """
        Start playback.

        Live sources begin ticking; a static source is processed once.
        """
        if not self.source.is_live:
            self.reprocess()
            return
        self.source.play()
        self.log.emit(f"Playback started at {self.settings.fps} fps")
        self._timer.start()

    def stop(self) -> None:
        """
        Stop playback.

        No further tick fires; a tick already running completes but does not
        reschedule itself.
        """
        self._timer.stop()
        self.source.pause()
        self.log.emit("Playback stopped")

    def reprocess(self) -> Optional[PixelBuffer]:
        """
        Process the current frame now.

        Returns the processed buffer, or None if there is no frame or the
        request was dropped because a run is already in flight.
        """
        token = self.source.processing_token
        if not token.acquire():
            self.dropped_requests += 1
            logger.debug("Dropped processing request; a run is already in flight")
            self.request_dropped.emit()
            return None

        try:
            frame = self.source.latest_frame()
            if frame is None:
                return None
            result = self.processor.run(frame, self.chain)
        except LiveFilterError as e:
            logger.error("Processing failed: %s", e)
            self.log.emit(f"Processing failed: {e}")
            self.error.emit(e)
            return None
        finally:
            token.release()

        self.frames_processed += 1
        self.frame_processed.emit(self.frames_processed)
        return result

    def _tick(self) -> None:
        if self.source.state != SourceState.PLAYING:
            return
        self.reprocess()
        if self.source.state == SourceState.PLAYING:
            self._timer.start()

    def _on_input_changed(self) -> None:
        if self.source.is_playing:
            return
        if self.source.state in (SourceState.READY, SourceState.PAUSED):
            self.reprocess()
