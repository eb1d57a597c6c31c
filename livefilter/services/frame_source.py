"""
Frame sources for the filter pipeline.

A FrameSource is bound either to a static image, decoded once on a worker
thread, or to a live stream that is read on every scheduler tick. Decode
results come back to the owning thread through queued Qt signals, so the
rest of the pipeline never blocks on I/O.
"""

from typing import Any, Callable, Optional, Protocol, Tuple
import logging
import threading

import numpy as np
from PySide6.QtCore import QCoreApplication, QObject, QRunnable, QThreadPool, Signal

from ..core import (
    DecodeFailure,
    PixelBuffer,
    ProcessingSettings,
    Quality,
    SourceKind,
    SourceState,
    SourceUnavailable,
)
from ..oiio import OiioAdapter

logger = logging.getLogger(__name__)

Decoder = Callable[[str, Optional[Tuple[int, int]], Quality], PixelBuffer]


class FrameStream(Protocol):
    """Live stream handle owned by a capture collaborator."""

    def open(self) -> bool: ...

    def read(self) -> Optional[Any]: ...

    def close(self) -> None: ...


class ProcessingToken:
    """Single-slot token: at most one in-flight process per source."""

    def __init__(self):
        self._lock = threading.Lock()

    def acquire(self) -> bool:
        """Take the token without waiting. Returns False if already held."""
        return self._lock.acquire(blocking=False)

    def release(self) -> None:
        self._lock.release()

    @property
    def held(self) -> bool:
        return self._lock.locked()


class DecodeSignals(QObject):
    """Signals emitted by DecodeRunner."""
    decoded = Signal(int, object)  # (generation, PixelBuffer)
    failed = Signal(int, object)  # (generation, DecodeFailure)


class DecodeRunner(QRunnable):
    """Runnable that decodes one still image."""

    def __init__(self, path: str, decoder: Decoder, settings: ProcessingSettings, generation: int):
        super().__init__()
        self.path = path
        self.decoder = decoder
        self.settings = settings
        self.generation = generation
        self.signals = DecodeSignals()

    def run(self) -> None:
        try:
            buffer = self.decoder(self.path, self.settings.canvas_size, self.settings.quality)
        except DecodeFailure as e:
            self.signals.failed.emit(self.generation, e)
            return
        except Exception as e:
            logger.exception("Unexpected error decoding %s", self.path)
            self.signals.failed.emit(self.generation, DecodeFailure(self.path, str(e)))
            return
        self.signals.decoded.emit(self.generation, buffer)


class FrameSource(QObject):
    """Static image or live stream supplying pixel buffers."""

    state_changed = Signal(object)  # SourceState
    frame_ready = Signal()
    error = Signal(object)  # LiveFilterError
    log = Signal(str)

    def __init__(
        self,
        settings: Optional[ProcessingSettings] = None,
        decoder: Optional[Decoder] = None,
        thread_pool: Optional[QThreadPool] = None,
    ):
        super().__init__()
        self.settings = settings or ProcessingSettings()
        self.decoder = decoder or OiioAdapter.read_image
        self.thread_pool = thread_pool or QThreadPool()
        self.processing_token = ProcessingToken()

        self._kind = SourceKind.NONE
        self._state = SourceState.IDLE
        self._image: Optional[PixelBuffer] = None
        self._stream: Optional[FrameStream] = None
        self._last_frame: Optional[PixelBuffer] = None
        self._generation = 0
        self._pending_path: Optional[str] = None
        self._decode_signals: Optional[DecodeSignals] = None

    # ========== State ==========

    @property
    def state(self) -> SourceState:
        return self._state

    @property
    def kind(self) -> SourceKind:
        return self._kind

    @property
    def is_live(self) -> bool:
        return self._kind == SourceKind.LIVE

    @property
    def is_playing(self) -> bool:
        return self._state == SourceState.PLAYING

    def _set_state(self, state: SourceState) -> None:
        if state == self._state:
            return
        logger.debug("Source state %s -> %s", self._state.name, state.name)
        self._state = state
        self.state_changed.emit(state)

    # ========== Static images ==========

    def load_image(self, path: str) -> None:
        """
        Start decoding a still image on the thread pool.

        The source goes to LOADING now, then READY (frame_ready) or back to
        IDLE (error with DecodeFailure) once the decode completes.
        """
        self.unbind()
        self._generation += 1
        self._kind = SourceKind.STATIC
        self._pending_path = str(path)
        self._set_state(SourceState.LOADING)

        runner = DecodeRunner(self._pending_path, self.decoder, self.settings, self._generation)
        runner.signals.decoded.connect(self._on_decoded)
        runner.signals.failed.connect(self._on_decode_failed)
        # The pool deletes the runnable after run(); the signals must outlive it
        self._decode_signals = runner.signals
        self.thread_pool.start(runner)

    def set_image(self, buffer: PixelBuffer) -> None:
        """Bind an image that a collaborator has already decoded."""
        self.unbind()
        self._generation += 1
        self._kind = SourceKind.STATIC
        self._image = buffer
        self._set_state(SourceState.READY)
        self.frame_ready.emit()

    def wait_for_decode(self, msecs: int = -1) -> bool:
        """
        Block until pending decodes finish and deliver their results.

        For headless callers without a running event loop. Returns False on
        timeout.
        """
        done = self.thread_pool.waitForDone(msecs)
        QCoreApplication.processEvents()
        return done

    def _on_decoded(self, generation: int, buffer: PixelBuffer) -> None:
        if generation != self._generation or self._state != SourceState.LOADING:
            return
        self._image = buffer
        self._pending_path = None
        self.log.emit(f"Loaded image {buffer.width}x{buffer.height}")
        self._set_state(SourceState.READY)
        self.frame_ready.emit()

    def _on_decode_failed(self, generation: int, failure: DecodeFailure) -> None:
        if generation != self._generation or self._state != SourceState.LOADING:
            return
        logger.error("%s", failure)
        self._kind = SourceKind.NONE
        self._pending_path = None
        self._set_state(SourceState.IDLE)
        self.log.emit(str(failure))
        self.error.emit(failure)

    # ========== Live streams ==========

    def bind_stream(self, stream: FrameStream) -> None:
        """
        Bind a live stream. The source starts PAUSED.

        Raises SourceUnavailable (and emits error) if the stream cannot be
        opened; no retry is attempted.
        """
        self.unbind()
        self._generation += 1
        cause: Optional[Exception] = None
        try:
            opened = stream.open()
        except Exception as e:
            opened = False
            cause = e

        if not opened:
            failure = SourceUnavailable(str(cause) if cause else "stream refused to open")
            logger.error("%s", failure)
            self.log.emit(str(failure))
            self.error.emit(failure)
            raise failure from cause

        self._stream = stream
        self._kind = SourceKind.LIVE
        self._set_state(SourceState.PAUSED)

    def play(self) -> None:
        """Start advancing a live source."""
        if not self.is_live or self._stream is None:
            raise SourceUnavailable("no live stream bound")
        self._set_state(SourceState.PLAYING)

    def pause(self) -> None:
        """Stop advancing a live source; keeps the last frame available."""
        if self._state == SourceState.PLAYING:
            self._set_state(SourceState.PAUSED)

    def unbind(self) -> None:
        """Tear down the current source and return to IDLE."""
        if self._stream is not None:
            try:
                self._stream.close()
            finally:
                self._stream = None
        self._generation += 1
        self._image = None
        self._last_frame = None
        self._pending_path = None
        self._kind = SourceKind.NONE
        self._set_state(SourceState.IDLE)

    # ========== Frames ==========

    def latest_frame(self) -> Optional[PixelBuffer]:
        """
        Freshest frame as a buffer the caller owns.

        Static sources return a copy of the decoded image. Live sources read
        the stream, falling back to the previous frame when no new one is
        available. Returns None while idle or loading.
        """
        if self._state in (SourceState.IDLE, SourceState.LOADING):
            return None

        if self._kind == SourceKind.STATIC:
            return self._image.copy() if self._image is not None else None

        if self._state == SourceState.PLAYING:
            self._read_stream()
        return self._last_frame.copy() if self._last_frame is not None else None

    def _read_stream(self) -> None:
        try:
            frame = self._stream.read()
        except Exception as e:
            failure = SourceUnavailable(f"read failed: {e}")
            logger.error("%s", failure)
            self.pause()
            self.error.emit(failure)
            raise failure from e

        if frame is None:
            return
        if isinstance(frame, PixelBuffer):
            self._last_frame = frame
        else:
            self._last_frame = PixelBuffer.from_array(np.asarray(frame))
