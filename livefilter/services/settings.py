"""
Settings management for Live Filter.

Handles storage of processing settings in an INI file.
"""

from configparser import ConfigParser, Error as ConfigError
from pathlib import Path
from typing import Optional

from ..core import ProcessingSettings, Quality


class Settings:
    """Manages processing settings via an INI file."""

    DEFAULT_FILE = "livefilter.ini"

    # Section and keys
    SECTION = "processing"
    KEY_FPS = "fps"
    KEY_MAX_FILTERS = "max_filters"
    KEY_CANVAS_WIDTH = "canvas_width"
    KEY_CANVAS_HEIGHT = "canvas_height"
    KEY_QUALITY = "quality"
    KEY_SNAPSHOT_FORMAT = "snapshot_format"

    MIN_FPS = 1
    MAX_FPS = 60

    def __init__(self, settings_file: Optional[Path] = None):
        """Initialize settings from file, or defaults if it does not exist."""
        self.settings_file = Path(settings_file) if settings_file else Path.cwd() / self.DEFAULT_FILE
        self.config = ConfigParser()
        self._load()

    def _load(self) -> None:
        """Load settings from file; missing keys fall back to defaults."""
        defaults = ProcessingSettings()
        self.config.read_dict({
            self.SECTION: {
                self.KEY_FPS: str(defaults.fps),
                self.KEY_MAX_FILTERS: str(defaults.max_filters),
                self.KEY_CANVAS_WIDTH: str(defaults.canvas_width),
                self.KEY_CANVAS_HEIGHT: str(defaults.canvas_height),
                self.KEY_QUALITY: defaults.quality.value,
                self.KEY_SNAPSHOT_FORMAT: defaults.snapshot_format,
            }
        })
        if self.settings_file.exists():
            self.config.read(self.settings_file)

    def save(self) -> None:
        """Save settings to file."""
        self.settings_file.parent.mkdir(parents=True, exist_ok=True)
        with open(self.settings_file, "w") as f:
            self.config.write(f)

    def _get_int(self, key: str, default: int) -> int:
        try:
            return self.config.getint(self.SECTION, key)
        except (ConfigError, ValueError):
            return default

    def _set(self, key: str, value) -> None:
        if not self.config.has_section(self.SECTION):
            self.config.add_section(self.SECTION)
        self.config.set(self.SECTION, key, str(value))

    def get_fps(self) -> int:
        """Get frame rate, clamped to 1..60 (default: 30)."""
        fps = self._get_int(self.KEY_FPS, ProcessingSettings.fps)
        return max(self.MIN_FPS, min(self.MAX_FPS, fps))

    def set_fps(self, fps: int) -> None:
        self._set(self.KEY_FPS, max(self.MIN_FPS, min(self.MAX_FPS, int(fps))))

    def get_max_filters(self) -> int:
        """Get chain capacity (default: 5)."""
        value = self._get_int(self.KEY_MAX_FILTERS, ProcessingSettings.max_filters)
        return value if value >= 0 else ProcessingSettings.max_filters

    def set_max_filters(self, max_filters: int) -> None:
        self._set(self.KEY_MAX_FILTERS, int(max_filters))

    def get_canvas_size(self) -> tuple[int, int]:
        """Get canvas (width, height); 0 disables resizing."""
        width = self._get_int(self.KEY_CANVAS_WIDTH, ProcessingSettings.canvas_width)
        height = self._get_int(self.KEY_CANVAS_HEIGHT, ProcessingSettings.canvas_height)
        return max(0, width), max(0, height)

    def set_canvas_size(self, width: int, height: int) -> None:
        self._set(self.KEY_CANVAS_WIDTH, int(width))
        self._set(self.KEY_CANVAS_HEIGHT, int(height))

    def get_quality(self) -> Quality:
        """Get processing quality (default: 'medium')."""
        try:
            return Quality(self.config.get(self.SECTION, self.KEY_QUALITY).strip().lower())
        except (ConfigError, ValueError):
            return ProcessingSettings.quality

    def set_quality(self, quality: Quality) -> None:
        self._set(self.KEY_QUALITY, Quality(quality).value)

    def get_snapshot_format(self) -> str:
        """Get snapshot image format (default: 'png')."""
        try:
            value = self.config.get(self.SECTION, self.KEY_SNAPSHOT_FORMAT).strip().lower().lstrip(".")
        except ConfigError:
            value = ""
        return value or ProcessingSettings.snapshot_format

    def set_snapshot_format(self, fmt: str) -> None:
        self._set(self.KEY_SNAPSHOT_FORMAT, fmt.lower().lstrip("."))

    def to_processing_settings(self) -> ProcessingSettings:
        """Build the runtime settings object."""
        width, height = self.get_canvas_size()
        return ProcessingSettings(
            fps=self.get_fps(),
            max_filters=self.get_max_filters(),
            canvas_width=width,
            canvas_height=height,
            quality=self.get_quality(),
            snapshot_format=self.get_snapshot_format(),
        )
