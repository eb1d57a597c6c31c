"""Live Filter: real-time pixel filter pipeline."""

__version__ = "0.1.0"
