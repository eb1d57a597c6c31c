"""OpenImageIO integration."""
from .adapter import OiioAdapter, ImageSequenceStream, get_filter_name

__all__ = ["OiioAdapter", "ImageSequenceStream", "get_filter_name"]
