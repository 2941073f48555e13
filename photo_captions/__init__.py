"""Batch captioning of remote images with EXIF metadata."""

__version__ = "1.0.0"
