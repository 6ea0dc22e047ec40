"""Overlay Query: read-only query and statistics API for overlay records."""

__version__ = "1.0.0"
