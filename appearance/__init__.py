"""Appearance module."""

from .color_histogram import ColorHistogram, color_index

__all__ = ["ColorHistogram", "color_index"]
