"""Scan-line evidence module."""

from .line_builder import build_scan_line
from .sampler import RadialScanSampler
from .types import (
    MAX_POINTS_PER_LINE,
    NO_CONTOUR_POINT,
    ContourPoint,
    DirectionData,
    ScanLine,
    ScanLineSet,
)

__all__ = [
    "MAX_POINTS_PER_LINE",
    "NO_CONTOUR_POINT",
    "ContourPoint",
    "DirectionData",
    "RadialScanSampler",
    "ScanLine",
    "ScanLineSet",
    "build_scan_line",
]
