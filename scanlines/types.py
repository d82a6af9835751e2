"""Per-frame scan-line evidence containers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np

from geometry.rect import Rect

MAX_POINTS_PER_LINE = 3
NO_CONTOUR_POINT = -1


@dataclass(frozen=True)
class ContourPoint:
    w: float  # edge strength
    x: float  # sub-pixel position along the scan line


@dataclass
class ScanLine:
    y: float
    xstart: np.ndarray
    xdir: np.ndarray
    points: List[ContourPoint] = field(default_factory=list)
    cp_index: np.ndarray = field(default_factory=lambda: np.empty(0, dtype=np.int16))

    @property
    def n_points(self) -> int:
        return len(self.points)

    def closest_contour_point(self, pt) -> int:
        """Index of the contour point nearest to image point ``pt``, or -1."""
        offset = np.asarray(pt, dtype=np.float64) - self.xstart
        x = int(np.floor(float(np.dot(offset, self.xdir)) + 0.5))
        if 0 <= x < len(self.cp_index):
            return int(self.cp_index[x])
        return NO_CONTOUR_POINT

    def image_point(self, x: float) -> np.ndarray:
        """Image coordinates of position ``x`` along the line."""
        return self.xstart + self.xdir * x


@dataclass
class DirectionData:
    dir: np.ndarray
    ystart: np.ndarray
    ydir: np.ndarray
    lines: List[ScanLine] = field(default_factory=list)

    def scan_line_at(self, pt) -> Optional[ScanLine]:
        """Scan line passing closest to image point ``pt``."""
        offset = np.asarray(pt, dtype=np.float64) - self.ystart
        y = int(np.floor(float(np.dot(offset, self.ydir)) + 0.5))
        if 0 <= y < len(self.lines):
            return self.lines[y]
        return None


@dataclass(frozen=True)
class ScanLineSet:
    """Contour evidence of one frame: N directions followed by their opposites."""

    roi: Rect
    directions: Tuple[DirectionData, ...]

    @property
    def n_directions(self) -> int:
        return len(self.directions) // 2

    def iter_points(self):
        for dir_data in self.directions:
            for line in dir_data.lines:
                yield from line.points
