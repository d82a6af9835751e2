"""Integer image rectangles and region-of-interest helpers."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence, Tuple, Union

import numpy as np

from geometry.projector import Projector


@dataclass(frozen=True)
class Rect:
    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    @property
    def center(self) -> Tuple[float, float]:
        return (float(self.x + self.width // 2), float(self.y + self.height // 2))

    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def corners(self) -> np.ndarray:
        return np.array(
            [
                [self.x, self.y],
                [self.right, self.y],
                [self.right, self.bottom],
                [self.x, self.bottom],
            ],
            dtype=np.float64,
        )


def bounding_box_2d(points: Union[np.ndarray, Sequence]) -> Rect:
    """Bounding box of 2D points: floored origin, ceiled extent."""
    pts = np.asarray(points, dtype=np.float64)
    if pts.size == 0:
        return Rect(0, 0, 0, 0)
    pts = pts.reshape(-1, 2)
    min_x, min_y = pts.min(axis=0)
    max_x, max_y = pts.max(axis=0)
    return Rect(
        x=int(math.floor(min_x)),
        y=int(math.floor(min_y)),
        width=int(math.ceil(max_x - min_x)),
        height=int(math.ceil(max_y - min_y)),
    )


def expand_rect(rect: Rect, left: int, top: int, right: int, bottom: int) -> Rect:
    """Grow (or shrink, with negative margins) each side of a rectangle."""
    new_right = rect.right + right
    new_bottom = rect.bottom + bottom
    x = rect.x - left
    y = rect.y - top
    return Rect(x=x, y=y, width=max(new_right - x, 0), height=max(new_bottom - y, 0))


def intersect_rects(a: Rect, b: Rect) -> Rect:
    """Overlap of two rectangles, or an empty rect at the origin."""
    left = max(a.x, b.x)
    top = max(a.y, b.y)
    right = min(a.right, b.right)
    bottom = min(a.bottom, b.bottom)
    if left >= right or top >= bottom:
        return Rect(0, 0, 0, 0)
    return Rect(x=left, y=top, width=right - left, height=bottom - top)


def projected_roi(
    projector: Projector,
    points: np.ndarray,
    margin: int,
    image_shape: Tuple[int, ...],
) -> Rect:
    """Scan region around projected model points, clipped to the image.

    Args:
        projector: Projector for the current pose
        points: (N, 3) model-space points, usually the nearest view's contour
        margin: Pixels added on every side
        image_shape: Shape of the image the region indexes into

    Returns:
        Clipped rectangle; empty if nothing projects inside the image
    """
    uv = projector.project_points(points)
    uv = uv[np.all(np.isfinite(uv), axis=1)]
    if len(uv) == 0:
        return Rect(0, 0, 0, 0)
    box = expand_rect(bounding_box_2d(uv), margin, margin, margin, margin)
    height, width = image_shape[:2]
    return intersect_rects(box, Rect(0, 0, int(width), int(height)))
