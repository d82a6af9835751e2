"""Per-row edge peak extraction with sub-pixel refinement."""

from __future__ import annotations

import numpy as np

from scanlines.types import MAX_POINTS_PER_LINE, NO_CONTOUR_POINT, ContourPoint, ScanLine


def find_local_maxima(data: np.ndarray) -> np.ndarray:
    """Positions strictly greater than both neighbours."""
    if len(data) < 3:
        return np.empty(0, dtype=np.int64)
    mid = data[1:-1]
    return np.nonzero((mid > data[:-2]) & (mid > data[2:]))[0] + 1


def select_peaks(data: np.ndarray, maxima: np.ndarray, max_points: int = MAX_POINTS_PER_LINE) -> np.ndarray:
    """Keep the strongest ``max_points`` maxima, returned in position order.

    Exact ties keep the stable sort order; callers should not rely on it.
    """
    if len(maxima) <= max_points:
        return maxima
    order = np.argsort(-data[maxima], kind="stable")[:max_points]
    return np.sort(maxima[order])


def weighted_centroid(data: np.ndarray, x: int, half_window: int) -> float:
    """Sub-pixel peak position: intensity-weighted mean over ``x +- half_window``."""
    start = max(0, x - half_window)
    end = min(len(data), x + half_window + 1)
    window = data[start:end]
    total = float(window.sum())
    if total <= 0:
        return float(x)
    return start + float(np.dot(window, np.arange(len(window)))) / total


def build_cp_index(positions, size: int) -> np.ndarray:
    """Map each integer position of a line to its nearest contour point."""
    cp_index = np.empty(size, dtype=np.int16)
    n = len(positions)
    if n == 0:
        cp_index.fill(NO_CONTOUR_POINT)
        return cp_index
    if n == 1:
        cp_index.fill(0)
        return cp_index

    start = 0
    for pi in range(n - 1):
        end = int((positions[pi] + positions[pi + 1]) / 2 + 0.5) + 1
        end = min(max(end, start), size)
        cp_index[start:end] = pi
        start = end
    cp_index[start:] = n - 1
    return cp_index


def build_scan_line(
    data: np.ndarray,
    y: float,
    xstart: np.ndarray,
    xdir: np.ndarray,
    gauss_window_half: int = 3,
) -> ScanLine:
    """Build one scan line from a row of non-negative edge strengths."""
    data = np.asarray(data, dtype=np.float32)
    peaks = select_peaks(data, find_local_maxima(data))
    points = [
        ContourPoint(w=float(data[x]), x=weighted_centroid(data, int(x), gauss_window_half))
        for x in peaks
    ]
    return ScanLine(
        y=float(y),
        xstart=np.asarray(xstart, dtype=np.float64),
        xdir=np.asarray(xdir, dtype=np.float64),
        points=points,
        cp_index=build_cp_index([p.x for p in points], len(data)),
    )
