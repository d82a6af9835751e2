"""Silhouette contour sampling from rendered depth/mask buffers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import cv2
import numpy as np
from scipy.ndimage import uniform_filter1d

from contracts import ContourPoint3D
from geometry.projector import Projector
from log_config.logger import get_logger

logger = get_logger(__name__)

MIN_CONTOUR_POINTS = 4


@dataclass(frozen=True)
class EdgeSampleResult:
    """Sampled contour points plus whether extraction ran to completion.

    ``ok`` is False when the silhouette was too small or extraction failed
    part way; ``points`` then holds whatever was collected before the failure.
    """

    points: Tuple[ContourPoint3D, ...] = field(default_factory=tuple)
    ok: bool = True
    error: Optional[str] = None

    def __len__(self) -> int:
        return len(self.points)


def render_mask(depth: np.ndarray, threshold: float = 0.0) -> np.ndarray:
    """Binary uint8 object mask (255 inside) of a depth/mask buffer."""
    _, mask = cv2.threshold(depth.astype(np.float32), threshold, 255, cv2.THRESH_BINARY)
    return mask.astype(np.uint8)


def _extract_contours(mask: np.ndarray) -> List[np.ndarray]:
    contours, _ = cv2.findContours(mask, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_NONE)
    output = []
    for contour in contours:
        pts = contour.reshape(-1, 2)
        # Wind every contour the same way
        if cv2.contourArea(contour, oriented=True) < 0:
            pts = pts[::-1]
        output.append(np.ascontiguousarray(pts))
    return output


def _contour_normals(smoothed: np.ndarray, half_window: int) -> np.ndarray:
    """Tangent from smoothed neighbours at +-half_window, rotated 90 degrees."""
    prev_pts = np.roll(smoothed, half_window, axis=0)
    next_pts = np.roll(smoothed, -half_window, axis=0)
    tangent = (smoothed - prev_pts) + (next_pts - smoothed)
    norm = np.linalg.norm(tangent, axis=1, keepdims=True)
    tangent = np.divide(tangent, norm, out=np.zeros_like(tangent), where=norm > 0)
    return np.stack([-tangent[:, 1], tangent[:, 0]], axis=1)


def _point_inside(mask: np.ndarray, x: float, y: float) -> bool:
    xi = int(round(x))
    yi = int(round(y))
    if 0 <= yi < mask.shape[0] and 0 <= xi < mask.shape[1]:
        return bool(mask[yi, xi])
    return False


def sample_edges(
    depth: np.ndarray,
    K: np.ndarray,
    R: np.ndarray,
    t: np.ndarray,
    max_point_count: int,
    threshold: float = 0.0,
    smooth_window: int = 15,
) -> EdgeSampleResult:
    """Sample 3D silhouette points with outward normal offsets from a depth buffer.

    Args:
        depth: Single-channel buffer holding camera-space depth (0 = background)
        K: Camera intrinsics
        R: Rotation model -> camera
        t: Translation model -> camera
        max_point_count: Upper bound on returned points
        threshold: Values above this count as object
        smooth_window: Box filter length along the contour

    Returns:
        EdgeSampleResult with model-space contour points
    """
    depth = np.asarray(depth)
    if depth.ndim == 3:
        depth = depth[:, :, 0]
    prj = Projector(K, R, t)
    points: List[ContourPoint3D] = []
    half_window = smooth_window // 2

    try:
        mask = render_mask(depth, threshold)
        contours = _extract_contours(mask)

        n_total = sum(len(c) for c in contours)
        if n_total < MIN_CONTOUR_POINTS:
            logger.debug(f"Silhouette too small: {n_total} contour points")
            return EdgeSampleResult(points=(), ok=False, error=f"insufficient silhouette ({n_total} contour points)")

        raw = np.concatenate(contours).astype(np.float64)
        smoothed = np.concatenate(
            [uniform_filter1d(c.astype(np.float64), size=smooth_window, axis=0, mode="wrap") for c in contours]
        )
        normals = np.concatenate(
            [_contour_normals(s, half_window) for s in np.split(smoothed, np.cumsum([len(c) for c in contours])[:-1])]
        )

        stride = max(1, -(-n_total // max(1, max_point_count)))
        for i in range(stride // 2, n_total, stride):
            if len(points) >= max_point_count:
                break
            x, y = raw[i]
            z = float(depth[int(y), int(x)])
            if z <= 0:
                continue
            n = normals[i]
            # Normal must leave the silhouette
            if _point_inside(mask, x + 2 * n[0], y + 2 * n[1]):
                n = -n
            qx, qy = x + n[0], y + n[1]
            points.append(
                ContourPoint3D(center=prj.unproject(x, y, z), normal_offset=prj.unproject(qx, qy, z))
            )
    except Exception as e:
        logger.error(f"Contour sampling failed after {len(points)} points: {e}")
        return EdgeSampleResult(points=tuple(points), ok=False, error=str(e))

    logger.debug(f"Sampled {len(points)} contour points from {n_total} silhouette pixels")
    return EdgeSampleResult(points=tuple(points), ok=True)
