"""Small fixed-size matrix primitives for camera geometry.

3x3 matrices are rotations / intrinsics products, 2x3 matrices are affine
image transforms in the ``cv2.warpAffine`` layout ``[[a, b, tx], [c, d, ty]]``.
"""

from __future__ import annotations

from typing import Tuple

import cv2
import numpy as np

from exceptions import DegenerateGeometryError
from log_config.logger import get_logger

logger = get_logger(__name__)

SINGULAR_EPS = 1e-6


def det3(m: np.ndarray) -> float:
    """Determinant by cofactor expansion along the first row."""
    m = np.asarray(m, dtype=np.float64)
    a11, a12, a13 = m[0]
    a21, a22, a23 = m[1]
    a31, a32, a33 = m[2]
    m11 = a22 * a33 - a23 * a32
    m12 = a21 * a33 - a23 * a31
    m13 = a21 * a32 - a22 * a31
    return float(a11 * m11 - a12 * m12 + a13 * m13)


def invert3(m: np.ndarray) -> Tuple[np.ndarray, bool]:
    """Closed-form inverse of a 3x3 matrix.

    Args:
        m: Matrix to invert

    Returns:
        Tuple of (inverse, singular). When ``|det| < 1e-6`` the inverse is the
        identity and ``singular`` is True; callers must treat that as a
        degenerate pose rather than a usable inverse.
    """
    m = np.asarray(m, dtype=np.float64).reshape(3, 3)
    det = det3(m)
    if abs(det) < SINGULAR_EPS:
        logger.warning(f"Matrix is singular (det={det:.3e}), returning identity")
        return np.eye(3), True

    # Adjugate = transposed cofactor matrix
    adj = np.empty((3, 3), dtype=np.float64)
    adj[0, 0] = m[1, 1] * m[2, 2] - m[1, 2] * m[2, 1]
    adj[0, 1] = -(m[0, 1] * m[2, 2] - m[0, 2] * m[2, 1])
    adj[0, 2] = m[0, 1] * m[1, 2] - m[0, 2] * m[1, 1]
    adj[1, 0] = -(m[1, 0] * m[2, 2] - m[1, 2] * m[2, 0])
    adj[1, 1] = m[0, 0] * m[2, 2] - m[0, 2] * m[2, 0]
    adj[1, 2] = -(m[0, 0] * m[1, 2] - m[0, 2] * m[1, 0])
    adj[2, 0] = m[1, 0] * m[2, 1] - m[1, 1] * m[2, 0]
    adj[2, 1] = -(m[0, 0] * m[2, 1] - m[0, 1] * m[2, 0])
    adj[2, 2] = m[0, 0] * m[1, 1] - m[0, 1] * m[1, 0]
    return adj / det, False


def compose_affine(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Affine transform equivalent to applying ``b`` first, then ``a``."""
    a = np.asarray(a, dtype=np.float64).reshape(2, 3)
    b = np.asarray(b, dtype=np.float64).reshape(2, 3)
    out = np.empty((2, 3), dtype=np.float64)
    out[:, :2] = a[:, :2] @ b[:, :2]
    out[:, 2] = a[:, :2] @ b[:, 2] + a[:, 2]
    return out


def invert_affine(a: np.ndarray) -> np.ndarray:
    """Inverse of a 2x3 affine transform.

    Raises:
        DegenerateGeometryError: If the linear part is singular
    """
    a = np.asarray(a, dtype=np.float64).reshape(2, 3)
    det = a[0, 0] * a[1, 1] - a[0, 1] * a[1, 0]
    if abs(det) < SINGULAR_EPS:
        raise DegenerateGeometryError(f"Singular affine transform (det={det:.3e})")
    inv_det = 1.0 / det
    lin = np.array(
        [[a[1, 1] * inv_det, -a[0, 1] * inv_det], [-a[1, 0] * inv_det, a[0, 0] * inv_det]]
    )
    out = np.empty((2, 3), dtype=np.float64)
    out[:, :2] = lin
    out[:, 2] = lin @ -a[:, 2]
    return out


def transform_affine(a: np.ndarray, points: np.ndarray) -> np.ndarray:
    """Apply a 2x3 affine transform to a point (2,) or points (N, 2)."""
    a = np.asarray(a, dtype=np.float64).reshape(2, 3)
    pts = np.asarray(points, dtype=np.float64)
    return pts @ a[:, :2].T + a[:, 2]


def rotation_from_rvec(rvec) -> np.ndarray:
    """Rotation matrix from an axis-angle vector (Rodrigues)."""
    rvec = np.asarray(rvec, dtype=np.float64).reshape(3, 1)
    if not np.any(rvec):
        return np.eye(3)
    R, _ = cv2.Rodrigues(rvec)
    return R


def decompose_rt(transform: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Split a 3x4 or 4x4 rigid transform into (R, t)."""
    transform = np.asarray(transform, dtype=np.float64)
    if transform.shape not in ((3, 4), (4, 4)):
        raise ValueError(f"Expected a 3x4 or 4x4 transform, got shape {transform.shape}")
    return transform[:3, :3].copy(), transform[:3, 3].copy()


def look_at(eye, target, up=(0.0, 1.0, 0.0)) -> Tuple[np.ndarray, np.ndarray]:
    """Extrinsics of a camera at ``eye`` looking at ``target``.

    Uses the OpenCV camera convention (x right, y down, z forward). Returns
    (R, t) mapping world points into camera space.
    """
    eye = np.asarray(eye, dtype=np.float64).reshape(3)
    target = np.asarray(target, dtype=np.float64).reshape(3)
    forward = target - eye
    norm = np.linalg.norm(forward)
    if norm == 0:
        raise DegenerateGeometryError("Camera position coincides with the look-at target")
    forward /= norm

    up = np.asarray(up, dtype=np.float64).reshape(3)
    # Up vector parallel to the viewing direction: pick another axis
    if abs(float(np.dot(up / np.linalg.norm(up), forward))) > 0.999:
        up = np.array([1.0, 0.0, 0.0]) if abs(forward[0]) < 0.9 else np.array([0.0, 0.0, 1.0])

    right = np.cross(forward, up)
    right /= np.linalg.norm(right)
    down = np.cross(forward, right)

    R = np.stack([right, down, forward])
    t = -R @ eye
    return R, t
