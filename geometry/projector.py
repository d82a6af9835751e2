"""Pinhole projection between model space and image pixels."""

from __future__ import annotations

import numpy as np

from contracts import Pose
from exceptions import ProjectionError
from geometry.matrix import invert3
from log_config.logger import get_logger

logger = get_logger(__name__)


class Projector:
    """Projects model-space points with intrinsics ``K`` and extrinsics ``(R, t)``.

    ``unproject`` takes plain pixel coordinates and a camera-space depth ``z``:
    the camera point is ``(x*z, y*z, z)`` and the model point is
    ``KR^-1 (q - Kt)``, so ``unproject(*project(P), z_cam(P)) == P``.
    """

    def __init__(self, K: np.ndarray, R: np.ndarray, t: np.ndarray) -> None:
        K = np.asarray(K, dtype=np.float64).reshape(3, 3)
        R = np.asarray(R, dtype=np.float64).reshape(3, 3)
        t = np.asarray(t, dtype=np.float64).reshape(3)
        self._KR = K @ R
        self._Kt = K @ t
        self._KR_inv, self.degenerate = invert3(self._KR)
        if self.degenerate:
            logger.warning("Projector built from a singular K*R; unprojection falls back to identity")

    @classmethod
    def from_pose(cls, K: np.ndarray, pose: Pose) -> "Projector":
        return cls(K, pose.R, pose.t)

    @property
    def KR(self) -> np.ndarray:
        return self._KR.copy()

    @property
    def Kt(self) -> np.ndarray:
        return self._Kt.copy()

    def project(self, P) -> np.ndarray:
        """Project a single 3D point to pixel coordinates.

        Raises:
            ProjectionError: If the point lies on the camera plane (z == 0)
        """
        p = self._KR @ np.asarray(P, dtype=np.float64).reshape(3) + self._Kt
        if p[2] == 0:
            raise ProjectionError(f"Point {P} projects onto the camera plane")
        return p[:2] / p[2]

    def project_points(self, points: np.ndarray) -> np.ndarray:
        """Project (N, 3) points; rows on the camera plane come back as NaN."""
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 3)
        p = pts @ self._KR.T + self._Kt
        z = p[:, 2:3]
        out = np.full((len(pts), 2), np.nan)
        valid = (z != 0).ravel()
        out[valid] = p[valid, :2] / z[valid]
        return out

    def camera_depth(self, points: np.ndarray) -> np.ndarray:
        """Depth (third homogeneous coordinate) of model points in the camera."""
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 3)
        return pts @ self._KR[2] + self._Kt[2]

    def unproject(self, x: float, y: float, z: float) -> np.ndarray:
        """Back-project pixel ``(x, y)`` at camera depth ``z`` into model space."""
        q = np.array([x * z, y * z, z], dtype=np.float64)
        return self._KR_inv @ (q - self._Kt)

    def unproject_points(self, xs, ys, zs) -> np.ndarray:
        """Vectorised ``unproject`` returning an (N, 3) array."""
        xs = np.asarray(xs, dtype=np.float64).ravel()
        ys = np.asarray(ys, dtype=np.float64).ravel()
        zs = np.asarray(zs, dtype=np.float64).ravel()
        q = np.stack([xs * zs, ys * zs, zs], axis=1)
        return (q - self._Kt) @ self._KR_inv.T
