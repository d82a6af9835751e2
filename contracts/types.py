"""Core data contracts for poses and multi-view silhouette templates."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple

import numpy as np


def _as_vector(value, size: int) -> np.ndarray:
    vec = np.asarray(value, dtype=np.float64).reshape(size)
    vec.setflags(write=False)
    return vec


def _as_matrix(value) -> np.ndarray:
    mat = np.asarray(value, dtype=np.float64).reshape(3, 3)
    mat.setflags(write=False)
    return mat


@dataclass(frozen=True)
class Pose:
    """Rigid transform from model space to camera space."""

    R: np.ndarray
    t: np.ndarray

    def __post_init__(self) -> None:
        object.__setattr__(self, "R", _as_matrix(self.R))
        object.__setattr__(self, "t", _as_vector(self.t, 3))

    @classmethod
    def identity(cls) -> "Pose":
        return cls(R=np.eye(3), t=np.zeros(3))

    def camera_center(self) -> np.ndarray:
        """Camera position expressed in model space (-R^T t)."""
        return -self.R.T @ self.t


@dataclass(frozen=True)
class ContourPoint3D:
    """Model-space silhouette point plus a point offset along its outward normal.

    ``normal_offset`` is an absolute point, not a direction.
    """

    center: np.ndarray
    normal_offset: np.ndarray

    def __post_init__(self) -> None:
        object.__setattr__(self, "center", _as_vector(self.center, 3))
        object.__setattr__(self, "normal_offset", _as_vector(self.normal_offset, 3))

    @property
    def normal(self) -> np.ndarray:
        n = self.normal_offset - self.center
        norm = float(np.linalg.norm(n))
        return n / norm if norm > 0 else n


@dataclass(frozen=True)
class TemplateView:
    """Silhouette contour of the model seen from one sampled direction."""

    view_dir: np.ndarray
    R: np.ndarray
    t: np.ndarray
    contour_points: Tuple[ContourPoint3D, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        view_dir = np.asarray(self.view_dir, dtype=np.float64).reshape(3)
        norm = float(np.linalg.norm(view_dir))
        if norm > 0:
            view_dir = view_dir / norm
        object.__setattr__(self, "view_dir", _as_vector(view_dir, 3))
        object.__setattr__(self, "R", _as_matrix(self.R))
        object.__setattr__(self, "t", _as_vector(self.t, 3))
        object.__setattr__(self, "contour_points", tuple(self.contour_points))

    @property
    def pose(self) -> Pose:
        return Pose(R=self.R, t=self.t)

    def centers(self) -> np.ndarray:
        """Contour point centers as an (N, 3) array."""
        if not self.contour_points:
            return np.empty((0, 3))
        return np.stack([cp.center for cp in self.contour_points])

    def normal_offsets(self) -> np.ndarray:
        """Contour normal offset points as an (N, 3) array."""
        if not self.contour_points:
            return np.empty((0, 3))
        return np.stack([cp.normal_offset for cp in self.contour_points])
