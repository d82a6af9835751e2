"""Nearest template view lookup over viewing directions."""

from __future__ import annotations

import math
from typing import Sequence, Tuple, Union

import numpy as np
from sklearn.neighbors import NearestNeighbors

from contracts import TemplateView
from exceptions import ViewIndexError, ViewIndexNotBuiltError
from log_config.logger import get_logger

logger = get_logger(__name__)


def dir_to_uv(direction) -> Tuple[float, float]:
    """Spherical coordinates of a direction: ``u`` in [0, 2pi), ``v`` in [0, pi]."""
    d = np.asarray(direction, dtype=np.float64).reshape(3)
    if not np.all(np.isfinite(d)):
        raise ValueError(f"Direction must be finite, got {d}")
    norm = float(np.linalg.norm(d))
    if norm == 0:
        raise ValueError("Direction must be non-zero")
    d = d / norm
    v = math.acos(min(1.0, max(-1.0, float(d[2]))))
    u = math.atan2(float(d[1]), float(d[0]))
    if u < 0:
        u += 2 * math.pi
    return u, v


def uv_to_dir(u, v) -> np.ndarray:
    """Unit direction(s) from spherical coordinates; broadcasts over arrays."""
    u = np.asarray(u, dtype=np.float64)
    v = np.asarray(v, dtype=np.float64)
    return np.stack([np.cos(u) * np.sin(v), np.sin(u) * np.sin(v), np.cos(v)], axis=-1)


class ViewIndex:
    """Maps viewing directions to the closest of N template views.

    Holds a per-view KNN table (self first) and a dense ``n_v x n_u`` grid of
    precomputed nearest views so ``get_view_in_dir`` is O(1).
    """

    def __init__(self) -> None:
        self._uv_index: np.ndarray | None = None
        self._knn_nbrs: np.ndarray | None = None
        self._view_dirs: np.ndarray | None = None
        self._du = 0.0
        self._dv = 0.0

    @property
    def is_built(self) -> bool:
        return self._uv_index is not None

    @property
    def k(self) -> int:
        self._require_built()
        return self._knn_nbrs.shape[1] - 1

    @property
    def n_views(self) -> int:
        return 0 if self._view_dirs is None else len(self._view_dirs)

    @property
    def view_dirs(self) -> np.ndarray:
        self._require_built()
        return self._view_dirs.copy()

    @property
    def grid_shape(self) -> Tuple[int, int]:
        self._require_built()
        return self._uv_index.shape

    def build(
        self,
        views: Sequence[Union[TemplateView, np.ndarray]],
        n_u: int = 200,
        n_v: int = 100,
        k: int = 5,
    ) -> None:
        """Build the KNN table and the direction grid.

        Args:
            views: Template views or raw (3,) view directions
            n_u: Grid resolution in azimuth
            n_v: Grid resolution in polar angle
            k: Neighbours per view, excluding the view itself

        Raises:
            ViewIndexError: If there are no views or a view is not its own
                nearest neighbour (duplicate or invalid directions)
        """
        if len(views) == 0:
            raise ViewIndexError("Cannot build a view index without views")
        if n_u < 2 or n_v < 2:
            raise ViewIndexError(f"Grid needs at least 2x2 cells, got {n_u}x{n_v}")

        dirs = np.stack(
            [np.asarray(v.view_dir if isinstance(v, TemplateView) else v, dtype=np.float64).reshape(3) for v in views]
        )
        norms = np.linalg.norm(dirs, axis=1, keepdims=True)
        if not np.all(np.isfinite(dirs)) or np.any(norms == 0):
            raise ViewIndexError("View directions must be finite and non-zero")
        dirs = dirs / norms

        n_views = len(dirs)
        if k + 1 > n_views:
            logger.warning(f"Requested k={k} with only {n_views} views; clamping to {n_views - 1}")
            k = n_views - 1

        matcher = NearestNeighbors(n_neighbors=k + 1).fit(dirs)

        # Neighbours of every view among all views, self included
        dist, knn = matcher.kneighbors(dirs, n_neighbors=k + 1)
        not_self = np.nonzero(knn[:, 0] != np.arange(n_views))[0]
        if len(not_self) > 0:
            raise ViewIndexError(
                f"{len(not_self)} view(s) are not their own nearest neighbour "
                f"(first: view {int(not_self[0])}); view directions must be distinct"
            )

        du = 2 * math.pi / (n_u - 1)
        dv = math.pi / (n_v - 1)
        ui, vi = np.meshgrid(np.arange(n_u), np.arange(n_v))
        grid_dirs = uv_to_dir(ui * du, vi * dv).reshape(-1, 3)
        _, nearest = matcher.kneighbors(grid_dirs, n_neighbors=1)

        self._knn_nbrs = knn.astype(np.int32)
        self._uv_index = nearest.reshape(n_v, n_u).astype(np.int32)
        self._view_dirs = dirs
        self._du = du
        self._dv = dv
        logger.info(f"Built view index: {n_views} views, k={k}, grid {n_u}x{n_v}")

    def get_view_in_dir(self, direction) -> int:
        """Index of the template view closest to ``direction``."""
        self._require_built()
        u, v = dir_to_uv(direction)
        n_v, n_u = self._uv_index.shape
        ui = min(int(round(u / self._du)), n_u - 1)
        vi = min(int(round(v / self._dv)), n_v - 1)
        return int(self._uv_index[vi, ui])

    def get_knn(self, view: int) -> np.ndarray:
        """Neighbour row of a view: the view itself first, then its k neighbours."""
        self._require_built()
        if not 0 <= view < len(self._knn_nbrs):
            raise IndexError(f"View {view} out of range [0, {len(self._knn_nbrs)})")
        return self._knn_nbrs[view].copy()

    def matches(self, views: Sequence[TemplateView]) -> bool:
        """True when the index was built from exactly these view directions."""
        if not self.is_built or len(views) != len(self._view_dirs):
            return False
        dirs = np.stack([v.view_dir for v in views]) if views else np.empty((0, 3))
        return bool(np.allclose(dirs, self._view_dirs, atol=1e-12))

    def _require_built(self) -> None:
        if self._uv_index is None:
            raise ViewIndexNotBuiltError("View index queried before build()")
