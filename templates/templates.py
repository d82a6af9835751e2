"""Multi-view silhouette template of a rigid model."""

from __future__ import annotations

from typing import Sequence, Tuple

import numpy as np

from configs.settings import ViewIndexConfig
from contracts import Pose, TemplateView
from exceptions import TemplateIndexMismatchError
from log_config.logger import get_logger
from templates.view_index import ViewIndex

logger = get_logger(__name__)


class Templates:
    """Owns the template views and keeps the view index consistent with them."""

    def __init__(self) -> None:
        self._model_center = np.zeros(3)
        self._views: Tuple[TemplateView, ...] = ()
        self._view_index = ViewIndex()

    def __len__(self) -> int:
        return len(self._views)

    @property
    def model_center(self) -> np.ndarray:
        return self._model_center.copy()

    @property
    def views(self) -> Tuple[TemplateView, ...]:
        return self._views

    @property
    def view_index(self) -> ViewIndex:
        return self._view_index

    def build(
        self,
        views: Sequence[TemplateView],
        model_center,
        config: ViewIndexConfig | None = None,
    ) -> None:
        """Store the views and rebuild the view index from them.

        View indices returned before a rebuild refer to the old views. If the
        index cannot be built the previous views and index are kept.
        """
        config = config or ViewIndexConfig()
        views = tuple(views)
        view_index = ViewIndex()
        view_index.build(views, n_u=config.n_u, n_v=config.n_v, k=config.k)

        self._views = views
        self._model_center = np.asarray(model_center, dtype=np.float64).reshape(3)
        self._view_index = view_index
        n_points = sum(len(v.contour_points) for v in self._views)
        logger.info(f"Templates built: {len(self._views)} views, {n_points} contour points")

    def view_dir_for_pose(self, pose: Pose) -> np.ndarray:
        """Unit direction from the model center towards the camera, in model space."""
        d = pose.camera_center() - self._model_center
        norm = float(np.linalg.norm(d))
        if norm == 0:
            raise ValueError("Camera center coincides with the model center")
        return d / norm

    def nearest_view(self, pose: Pose) -> Tuple[int, TemplateView]:
        """Template view whose direction is closest to the current viewpoint."""
        self._check_consistent()
        index = self._view_index.get_view_in_dir(self.view_dir_for_pose(pose))
        return index, self._views[index]

    def _check_consistent(self) -> None:
        if self._view_index.is_built and not self._view_index.matches(self._views):
            raise TemplateIndexMismatchError(
                "View index was built from a different set of views",
                n_views=len(self._views),
                n_indexed=self._view_index.n_views,
            )
