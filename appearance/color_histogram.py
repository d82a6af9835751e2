"""Online foreground/background color model around the projected silhouette."""

from __future__ import annotations

import numpy as np

from configs.settings import ColorHistogramConfig
from contracts import Pose
from geometry.projector import Projector
from log_config.logger import get_logger
from templates.templates import Templates

logger = get_logger(__name__)

CLR_RSB = 3  # Low bits dropped per channel
TAB_WIDTH = 1 << (8 - CLR_RSB)
TAB_WIDTH_2 = TAB_WIDTH * TAB_WIDTH
TAB_SIZE = TAB_WIDTH * TAB_WIDTH_2
PROB_EPS = 1e-6

BG = 0
FG = 1


def color_index(image: np.ndarray) -> np.ndarray:
    """Quantized color bucket per pixel, channel order as supplied."""
    pix = np.asarray(image)
    if pix.ndim != 3 or pix.shape[2] < 3:
        raise ValueError(f"Expected a 3-channel color image, got shape {pix.shape}")
    pix = pix[..., :3].astype(np.int32) >> CLR_RSB
    return pix[..., 0] * TAB_WIDTH_2 + pix[..., 1] * TAB_WIDTH + pix[..., 2]


class ColorHistogram:
    """Per-bucket (background, foreground) counts blended by exponential moving average.

    The caller owns the instance and must not run ``update`` and ``get_prob``
    concurrently on it.
    """

    def __init__(self, config: ColorHistogramConfig | None = None) -> None:
        self._config = config or ColorHistogramConfig()
        self._tab = np.zeros((TAB_SIZE, 2), dtype=np.float64)
        self._dtab = np.zeros((TAB_SIZE, 2), dtype=np.float64)

    @property
    def table(self) -> np.ndarray:
        """Copy of the model; column 0 is background, column 1 foreground."""
        return self._tab.copy()

    def reset(self) -> None:
        self._tab.fill(0.0)
        self._dtab.fill(0.0)

    def get_prob(self, image: np.ndarray) -> np.ndarray:
        """Foreground probability per pixel as a float32 image in [0, 1]."""
        bg = self._tab[:, BG]
        fg = self._tab[:, FG]
        prob_tab = (fg + PROB_EPS) / (fg + bg + 2 * PROB_EPS)
        return prob_tab[color_index(image)].astype(np.float32)

    def update(
        self,
        templates: Templates,
        image: np.ndarray,
        pose: Pose,
        K: np.ndarray,
        learning_rate: float | None = None,
    ) -> bool:
        """Sample colors around the nearest view's silhouette and blend them in.

        Pixels inside the silhouette (against the contour normal) count as
        foreground, pixels outside count as background. The first
        ``unconsidered_length`` pixels next to the contour are skipped.

        Args:
            templates: Built templates of the tracked object
            image: Current 3-channel uint8 frame
            pose: Current pose estimate (model -> camera)
            K: Camera intrinsics
            learning_rate: Blend factor; defaults to the configured rate

        Returns:
            True if the model was updated, False if either class had no samples
        """
        alpha = self._config.learning_rate if learning_rate is None else float(learning_rate)
        _, view = templates.nearest_view(pose)

        self._dtab.fill(0.0)
        if view.contour_points:
            prj = Projector.from_pose(K, pose)
            centers = prj.project_points(view.centers())
            offsets = prj.project_points(view.normal_offsets())
            self._accumulate(np.asarray(image), centers, offsets)

        dtab_sum = self._dtab.sum(axis=0)
        if dtab_sum[BG] <= 0 or dtab_sum[FG] <= 0:
            logger.debug(
                f"Skipping color model update: {int(dtab_sum[FG])} foreground, {int(dtab_sum[BG])} background samples"
            )
            return False

        self._tab *= 1.0 - alpha
        self._tab += self._dtab * (alpha / dtab_sum)
        return True

    def _accumulate(self, image: np.ndarray, centers: np.ndarray, offsets: np.ndarray) -> None:
        valid = np.all(np.isfinite(centers), axis=1) & np.all(np.isfinite(offsets), axis=1)
        centers = centers[valid]
        normals = offsets[valid] - centers
        norm = np.linalg.norm(normals, axis=1, keepdims=True)
        keep = (norm > 0).ravel()
        centers = centers[keep]
        normals = normals[keep] / norm[keep]
        if len(centers) == 0:
            return

        start = self._config.unconsidered_length
        steps = np.arange(start, start + self._config.considered_length, dtype=np.float64)
        height, width = image.shape[:2]
        buckets = color_index(image)

        # Outward samples are background, inward samples foreground
        for channel, sign in ((BG, 1.0), (FG, -1.0)):
            pts = centers[:, None, :] + sign * steps[None, :, None] * normals[:, None, :]
            xs = np.rint(pts[..., 0]).astype(np.int64).ravel()
            ys = np.rint(pts[..., 1]).astype(np.int64).ravel()
            inside = (xs >= 0) & (xs < width) & (ys >= 0) & (ys < height)
            np.add.at(self._dtab[:, channel], buckets[ys[inside], xs[inside]], 1.0)
