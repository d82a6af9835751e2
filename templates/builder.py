"""Offline template construction from rendered depth snapshots."""

from __future__ import annotations

import math
import time
from typing import Callable, List, Optional

import numpy as np

from configs.settings import EdgeSamplerConfig, TemplateBuildConfig, ViewIndexConfig
from contracts import TemplateView
from geometry.matrix import look_at
from geometry.sphere import sample_sphere
from log_config.logger import get_logger, log_performance
from templates.edge_sampler import sample_edges
from templates.templates import Templates

logger = get_logger(__name__)

# Renders a single-channel camera-space depth image for extrinsics (R, t)
DepthRenderer = Callable[[np.ndarray, np.ndarray], np.ndarray]


def intrinsics_from_fov(image_size: int, vertical_fov_deg: float) -> np.ndarray:
    """Square-image pinhole intrinsics with the principal point at the center."""
    fov = math.radians(vertical_fov_deg)
    focal = image_size / 2.0 / math.tan(fov / 2.0)
    c = image_size / 2.0
    return np.array([[focal, 0.0, c], [0.0, focal, c], [0.0, 0.0, 1.0]])


def build_templates(
    render_depth: DepthRenderer,
    K: Optional[np.ndarray],
    model_center,
    model_size: float,
    config: Optional[TemplateBuildConfig] = None,
    edge_config: Optional[EdgeSamplerConfig] = None,
    index_config: Optional[ViewIndexConfig] = None,
) -> Templates:
    """Render the model from sphere-sampled viewpoints and build templates.

    Args:
        render_depth: Callback producing the depth buffer for a camera pose
        K: Intrinsics the renderer uses; None derives them from
            ``config.image_size`` and ``config.vertical_fov_deg``
        model_center: Center of the model bounds
        model_size: Largest extent of the model bounds
        config: Snapshot layout settings
        edge_config: Silhouette sampling settings (thresholds, smoothing)
        index_config: View index grid settings

    Returns:
        Built Templates, one view per sampled direction
    """
    config = config or TemplateBuildConfig()
    edge_config = edge_config or EdgeSamplerConfig()
    if K is None:
        K = intrinsics_from_fov(config.image_size, config.vertical_fov_deg)
    model_center = np.asarray(model_center, dtype=np.float64).reshape(3)
    radius = model_size / 2.0 * config.sphere_radius_scale

    start = time.perf_counter()
    views: List[TemplateView] = []
    n_failed = 0
    for view_dir in sample_sphere(config.snapshot_count):
        eye = model_center + view_dir * radius
        R, t = look_at(eye, model_center)
        depth = render_depth(R, t)
        result = sample_edges(
            depth,
            K,
            R,
            t,
            max_point_count=config.contour_points_per_view,
            threshold=edge_config.threshold,
            smooth_window=edge_config.smooth_window,
        )
        if not result.ok:
            n_failed += 1
            logger.warning(f"View {len(views)}: sampling incomplete ({result.error}), kept {len(result)} points")
        views.append(TemplateView(view_dir=view_dir, R=R, t=t, contour_points=result.points))

    templates = Templates()
    templates.build(views, model_center, config=index_config)
    log_performance(f"template build ({len(views)} views)", (time.perf_counter() - start) * 1000.0, threshold_ms=60000.0)
    if n_failed:
        logger.warning(f"{n_failed} of {len(views)} views have incomplete contours")
    return templates
