"""End-to-end template building against a synthetic sphere renderer."""

from __future__ import annotations

import numpy as np
import pytest

from configs.settings import EdgeSamplerConfig, TemplateBuildConfig, ViewIndexConfig
from geometry.projector import Projector
from templates.builder import build_templates, intrinsics_from_fov

IMAGE_SIZE = 128
SPHERE_RADIUS = 0.5
MODEL_CENTER = np.array([0.2, -0.1, 0.3])


def _sphere_renderer(K):
    """Flat-depth disc renderer for a sphere at MODEL_CENTER."""
    yy, xx = np.mgrid[0:IMAGE_SIZE, 0:IMAGE_SIZE]

    def render(R, t):
        cam = R @ MODEL_CENTER + t
        uv = K @ cam
        cx, cy = uv[:2] / uv[2]
        radius_px = K[0, 0] * SPHERE_RADIUS / cam[2]
        depth = np.zeros((IMAGE_SIZE, IMAGE_SIZE), dtype=np.float32)
        depth[(xx - cx) ** 2 + (yy - cy) ** 2 <= radius_px**2] = cam[2]
        return depth

    return render


def test_intrinsics_from_fov():
    K = intrinsics_from_fov(100, 90.0)
    assert K[0, 0] == pytest.approx(50.0)
    assert K[1, 1] == pytest.approx(50.0)
    assert K[0, 2] == 50.0
    assert K[1, 2] == 50.0


def test_build_templates_from_renderer():
    config = TemplateBuildConfig(snapshot_count=20, contour_points_per_view=30, image_size=IMAGE_SIZE)
    K = intrinsics_from_fov(config.image_size, config.vertical_fov_deg)

    templates = build_templates(
        _sphere_renderer(K),
        K,
        MODEL_CENTER,
        model_size=2.0,
        config=config,
        edge_config=EdgeSamplerConfig(smooth_window=7),
        index_config=ViewIndexConfig(n_u=100, n_v=50, k=4),
    )

    assert len(templates) == 20
    np.testing.assert_allclose(templates.model_center, MODEL_CENTER)
    assert templates.view_index.k == 4

    for i, view in enumerate(templates.views):
        assert 0 < len(view.contour_points) <= 30
        # Camera sits on the view direction at the configured distance
        eye = view.pose.camera_center()
        np.testing.assert_allclose(eye, MODEL_CENTER + view.view_dir * 2.5, atol=1e-9)

        index, found = templates.nearest_view(view.pose)
        assert index == i
        assert found is view

        # Silhouette points project onto the rendered disc edge
        prj = Projector.from_pose(K, view.pose)
        uv = prj.project_points(view.centers())
        center_px = prj.project(MODEL_CENTER)
        radius_px = K[0, 0] * SPHERE_RADIUS / 2.5
        radii = np.linalg.norm(uv - center_px, axis=1)
        assert np.all(np.abs(radii - radius_px) < 2.0)


def test_empty_renders_produce_empty_views():
    config = TemplateBuildConfig(snapshot_count=8, image_size=64)
    K = intrinsics_from_fov(64, 45.0)

    templates = build_templates(lambda R, t: np.zeros((64, 64), dtype=np.float32), K, np.zeros(3), 1.0, config=config)

    assert len(templates) == 8
    assert all(len(v.contour_points) == 0 for v in templates.views)


def test_intrinsics_derived_from_config_when_not_given():
    config = TemplateBuildConfig(snapshot_count=12, contour_points_per_view=20, image_size=IMAGE_SIZE, vertical_fov_deg=60.0)
    K = intrinsics_from_fov(IMAGE_SIZE, 60.0)

    templates = build_templates(_sphere_renderer(K), None, MODEL_CENTER, model_size=2.0, config=config)

    radius_px = K[0, 0] * SPHERE_RADIUS / 2.5
    for view in templates.views:
        assert 0 < len(view.contour_points) <= 20
        prj = Projector.from_pose(K, view.pose)
        radii = np.linalg.norm(prj.project_points(view.centers()) - prj.project(MODEL_CENTER), axis=1)
        assert np.all(np.abs(radii - radius_px) < 2.0)
