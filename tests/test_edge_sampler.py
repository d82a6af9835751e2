"""Tests for silhouette contour sampling from depth buffers."""

from __future__ import annotations

import numpy as np
import pytest

import templates.edge_sampler as edge_sampler
from geometry.projector import Projector
from templates.edge_sampler import MIN_CONTOUR_POINTS, render_mask, sample_edges

K = np.array([[100.0, 0.0, 50.0], [0.0, 100.0, 50.0], [0.0, 0.0, 1.0]])
R = np.eye(3)
T = np.array([0.0, 0.0, 5.0])
DEPTH = 5.0


def _disc_depth(cx=50, cy=50, radius=20, size=100):
    yy, xx = np.mgrid[0:size, 0:size]
    depth = np.zeros((size, size), dtype=np.float32)
    depth[(xx - cx) ** 2 + (yy - cy) ** 2 <= radius**2] = DEPTH
    return depth


def test_render_mask_thresholds_depth():
    mask = render_mask(np.array([[0.0, 0.5], [2.0, 0.0]], dtype=np.float32), threshold=0.0)
    assert mask.dtype == np.uint8
    assert mask.tolist() == [[0, 255], [255, 0]]


def test_disc_points_lie_on_silhouette():
    result = sample_edges(_disc_depth(), K, R, T, max_point_count=60)
    assert result.ok
    assert 0 < len(result) <= 60

    prj = Projector(K, R, T)
    centers = prj.project_points(np.stack([p.center for p in result.points]))
    radii = np.linalg.norm(centers - [50.0, 50.0], axis=1)
    assert np.all(np.abs(radii - 20.0) < 2.0)

    # Unprojected at the sampled camera depth
    np.testing.assert_allclose(prj.camera_depth(np.stack([p.center for p in result.points])), DEPTH)


def test_normals_point_outward():
    result = sample_edges(_disc_depth(), K, R, T, max_point_count=100)
    prj = Projector(K, R, T)
    centers = prj.project_points(np.stack([p.center for p in result.points]))
    offsets = prj.project_points(np.stack([p.normal_offset for p in result.points]))

    radial = centers - [50.0, 50.0]
    outward = np.sum((offsets - centers) * radial, axis=1) > 0
    assert outward.mean() >= 0.95

    # Offsets are one pixel along the normal
    np.testing.assert_allclose(np.linalg.norm(offsets - centers, axis=1), 1.0, atol=1e-6)


def test_point_count_capped():
    result = sample_edges(_disc_depth(radius=40), K, R, T, max_point_count=25)
    assert result.ok
    assert 0 < len(result) <= 25


def test_multichannel_buffer_uses_first_channel():
    depth = np.dstack([_disc_depth(), np.zeros((100, 100), dtype=np.float32)])
    result = sample_edges(depth, K, R, T, max_point_count=40)
    assert result.ok
    assert len(result) > 0


def test_two_silhouettes_are_both_sampled():
    depth = np.maximum(_disc_depth(cx=25, cy=50, radius=10), _disc_depth(cx=75, cy=50, radius=10))
    result = sample_edges(depth, K, R, T, max_point_count=200)
    centers = Projector(K, R, T).project_points(np.stack([p.center for p in result.points]))
    assert np.any(centers[:, 0] < 50)
    assert np.any(centers[:, 0] > 50)


@pytest.mark.parametrize("depth", [np.zeros((50, 50), dtype=np.float32), np.pad(np.ones((1, 1)), 20)])
def test_insufficient_silhouette(depth):
    result = sample_edges(depth, K, R, T, max_point_count=50)
    assert not result.ok
    assert len(result) == 0
    assert "insufficient" in result.error


def test_failure_keeps_points_collected_so_far(monkeypatch):
    calls = {"n": 0}
    original = edge_sampler._point_inside

    def flaky(mask, x, y):
        calls["n"] += 1
        if calls["n"] > MIN_CONTOUR_POINTS:
            raise RuntimeError("buffer read failed")
        return original(mask, x, y)

    monkeypatch.setattr(edge_sampler, "_point_inside", flaky)
    result = sample_edges(_disc_depth(), K, R, T, max_point_count=50)

    assert not result.ok
    assert len(result) == MIN_CONTOUR_POINTS
    assert "buffer read failed" in result.error
