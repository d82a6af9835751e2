"""Tests for pinhole projection and unprojection."""

from __future__ import annotations

import numpy as np
import pytest

from contracts import Pose
from exceptions import ProjectionError
from geometry.matrix import rotation_from_rvec
from geometry.projector import Projector

K = np.array([[600.0, 0.0, 320.0], [0.0, 600.0, 240.0], [0.0, 0.0, 1.0]])


@pytest.fixture
def projector() -> Projector:
    return Projector(K, rotation_from_rvec([0.2, -0.1, 0.05]), [0.1, -0.2, 4.0])


def test_principal_point_for_point_on_axis():
    prj = Projector(K, np.eye(3), [0.0, 0.0, 5.0])
    np.testing.assert_allclose(prj.project([0.0, 0.0, 0.0]), [320.0, 240.0])


def test_round_trip(projector):
    rng = np.random.default_rng(11)
    points = rng.uniform(-0.5, 0.5, size=(25, 3))
    for P in points:
        x, y = projector.project(P)
        z = projector.camera_depth(P)[0]
        np.testing.assert_allclose(projector.unproject(x, y, z), P, atol=1e-6)


def test_vectorised_round_trip(projector):
    rng = np.random.default_rng(12)
    points = rng.uniform(-0.5, 0.5, size=(40, 3))
    uv = projector.project_points(points)
    z = projector.camera_depth(points)
    np.testing.assert_allclose(projector.unproject_points(uv[:, 0], uv[:, 1], z), points, atol=1e-6)


def test_project_points_matches_single(projector):
    points = np.array([[0.1, 0.2, 0.3], [-0.4, 0.0, 0.1]])
    uv = projector.project_points(points)
    for P, expected in zip(points, uv):
        np.testing.assert_allclose(projector.project(P), expected)


def test_point_on_camera_plane_raises():
    prj = Projector(K, np.eye(3), [0.0, 0.0, 0.0])
    with pytest.raises(ProjectionError):
        prj.project([1.0, 1.0, 0.0])


def test_project_points_marks_camera_plane_rows_nan():
    prj = Projector(K, np.eye(3), [0.0, 0.0, 0.0])
    uv = prj.project_points(np.array([[1.0, 1.0, 0.0], [0.0, 0.0, 2.0]]))
    assert np.all(np.isnan(uv[0]))
    np.testing.assert_allclose(uv[1], [320.0, 240.0])


def test_from_pose_matches_constructor():
    pose = Pose(R=rotation_from_rvec([0.0, 0.3, 0.0]), t=[0.0, 0.0, 3.0])
    a = Projector.from_pose(K, pose)
    b = Projector(K, pose.R, pose.t)
    np.testing.assert_array_equal(a.KR, b.KR)
    np.testing.assert_array_equal(a.Kt, b.Kt)


def test_singular_intrinsics_flag_degenerate():
    prj = Projector(np.zeros((3, 3)), np.eye(3), [0.0, 0.0, 1.0])
    assert prj.degenerate
    assert not Projector(K, np.eye(3), [0.0, 0.0, 1.0]).degenerate
