"""Tests for template storage and nearest view lookup."""

from __future__ import annotations

import numpy as np
import pytest

from configs.settings import ViewIndexConfig
from contracts import ContourPoint3D, Pose, TemplateView
from exceptions import TemplateIndexMismatchError, ViewIndexError, ViewIndexNotBuiltError
from geometry.matrix import look_at
from geometry.sphere import sample_sphere
from templates.templates import Templates


def _views(dirs, center=np.zeros(3), distance=3.0):
    views = []
    for d in dirs:
        R, t = look_at(center + d * distance, center)
        cp = ContourPoint3D(center=center + d, normal_offset=center + d * 1.1)
        views.append(TemplateView(view_dir=d, R=R, t=t, contour_points=(cp,)))
    return views


@pytest.fixture
def templates() -> Templates:
    tpl = Templates()
    tpl.build(_views(sample_sphere(40)), model_center=[0.0, 0.0, 0.0], config=ViewIndexConfig(k=3))
    return tpl


def test_build_stores_views(templates):
    assert len(templates) == 40
    assert templates.view_index.is_built
    assert templates.view_index.n_views == 40


def test_nearest_view_for_each_template_pose(templates):
    for i, view in enumerate(templates.views):
        index, found = templates.nearest_view(view.pose)
        assert index == i
        assert found is view


def test_view_dir_for_pose_points_at_camera():
    tpl = Templates()
    center = np.array([1.0, 2.0, 3.0])
    tpl.build(_views(sample_sphere(12), center=center), model_center=center)
    R, t = look_at(center + np.array([0.0, 0.0, 10.0]), center)
    np.testing.assert_allclose(tpl.view_dir_for_pose(Pose(R=R, t=t)), [0.0, 0.0, 1.0], atol=1e-12)


def test_view_dir_for_pose_at_model_center_raises(templates):
    with pytest.raises(ValueError):
        templates.view_dir_for_pose(Pose.identity())


def test_lookup_before_build_raises():
    with pytest.raises(ViewIndexNotBuiltError):
        Templates().nearest_view(Pose(R=np.eye(3), t=[0.0, 0.0, 5.0]))


def test_index_rebuilt_from_other_views_is_rejected(templates):
    templates.view_index.build(sample_sphere(20), k=3)
    with pytest.raises(TemplateIndexMismatchError) as exc_info:
        templates.nearest_view(templates.views[0].pose)
    assert exc_info.value.n_views == 40
    assert exc_info.value.n_indexed == 20


def test_rebuild_replaces_index(templates):
    templates.build(_views(sample_sphere(10)), model_center=np.zeros(3))
    assert len(templates) == 10
    index, _ = templates.nearest_view(templates.views[3].pose)
    assert index == 3


def test_failed_rebuild_keeps_previous_templates(templates):
    dirs = sample_sphere(4)
    duplicated = _views(np.vstack([dirs, dirs[:1]]))
    with pytest.raises(ViewIndexError):
        templates.build(duplicated, model_center=np.ones(3))

    assert len(templates) == 40
    np.testing.assert_array_equal(templates.model_center, np.zeros(3))
    assert templates.view_index.is_built
    index, _ = templates.nearest_view(templates.views[7].pose)
    assert index == 7
