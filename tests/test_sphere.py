"""Tests for golden-spiral sphere sampling."""

import numpy as np

from geometry.sphere import sample_sphere


def test_unit_directions_ordered_pole_to_pole():
    dirs = sample_sphere(50)
    assert dirs.shape == (50, 3)
    np.testing.assert_allclose(np.linalg.norm(dirs, axis=1), 1.0)
    np.testing.assert_allclose(dirs[0], [0.0, 0.0, -1.0], atol=1e-12)
    np.testing.assert_allclose(dirs[-1], [0.0, 0.0, 1.0], atol=1e-12)
    assert np.all(np.diff(dirs[:, 2]) > 0)


def test_samples_are_distinct_and_spread():
    dirs = sample_sphere(200)
    gram = dirs @ dirs.T
    np.fill_diagonal(gram, -1.0)
    assert gram.max() < 0.999
    # Roughly balanced between hemispheres
    assert abs(int(np.sum(dirs[:, 0] > 0)) - 100) < 20


def test_degenerate_counts_are_empty():
    assert sample_sphere(0).shape == (0, 3)
    assert sample_sphere(1).shape == (0, 3)
