"""Direction sampling on the unit sphere."""

from __future__ import annotations

import numpy as np


def sample_sphere(n: int) -> np.ndarray:
    """Golden-spiral sampling of ``n`` roughly uniform unit directions.

    Returns an (n, 3) array ordered from z = -1 to z = +1. Fewer than two
    samples yields an empty array.
    """
    if n <= 1:
        return np.empty((0, 3))
    phi = (np.sqrt(5.0) - 1.0) / 2.0
    idx = np.arange(n, dtype=np.float64)
    z = 2.0 * idx / (n - 1) - 1.0
    r = np.sqrt(np.clip(1.0 - z * z, 0.0, None))
    theta = 2.0 * np.pi * idx * phi
    dirs = np.stack([r * np.cos(theta), r * np.sin(theta), z], axis=1)
    return dirs / np.linalg.norm(dirs, axis=1, keepdims=True)
