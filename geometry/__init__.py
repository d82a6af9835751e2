"""Camera geometry module."""

from .matrix import (
    compose_affine,
    decompose_rt,
    det3,
    invert3,
    invert_affine,
    look_at,
    rotation_from_rvec,
    transform_affine,
)
from .projector import Projector
from .rect import Rect, bounding_box_2d, expand_rect, intersect_rects, projected_roi
from .sphere import sample_sphere

__all__ = [
    "Projector",
    "Rect",
    "bounding_box_2d",
    "compose_affine",
    "decompose_rt",
    "det3",
    "expand_rect",
    "intersect_rects",
    "invert3",
    "invert_affine",
    "look_at",
    "projected_roi",
    "rotation_from_rvec",
    "sample_sphere",
    "transform_affine",
]
