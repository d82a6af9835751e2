"""Template module."""

from .builder import build_templates, intrinsics_from_fov
from .edge_sampler import EdgeSampleResult, sample_edges
from .templates import Templates
from .view_index import ViewIndex, dir_to_uv, uv_to_dir

__all__ = [
    "EdgeSampleResult",
    "Templates",
    "ViewIndex",
    "build_templates",
    "dir_to_uv",
    "intrinsics_from_fov",
    "sample_edges",
    "uv_to_dir",
]
