"""Shared data contracts for model tracking."""

from .types import ContourPoint3D, Pose, TemplateView

__all__ = [
    "ContourPoint3D",
    "Pose",
    "TemplateView",
]
