"""Custom exception classes for the model tracker core."""

from __future__ import annotations

from typing import Optional


class ModelTrackerError(Exception):
    """Base exception for all model tracker errors."""

    pass


class GeometryError(ModelTrackerError):
    """Base exception for camera geometry errors."""

    pass


class DegenerateGeometryError(GeometryError):
    """Raised when a transform cannot be inverted."""

    pass


class ProjectionError(GeometryError):
    """Raised when a point projects onto the camera plane (z == 0)."""

    pass


class TemplateError(ModelTrackerError):
    """Base exception for template and view index errors."""

    pass


class ViewIndexError(TemplateError):
    """Raised when the view index cannot be built consistently."""

    pass


class ViewIndexNotBuiltError(TemplateError):
    """Raised when the view index is queried before it was built."""

    pass


class TemplateIndexMismatchError(TemplateError):
    """Raised when the view index was built from a different set of views."""

    def __init__(self, message: str, n_views: Optional[int] = None, n_indexed: Optional[int] = None):
        self.n_views = n_views
        self.n_indexed = n_indexed
        super().__init__(message)


class ScanError(ModelTrackerError):
    """Base exception for scan-line extraction errors."""

    pass


class ScanTimeoutError(ScanError):
    """Raised when scan-line extraction misses its deadline."""

    def __init__(self, message: str, pending: Optional[list] = None):
        self.pending = pending or []
        super().__init__(message)


class ConfigError(ModelTrackerError):
    """Base exception for configuration errors."""

    pass


class InvalidConfigError(ConfigError):
    """Raised when configuration file is invalid or corrupted."""

    pass


class ConfigValidationError(ConfigError):
    """Raised when configuration fails schema validation."""

    def __init__(self, message: str, validation_errors: Optional[list] = None):
        self.validation_errors = validation_errors or []
        super().__init__(message)
