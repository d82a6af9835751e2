"""Configuration loading for the model tracker core."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from configs.validator import validate_config
from exceptions import ConfigError, InvalidConfigError
from log_config.logger import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).with_name("default.yaml")


@dataclass(frozen=True)
class ViewIndexConfig:
    n_u: int = 200
    n_v: int = 100
    k: int = 5


@dataclass(frozen=True)
class EdgeSamplerConfig:
    threshold: float = 0.0
    smooth_window: int = 15


@dataclass(frozen=True)
class ColorHistogramConfig:
    considered_length: int = 20  # Samples taken along each normal
    unconsidered_length: int = 1  # Samples skipped next to the contour
    learning_rate: float = 0.2


@dataclass(frozen=True)
class ScanConfig:
    n_directions: int = 8
    gauss_window_half: int = 3
    sobel_ksize: int = 7
    max_workers: Optional[int] = None
    timeout_ms: float = 500.0
    runtime_budget_ms: float = 30.0  # Slow-operation warning threshold


@dataclass(frozen=True)
class TemplateBuildConfig:
    snapshot_count: int = 200
    contour_points_per_view: int = 200
    sphere_radius_scale: float = 2.5
    image_size: int = 1024
    vertical_fov_deg: float = 45.0


@dataclass(frozen=True)
class TrackerConfig:
    view_index: ViewIndexConfig = field(default_factory=ViewIndexConfig)
    edge_sampler: EdgeSamplerConfig = field(default_factory=EdgeSamplerConfig)
    color_histogram: ColorHistogramConfig = field(default_factory=ColorHistogramConfig)
    scan: ScanConfig = field(default_factory=ScanConfig)
    template_build: TemplateBuildConfig = field(default_factory=TemplateBuildConfig)


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> TrackerConfig:
    """Load and validate configuration from YAML file.

    Args:
        path: Path to configuration file

    Returns:
        Validated TrackerConfig instance

    Raises:
        ConfigError: If configuration is invalid or cannot be loaded
    """
    path = Path(path)
    try:
        logger.info(f"Loading configuration from {path}")
        if not path.exists():
            raise InvalidConfigError(f"Configuration file not found: {path}")

        data = yaml.safe_load(path.read_text()) or {}

        # Validate against JSON Schema (fills in schema defaults)
        validate_config(data)

    except yaml.YAMLError as e:
        logger.error(f"Failed to parse YAML configuration: {e}")
        raise InvalidConfigError(f"Failed to parse configuration file: {e}")

    try:
        config = TrackerConfig(
            view_index=ViewIndexConfig(**data["view_index"]),
            edge_sampler=EdgeSamplerConfig(**data["edge_sampler"]),
            color_histogram=ColorHistogramConfig(**data["color_histogram"]),
            scan=ScanConfig(**data["scan"]),
            template_build=TemplateBuildConfig(**data["template_build"]),
        )
    except (KeyError, TypeError) as e:
        logger.error(f"Failed to construct configuration objects: {e}")
        raise InvalidConfigError(f"Failed to construct configuration: {e}")

    logger.info(
        f"Configuration loaded successfully: {config.scan.n_directions} scan directions, "
        f"view grid {config.view_index.n_u}x{config.view_index.n_v}"
    )
    return config


__all__ = [
    "ColorHistogramConfig",
    "ConfigError",
    "EdgeSamplerConfig",
    "ScanConfig",
    "TemplateBuildConfig",
    "TrackerConfig",
    "ViewIndexConfig",
    "load_config",
]
