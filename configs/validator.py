"""Configuration validation using JSON Schema."""

from __future__ import annotations

from typing import Any, Dict

import jsonschema
from jsonschema import Draft7Validator, validators

from exceptions import ConfigValidationError
from log_config.logger import get_logger

logger = get_logger(__name__)

# JSON Schema for default.yaml configuration
CONFIG_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "properties": {
        "view_index": {
            "type": "object",
            "default": {},
            "additionalProperties": False,
            "properties": {
                "n_u": {"type": "integer", "minimum": 2, "maximum": 4000, "default": 200},
                "n_v": {"type": "integer", "minimum": 2, "maximum": 2000, "default": 100},
                "k": {"type": "integer", "minimum": 1, "maximum": 64, "default": 5},
            },
        },
        "edge_sampler": {
            "type": "object",
            "default": {},
            "additionalProperties": False,
            "properties": {
                "threshold": {"type": "number", "minimum": 0.0, "default": 0.0},
                "smooth_window": {"type": "integer", "minimum": 1, "maximum": 101, "default": 15},
            },
        },
        "color_histogram": {
            "type": "object",
            "default": {},
            "additionalProperties": False,
            "properties": {
                "considered_length": {"type": "integer", "minimum": 1, "maximum": 200, "default": 20},
                "unconsidered_length": {"type": "integer", "minimum": 0, "maximum": 200, "default": 1},
                "learning_rate": {"type": "number", "minimum": 0.0, "maximum": 1.0, "default": 0.2},
            },
        },
        "scan": {
            "type": "object",
            "default": {},
            "additionalProperties": False,
            "properties": {
                "n_directions": {"type": "integer", "minimum": 1, "maximum": 180, "default": 8},
                "gauss_window_half": {"type": "integer", "minimum": 0, "maximum": 32, "default": 3},
                "sobel_ksize": {"type": "integer", "enum": [1, 3, 5, 7], "default": 7},
                "max_workers": {"type": ["integer", "null"], "minimum": 1, "default": None},
                "timeout_ms": {"type": "number", "minimum": 1, "maximum": 60000, "default": 500.0},
                "runtime_budget_ms": {"type": "number", "minimum": 0.1, "maximum": 10000, "default": 30.0},
            },
        },
        "template_build": {
            "type": "object",
            "default": {},
            "additionalProperties": False,
            "properties": {
                "snapshot_count": {"type": "integer", "minimum": 2, "maximum": 10000, "default": 200},
                "contour_points_per_view": {"type": "integer", "minimum": 1, "maximum": 100000, "default": 200},
                "sphere_radius_scale": {"type": "number", "exclusiveMinimum": 0.0, "default": 2.5},
                "image_size": {"type": "integer", "minimum": 16, "maximum": 8192, "default": 1024},
                "vertical_fov_deg": {"type": "number", "exclusiveMinimum": 0.0, "exclusiveMaximum": 180.0, "default": 45.0},
            },
        },
    },
}


def extend_with_default(validator_class):
    """Extend JSON Schema validator to set default values."""
    validate_properties = validator_class.VALIDATORS["properties"]

    def set_defaults(validator, properties, instance, schema):
        for prop, subschema in properties.items():
            if "default" in subschema and isinstance(instance, dict):
                default = subschema["default"]
                instance.setdefault(prop, dict(default) if isinstance(default, dict) else default)

        for error in validate_properties(validator, properties, instance, schema):
            yield error

    return validators.extend(validator_class, {"properties": set_defaults})


DefaultValidatingValidator = extend_with_default(Draft7Validator)


def validate_config(config: Dict[str, Any]) -> None:
    """Validate configuration against JSON Schema.

    Missing sections and keys are filled in with schema defaults.

    Args:
        config: Configuration dictionary

    Raises:
        ConfigValidationError: If configuration is invalid
    """
    if not isinstance(config, dict):
        raise ConfigValidationError(
            f"Configuration root must be a mapping, got {type(config).__name__}",
            validation_errors=["root: not a mapping"],
        )
    try:
        validator = DefaultValidatingValidator(CONFIG_SCHEMA)
        errors = list(validator.iter_errors(config))

        if errors:
            error_messages = []
            for error in errors:
                path = " -> ".join(str(p) for p in error.path) if error.path else "root"
                error_messages.append(f"{path}: {error.message}")

            logger.error(f"Configuration validation failed with {len(errors)} errors")
            for msg in error_messages:
                logger.error(f"  - {msg}")

            raise ConfigValidationError(
                f"Configuration validation failed with {len(errors)} error(s). See logs for details.",
                validation_errors=error_messages,
            )

        logger.debug("Configuration validation passed")

    except jsonschema.exceptions.SchemaError as e:
        logger.error(f"Invalid schema: {e}")
        raise ConfigValidationError(f"Invalid schema definition: {e}")


__all__ = ["validate_config", "CONFIG_SCHEMA"]
