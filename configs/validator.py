"""Configuration validation using JSON Schema."""

from __future__ import annotations

import copy
from typing import Any, Dict

import jsonschema
from jsonschema import Draft7Validator, validators

from exceptions import ConfigValidationError
from log_config.logger import get_logger

logger = get_logger(__name__)

_THRESHOLD = {"type": "number", "minimum": 0, "maximum": 100}

# JSON Schema for default.yaml configuration
CONFIG_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "properties": {
        "pitch": {
            "type": "object",
            "default": {},
            "properties": {
                "frame_size": {"type": "integer", "minimum": 64, "maximum": 16384, "default": 2048},
                "poll_interval_ms": {"type": "integer", "minimum": 10, "maximum": 1000, "default": 100},
                "sample_rate": {"type": "integer", "minimum": 8000, "maximum": 192000, "default": 16000},
            },
        },
        "recording": {
            "type": "object",
            "default": {},
            "properties": {
                "auto_stop_s": {"type": "number", "minimum": 0, "maximum": 600, "default": 0},
                "device": {"type": ["string", "integer", "null"], "default": None},
                "channels": {"type": "integer", "minimum": 1, "maximum": 8, "default": 1},
            },
        },
        "feedback": {
            "type": "object",
            "default": {},
            "properties": {
                "overall_excellent": dict(_THRESHOLD, default=90),
                "overall_good": dict(_THRESHOLD, default=70),
                "intonation_excellent": dict(_THRESHOLD, default=80),
                "intonation_good": dict(_THRESHOLD, default=60),
                "band_good": dict(_THRESHOLD, default=80),
                "band_fair": dict(_THRESHOLD, default=60),
                "word_suggestion_below": dict(_THRESHOLD, default=80),
            },
        },
        "assessment": {
            "type": "object",
            "default": {},
            "properties": {
                "provider": {"type": "string", "enum": ["azure", "none"], "default": "azure"},
                "region": {"type": "string", "default": "koreacentral"},
                "key_env": {"type": "string", "minLength": 1, "default": "AZURE_SPEECH_KEY"},
                "language": {"type": "string", "default": "en-US"},
                "granularity": {
                    "type": "string",
                    "enum": ["Phoneme", "Word", "FullText"],
                    "default": "Word",
                },
                "enable_miscue": {"type": "boolean", "default": True},
                "max_wait_s": {"type": "number", "minimum": 1, "maximum": 600, "default": 30},
            },
        },
        "samples": {
            "type": "object",
            "default": {},
            "properties": {
                "audio_dir": {"type": "string", "default": "audio"},
                "audio_pattern": {
                    "type": "string",
                    "pattern": "\\{index\\}",
                    "default": "native-speaker{index}.mp3",
                },
                "texts": {
                    "type": "array",
                    "default": [],
                    "items": {
                        "type": "object",
                        "required": ["index", "text"],
                        "properties": {
                            "index": {"type": "integer", "minimum": 1},
                            "text": {"type": "string", "minLength": 1},
                        },
                    },
                },
            },
        },
    },
}


def extend_with_default(validator_class):
    """Extend JSON Schema validator to set default values."""
    validate_properties = validator_class.VALIDATORS["properties"]

    def set_defaults(validator, properties, instance, schema):
        if isinstance(instance, dict):
            for prop, subschema in properties.items():
                if "default" in subschema:
                    instance.setdefault(prop, copy.deepcopy(subschema["default"]))

        for error in validate_properties(validator, properties, instance, schema):
            yield error

    return validators.extend(validator_class, {"properties": set_defaults})


DefaultValidatingValidator = extend_with_default(Draft7Validator)


def validate_config(config: Dict[str, Any]) -> None:
    """Validate configuration against JSON Schema, filling in defaults.

    Args:
        config: Configuration dictionary (modified in place)

    Raises:
        ConfigValidationError: If configuration is invalid
    """
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
