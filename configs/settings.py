"""Configuration loading for pronunciation practice."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from configs.validator import validate_config
from exceptions import ConfigError, InvalidConfigError
from log_config.logger import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent / "default.yaml"


@dataclass(frozen=True)
class PitchConfig:
    frame_size: int  # Samples per analysis frame
    poll_interval_ms: int  # Hop between successive frames
    sample_rate: int  # Capture rate for live recording

    @property
    def hop_size(self) -> int:
        return max(1, int(self.sample_rate * self.poll_interval_ms / 1000))


@dataclass(frozen=True)
class RecordingConfig:
    auto_stop_s: float  # 0 disables the auto-stop timer
    device: Optional[Union[str, int]]
    channels: int


@dataclass(frozen=True)
class FeedbackConfig:
    overall_excellent: float
    overall_good: float
    intonation_excellent: float
    intonation_good: float
    band_good: float
    band_fair: float
    word_suggestion_below: float


@dataclass(frozen=True)
class AssessmentConfig:
    provider: str
    region: str
    key_env: str  # Name of the environment variable holding the key
    language: str
    granularity: str
    enable_miscue: bool
    max_wait_s: float


@dataclass(frozen=True)
class SamplesConfig:
    audio_dir: str
    audio_pattern: str
    texts: Dict[int, str] = field(default_factory=dict)


@dataclass(frozen=True)
class AppConfig:
    pitch: PitchConfig
    recording: RecordingConfig
    feedback: FeedbackConfig
    assessment: AssessmentConfig
    samples: SamplesConfig


def _check_thresholds(feedback: FeedbackConfig) -> None:
    pairs = [
        ("overall_good", feedback.overall_good, "overall_excellent", feedback.overall_excellent),
        ("intonation_good", feedback.intonation_good, "intonation_excellent", feedback.intonation_excellent),
        ("band_fair", feedback.band_fair, "band_good", feedback.band_good),
    ]
    for low_name, low, high_name, high in pairs:
        if low > high:
            raise InvalidConfigError(f"feedback.{low_name} ({low}) must not exceed feedback.{high_name} ({high})")


def config_from_dict(data: Dict[str, Any]) -> AppConfig:
    """Validate a raw configuration mapping and build an AppConfig.

    Args:
        data: Parsed YAML mapping (defaults are filled in place)

    Returns:
        Validated AppConfig instance

    Raises:
        ConfigError: If configuration is invalid
    """
    validate_config(data)

    try:
        samples_data = data["samples"]
        texts: Dict[int, str] = {}
        for entry in samples_data["texts"]:
            index = int(entry["index"])
            if index in texts:
                raise InvalidConfigError(f"Duplicate practice sample index: {index}")
            texts[index] = entry["text"].strip()

        config = AppConfig(
            pitch=PitchConfig(**data["pitch"]),
            recording=RecordingConfig(**data["recording"]),
            feedback=FeedbackConfig(**data["feedback"]),
            assessment=AssessmentConfig(**data["assessment"]),
            samples=SamplesConfig(
                audio_dir=samples_data["audio_dir"],
                audio_pattern=samples_data["audio_pattern"],
                texts=texts,
            ),
        )
    except ConfigError:
        raise
    except Exception as e:
        logger.error(f"Failed to construct configuration objects: {e}")
        raise InvalidConfigError(f"Failed to construct configuration: {e}")

    _check_thresholds(config.feedback)
    return config


def load_config(path: Optional[Path] = None) -> AppConfig:
    """Load and validate configuration from YAML file.

    Args:
        path: Path to configuration file (defaults to the bundled default.yaml)

    Returns:
        Validated AppConfig instance

    Raises:
        ConfigError: If configuration is invalid or cannot be loaded
    """
    path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    try:
        logger.info(f"Loading configuration from {path}")
        if not path.exists():
            raise InvalidConfigError(f"Configuration file not found: {path}")

        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        logger.error(f"Failed to parse YAML configuration: {e}")
        raise InvalidConfigError(f"Failed to parse configuration file: {e}")

    if data is None:
        data = {}

    config = config_from_dict(data)
    logger.info(
        f"Configuration loaded: {len(config.samples.texts)} samples, "
        f"frame {config.pitch.frame_size} @ {config.pitch.poll_interval_ms}ms, "
        f"assessment provider '{config.assessment.provider}'"
    )
    return config
