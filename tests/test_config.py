from pathlib import Path

import pytest

from configs.settings import DEFAULT_CONFIG_PATH, config_from_dict, load_config
from exceptions import ConfigValidationError, InvalidConfigError


def test_load_default_config() -> None:
    config = load_config()

    assert config.pitch.frame_size == 2048
    assert config.pitch.poll_interval_ms == 100
    assert config.feedback.overall_excellent == 90
    assert config.feedback.intonation_good == 60
    assert config.assessment.language == "en-US"
    assert sorted(config.samples.texts) == [1, 2, 3, 4, 5]
    assert config.samples.texts[1].startswith("Whenever you walk")


def test_load_config_by_path() -> None:
    config = load_config(DEFAULT_CONFIG_PATH)
    assert config.assessment.granularity == "Word"


def test_hop_size() -> None:
    config = load_config()
    assert config.pitch.hop_size == 1600


def test_missing_file(tmp_path: Path) -> None:
    with pytest.raises(InvalidConfigError, match="not found"):
        load_config(tmp_path / "missing.yaml")


def test_malformed_yaml(tmp_path: Path) -> None:
    path = tmp_path / "bad.yaml"
    path.write_text("pitch: [unclosed\n")
    with pytest.raises(InvalidConfigError, match="parse"):
        load_config(path)


def test_empty_file_uses_defaults(tmp_path: Path) -> None:
    path = tmp_path / "empty.yaml"
    path.write_text("")
    config = load_config(path)

    assert config.pitch.frame_size == 2048
    assert config.recording.auto_stop_s == 0
    assert config.samples.texts == {}
    assert config.samples.audio_pattern == "native-speaker{index}.mp3"


def test_partial_section_gets_defaults() -> None:
    config = config_from_dict({"pitch": {"frame_size": 1024}})
    assert config.pitch.frame_size == 1024
    assert config.pitch.poll_interval_ms == 100


def test_out_of_range_value() -> None:
    with pytest.raises(ConfigValidationError) as excinfo:
        config_from_dict({"pitch": {"frame_size": 10}})
    assert any("frame_size" in message for message in excinfo.value.validation_errors)


def test_unknown_field_rejected() -> None:
    with pytest.raises(InvalidConfigError):
        config_from_dict({"pitch": {"window": 1024}})


def test_duplicate_sample_index() -> None:
    data = {"samples": {"texts": [{"index": 1, "text": "a"}, {"index": 1, "text": "b"}]}}
    with pytest.raises(InvalidConfigError, match="Duplicate"):
        config_from_dict(data)


def test_inverted_thresholds() -> None:
    with pytest.raises(InvalidConfigError, match="overall_good"):
        config_from_dict({"feedback": {"overall_good": 95, "overall_excellent": 90}})


def test_defaults_do_not_leak_between_loads() -> None:
    first = config_from_dict({"samples": {"texts": [{"index": 3, "text": "three"}]}})
    second = config_from_dict({})
    assert first.samples.texts == {3: "three"}
    assert second.samples.texts == {}
