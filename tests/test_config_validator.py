"""Unit tests for configuration schema validation."""

import unittest

from configs.validator import CONFIG_SCHEMA, validate_config
from exceptions import ConfigValidationError


class TestConfigValidator(unittest.TestCase):
    """Test JSON Schema validation and default filling."""

    def test_empty_config_gets_all_sections(self):
        """Test that every section is filled with defaults."""
        data = {}
        validate_config(data)

        self.assertEqual(set(data), set(CONFIG_SCHEMA["properties"]))
        self.assertEqual(data["pitch"]["frame_size"], 2048)
        self.assertEqual(data["assessment"]["key_env"], "AZURE_SPEECH_KEY")
        self.assertEqual(data["samples"]["texts"], [])

    def test_explicit_values_are_kept(self):
        """Test that defaults never overwrite provided values."""
        data = {"feedback": {"overall_excellent": 95}}
        validate_config(data)
        self.assertEqual(data["feedback"]["overall_excellent"], 95)
        self.assertEqual(data["feedback"]["overall_good"], 70)

    def test_root_must_be_mapping(self):
        """Test that a list document is rejected."""
        with self.assertRaises(ConfigValidationError):
            validate_config(["pitch"])

    def test_unknown_provider(self):
        """Test that an unsupported assessment provider is caught."""
        with self.assertRaises(ConfigValidationError) as ctx:
            validate_config({"assessment": {"provider": "whisper"}})
        self.assertTrue(any("provider" in e for e in ctx.exception.validation_errors))

    def test_threshold_above_hundred(self):
        """Test that thresholds are percentages."""
        with self.assertRaises(ConfigValidationError):
            validate_config({"feedback": {"band_good": 120}})

    def test_audio_pattern_requires_index(self):
        """Test that the audio pattern must contain the {index} placeholder."""
        with self.assertRaises(ConfigValidationError) as ctx:
            validate_config({"samples": {"audio_pattern": "native.mp3"}})
        self.assertTrue(any("audio_pattern" in e for e in ctx.exception.validation_errors))

    def test_sample_text_requires_index(self):
        """Test that each practice text has an index."""
        with self.assertRaises(ConfigValidationError):
            validate_config({"samples": {"texts": [{"text": "Hello"}]}})

    def test_error_paths_are_reported(self):
        """Test that error messages carry the field path."""
        with self.assertRaises(ConfigValidationError) as ctx:
            validate_config({"pitch": {"poll_interval_ms": 0}})
        self.assertIn("pitch -> poll_interval_ms", ctx.exception.validation_errors[0])


if __name__ == "__main__":
    unittest.main()
