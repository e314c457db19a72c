"""Tests for the pronunciation-coach command line."""

from __future__ import annotations

import json
import sys
import types
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import yaml

from analysis.cli import build_parser, main
from capture import synthesize_tone, write_audio
from log_config import configure_logging


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    write_audio(tmp_path / "native1.wav", synthesize_tone(160.0, 16000, 1.5, glide_to_hz=300.0), 16000)
    write_audio(tmp_path / "user.wav", synthesize_tone(170.0, 16000, 1.2, glide_to_hz=290.0), 16000)
    write_audio(tmp_path / "falling.wav", synthesize_tone(300.0, 16000, 1.5, glide_to_hz=160.0), 16000)
    config = {
        "assessment": {"provider": "none"},
        "samples": {
            "audio_dir": str(tmp_path),
            "audio_pattern": "native{index}.wav",
            "texts": [
                {"index": 1, "text": "Hello world."},
                {"index": 2, "text": "A sample without a recording."},
            ],
        },
    }
    (tmp_path / "config.yaml").write_text(yaml.safe_dump(config))
    return tmp_path


def run(workspace: Path, *args: str) -> int:
    return main(["--config", str(workspace / "config.yaml"), *args])


def test_parser_requires_user_for_practice():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["practice"])


def test_no_command_prints_help(capsys):
    assert main([]) == 1
    assert "usage" in capsys.readouterr().out


def test_samples(workspace, capsys):
    assert run(workspace, "samples") == 0
    out = capsys.readouterr().out
    assert "1: Hello world." in out
    assert "(missing:" in out


def test_pitch_json(workspace, capsys):
    assert run(workspace, "pitch", str(workspace / "native1.wav"), "--json") == 0
    data = json.loads(capsys.readouterr().out)
    assert len(data["pitch_hz"]) == 14
    assert data["pitch_hz"][0] < data["pitch_hz"][-1]


def test_pitch_summary(workspace, capsys):
    assert run(workspace, "pitch", str(workspace / "native1.wav")) == 0
    assert "voiced frames" in capsys.readouterr().out


def test_compare_same_file(workspace, capsys):
    native = str(workspace / "native1.wav")
    assert run(workspace, "compare", native, native, "--json") == 0
    data = json.loads(capsys.readouterr().out)
    assert data["similarity"] == pytest.approx(100.0)
    assert data["tier"] == "excellent"


def test_compare_opposite_contours(workspace, capsys):
    assert run(workspace, "compare", str(workspace / "native1.wav"), str(workspace / "falling.wav")) == 0
    out = capsys.readouterr().out
    assert "Intonation similarity: 0.0%" in out


def test_practice_json(workspace, capsys):
    assert run(workspace, "practice", "--user", str(workspace / "user.wav"), "--json") == 0
    data = json.loads(capsys.readouterr().out)
    assert data["sample_index"] == 1
    assert data["intonation"]["similarity"] > 90.0
    assert data["assessment"] is None


def test_practice_writes_report(workspace, capsys):
    output = workspace / "out" / "report.json"
    args = ["practice", "--sample", "2", "--native", str(workspace / "native1.wav")]
    args += ["--user", str(workspace / "user.wav"), "--no-assess", "--output", str(output)]

    assert run(workspace, *args) == 0

    out = capsys.readouterr().out
    assert "Intonation similarity" in out
    assert "No pronunciation assessment available." in out
    saved = json.loads(output.read_text())
    assert saved["payload"]["sample_index"] == 2
    assert saved["payload"]["reference_text"] == "A sample without a recording."


def test_practice_missing_native(workspace, capsys):
    code = run(workspace, "practice", "--sample", "2", "--user", str(workspace / "user.wav"))
    assert code == 1
    assert "Native audio not found" in capsys.readouterr().err


def test_missing_audio_file(workspace, capsys):
    assert run(workspace, "pitch", str(workspace / "nope.wav")) == 1
    assert "Error: Audio file not found" in capsys.readouterr().err


def test_log_level_option(workspace, monkeypatch):
    monkeypatch.setenv("PRONUNCIATION_COACH_LOG_DIR", str(workspace / "logs"))
    try:
        assert run(workspace, "--log-level", "WARNING", "samples") == 0
    finally:
        configure_logging(files=False)
    assert list((workspace / "logs").glob("coach_*.log"))


def test_bad_log_level():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["--log-level", "LOUD", "samples"])


def test_bad_config(tmp_path, capsys):
    path = tmp_path / "bad.yaml"
    path.write_text(yaml.safe_dump({"pitch": {"frame_size": 1}}))
    assert main(["--config", str(path), "samples"]) == 1
    assert "Error:" in capsys.readouterr().err


class FakeInputStream:
    """Delivers one block of a steady tone when started."""

    def __init__(self, samplerate, channels, dtype, device, callback):
        self.samplerate = samplerate
        self.callback = callback

    def start(self):
        tone = synthesize_tone(220.0, self.samplerate, 0.2)
        self.callback(tone.reshape(-1, 1), tone.size, None, None)

    def stop(self):
        pass

    def close(self):
        pass


def test_live_with_fake_devices(workspace, capsys):
    write_audio(workspace / "native1.wav", synthesize_tone(200.0, 16000, 0.4), 16000)
    fake_sd = types.SimpleNamespace(
        InputStream=FakeInputStream,
        PortAudioError=RuntimeError,
        play=MagicMock(),
        stop=MagicMock(),
    )
    take = workspace / "take.wav"

    with patch.dict(sys.modules, {"sounddevice": fake_sd}):
        code = run(workspace, "live", "--seconds", "0.3", "--no-assess", "--save-recording", str(take))

    assert code == 0
    fake_sd.play.assert_called_once()
    out = capsys.readouterr().out
    assert "Speak now!" in out
    assert "Intonation similarity" in out
    assert take.exists()
    assert take.stat().st_size > 0
