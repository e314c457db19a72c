"""Capture module."""

from .audio_source import AudioSource, AudioSourceStats, BufferedAudioSource
from .file_source import FileAudioSource, read_audio, write_audio
from .microphone import MicrophoneSource
from .simulated_source import SimulatedAudioSource, synthesize_tone

__all__ = [
    "AudioSource",
    "AudioSourceStats",
    "BufferedAudioSource",
    "FileAudioSource",
    "MicrophoneSource",
    "SimulatedAudioSource",
    "read_audio",
    "synthesize_tone",
    "write_audio",
]
