"""Simulated audio backend for session testing."""

from __future__ import annotations

from typing import Optional

import numpy as np

from .audio_source import BufferedAudioSource


def synthesize_tone(
    frequency_hz: float,
    sample_rate: int,
    duration_s: float,
    amplitude: float = 0.5,
    glide_to_hz: Optional[float] = None,
) -> np.ndarray:
    """Sine tone with an optional linear frequency glide.

    A frequency of 0 produces silence.
    """
    count = int(round(sample_rate * duration_s))
    if count <= 0:
        return np.zeros(0, dtype=np.float32)
    if frequency_hz <= 0:
        return np.zeros(count, dtype=np.float32)

    t = np.arange(count, dtype=np.float64) / sample_rate
    end_hz = frequency_hz if glide_to_hz is None else glide_to_hz
    # Phase is the integral of the instantaneous frequency
    phase = 2.0 * np.pi * (frequency_hz * t + (end_hz - frequency_hz) * t**2 / (2.0 * duration_s))
    return (amplitude * np.sin(phase)).astype(np.float32)


class SimulatedAudioSource(BufferedAudioSource):
    def __init__(
        self,
        frequency_hz: float,
        sample_rate: int,
        frame_size: int,
        poll_interval_ms: int,
        duration_s: float = 1.0,
        amplitude: float = 0.5,
        glide_to_hz: Optional[float] = None,
        source_id: str = "sim",
        realtime: bool = False,
    ) -> None:
        super().__init__(frame_size, poll_interval_ms, source_id, realtime=realtime)
        self._frequency_hz = frequency_hz
        self._glide_to_hz = glide_to_hz
        self._amplitude = amplitude
        self._duration_s = duration_s
        self._requested_rate = int(sample_rate)

    def _load(self) -> tuple:
        tone = synthesize_tone(
            self._frequency_hz,
            self._requested_rate,
            self._duration_s,
            amplitude=self._amplitude,
            glide_to_hz=self._glide_to_hz,
        )
        return tone, self._requested_rate
