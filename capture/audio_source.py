"""Audio source abstraction for pitch capture backends."""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterator, Optional

import numpy as np

from contracts import AudioFrame


@dataclass(frozen=True)
class AudioSourceStats:
    frames_read: int
    samples_available: int
    sample_rate: int
    overflows: int = 0


class AudioSource(ABC):
    """Yields fixed-length analysis frames at a fixed polling interval."""

    @property
    @abstractmethod
    def sample_rate(self) -> int:
        """Sample rate of the frames produced by this source."""

    @abstractmethod
    def open(self) -> None:
        """Acquire the underlying file, device, or generator."""

    @abstractmethod
    def read_frame(self) -> Optional[AudioFrame]:
        """Read the next frame, or None once the source is exhausted."""

    @abstractmethod
    def get_stats(self) -> AudioSourceStats:
        """Return capture diagnostics."""

    @abstractmethod
    def close(self) -> None:
        """Release the source. Safe to call more than once."""

    def frames(self) -> Iterator[AudioFrame]:
        while True:
            frame = self.read_frame()
            if frame is None:
                return
            yield frame

    def __enter__(self) -> "AudioSource":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class BufferedAudioSource(AudioSource):
    """Frames a mono signal that is fully available in memory.

    Each frame holds ``frame_size`` samples; successive frames start one
    polling interval apart. A trailing partial frame is not produced.
    With ``realtime`` enabled, reads are paced to the polling interval.
    """

    def __init__(
        self,
        frame_size: int,
        poll_interval_ms: int,
        source_id: str,
        realtime: bool = False,
    ) -> None:
        self._frame_size = int(frame_size)
        self._poll_interval_ms = int(poll_interval_ms)
        self._source_id = source_id
        self._realtime = realtime
        self._data: Optional[np.ndarray] = None
        self._rate = 0
        self._position = 0
        self._frame_index = 0
        self._last_read = 0.0

    @abstractmethod
    def _load(self) -> tuple:
        """Return ``(mono float32 samples, sample_rate)``."""

    @property
    def sample_rate(self) -> int:
        return self._rate

    @property
    def hop_size(self) -> int:
        return max(1, int(self._rate * self._poll_interval_ms / 1000))

    @property
    def duration_s(self) -> float:
        if self._data is None or not self._rate:
            return 0.0
        return self._data.size / self._rate

    def open(self) -> None:
        data, rate = self._load()
        self._data = np.ascontiguousarray(data, dtype=np.float32)
        self._rate = int(rate)
        self._position = 0
        self._frame_index = 0
        self._last_read = time.monotonic()

    def read_frame(self) -> Optional[AudioFrame]:
        if self._data is None:
            return None
        end = self._position + self._frame_size
        if end > self._data.size:
            return None

        if self._realtime:
            target_delay = self._poll_interval_ms / 1000.0
            elapsed = time.monotonic() - self._last_read
            if elapsed < target_delay:
                time.sleep(target_delay - elapsed)
            self._last_read = time.monotonic()

        frame = AudioFrame(
            source_id=self._source_id,
            frame_index=self._frame_index,
            t_capture_monotonic_ns=int(self._position * 1_000_000_000 / self._rate),
            samples=self._data[self._position:end],
            sample_rate=self._rate,
        )
        self._position += self.hop_size
        self._frame_index += 1
        return frame

    def get_stats(self) -> AudioSourceStats:
        available = 0 if self._data is None else max(0, self._data.size - self._position)
        return AudioSourceStats(
            frames_read=self._frame_index,
            samples_available=available,
            sample_rate=self._rate,
        )

    def close(self) -> None:
        self._data = None
