"""Live microphone backend built on sounddevice."""

from __future__ import annotations

import threading
import time
from typing import List, Optional, Union

import numpy as np

from contracts import AudioFrame
from exceptions import AudioDeviceError
from log_config.logger import get_logger

from .audio_source import AudioSource, AudioSourceStats

logger = get_logger(__name__)


class MicrophoneSource(AudioSource):
    """Analysis window over the most recent ``frame_size`` input samples.

    The input stream callback keeps a sliding window; ``read_frame`` waits
    one polling interval and returns a copy of it. The raw recording is
    retained so it can be saved after the take.
    """

    def __init__(
        self,
        frame_size: int,
        poll_interval_ms: int,
        sample_rate: int,
        device: Optional[Union[str, int]] = None,
        channels: int = 1,
        source_id: str = "user",
    ) -> None:
        self._frame_size = int(frame_size)
        self._poll_interval_ms = int(poll_interval_ms)
        self._rate = int(sample_rate)
        self._device = device
        self._channels = int(channels)
        self._source_id = source_id

        self._window = np.zeros(self._frame_size, dtype=np.float32)
        self._chunks: List[np.ndarray] = []
        self._lock = threading.Lock()
        self._stream = None
        self._frame_index = 0
        self._samples_seen = 0
        self._overflows = 0
        self._last_read = 0.0

    @property
    def sample_rate(self) -> int:
        return self._rate

    @property
    def is_open(self) -> bool:
        return self._stream is not None

    def _callback(self, indata, frames, time_info, status) -> None:
        if status:
            self._overflows += 1
            logger.warning(f"Input stream status: {status}")
        chunk = indata.mean(axis=1) if indata.ndim > 1 else indata
        chunk = np.asarray(chunk, dtype=np.float32).copy()
        with self._lock:
            self._chunks.append(chunk)
            self._samples_seen += chunk.size
            if chunk.size >= self._frame_size:
                self._window = chunk[-self._frame_size:]
            else:
                self._window = np.concatenate((self._window[chunk.size:], chunk))

    def open(self) -> None:
        # Imported here so file-only workflows do not require PortAudio
        import sounddevice as sd

        try:
            self._stream = sd.InputStream(
                samplerate=self._rate,
                channels=self._channels,
                dtype="float32",
                device=self._device,
                callback=self._callback,
            )
            self._stream.start()
        except sd.PortAudioError as e:
            self._stream = None
            raise AudioDeviceError(f"Failed to open input device {self._device!r}: {e}", source=self._source_id) from e

        self._last_read = time.monotonic()
        logger.info(f"Microphone opened: device={self._device!r}, {self._rate}Hz, {self._channels}ch")

    def read_frame(self) -> Optional[AudioFrame]:
        if self._stream is None:
            return None

        target_delay = self._poll_interval_ms / 1000.0
        elapsed = time.monotonic() - self._last_read
        if elapsed < target_delay:
            time.sleep(target_delay - elapsed)
        self._last_read = time.monotonic()

        if self._stream is None:
            return None
        with self._lock:
            samples = self._window.copy()
        frame = AudioFrame(
            source_id=self._source_id,
            frame_index=self._frame_index,
            t_capture_monotonic_ns=time.monotonic_ns(),
            samples=samples,
            sample_rate=self._rate,
        )
        self._frame_index += 1
        return frame

    def recorded_audio(self) -> np.ndarray:
        with self._lock:
            if not self._chunks:
                return np.zeros(0, dtype=np.float32)
            return np.concatenate(self._chunks)

    def get_stats(self) -> AudioSourceStats:
        with self._lock:
            seen = self._samples_seen
        return AudioSourceStats(
            frames_read=self._frame_index,
            samples_available=seen,
            sample_rate=self._rate,
            overflows=self._overflows,
        )

    def close(self) -> None:
        stream, self._stream = self._stream, None
        if stream is None:
            return
        try:
            stream.stop()
            stream.close()
        finally:
            logger.info(f"Microphone closed after {self._samples_seen / self._rate:.1f}s")
