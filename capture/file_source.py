"""Audio file backend built on soundfile."""

from __future__ import annotations

from pathlib import Path
from typing import Tuple, Union

import numpy as np
import soundfile as sf

from exceptions import AudioDecodeError, AudioDeviceError
from log_config.logger import get_logger

from .audio_source import BufferedAudioSource

logger = get_logger(__name__)


def read_audio(path: Union[str, Path]) -> Tuple[np.ndarray, int]:
    """Decode an audio file to mono float32.

    Raises:
        AudioDecodeError: If the file is missing or cannot be decoded
    """
    path = Path(path)
    if not path.exists():
        raise AudioDecodeError(f"Audio file not found: {path}", source=str(path))
    try:
        data, rate = sf.read(str(path), dtype="float32", always_2d=True)
    except (RuntimeError, sf.SoundFileError) as e:
        raise AudioDecodeError(f"Failed to decode {path}: {e}", source=str(path)) from e

    mono = data.mean(axis=1) if data.shape[1] > 1 else data[:, 0]
    logger.debug(f"Decoded {path.name}: {mono.size} samples @ {rate}Hz, {data.shape[1]} channel(s)")
    return mono.astype(np.float32, copy=False), int(rate)


def write_audio(path: Union[str, Path], samples: np.ndarray, sample_rate: int) -> Path:
    """Write mono samples as 16-bit PCM WAV."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    sf.write(str(path), np.asarray(samples, dtype=np.float32), int(sample_rate), subtype="PCM_16")
    return path


class FileAudioSource(BufferedAudioSource):
    """Frames a decoded audio file, optionally playing it while reading."""

    def __init__(
        self,
        path: Union[str, Path],
        frame_size: int,
        poll_interval_ms: int,
        source_id: str = "native",
        play: bool = False,
    ) -> None:
        super().__init__(frame_size, poll_interval_ms, source_id, realtime=play)
        self.path = Path(path)
        self._play = play
        self._player = None

    def _load(self) -> tuple:
        return read_audio(self.path)

    def open(self) -> None:
        super().open()
        logger.info(f"Opened {self.path.name} ({self.duration_s:.1f}s)")
        if self._play:
            # PortAudio is only needed when audio is actually played
            import sounddevice as sd

            try:
                sd.play(self._data, self.sample_rate)
            except sd.PortAudioError as e:
                raise AudioDeviceError(f"Cannot play {self.path.name}: {e}", source=str(self.path)) from e
            self._player = sd

    def close(self) -> None:
        if self._player is not None:
            self._player.stop()
            self._player = None
        super().close()
