"""Practice text library and native-speaker audio lookup."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional

from configs.settings import SamplesConfig
from contracts import PracticeSample
from exceptions import SampleNotFoundError


class SampleLibrary:
    """Numbered practice texts with their native-speaker recordings."""

    def __init__(self, config: SamplesConfig, root: Optional[Path] = None) -> None:
        self._texts: Dict[int, str] = dict(config.texts)
        self._pattern = config.audio_pattern
        audio_dir = Path(config.audio_dir)
        if root is not None and not audio_dir.is_absolute():
            audio_dir = root / audio_dir
        self._audio_dir = audio_dir

    @property
    def indices(self) -> List[int]:
        return sorted(self._texts)

    def __len__(self) -> int:
        return len(self._texts)

    def __contains__(self, index: object) -> bool:
        return index in self._texts

    def audio_path_for(self, index: int) -> Path:
        """Path where the native recording for a sample is expected."""
        return self._audio_dir / self._pattern.format(index=index)

    def native_audio_path(self, index: int) -> Path:
        self.get(index)
        path = self.audio_path_for(index)
        if not path.exists():
            raise SampleNotFoundError(f"Native audio not found for sample {index}: {path}", sample_index=index)
        return path

    def get(self, index: int) -> PracticeSample:
        if index not in self._texts:
            raise SampleNotFoundError(
                f"Practice sample {index} not found (available: {self.indices})", sample_index=index
            )
        audio = self.audio_path_for(index)
        return PracticeSample(
            index=index,
            text=self._texts[index],
            native_audio=str(audio) if audio.exists() else None,
        )

    def first(self) -> PracticeSample:
        if not self._texts:
            raise SampleNotFoundError("No practice samples configured")
        return self.get(self.indices[0])
