"""Pitch contour accumulation."""

from __future__ import annotations

import threading
import time
from typing import Iterable, List, Optional

from analysis.pitch_estimator import FrameLike, estimate_pitch, is_valid_pitch
from log_config.logger import get_logger, log_performance

logger = get_logger(__name__)


class PitchContour:
    """Ordered pitch samples for one playback or one recording.

    Rejected samples (zero or non-finite) are counted but never stored.
    """

    def __init__(self, label: str = "contour", values: Optional[Iterable[float]] = None) -> None:
        self.label = label
        self._values: List[float] = []
        self._rejected = 0
        self._lock = threading.Lock()
        if values is not None:
            self.extend(values)

    def append(self, pitch: Optional[float]) -> bool:
        """Add one pitch sample.

        Returns:
            True if the sample was kept, False if it was rejected
        """
        if not is_valid_pitch(pitch):
            with self._lock:
                self._rejected += 1
            return False
        with self._lock:
            self._values.append(float(pitch))
        return True

    def extend(self, pitches: Iterable[Optional[float]]) -> int:
        return sum(1 for pitch in pitches if self.append(pitch))

    @property
    def values(self) -> List[float]:
        with self._lock:
            return list(self._values)

    @property
    def rejected_count(self) -> int:
        with self._lock:
            return self._rejected

    def reset(self) -> None:
        with self._lock:
            self._values.clear()
            self._rejected = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._values)

    def __bool__(self) -> bool:
        return len(self) > 0

    def __repr__(self) -> str:
        return f"PitchContour(label={self.label!r}, samples={len(self)}, rejected={self.rejected_count})"


def collect_contour(
    frames: Iterable[FrameLike],
    sample_rate: float,
    label: str = "contour",
) -> PitchContour:
    """Estimate the pitch of every frame and accumulate the valid ones."""
    contour = PitchContour(label)
    started = time.perf_counter()
    frame_count = 0
    for frame in frames:
        contour.append(estimate_pitch(frame, sample_rate))
        frame_count += 1

    elapsed_ms = (time.perf_counter() - started) * 1000.0
    if frame_count:
        log_performance(f"pitch estimation ({label})", elapsed_ms / frame_count)
    logger.debug(f"Collected {label} contour: {len(contour)}/{frame_count} frames voiced")
    return contour
