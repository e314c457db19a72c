"""Autocorrelation pitch estimation for short audio frames.

One frame of time-domain samples yields one fundamental-frequency estimate
in Hz. The estimator never raises on numeric input; a frame without a
usable periodic peak (silence, DC, non-finite samples) yields ``0.0``,
which callers drop via :func:`is_valid_pitch`.
"""

from __future__ import annotations

import math
from typing import Optional, Sequence, Union

import numpy as np

FrameLike = Union[Sequence[float], np.ndarray]

NO_PITCH = 0.0

# Fraction of the highest autocorrelation peak the first peak must reach
PEAK_THRESHOLD = 0.9


def autocorrelate(frame: FrameLike) -> np.ndarray:
    """Unnormalized autocorrelation for lags ``0..N-1``.

    ``result[i] == sum(frame[j] * frame[j + i] for j in range(N - i))``
    """
    buffer = np.asarray(frame, dtype=np.float64).ravel()
    if buffer.size == 0:
        return np.zeros(0, dtype=np.float64)
    full = np.correlate(buffer, buffer, mode="full")
    return full[buffer.size - 1:]


def _search_start(correlation: np.ndarray) -> Optional[int]:
    """First lag where the autocorrelation rises again after lag 0."""
    rising = np.flatnonzero(np.diff(correlation) > 0)
    if rising.size == 0:
        return None
    return int(rising[0]) + 1


def overlap_energy(frame: FrameLike) -> np.ndarray:
    """Energy of the overlapping parts of ``frame`` for lags ``0..N-1``.

    ``result[i] == sum(frame[j] ** 2 + frame[j + i] ** 2 for j in range(N - i))``
    """
    buffer = np.asarray(frame, dtype=np.float64).ravel()
    size = buffer.size
    if size == 0:
        return np.zeros(0, dtype=np.float64)
    cumulative = np.concatenate(([0.0], np.cumsum(buffer * buffer)))
    lags = np.arange(size)
    return cumulative[size - lags] + (cumulative[size] - cumulative[lags])


def normalized_correlation(correlation: np.ndarray, energy: np.ndarray) -> np.ndarray:
    """``2 * correlation / energy`` in [-1, 1]; 0 where the overlap is silent."""
    result = np.zeros_like(correlation, dtype=np.float64)
    np.divide(2.0 * correlation, energy, out=result, where=energy > 0)
    return result


def _local_maxima(values: np.ndarray, start: int) -> np.ndarray:
    # Left edge of a plateau counts; the last lag counts when approached rising
    lags = np.arange(start, values.size)
    left = values[lags] > values[lags - 1]
    right = np.ones(lags.size, dtype=bool)
    right[:-1] = values[lags[:-1]] >= values[lags[:-1] + 1]
    return lags[left & right]


def _refine_lag(lag: int, nsdf: np.ndarray, start: int) -> int:
    last = nsdf.size - 1
    while lag < last and nsdf[lag + 1] > nsdf[lag]:
        lag += 1
    while lag - 1 >= start and nsdf[lag - 1] > nsdf[lag]:
        lag -= 1
    return lag


def find_peak_lag(correlation: np.ndarray, energy: Optional[np.ndarray] = None) -> int:
    """Lag of the fundamental period peak, or 0 when there is none.

    Lag 0 and the lobe that falls away from it are never candidates. Among
    the local maxima after that lobe, the first one reaching
    ``PEAK_THRESHOLD`` of the highest is taken, so a period multiple that
    lands closer to a whole lag cannot win. A candidate must be positive.

    Args:
        correlation: Output of :func:`autocorrelate`
        energy: Output of :func:`overlap_energy` for the same frame. When
            given, the lag is moved to the maximum of the normalized
            correlation within the chosen peak, which removes the drift
            the shrinking overlap puts on long periods.
    """
    if correlation.size < 3:
        return 0
    start = _search_start(correlation)
    if start is None:
        return 0
    peaks = _local_maxima(correlation, start)
    if peaks.size == 0:
        return 0
    heights = correlation[peaks]
    best = heights.max()
    if not best > 0.0:
        return 0
    lag = int(peaks[int(np.argmax(heights >= PEAK_THRESHOLD * best))])
    if energy is not None:
        lag = _refine_lag(lag, normalized_correlation(correlation, energy), start)
    if not correlation[lag] > 0.0:
        return 0
    return lag


def estimate_pitch(frame: FrameLike, sample_rate: float) -> float:
    """Estimate the fundamental frequency of one frame.

    Args:
        frame: Time-domain samples in [-1, 1]
        sample_rate: Sample rate of ``frame`` in Hz

    Returns:
        Pitch in Hz, or ``0.0`` when no pitch is detected
    """
    if not sample_rate or not math.isfinite(sample_rate) or sample_rate <= 0:
        return NO_PITCH

    buffer = np.asarray(frame, dtype=np.float64).ravel()
    if buffer.size == 0 or not np.all(np.isfinite(buffer)):
        return NO_PITCH

    peak = find_peak_lag(autocorrelate(buffer), overlap_energy(buffer))
    if peak == 0:
        return NO_PITCH
    return float(sample_rate) / peak


def is_valid_pitch(value: Optional[float]) -> bool:
    """True when ``value`` is a usable pitch sample (finite and positive)."""
    if value is None:
        return False
    try:
        value = float(value)
    except (TypeError, ValueError):
        return False
    return math.isfinite(value) and value > 0.0


__all__ = [
    "NO_PITCH",
    "PEAK_THRESHOLD",
    "autocorrelate",
    "estimate_pitch",
    "find_peak_lag",
    "is_valid_pitch",
    "normalized_correlation",
    "overlap_energy",
]
