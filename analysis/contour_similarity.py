"""Intonation similarity between a native and a user pitch contour."""

from __future__ import annotations

import math
from typing import Sequence, Union

import numpy as np

ContourLike = Union[Sequence[float], np.ndarray]


def normalize_contour(values: ContourLike) -> np.ndarray:
    """Z-score a contour with its own mean and population std.

    A constant or degenerate contour normalizes to all zeros.
    """
    data = np.asarray(values, dtype=np.float64).ravel()
    if data.size == 0:
        return data
    mean = data.mean()
    std = math.sqrt(float(np.mean((data - mean) ** 2)))
    if std == 0.0 or not math.isfinite(std):
        return np.zeros_like(data)
    return (data - mean) / std


def pearson_correlation(first: ContourLike, second: ContourLike) -> float:
    """Pearson r over the common prefix of two sequences.

    Returns 0.0 when the denominator is zero or not a number.
    """
    a = np.asarray(first, dtype=np.float64).ravel()
    b = np.asarray(second, dtype=np.float64).ravel()
    length = min(a.size, b.size)
    if length == 0:
        return 0.0
    a = a[:length]
    b = b[:length]

    sum_a = a.sum()
    sum_b = b.sum()
    numerator = float(np.dot(a, b) - sum_a * sum_b / length)
    variance_product = float((np.dot(a, a) - sum_a**2 / length) * (np.dot(b, b) - sum_b**2 / length))
    if not math.isfinite(variance_product) or variance_product <= 0.0:
        return 0.0
    denominator = math.sqrt(variance_product)
    if denominator == 0.0:
        return 0.0

    r = numerator / denominator
    if not math.isfinite(r):
        return 0.0
    return max(-1.0, min(1.0, r))


def compute_contour_similarity(native_contour: ContourLike, user_contour: ContourLike) -> float:
    """Score how closely the user's contour follows the native one.

    Args:
        native_contour: Pitch samples of the reference speaker
        user_contour: Pitch samples of the learner

    Returns:
        Similarity in [0, 100]; negative correlation scores 0
    """
    native = np.asarray(native_contour, dtype=np.float64).ravel()
    user = np.asarray(user_contour, dtype=np.float64).ravel()
    if native.size == 0 or user.size == 0:
        return 0.0

    r = pearson_correlation(normalize_contour(native), normalize_contour(user))
    return max(0.0, r) * 100.0


__all__ = ["compute_contour_similarity", "normalize_contour", "pearson_correlation"]
