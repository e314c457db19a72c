"""Core data contracts for capture, pitch analysis, assessment, and feedback."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class AudioFrame:
    source_id: str
    frame_index: int
    t_capture_monotonic_ns: int
    samples: Any  # 1-D float32 ndarray in [-1, 1]
    sample_rate: int


@dataclass(frozen=True)
class PracticeSample:
    index: int
    text: str
    native_audio: Optional[str] = None


@dataclass(frozen=True)
class AssessmentScores:
    accuracy: float
    fluency: float
    completeness: float
    pronunciation: float


@dataclass(frozen=True)
class WordAssessment:
    word: str
    accuracy_score: float
    fluency_score: Optional[float] = None
    error_type: str = "None"
    offset_ms: Optional[float] = None
    duration_ms: Optional[float] = None


@dataclass(frozen=True)
class RecognitionUpdate:
    """Partial transcript received while speech is still being recognized."""

    text: str
    offset_ms: Optional[float] = None


@dataclass(frozen=True)
class AssessmentResult:
    text: str
    scores: AssessmentScores
    words: List[WordAssessment] = field(default_factory=list)
    raw: Dict[str, Any] = field(default_factory=dict)


class FeedbackTier(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    NEEDS_PRACTICE = "needs_practice"


@dataclass(frozen=True)
class Feedback:
    tier: FeedbackTier
    message: str


@dataclass(frozen=True)
class IntonationResult:
    similarity: float
    native_sample_count: int
    user_sample_count: int
    feedback: Feedback


@dataclass(frozen=True)
class PracticeReport:
    sample_index: int
    reference_text: str
    intonation: IntonationResult
    assessment: Optional[AssessmentResult] = None
    overall_score: Optional[int] = None
    overall_feedback: Optional[Feedback] = None
    word_suggestions: Dict[str, List[str]] = field(default_factory=dict)
