"""Shared data contracts for pronunciation practice."""

from .types import (
    AssessmentResult,
    AssessmentScores,
    AudioFrame,
    Feedback,
    FeedbackTier,
    IntonationResult,
    PracticeReport,
    PracticeSample,
    RecognitionUpdate,
    WordAssessment,
)

__all__ = [
    "AssessmentResult",
    "AssessmentScores",
    "AudioFrame",
    "Feedback",
    "FeedbackTier",
    "IntonationResult",
    "PracticeReport",
    "PracticeSample",
    "RecognitionUpdate",
    "WordAssessment",
]
