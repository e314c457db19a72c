"""Event types published by a practice session.

All events are immutable dataclasses that flow through the EventBus.
"""

from __future__ import annotations

from dataclasses import dataclass

from contracts import AssessmentResult, IntonationResult, PracticeSample


@dataclass(frozen=True)
class SampleChangedEvent:
    """Published when the learner picks a different practice text.

    Attributes:
        sample: Newly selected practice sample
    """
    sample: PracticeSample


@dataclass(frozen=True)
class PlaybackStartedEvent:
    sample_index: int
    timestamp_ns: int


@dataclass(frozen=True)
class PlaybackFinishedEvent:
    """Published when native playback ends or is stopped.

    Attributes:
        sample_index: Sample that was played
        pitch_samples: Voiced frames collected into the native contour
        stopped_early: True if playback was interrupted
    """
    sample_index: int
    pitch_samples: int
    stopped_early: bool = False


@dataclass(frozen=True)
class RecordingStartedEvent:
    sample_index: int
    timestamp_ns: int


@dataclass(frozen=True)
class RecordingStoppedEvent:
    sample_index: int
    pitch_samples: int
    duration_s: float


@dataclass(frozen=True)
class RecognizingEvent:
    """Partial transcript while the learner is still speaking.

    Frequency: several per second while speech is detected
    """
    text: str


@dataclass(frozen=True)
class AssessmentCompletedEvent:
    sample_index: int
    result: AssessmentResult


@dataclass(frozen=True)
class IntonationAnalyzedEvent:
    sample_index: int
    result: IntonationResult
