"""Event system for practice session notifications."""

from app.events.event_bus import EventBus
from app.events.event_types import (
    AssessmentCompletedEvent,
    IntonationAnalyzedEvent,
    PlaybackFinishedEvent,
    PlaybackStartedEvent,
    RecognizingEvent,
    RecordingStartedEvent,
    RecordingStoppedEvent,
    SampleChangedEvent,
)

__all__ = [
    "AssessmentCompletedEvent",
    "EventBus",
    "IntonationAnalyzedEvent",
    "PlaybackFinishedEvent",
    "PlaybackStartedEvent",
    "RecognizingEvent",
    "RecordingStartedEvent",
    "RecordingStoppedEvent",
    "SampleChangedEvent",
]
