"""Tests for the practice session controller."""

from __future__ import annotations

import time
from dataclasses import replace
from pathlib import Path

import pytest

from app.events import (
    AssessmentCompletedEvent,
    IntonationAnalyzedEvent,
    PlaybackFinishedEvent,
    RecognizingEvent,
    RecordingStoppedEvent,
    SampleChangedEvent,
)
from app.session import PracticeSession
from capture import SimulatedAudioSource, synthesize_tone, write_audio
from configs.samples import SampleLibrary
from configs.settings import config_from_dict
from contracts import AssessmentResult, AssessmentScores, FeedbackTier, WordAssessment
from exceptions import AssessmentCanceledError, AssessmentTimeoutError, SampleNotFoundError, SessionStateError
from integrations import AssessmentStream


RESULT = AssessmentResult(
    text="Hello world.",
    scores=AssessmentScores(accuracy=90, fluency=80, completeness=100, pronunciation=86),
    words=[
        WordAssessment(word="Hello", accuracy_score=95.0),
        WordAssessment(word="world", accuracy_score=55.0, fluency_score=60.0),
    ],
)


class FakeAssessor:
    """Assessor that answers from memory.

    With an audio file the stream completes immediately; in microphone
    mode the result arrives when the stream is stopped.
    """

    def __init__(self, result=RESULT, error=None, partials=("hello",), finish=True):
        self.result = result
        self.error = error
        self.partials = partials
        self.finish = finish
        self.calls = []

    def start(self, reference_text, audio_path=None):
        self.calls.append((reference_text, audio_path))

        def on_stop():
            if self.result is not None:
                stream.push_result(self.result)

        stream = AssessmentStream(reference_text, on_stop=on_stop if audio_path is None else None)
        for text in self.partials:
            stream.push_partial(text)
        if audio_path is not None and self.finish:
            if self.result is not None:
                stream.push_result(self.result)
            stream.finish(self.error)
        return stream


def glide(start_hz, end_hz, source_id="sim", realtime=False, duration_s=2.0):
    return SimulatedAudioSource(
        start_hz,
        sample_rate=16000,
        frame_size=2048,
        poll_interval_ms=100,
        duration_s=duration_s,
        glide_to_hz=end_hz,
        source_id=source_id,
        realtime=realtime,
    )


@pytest.fixture
def app_config(tmp_path: Path):
    return config_from_dict(
        {
            "samples": {
                "audio_dir": str(tmp_path),
                "audio_pattern": "native{index}.wav",
                "texts": [
                    {"index": 1, "text": "Hello world."},
                    {"index": 2, "text": "Second sample."},
                ],
            }
        }
    )


@pytest.fixture
def library(app_config, tmp_path: Path):
    tone = synthesize_tone(160.0, 16000, 2.0, glide_to_hz=320.0)
    write_audio(tmp_path / "native1.wav", tone, 16000)
    return SampleLibrary(app_config.samples)


@pytest.fixture
def session(app_config, library):
    session = PracticeSession(app_config, library, assessor=FakeAssessor())
    yield session
    session.close()


def record(session, source, audio_path="take.wav"):
    session.start_recording(source, audio_path=audio_path)
    assert session.wait_for_recording(timeout=5.0)
    return session.stop_recording()


def collect(session, event_type):
    received = []
    session.events.subscribe(event_type, received.append)
    return received


class TestIntonation:
    def test_same_glide_scores_full_marks(self, session):
        session.play_native(glide(160.0, 320.0))
        assert session.wait_for_playback(timeout=5.0)
        record(session, glide(160.0, 320.0, source_id="user"))

        report = session.analyze()

        assert report.intonation.similarity == pytest.approx(100.0, abs=1e-6)
        assert report.intonation.feedback.tier == FeedbackTier.EXCELLENT
        assert report.intonation.native_sample_count == 19
        assert report.intonation.user_sample_count == 19

    def test_opposite_glide_scores_zero(self, session):
        session.play_native(glide(160.0, 320.0))
        session.wait_for_playback(timeout=5.0)
        record(session, glide(320.0, 160.0, source_id="user"))

        report = session.analyze()

        assert report.intonation.similarity == 0.0
        assert report.intonation.feedback.tier == FeedbackTier.NEEDS_PRACTICE

    def test_native_file_is_used_by_default(self, session):
        session.play_native()
        assert session.wait_for_playback(timeout=5.0)
        record(session, glide(160.0, 320.0, source_id="user"))

        report = session.analyze()

        assert report.intonation.similarity > 99.0

    def test_missing_contours(self, session):
        report = session.analyze()
        assert report.intonation.similarity == 0.0
        assert report.assessment is None
        assert report.overall_score is None
        assert report.overall_feedback is None

    def test_analyze_resets_contours(self, session):
        session.play_native(glide(160.0, 320.0))
        session.wait_for_playback(timeout=5.0)
        session.analyze()
        assert len(session.native_contour) == 0
        assert session.last_assessment is None

    def test_analyze_publishes_event(self, session):
        received = collect(session, IntonationAnalyzedEvent)
        report = session.analyze()
        assert [e.result for e in received] == [report.intonation]

    def test_analyze_while_playing(self, session):
        finished = collect(session, PlaybackFinishedEvent)
        session.play_native(glide(160.0, 320.0, realtime=True))

        with pytest.raises(SessionStateError):
            session.analyze()

        session.stop_playback()
        assert not session.is_playing
        assert finished[-1].stopped_early is True

    def test_missing_native_audio(self, session):
        session.change_sample(2)
        with pytest.raises(SampleNotFoundError):
            session.play_native()


class TestRecording:
    def test_assessment_and_feedback(self, session):
        completed = collect(session, AssessmentCompletedEvent)
        stopped = collect(session, RecordingStoppedEvent)

        result = record(session, glide(160.0, 320.0, source_id="user"))
        report = session.analyze()

        assert result is RESULT
        assert [e.result for e in completed] == [RESULT]
        assert stopped[0].pitch_samples == 19
        assert report.assessment is RESULT
        assert report.overall_score == 89
        assert report.overall_feedback.tier == FeedbackTier.GOOD
        assert list(report.word_suggestions) == ["world"]
        assert len(report.word_suggestions["world"]) == 3

    def test_reference_text_and_path_passed_to_assessor(self, app_config, library):
        assessor = FakeAssessor()
        session = PracticeSession(app_config, library, assessor=assessor)
        record(session, glide(200.0, 200.0), audio_path="/tmp/take.wav")
        assert assessor.calls == [("Hello world.", "/tmp/take.wav")]

    def test_partials_are_relayed(self, session):
        received = collect(session, RecognizingEvent)
        record(session, glide(200.0, 200.0))
        assert [e.text for e in received] == ["hello"]

    def test_microphone_mode_stops_stream(self, session):
        session.start_recording(glide(200.0, 200.0), audio_path=None)
        assert session.stop_recording() is RESULT

    def test_double_start(self, session):
        session.start_recording(glide(200.0, 200.0))
        with pytest.raises(SessionStateError, match="already"):
            session.start_recording(glide(200.0, 200.0))
        session.stop_recording()

    def test_stop_is_idempotent(self, session):
        first = record(session, glide(200.0, 200.0))
        assert session.stop_recording() is first
        assert not session.is_recording

    def test_stop_without_recording(self, session):
        assert session.stop_recording() is None

    def test_canceled_assessment_propagates(self, app_config, library):
        assessor = FakeAssessor(result=None, error=AssessmentCanceledError("denied", reason="Error"))
        session = PracticeSession(app_config, library, assessor=assessor)

        with pytest.raises(AssessmentCanceledError, match="denied"):
            record(session, glide(200.0, 200.0))
        assert not session.is_recording

    def test_assessment_timeout_cancels_stream(self, app_config, library):
        config = replace(app_config, assessment=replace(app_config.assessment, max_wait_s=0.05))
        session = PracticeSession(config, library, assessor=FakeAssessor(finish=False))

        with pytest.raises(AssessmentTimeoutError):
            record(session, glide(200.0, 200.0))
        assert session.last_assessment is None

    def test_auto_stop(self, app_config, library):
        config = replace(app_config, recording=replace(app_config.recording, auto_stop_s=0.1))
        session = PracticeSession(config, library, assessor=FakeAssessor())
        session.start_recording(glide(200.0, 200.0, realtime=True))

        deadline = time.monotonic() + 5.0
        while session.last_assessment is None and time.monotonic() < deadline:
            time.sleep(0.02)

        assert not session.is_recording
        assert session.last_assessment is RESULT
        session.close()


class TestSampleSelection:
    def test_initial_sample(self, session):
        assert session.sample.index == 1
        assert session.sample.text == "Hello world."

    def test_explicit_initial_sample(self, app_config, library):
        session = PracticeSession(app_config, library, sample_index=2)
        assert session.sample.index == 2

    def test_change_sample_resets_state(self, session):
        changed = collect(session, SampleChangedEvent)
        session.play_native(glide(160.0, 320.0))
        session.wait_for_playback(timeout=5.0)

        sample = session.change_sample(2)

        assert sample.index == 2
        assert len(session.native_contour) == 0
        assert [e.sample for e in changed] == [sample]

    def test_change_sample_while_recording(self, session):
        session.start_recording(glide(200.0, 200.0))
        with pytest.raises(SessionStateError):
            session.change_sample(2)
        session.stop_recording()

    def test_change_sample_from_playback_finished_handler(self, session):
        errors = []
        changed = collect(session, SampleChangedEvent)

        def next_sample(event):
            try:
                session.change_sample(2)
            except Exception as e:  # the bus only logs handler errors
                errors.append(e)

        session.events.subscribe(PlaybackFinishedEvent, next_sample)
        session.play_native(glide(160.0, 320.0))

        deadline = time.monotonic() + 5.0
        while not (changed or errors) and time.monotonic() < deadline:
            time.sleep(0.02)

        assert errors == []
        assert session.sample.index == 2
        assert len(changed) == 1

    def test_replay_from_playback_finished_handler(self, session):
        errors = []
        finished = collect(session, PlaybackFinishedEvent)

        def replay(event):
            if len(finished) > 1:
                return
            try:
                session.play_native(glide(160.0, 320.0))
            except Exception as e:
                errors.append(e)

        session.events.subscribe(PlaybackFinishedEvent, replay)
        session.play_native(glide(160.0, 320.0))

        deadline = time.monotonic() + 5.0
        while len(finished) < 2 and not errors and time.monotonic() < deadline:
            time.sleep(0.02)
        assert session.wait_for_playback(timeout=5.0)

        assert errors == []
        assert len(finished) == 2
        assert len(session.native_contour) == finished[1].pitch_samples

    def test_unknown_sample(self, session):
        with pytest.raises(SampleNotFoundError):
            session.change_sample(42)


def test_reset_clears_everything(session):
    session.play_native(glide(160.0, 320.0))
    session.wait_for_playback(timeout=5.0)
    session.start_recording(glide(200.0, 200.0, realtime=True))

    session.reset()

    assert not session.is_recording
    assert not session.is_capturing
    assert len(session.native_contour) == 0
    assert len(session.user_contour) == 0
