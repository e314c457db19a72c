"""Practice session: playback, recording, assessment, and analysis.

All state for one learner lives on a ``PracticeSession`` instance, so
several sessions can run side by side. Capture runs on worker threads
that feed pitch estimates into the session's contours; the contours are
only read by :meth:`PracticeSession.analyze` once every capture has
stopped.
"""

from __future__ import annotations

import threading
import time
from pathlib import Path
from typing import Callable, Optional, Union

from analysis.contour import PitchContour
from analysis.contour_similarity import compute_contour_similarity
from analysis.pitch_estimator import estimate_pitch
from app.events import (
    AssessmentCompletedEvent,
    EventBus,
    IntonationAnalyzedEvent,
    PlaybackFinishedEvent,
    PlaybackStartedEvent,
    RecognizingEvent,
    RecordingStartedEvent,
    RecordingStoppedEvent,
    SampleChangedEvent,
)
from capture import AudioSource, FileAudioSource
from configs.samples import SampleLibrary
from configs.settings import AppConfig
from contracts import AssessmentResult, IntonationResult, PracticeReport, PracticeSample, RecognitionUpdate
from exceptions import AssessmentTimeoutError, PronunciationCoachError, SessionStateError
from integrations import AssessmentStream, NullAssessor, PronunciationAssessor
from log_config.logger import get_logger, log_performance
from metrics.scoring import intonation_feedback, overall_feedback, overall_score, word_suggestions

logger = get_logger(__name__)


def _join(thread: Optional[threading.Thread], timeout: Optional[float] = None) -> None:
    # Event handlers run on capture and relay threads and may stop their own thread
    if thread is not None and thread is not threading.current_thread():
        thread.join(timeout)


class _CaptureWorker(threading.Thread):
    """Reads frames from an opened source into a contour until stopped or exhausted."""

    def __init__(
        self,
        source: AudioSource,
        contour: PitchContour,
        on_done: Optional[Callable[["_CaptureWorker"], None]] = None,
    ) -> None:
        super().__init__(name=f"capture-{contour.label}", daemon=True)
        self.source = source
        self.contour = contour
        self.frames_read = 0
        self.error: Optional[PronunciationCoachError] = None
        self.started_at = time.monotonic()
        self.stopped_at: Optional[float] = None
        self._on_done = on_done
        self._stop_event = threading.Event()

    @property
    def stopped_early(self) -> bool:
        return self._stop_event.is_set()

    @property
    def duration_s(self) -> float:
        end = self.stopped_at if self.stopped_at is not None else time.monotonic()
        return end - self.started_at

    def stop(self) -> None:
        self._stop_event.set()

    def run(self) -> None:
        try:
            while not self._stop_event.is_set():
                frame = self.source.read_frame()
                if frame is None:
                    break
                self.contour.append(estimate_pitch(frame.samples, frame.sample_rate))
                self.frames_read += 1
        except PronunciationCoachError as e:
            self.error = e
            logger.error(f"Capture for {self.contour.label} contour failed: {e}")
        finally:
            self.source.close()
            self.stopped_at = time.monotonic()
            logger.debug(
                f"Capture {self.contour.label} ended: {self.frames_read} frames, "
                f"{len(self.contour)} voiced, early={self.stopped_early}"
            )
            if self._on_done is not None:
                self._on_done(self)


class PracticeSession:
    """One learner practicing one sample text at a time."""

    def __init__(
        self,
        config: AppConfig,
        library: SampleLibrary,
        assessor: Optional[PronunciationAssessor] = None,
        event_bus: Optional[EventBus] = None,
        sample_index: Optional[int] = None,
    ) -> None:
        self._config = config
        self._library = library
        self._assessor = assessor or NullAssessor()
        self.events = event_bus or EventBus()

        self.native_contour = PitchContour("native")
        self.user_contour = PitchContour("user")
        self.last_assessment: Optional[AssessmentResult] = None
        self.last_error: Optional[PronunciationCoachError] = None

        self._sample = library.get(sample_index) if sample_index is not None else library.first()
        self._lock = threading.RLock()
        self._playback: Optional[_CaptureWorker] = None
        self._recording: Optional[_CaptureWorker] = None
        self._stream: Optional[AssessmentStream] = None
        self._stream_reads_file = False
        self._relay: Optional[threading.Thread] = None
        self._auto_stop: Optional[threading.Timer] = None

    # ------------------------------------------------------------------ state

    @property
    def sample(self) -> PracticeSample:
        return self._sample

    @property
    def is_playing(self) -> bool:
        worker = self._playback
        return worker is not None and worker.is_alive()

    @property
    def is_recording(self) -> bool:
        with self._lock:
            return self._recording is not None

    @property
    def is_capturing(self) -> bool:
        worker = self._recording
        return self.is_playing or (worker is not None and worker.is_alive())

    def change_sample(self, index: int) -> PracticeSample:
        """Switch practice text; clears both contours and any pending result."""
        if self.is_recording:
            raise SessionStateError("Cannot change sample while recording")
        sample = self._library.get(index)
        self.stop_playback()
        with self._lock:
            self._sample = sample
            self.native_contour.reset()
            self.user_contour.reset()
            self.last_assessment = None
        logger.info(f"Practice sample changed to {index}")
        self.events.publish(SampleChangedEvent(sample=sample))
        return sample

    # --------------------------------------------------------------- playback

    def play_native(self, source: Optional[AudioSource] = None, play_audio: bool = False) -> None:
        """Start collecting the native contour from the sample's recording.

        Args:
            source: Audio to analyze instead of the sample's native file
            play_audio: Also play the file through the default output device
        """
        self.stop_playback()
        if source is None:
            pitch = self._config.pitch
            source = FileAudioSource(
                self._library.native_audio_path(self._sample.index),
                frame_size=pitch.frame_size,
                poll_interval_ms=pitch.poll_interval_ms,
                source_id="native",
                play=play_audio,
            )

        with self._lock:
            self.native_contour.reset()
            source.open()
            worker = _CaptureWorker(source, self.native_contour, on_done=self._playback_done)
            self._playback = worker
        self.events.publish(PlaybackStartedEvent(sample_index=self._sample.index, timestamp_ns=time.time_ns()))
        worker.start()

    def _playback_done(self, worker: _CaptureWorker) -> None:
        if worker.error is not None:
            self.last_error = worker.error
        self.events.publish(
            PlaybackFinishedEvent(
                sample_index=self._sample.index,
                pitch_samples=len(worker.contour),
                stopped_early=worker.stopped_early,
            )
        )

    def wait_for_playback(self, timeout: Optional[float] = None) -> bool:
        """Block until native playback ends. Returns False on timeout."""
        worker = self._playback
        if worker is None:
            return True
        _join(worker, timeout)
        return not worker.is_alive()

    def stop_playback(self) -> None:
        with self._lock:
            worker = self._playback
        if worker is None:
            return
        worker.stop()
        _join(worker)

    # -------------------------------------------------------------- recording

    def start_recording(
        self,
        source: AudioSource,
        audio_path: Optional[Union[str, Path]] = None,
    ) -> None:
        """Start capturing the learner and assessing the current sample.

        Args:
            source: Audio source for the user contour
            audio_path: Recording for the assessor to read; None means the
                assessor listens to the default microphone itself

        Raises:
            SessionStateError: If a recording is already in progress
        """
        with self._lock:
            if self._recording is not None:
                raise SessionStateError("Recording already in progress")

            self.user_contour.reset()
            self.last_assessment = None
            source.open()
            worker = _CaptureWorker(source, self.user_contour)
            try:
                stream = self._assessor.start(self._sample.text, audio_path=audio_path)
            except Exception:
                source.close()
                raise

            self._recording = worker
            self._stream = stream
            self._stream_reads_file = audio_path is not None
            self._relay = threading.Thread(
                target=self._relay_updates, args=(stream,), name="assessment-relay", daemon=True
            )

            auto_stop_s = self._config.recording.auto_stop_s
            if auto_stop_s > 0:
                self._auto_stop = threading.Timer(auto_stop_s, self._auto_stop_recording)
                self._auto_stop.daemon = True

        worker.start()
        self._relay.start()
        if self._auto_stop is not None:
            self._auto_stop.start()
        logger.info(f"Recording started for sample {self._sample.index}")
        self.events.publish(RecordingStartedEvent(sample_index=self._sample.index, timestamp_ns=time.time_ns()))

    def _relay_updates(self, stream: AssessmentStream) -> None:
        for event in stream:
            if isinstance(event, RecognitionUpdate):
                self.events.publish(RecognizingEvent(text=event.text))

    def _auto_stop_recording(self) -> None:
        logger.info("Auto-stop timer elapsed")
        try:
            self.stop_recording()
        except PronunciationCoachError as e:
            self.last_error = e
            logger.error(f"Auto-stop failed: {e}")

    def wait_for_recording(self, timeout: Optional[float] = None) -> bool:
        """Block until the recording source is exhausted. Returns False on timeout."""
        worker = self._recording
        if worker is None:
            return True
        _join(worker, timeout)
        return not worker.is_alive()

    def stop_recording(self) -> Optional[AssessmentResult]:
        """Stop capture and collect the final assessment.

        Safe to call more than once; later calls return the last result.

        Raises:
            AssessmentError: If the assessment failed or timed out
        """
        with self._lock:
            worker, stream, relay, timer = self._recording, self._stream, self._relay, self._auto_stop
            reads_file = self._stream_reads_file
            self._recording = None
            self._stream = None
            self._relay = None
            self._auto_stop = None
        if worker is None:
            return self.last_assessment

        if timer is not None:
            timer.cancel()
        worker.stop()
        _join(worker)
        if worker.error is not None:
            self.last_error = worker.error

        self.events.publish(
            RecordingStoppedEvent(
                sample_index=self._sample.index,
                pitch_samples=len(self.user_contour),
                duration_s=worker.duration_s,
            )
        )

        result: Optional[AssessmentResult] = None
        try:
            if not reads_file:
                stream.stop()
            result = stream.result(timeout=self._config.assessment.max_wait_s)
        except AssessmentTimeoutError:
            stream.cancel()
            raise
        finally:
            _join(relay, timeout=1.0)

        self.last_assessment = result
        if result is not None:
            logger.info(f"Assessment received: pronunciation {result.scores.pronunciation:.1f}")
            self.events.publish(AssessmentCompletedEvent(sample_index=self._sample.index, result=result))
        return result

    # --------------------------------------------------------------- analysis

    def analyze(self) -> PracticeReport:
        """Score the attempt and reset both contours.

        Raises:
            SessionStateError: While playback or recording is still active
        """
        if self.is_capturing or self.is_recording:
            raise SessionStateError("Stop playback and recording before analyzing")

        started = time.perf_counter()
        feedback_config = self._config.feedback
        with self._lock:
            native = self.native_contour.values
            user = self.user_contour.values
            assessment = self.last_assessment

            similarity = compute_contour_similarity(native, user)
            intonation = IntonationResult(
                similarity=similarity,
                native_sample_count=len(native),
                user_sample_count=len(user),
                feedback=intonation_feedback(similarity, feedback_config),
            )

            score = None
            feedback = None
            suggestions = {}
            if assessment is not None:
                score = overall_score(assessment.scores)
                feedback = overall_feedback(score, feedback_config)
                for word in assessment.words:
                    tips = word_suggestions(word, feedback_config)
                    if tips:
                        suggestions[word.word] = tips

            report = PracticeReport(
                sample_index=self._sample.index,
                reference_text=self._sample.text,
                intonation=intonation,
                assessment=assessment,
                overall_score=score,
                overall_feedback=feedback,
                word_suggestions=suggestions,
            )

            self.native_contour.reset()
            self.user_contour.reset()
            self.last_assessment = None

        log_performance("practice analysis", (time.perf_counter() - started) * 1000.0)
        logger.info(
            f"Sample {report.sample_index}: intonation {similarity:.1f}% "
            f"({len(native)} native / {len(user)} user samples)"
            + (f", overall {score}%" if score is not None else "")
        )
        self.events.publish(IntonationAnalyzedEvent(sample_index=report.sample_index, result=intonation))
        return report

    def reset(self) -> None:
        """Stop all activity and discard contours and results."""
        self.stop_playback()
        with self._lock:
            worker, stream, timer = self._recording, self._stream, self._auto_stop
            self._recording = None
            self._stream = None
            self._relay = None
            self._auto_stop = None
        if timer is not None:
            timer.cancel()
        if worker is not None:
            worker.stop()
            _join(worker)
        if stream is not None:
            stream.cancel()
        with self._lock:
            self.native_contour.reset()
            self.user_contour.reset()
            self.last_assessment = None

    close = reset
