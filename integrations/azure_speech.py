"""Azure Speech pronunciation assessment client."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional, Union

import azure.cognitiveservices.speech as speechsdk

from configs.settings import AssessmentConfig
from exceptions import AssessmentCanceledError, AssessmentError
from integrations.assessment_parsing import parse_assessment_json
from integrations.assessment_stream import AssessmentStream
from log_config.logger import get_logger

logger = get_logger(__name__)

_TICKS_PER_MS = 10_000.0


class AzurePronunciationAssessor:
    """Continuous recognition with pronunciation assessment enabled.

    Every ``recognizing`` callback becomes a partial update on the stream
    and every ``recognized`` segment a parsed assessment. End-of-stream
    cancellation finishes the stream normally; other cancellations finish
    it with an :class:`AssessmentCanceledError`.
    """

    def __init__(self, config: AssessmentConfig, api_key: Optional[str] = None) -> None:
        key = api_key or os.environ.get(config.key_env)
        if not key:
            raise AssessmentError(f"Speech service key not set; export {config.key_env}")
        self._config = config
        self._speech_config = speechsdk.SpeechConfig(subscription=key, region=config.region)
        self._speech_config.speech_recognition_language = config.language
        logger.info(f"Azure assessor ready: region={config.region}, language={config.language}")

    def _assessment_config(self, reference_text: str) -> "speechsdk.PronunciationAssessmentConfig":
        granularity = getattr(speechsdk.PronunciationAssessmentGranularity, self._config.granularity)
        return speechsdk.PronunciationAssessmentConfig(
            reference_text=reference_text,
            grading_system=speechsdk.PronunciationAssessmentGradingSystem.HundredMark,
            granularity=granularity,
            enable_miscue=self._config.enable_miscue,
        )

    def start(
        self,
        reference_text: str,
        audio_path: Optional[Union[str, Path]] = None,
    ) -> AssessmentStream:
        if audio_path is not None:
            audio_config = speechsdk.audio.AudioConfig(filename=str(audio_path))
        else:
            audio_config = speechsdk.audio.AudioConfig(use_default_microphone=True)

        recognizer = speechsdk.SpeechRecognizer(speech_config=self._speech_config, audio_config=audio_config)
        self._assessment_config(reference_text).apply_to(recognizer)

        stream = AssessmentStream(reference_text, on_stop=recognizer.stop_continuous_recognition)

        def on_recognizing(evt) -> None:
            stream.push_partial(evt.result.text, offset_ms=evt.result.offset / _TICKS_PER_MS)

        def on_recognized(evt) -> None:
            result = evt.result
            if result.reason == speechsdk.ResultReason.NoMatch:
                logger.debug("Segment not recognized (NoMatch)")
                return
            if result.reason != speechsdk.ResultReason.RecognizedSpeech or not result.text:
                return
            raw = result.properties.get(speechsdk.PropertyId.SpeechServiceResponse_JsonResult)
            try:
                stream.push_result(parse_assessment_json(raw))
            except AssessmentError as e:
                logger.warning(f"Skipping unparseable assessment segment: {e}")

        def on_canceled(evt) -> None:
            details = evt.cancellation_details
            if details.reason == speechsdk.CancellationReason.EndOfStream:
                stream.finish()
                return
            stream.finish(
                AssessmentCanceledError(
                    f"Assessment canceled: {details.reason}",
                    reason=str(details.reason),
                    details=details.error_details,
                )
            )

        recognizer.recognizing.connect(on_recognizing)
        recognizer.recognized.connect(on_recognized)
        recognizer.canceled.connect(on_canceled)
        recognizer.session_stopped.connect(lambda evt: stream.finish())

        try:
            recognizer.start_continuous_recognition()
        except RuntimeError as e:
            raise AssessmentError(f"Failed to start recognition: {e}") from e

        source = Path(audio_path).name if audio_path is not None else "microphone"
        logger.info(f"Assessment started ({source}, {len(reference_text.split())} reference words)")
        return stream
