"""Pronunciation assessment provider interface."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Protocol, Union

from configs.settings import AssessmentConfig
from exceptions import AssessmentError
from integrations.assessment_stream import AssessmentStream


class PronunciationAssessor(Protocol):
    """Expected interface for a pronunciation assessment provider."""

    def start(
        self,
        reference_text: str,
        audio_path: Optional[Union[str, Path]] = None,
    ) -> AssessmentStream:
        """Begin assessing speech against ``reference_text``.

        Reads ``audio_path`` when given, otherwise the default microphone.
        """


class NullAssessor:
    """No-op assessor used when cloud assessment is disabled."""

    def start(
        self,
        reference_text: str,
        audio_path: Optional[Union[str, Path]] = None,
    ) -> AssessmentStream:
        stream = AssessmentStream(reference_text)
        stream.finish()
        return stream


def create_assessor(config: AssessmentConfig) -> PronunciationAssessor:
    """Build the assessor selected by ``assessment.provider``."""
    if config.provider == "none":
        return NullAssessor()
    if config.provider == "azure":
        from integrations.azure_speech import AzurePronunciationAssessor

        return AzurePronunciationAssessor(config)
    raise AssessmentError(f"Unknown assessment provider: {config.provider}")
