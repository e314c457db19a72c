"""Custom exception classes for Pronunciation Coach."""

from __future__ import annotations

from typing import Optional


class PronunciationCoachError(Exception):
    """Base exception for all Pronunciation Coach errors."""

    pass


class ConfigError(PronunciationCoachError):
    """Base exception for configuration errors."""

    pass


class InvalidConfigError(ConfigError):
    """Raised when configuration file is invalid or corrupted."""

    pass


class ConfigValidationError(ConfigError):
    """Raised when configuration fails schema validation."""

    def __init__(self, message: str, validation_errors: Optional[list] = None):
        self.validation_errors = validation_errors or []
        super().__init__(message)


class AudioError(PronunciationCoachError):
    """Base exception for audio capture and decoding errors."""

    def __init__(self, message: str, source: Optional[str] = None):
        self.source = source
        super().__init__(message)


class AudioDecodeError(AudioError):
    """Raised when an audio file cannot be read or decoded."""

    pass


class AudioDeviceError(AudioError):
    """Raised when an input device cannot be opened or fails while recording."""

    pass


class AssessmentError(PronunciationCoachError):
    """Base exception for pronunciation assessment errors."""

    pass


class AssessmentCanceledError(AssessmentError):
    """Raised when the assessment service cancels recognition with an error."""

    def __init__(self, message: str, reason: Optional[str] = None, details: Optional[str] = None):
        self.reason = reason
        self.details = details
        super().__init__(message)


class AssessmentTimeoutError(AssessmentError):
    """Raised when no final assessment arrives within the allowed time."""

    pass


class SessionError(PronunciationCoachError):
    """Base exception for practice session errors."""

    pass


class SessionStateError(SessionError):
    """Raised when a session operation is not valid in the current state."""

    pass


class SampleNotFoundError(SessionError):
    """Raised when a practice sample or its native audio does not exist."""

    def __init__(self, message: str, sample_index: Optional[int] = None):
        self.sample_index = sample_index
        super().__init__(message)
