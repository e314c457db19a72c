"""Pronunciation assessment integrations.

The Azure client lives in ``integrations.azure_speech`` and is imported
only when that provider is selected.
"""

from .assessment_parsing import merge_results, parse_assessment_json
from .assessment_stream import AssessmentStream
from .assessor import NullAssessor, PronunciationAssessor, create_assessor

__all__ = [
    "AssessmentStream",
    "NullAssessor",
    "PronunciationAssessor",
    "create_assessor",
    "merge_results",
    "parse_assessment_json",
]
