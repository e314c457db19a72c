"""Parse pronunciation assessment responses into result contracts."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Sequence, Union

from contracts import AssessmentResult, AssessmentScores, WordAssessment
from exceptions import AssessmentError

# Service offsets and durations are in 100-nanosecond ticks
_TICKS_PER_MS = 10_000.0


def _ticks_to_ms(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        return max(0.0, float(value)) / _TICKS_PER_MS
    except (TypeError, ValueError):
        return None


def _score(block: Dict[str, Any], key: str) -> float:
    value = block.get(key)
    if value is None:
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        raise AssessmentError(f"Non-numeric {key} in assessment response: {value!r}")


def _parse_word(entry: Dict[str, Any]) -> WordAssessment:
    block = entry.get("PronunciationAssessment") or entry
    fluency = block.get("FluencyScore")
    return WordAssessment(
        word=str(entry.get("Word", "")),
        accuracy_score=_score(block, "AccuracyScore"),
        fluency_score=float(fluency) if fluency is not None else None,
        error_type=str(block.get("ErrorType", "None")),
        offset_ms=_ticks_to_ms(entry.get("Offset")),
        duration_ms=_ticks_to_ms(entry.get("Duration")),
    )


def parse_assessment_json(payload: Union[str, bytes, Dict[str, Any]]) -> AssessmentResult:
    """Build an AssessmentResult from the detailed JSON of one segment.

    Raises:
        AssessmentError: If the payload is malformed or has no hypotheses
    """
    if isinstance(payload, (str, bytes)):
        try:
            payload = json.loads(payload)
        except ValueError as e:
            raise AssessmentError(f"Assessment response is not valid JSON: {e}") from e
    if not isinstance(payload, dict):
        raise AssessmentError(f"Assessment response must be an object, got {type(payload).__name__}")

    nbest = payload.get("NBest")
    if not isinstance(nbest, list) or not nbest or not isinstance(nbest[0], dict):
        raise AssessmentError("Assessment response has no NBest hypotheses")
    best = nbest[0]
    block = best.get("PronunciationAssessment") or best

    scores = AssessmentScores(
        accuracy=_score(block, "AccuracyScore"),
        fluency=_score(block, "FluencyScore"),
        completeness=_score(block, "CompletenessScore"),
        pronunciation=_score(block, "PronScore"),
    )
    words = [_parse_word(entry) for entry in best.get("Words", []) if isinstance(entry, dict)]
    text = payload.get("DisplayText") or best.get("Display") or best.get("Lexical") or ""
    return AssessmentResult(text=str(text), scores=scores, words=words, raw=payload)


def merge_results(segments: Sequence[AssessmentResult]) -> Optional[AssessmentResult]:
    """Combine per-segment results into one assessment for the whole take.

    Sub-scores are averaged weighted by each segment's word count.
    """
    if not segments:
        return None
    if len(segments) == 1:
        return segments[0]

    weights = [max(1, len(segment.words)) for segment in segments]
    total = float(sum(weights))

    def weighted(attr: str) -> float:
        return sum(getattr(s.scores, attr) * w for s, w in zip(segments, weights)) / total

    words: List[WordAssessment] = []
    for segment in segments:
        words.extend(segment.words)

    return AssessmentResult(
        text=" ".join(s.text for s in segments if s.text),
        scores=AssessmentScores(
            accuracy=weighted("accuracy"),
            fluency=weighted("fluency"),
            completeness=weighted("completeness"),
            pronunciation=weighted("pronunciation"),
        ),
        words=words,
        raw={"segments": [s.raw for s in segments]},
    )
