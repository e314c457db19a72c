"""Scores and feedback tiers for a practice attempt."""

from __future__ import annotations

import math
from typing import List, Optional

from configs.settings import FeedbackConfig, config_from_dict
from contracts import AssessmentScores, Feedback, FeedbackTier, WordAssessment

# Thresholds from the configuration schema defaults
DEFAULT_FEEDBACK = config_from_dict({}).feedback

OVERALL_MESSAGES = {
    FeedbackTier.EXCELLENT: "Excellent! Native-like pronunciation.",
    FeedbackTier.GOOD: "Good pronunciation. Keep practicing!",
    FeedbackTier.NEEDS_PRACTICE: "Need more practice. Try listening to the native speaker again.",
}

INTONATION_MESSAGES = {
    FeedbackTier.EXCELLENT: "Great! Your intonation is very close to the native speaker's.",
    FeedbackTier.GOOD: "Good. Your intonation sounds fairly natural.",
    FeedbackTier.NEEDS_PRACTICE: "Listen to the native speaker again and pay more attention to intonation.",
}

SUGGEST_ARTICULATION = "Focus on clear articulation of each syllable"
SUGGEST_ISOLATION = "Practice the word in isolation first"
SUGGEST_SMOOTHNESS = "Work on smoother pronunciation without hesitation"


def _tier(score: float, excellent: float, good: float) -> FeedbackTier:
    if score >= excellent:
        return FeedbackTier.EXCELLENT
    if score >= good:
        return FeedbackTier.GOOD
    return FeedbackTier.NEEDS_PRACTICE


def overall_score(scores: AssessmentScores) -> int:
    """Mean of the four sub-scores, rounded half up to an integer percentage."""
    total = scores.accuracy + scores.fluency + scores.pronunciation + scores.completeness
    return int(math.floor(total / 4 + 0.5))


def overall_feedback(score: float, config: FeedbackConfig = DEFAULT_FEEDBACK) -> Feedback:
    tier = _tier(score, config.overall_excellent, config.overall_good)
    return Feedback(tier=tier, message=OVERALL_MESSAGES[tier])


def intonation_feedback(similarity: float, config: FeedbackConfig = DEFAULT_FEEDBACK) -> Feedback:
    tier = _tier(similarity, config.intonation_excellent, config.intonation_good)
    return Feedback(tier=tier, message=INTONATION_MESSAGES[tier])


def score_band(score: Optional[float], config: FeedbackConfig = DEFAULT_FEEDBACK) -> str:
    """Colour band for a single score: "good", "fair" or "poor"."""
    if score is None:
        return "poor"
    if score >= config.band_good:
        return "good"
    if score >= config.band_fair:
        return "fair"
    return "poor"


def word_suggestions(word: WordAssessment, config: FeedbackConfig = DEFAULT_FEEDBACK) -> List[str]:
    """Improvement tips for a word whose accuracy is below the threshold."""
    if word.accuracy_score >= config.word_suggestion_below:
        return []
    tips = [SUGGEST_ARTICULATION, SUGGEST_ISOLATION]
    if word.fluency_score is not None and word.fluency_score < config.word_suggestion_below:
        tips.append(SUGGEST_SMOOTHNESS)
    return tips
