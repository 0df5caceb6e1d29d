from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from app.core.enums import QualityStatus
from app.services.quality_policy import QualityPolicy
from app.services.scoring import ScoredMetrics

INCREASE_LIGHTING = "Move to brighter lighting or use flash"
REDUCE_LIGHTING = "Reduce lighting or move away from direct light"
IMPROVE_CONTRAST = "Improve lighting contrast for better detail"
IMPROVE_FOCUS = "Hold camera steady and ensure proper focus"

EXCELLENT_FEEDBACK = "Excellent photo quality"
GOOD_FEEDBACK = "Good photo quality"
FAIR_FEEDBACK = "Fair quality - consider retaking"
POOR_FEEDBACK = "Poor quality - retake recommended"


@dataclass(frozen=True)
class Feedback:
    status: QualityStatus
    feedback: str
    recommendations: tuple[str, ...]


@dataclass(frozen=True)
class FeedbackRule:
    name: str
    message: str
    fires: Callable[[ScoredMetrics, QualityPolicy], bool]


# Evaluated in this order; each rule is independent of the others.
FEEDBACK_RULES: tuple[FeedbackRule, ...] = (
    FeedbackRule(
        name="brightness_low",
        message=INCREASE_LIGHTING,
        fires=lambda m, p: m.brightness_level < p.low_brightness,
    ),
    FeedbackRule(
        name="brightness_high",
        message=REDUCE_LIGHTING,
        fires=lambda m, p: m.brightness_level > p.high_brightness,
    ),
    FeedbackRule(
        name="contrast_low",
        message=IMPROVE_CONTRAST,
        fires=lambda m, p: m.contrast_score < p.low_contrast,
    ),
    FeedbackRule(
        name="sharpness_low",
        message=IMPROVE_FOCUS,
        fires=lambda m, p: m.sharpness_rating < p.low_sharpness,
    ),
)


def summarize_score(score: int, policy: QualityPolicy) -> str:
    if score >= policy.excellent_score:
        return EXCELLENT_FEEDBACK
    if score >= policy.pass_score:
        return GOOD_FEEDBACK
    if score >= policy.fair_score:
        return FAIR_FEEDBACK
    return POOR_FEEDBACK


def build_feedback(metrics: ScoredMetrics, policy: QualityPolicy) -> Feedback:
    recommendations = tuple(rule.message for rule in FEEDBACK_RULES if rule.fires(metrics, policy))
    status = QualityStatus.PASS if metrics.quality_score >= policy.pass_score else QualityStatus.FAIL
    return Feedback(
        status=status,
        feedback=summarize_score(metrics.quality_score, policy),
        recommendations=recommendations,
    )
