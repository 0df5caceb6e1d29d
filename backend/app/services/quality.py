from __future__ import annotations

import logging
from concurrent.futures import Executor
from dataclasses import dataclass
from typing import Callable

from app.core.enums import FailurePolicy, QualityStatus
from app.schemas.quality import QualityMetrics
from app.services.decoder import decode_image
from app.services.edge_energy import estimate_edge_energy
from app.services.errors import ComputeError, DecodeError, QualityAnalysisError
from app.services.feedback import build_feedback
from app.services.image_stats import collect_channel_statistics
from app.services.quality_policy import DEFAULT_QUALITY_POLICY, QualityPolicy
from app.services.scoring import score_metrics

logger = logging.getLogger(__name__)

NEUTRAL_QUALITY_METRICS = QualityMetrics(
    quality_score=50,
    brightness_level=50,
    contrast_score=50,
    sharpness_rating=50,
    status=QualityStatus.PASS,
    feedback="Quality analysis unavailable",
    recommendations=(),
)

FAILED_QUALITY_METRICS = QualityMetrics(
    quality_score=0,
    brightness_level=0,
    contrast_score=0,
    sharpness_rating=0,
    status=QualityStatus.FAIL,
    feedback="Quality analysis failed - retake recommended",
    recommendations=(),
)

FailureReporter = Callable[[QualityAnalysisError], None]


@dataclass(frozen=True)
class QualityAnalysisOutcome:
    """Either computed metrics or the error that stopped the pipeline."""

    metrics: QualityMetrics | None = None
    error: QualityAnalysisError | None = None

    @property
    def ok(self) -> bool:
        return self.metrics is not None


def run_quality_pipeline(
    image_bytes: bytes,
    *,
    policy: QualityPolicy = DEFAULT_QUALITY_POLICY,
    content_type: str | None = None,
    max_pixels: int | None = None,
    executor: Executor | None = None,
) -> QualityMetrics:
    """Decode, measure, score and build feedback. Raises on failure."""
    buffer = decode_image(image_bytes, content_type=content_type, max_pixels=max_pixels)

    if executor is not None:
        stats_future = executor.submit(collect_channel_statistics, buffer)
        edges_future = executor.submit(estimate_edge_energy, buffer)
        stats = stats_future.result()
        edges = edges_future.result()
    else:
        stats = collect_channel_statistics(buffer)
        edges = estimate_edge_energy(buffer)

    scored = score_metrics(stats, edges, policy)
    feedback = build_feedback(scored, policy)

    return QualityMetrics(
        quality_score=scored.quality_score,
        brightness_level=scored.brightness_level,
        contrast_score=scored.contrast_score,
        sharpness_rating=scored.sharpness_rating,
        status=feedback.status,
        feedback=feedback.feedback,
        recommendations=feedback.recommendations,
    )


def evaluate_image_quality(
    image_bytes: bytes,
    *,
    policy: QualityPolicy = DEFAULT_QUALITY_POLICY,
    content_type: str | None = None,
    max_pixels: int | None = None,
    executor: Executor | None = None,
) -> QualityAnalysisOutcome:
    try:
        metrics = run_quality_pipeline(
            image_bytes,
            policy=policy,
            content_type=content_type,
            max_pixels=max_pixels,
            executor=executor,
        )
    except DecodeError as exc:
        logger.warning("Quality analysis skipped, image could not be decoded: %s", exc)
        return QualityAnalysisOutcome(error=exc)
    except ComputeError as exc:
        logger.error("Quality analysis failed: %s", exc, exc_info=exc)
        return QualityAnalysisOutcome(error=exc)
    except Exception as exc:
        logger.exception("Unexpected error during quality analysis")
        wrapped = ComputeError(f"Unexpected error: {exc}")
        wrapped.__cause__ = exc
        return QualityAnalysisOutcome(error=wrapped)
    return QualityAnalysisOutcome(metrics=metrics)


def resolve_outcome(
    outcome: QualityAnalysisOutcome,
    failure_policy: FailurePolicy = FailurePolicy.FAIL_OPEN,
) -> QualityMetrics:
    if outcome.metrics is not None:
        return outcome.metrics
    if FailurePolicy(failure_policy) == FailurePolicy.FAIL_CLOSED:
        return FAILED_QUALITY_METRICS
    return NEUTRAL_QUALITY_METRICS


def analyze_image(
    image_bytes: bytes,
    *,
    policy: QualityPolicy = DEFAULT_QUALITY_POLICY,
    failure_policy: FailurePolicy = FailurePolicy.FAIL_OPEN,
    content_type: str | None = None,
    max_pixels: int | None = None,
    executor: Executor | None = None,
    on_failure: FailureReporter | None = None,
) -> QualityMetrics:
    """Score a photo. Always returns metrics; failures follow ``failure_policy``."""
    outcome = evaluate_image_quality(
        image_bytes,
        policy=policy,
        content_type=content_type,
        max_pixels=max_pixels,
        executor=executor,
    )
    if outcome.error is not None and on_failure is not None:
        try:
            on_failure(outcome.error)
        except Exception:
            logger.exception("Quality failure reporter raised")
    return resolve_outcome(outcome, failure_policy)
