from __future__ import annotations

import math
from dataclasses import dataclass

from app.services.edge_energy import EdgeResponse
from app.services.errors import ComputeError
from app.services.image_stats import ChannelStatistics
from app.services.quality_policy import QualityPolicy


@dataclass(frozen=True)
class ScoredMetrics:
    quality_score: int
    brightness_level: int
    contrast_score: int
    sharpness_rating: int


def round_half_up(value: float) -> int:
    if not math.isfinite(value):
        raise ComputeError(f"Non-finite metric value {value!r}")
    return int(math.floor(value + 0.5))


def clamp_0_100(value: int) -> int:
    return max(0, min(100, value))


def _to_percent(raw: float, divisor: float) -> int:
    return clamp_0_100(round_half_up(raw / divisor * 100))


def score_metrics(
    stats: ChannelStatistics,
    edges: EdgeResponse,
    policy: QualityPolicy,
) -> ScoredMetrics:
    try:
        brightness = _to_percent(stats.mean_of_means, policy.brightness_divisor)
        contrast = _to_percent(stats.mean_of_stdevs, policy.contrast_divisor)
        sharpness = _to_percent(edges.stdev, policy.sharpness_divisor)
    except ZeroDivisionError as exc:
        raise ComputeError("Calibration divisor must be non-zero") from exc

    combined = (
        brightness * policy.brightness_weight
        + contrast * policy.contrast_weight
        + sharpness * policy.sharpness_weight
    )
    return ScoredMetrics(
        quality_score=clamp_0_100(round_half_up(combined)),
        brightness_level=brightness,
        contrast_score=contrast,
        sharpness_rating=sharpness,
    )
