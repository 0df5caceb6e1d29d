from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace

from app.core.config import Settings


@dataclass(frozen=True)
class QualityPolicy:
    """Numeric policy for scoring and feedback.

    Divisors are empirical calibration constants mapping raw statistics onto
    0-100. Weights combine the three metrics; sharpness carries the most
    weight because focus defects cannot be fixed after capture.
    """

    brightness_divisor: float = 255.0
    contrast_divisor: float = 128.0
    sharpness_divisor: float = 50.0

    brightness_weight: float = 0.3
    contrast_weight: float = 0.3
    sharpness_weight: float = 0.4

    pass_score: int = 60
    excellent_score: int = 80
    fair_score: int = 40

    low_brightness: int = 30
    high_brightness: int = 85
    low_contrast: int = 25
    low_sharpness: int = 40

    @classmethod
    def from_settings(cls, settings: Settings) -> QualityPolicy:
        return cls(
            brightness_divisor=settings.quality_brightness_divisor,
            contrast_divisor=settings.quality_contrast_divisor,
            sharpness_divisor=settings.quality_sharpness_divisor,
            brightness_weight=settings.quality_brightness_weight,
            contrast_weight=settings.quality_contrast_weight,
            sharpness_weight=settings.quality_sharpness_weight,
            pass_score=settings.quality_pass_score,
            excellent_score=settings.quality_excellent_score,
            fair_score=settings.quality_fair_score,
            low_brightness=settings.quality_low_brightness,
            high_brightness=settings.quality_high_brightness,
            low_contrast=settings.quality_low_contrast,
            low_sharpness=settings.quality_low_sharpness,
        )

    def with_overrides(self, overrides: dict) -> QualityPolicy:
        known = {f.name for f in fields(self)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise ValueError(f"Unknown quality policy keys: {', '.join(unknown)}")
        return replace(self, **overrides)

    def as_dict(self) -> dict[str, float | int]:
        return asdict(self)

    def problems(self) -> list[str]:
        errors: list[str] = []
        for name in ("brightness_divisor", "contrast_divisor", "sharpness_divisor"):
            if getattr(self, name) <= 0:
                errors.append(f"{name} must be greater than 0")

        weights = (self.brightness_weight, self.contrast_weight, self.sharpness_weight)
        if any(w < 0 for w in weights):
            errors.append("metric weights must be non-negative")
        if abs(sum(weights) - 1.0) > 1e-6:
            errors.append(f"metric weights must sum to 1.0, got {sum(weights):.6f}")

        for name in (
            "pass_score",
            "excellent_score",
            "fair_score",
            "low_brightness",
            "high_brightness",
            "low_contrast",
            "low_sharpness",
        ):
            value = getattr(self, name)
            if not 0 <= value <= 100:
                errors.append(f"{name} must be within [0, 100], got {value}")

        if not self.fair_score < self.pass_score <= self.excellent_score:
            errors.append("score bands must satisfy fair_score < pass_score <= excellent_score")
        if self.low_brightness >= self.high_brightness:
            errors.append("low_brightness must be below high_brightness")
        return errors


DEFAULT_QUALITY_POLICY = QualityPolicy()
