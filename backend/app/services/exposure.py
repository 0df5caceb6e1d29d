from __future__ import annotations

from dataclasses import dataclass

import cv2
import numpy as np

from app.core.enums import CheckVerdict
from app.services.decoder import PixelBuffer, decode_image

UNDER_EXPOSED_LUMINANCE = 10
OVER_EXPOSED_LUMINANCE = 245


@dataclass(frozen=True)
class ImageQualityCheck:
    is_blurry: bool
    focus_score: float
    is_over_exposed: bool
    is_under_exposed: bool

    @property
    def issues(self) -> list[str]:
        found: list[str] = []
        if self.is_blurry:
            found.append("blurry")
        if self.is_over_exposed:
            found.append("overexposed")
        if self.is_under_exposed:
            found.append("underexposed")
        return found

    @property
    def verdict(self) -> CheckVerdict:
        return CheckVerdict.FAIL if self.issues else CheckVerdict.PASS

    @property
    def reason(self) -> str:
        issues = self.issues
        if not issues:
            return "Image quality is acceptable"
        return f"Image quality issues detected: {', '.join(issues)}"


def compute_focus_score(gray: np.ndarray) -> float:
    """Spread of forward gradients around the mean grey level, per pixel.

    Only interior pixels contribute, but the sum is normalized by the full
    pixel count.
    """
    gray = gray.astype(np.float64)
    height, width = gray.shape
    mean = float(gray.mean())

    current = gray[1 : height - 1, 1 : width - 1]
    right = gray[1 : height - 1, 2:width]
    below = gray[2:height, 1 : width - 1]
    gradient = np.abs(current - right) + np.abs(current - below)
    return float(np.sum((gradient - mean) ** 2) / (width * height))


def exposure_ratios(buffer: PixelBuffer) -> tuple[float, float]:
    pixels = buffer.pixels.astype(np.float64)
    if buffer.channels >= 3:
        luminance = 0.299 * pixels[:, :, 0] + 0.587 * pixels[:, :, 1] + 0.114 * pixels[:, :, 2]
    else:
        luminance = pixels[:, :, 0]
    total = luminance.size
    under = float(np.count_nonzero(luminance < UNDER_EXPOSED_LUMINANCE)) / total
    over = float(np.count_nonzero(luminance > OVER_EXPOSED_LUMINANCE)) / total
    return under, over


def check_image_quality(
    image_bytes: bytes,
    *,
    blur_threshold: float = 100.0,
    exposure_ratio_threshold: float = 0.01,
    content_type: str | None = None,
    max_pixels: int | None = None,
) -> ImageQualityCheck:
    buffer = decode_image(image_bytes, content_type=content_type, max_pixels=max_pixels)
    if buffer.channels == 1:
        gray = buffer.pixels[:, :, 0]
    else:
        gray = cv2.cvtColor(buffer.pixels[:, :, :3].copy(), cv2.COLOR_RGB2GRAY)

    focus_score = compute_focus_score(gray)
    under, over = exposure_ratios(buffer)

    return ImageQualityCheck(
        is_blurry=focus_score < blur_threshold,
        focus_score=round(focus_score, 4),
        is_over_exposed=over > exposure_ratio_threshold,
        is_under_exposed=under > exposure_ratio_threshold,
    )
