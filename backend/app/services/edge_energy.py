from __future__ import annotations

from dataclasses import dataclass

import cv2
import numpy as np

from app.services.convolution import LAPLACIAN_KERNEL, BorderPolicy, convolve2d
from app.services.decoder import PixelBuffer
from app.services.errors import ComputeError


@dataclass(frozen=True)
class EdgeResponse:
    stdev: float


def to_luminance(buffer: PixelBuffer) -> np.ndarray:
    if buffer.channels == 1:
        return buffer.pixels[:, :, 0].astype(np.float32)
    rgb = buffer.pixels[:, :, :3].astype(np.float32)
    return cv2.cvtColor(rgb, cv2.COLOR_RGB2GRAY)


def estimate_edge_energy(buffer: PixelBuffer) -> EdgeResponse:
    """Standard deviation of the Laplacian response; a global sharpness proxy."""
    try:
        gray = to_luminance(buffer)
        response = convolve2d(gray, LAPLACIAN_KERNEL, BorderPolicy.REPLICATE)
        stdev = float(np.std(response))
    except (cv2.error, MemoryError, FloatingPointError, ValueError) as exc:
        raise ComputeError(f"Edge energy estimation failed: {exc}") from exc
    return EdgeResponse(stdev=stdev)
