from __future__ import annotations

from enum import Enum

import cv2
import numpy as np


class BorderPolicy(str, Enum):
    REPLICATE = "replicate"
    REFLECT = "reflect"
    CONSTANT = "constant"


_CV2_BORDERS = {
    BorderPolicy.REPLICATE: cv2.BORDER_REPLICATE,
    BorderPolicy.REFLECT: cv2.BORDER_REFLECT_101,
    BorderPolicy.CONSTANT: cv2.BORDER_CONSTANT,
}

LAPLACIAN_KERNEL = np.array(
    [
        [-1.0, -1.0, -1.0],
        [-1.0, 8.0, -1.0],
        [-1.0, -1.0, -1.0],
    ],
    dtype=np.float64,
)
LAPLACIAN_KERNEL.setflags(write=False)


def convolve2d(
    image: np.ndarray,
    kernel: np.ndarray,
    border: BorderPolicy = BorderPolicy.REPLICATE,
) -> np.ndarray:
    """2D convolution of a single-channel image, same output size as input.

    The kernel is flipped before filtering, so asymmetric kernels behave as a
    true convolution rather than a correlation. ``CONSTANT`` pads with zeros.
    """
    image = np.ascontiguousarray(image, dtype=np.float64)
    kernel = np.ascontiguousarray(kernel, dtype=np.float64)

    if image.ndim != 2 or image.size == 0:
        raise ValueError(f"convolve2d expects a non-empty 2D image, got shape {image.shape}")
    if kernel.ndim != 2 or kernel.shape[0] % 2 == 0 or kernel.shape[1] % 2 == 0:
        raise ValueError(f"Kernel must be 2D with odd dimensions, got shape {kernel.shape}")

    flipped = np.ascontiguousarray(cv2.flip(kernel, -1))
    return cv2.filter2D(
        image,
        cv2.CV_64F,
        flipped,
        borderType=_CV2_BORDERS[BorderPolicy(border)],
    )
