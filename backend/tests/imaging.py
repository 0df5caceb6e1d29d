from __future__ import annotations

from io import BytesIO

import numpy as np
from PIL import Image


def encode_image(arr: np.ndarray, fmt: str = "PNG") -> bytes:
    img = Image.fromarray(np.asarray(arr, dtype=np.uint8))
    buf = BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


def solid_rgb(value: int | tuple[int, int, int], size: tuple[int, int] = (100, 100)) -> np.ndarray:
    width, height = size
    color = (value, value, value) if isinstance(value, int) else value
    return np.full((height, width, 3), color, dtype=np.uint8)


def checkerboard_rgb(size: int = 100) -> np.ndarray:
    yy, xx = np.indices((size, size))
    plane = ((yy + xx) % 2 * 255).astype(np.uint8)
    return np.stack([plane, plane, plane], axis=-1)
