from __future__ import annotations

from dataclasses import dataclass
from io import BytesIO

import numpy as np
from PIL import Image

from app.services.errors import DecodeError

DICOM_CONTENT_TYPES = ("application/dicom", "application/dicom+json")
HIGH_DEPTH_MODES = ("I", "F")


@dataclass(frozen=True)
class PixelBuffer:
    """Decoded image as a read-only ``height x width x channels`` uint8 array."""

    pixels: np.ndarray

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def channels(self) -> int:
        return int(self.pixels.shape[2])

    @classmethod
    def from_array(cls, arr: np.ndarray) -> PixelBuffer:
        arr = np.asarray(arr)
        if arr.ndim == 2:
            arr = arr[:, :, np.newaxis]
        if arr.ndim != 3 or arr.shape[0] == 0 or arr.shape[1] == 0 or arr.shape[2] == 0:
            raise DecodeError(f"Unexpected pixel array shape {arr.shape}")
        if arr.dtype != np.uint8:
            raise DecodeError(f"Unexpected pixel dtype {arr.dtype}")
        pixels = np.array(arr, copy=True)
        pixels.setflags(write=False)
        return cls(pixels=pixels)


def _is_dicom(content_type: str | None) -> bool:
    return bool(content_type) and content_type.lower().startswith(DICOM_CONTENT_TYPES)


def _check_pixel_count(width: int, height: int, max_pixels: int | None) -> None:
    if max_pixels is not None and width * height > max_pixels:
        raise DecodeError(f"Image has {width * height} pixels, limit is {max_pixels}")


def _normalize_to_uint8(arr: np.ndarray) -> np.ndarray:
    arr = arr.astype(np.float32)
    arr = arr - arr.min()
    if arr.max() > 0:
        arr = arr / arr.max()
    return (arr * 255).astype(np.uint8)


def _high_depth_to_uint8(img: Image.Image) -> np.ndarray:
    """Map ``I;16*``/``I``/``F`` samples onto 0..255 without clipping."""
    arr = np.array(img)
    if img.mode.startswith("I;16"):
        scaled = arr.astype(np.float32) / 257.0
    elif img.mode == "I" and arr.min() >= 0 and arr.max() <= 65535:
        scaled = arr.astype(np.float32) / 257.0
    elif img.mode == "F" and arr.min() >= 0.0 and arr.max() <= 1.0:
        scaled = arr.astype(np.float32) * 255.0
    else:
        return _normalize_to_uint8(arr)
    return np.clip(np.rint(scaled), 0, 255).astype(np.uint8)


def _decode_dicom(image_bytes: bytes, max_pixels: int | None) -> np.ndarray:
    try:
        import pydicom

        ds = pydicom.dcmread(BytesIO(image_bytes))
        arr = ds.pixel_array.astype(np.float32)
    except Exception as exc:
        raise DecodeError("Unable to decode DICOM payload") from exc

    # Multi-frame studies: score the first frame only.
    if arr.ndim == 4 or (arr.ndim == 3 and arr.shape[-1] not in (3, 4)):
        arr = arr[0]
    if arr.ndim == 3:
        arr = arr[:, :, :3]
    if arr.ndim not in (2, 3):
        raise DecodeError(f"Unsupported DICOM pixel layout {arr.shape}")

    _check_pixel_count(arr.shape[1], arr.shape[0], max_pixels)

    img = Image.fromarray(_normalize_to_uint8(arr))
    if img.mode != "RGB":
        img = img.convert("RGB")
    return np.array(img)


def _decode_raster(image_bytes: bytes, max_pixels: int | None) -> np.ndarray:
    try:
        with Image.open(BytesIO(image_bytes)) as img:
            width, height = img.size
            _check_pixel_count(width, height, max_pixels)
            img.load()
            if img.mode in HIGH_DEPTH_MODES or img.mode.startswith("I;16"):
                img = Image.fromarray(_high_depth_to_uint8(img))
            arr = np.array(img.convert("RGB"))
    except DecodeError:
        raise
    except Exception as exc:
        raise DecodeError(f"Unable to decode image payload: {exc}") from exc
    return arr


def decode_image(
    image_bytes: bytes,
    *,
    content_type: str | None = None,
    max_pixels: int | None = None,
) -> PixelBuffer:
    if not image_bytes:
        raise DecodeError("Image payload is empty")

    if _is_dicom(content_type):
        arr = _decode_dicom(image_bytes, max_pixels)
    else:
        arr = _decode_raster(image_bytes, max_pixels)
    return PixelBuffer.from_array(arr)
