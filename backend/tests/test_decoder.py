from __future__ import annotations

from io import BytesIO

import numpy as np
import pytest
from PIL import Image
from pydicom.dataset import FileDataset, FileMetaDataset
from pydicom.uid import ImplicitVRLittleEndian, generate_uid

from app.services.decoder import PixelBuffer, decode_image
from app.services.errors import DecodeError
from app.services.feedback import INCREASE_LIGHTING
from app.services.quality import analyze_image

SECONDARY_CAPTURE_SOP_CLASS = "1.2.840.10008.5.1.4.1.1.7"


def _encode(img: Image.Image, fmt: str = "PNG") -> bytes:
    buf = BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


def _encode_dicom(frames: np.ndarray) -> bytes:
    meta = FileMetaDataset()
    meta.MediaStorageSOPClassUID = SECONDARY_CAPTURE_SOP_CLASS
    meta.MediaStorageSOPInstanceUID = generate_uid()
    meta.TransferSyntaxUID = ImplicitVRLittleEndian

    ds = FileDataset(None, {}, file_meta=meta, preamble=b"\0" * 128)
    ds.SOPClassUID = meta.MediaStorageSOPClassUID
    ds.SOPInstanceUID = meta.MediaStorageSOPInstanceUID
    ds.Modality = "OT"
    ds.Rows, ds.Columns = (int(n) for n in frames.shape[-2:])
    if frames.ndim == 3:
        ds.NumberOfFrames = int(frames.shape[0])
    ds.SamplesPerPixel = 1
    ds.PhotometricInterpretation = "MONOCHROME2"
    ds.BitsAllocated = 16
    ds.BitsStored = 16
    ds.HighBit = 15
    ds.PixelRepresentation = 0
    ds.PixelData = frames.astype(np.uint16).tobytes()

    buf = BytesIO()
    ds.save_as(buf)
    return buf.getvalue()


def _ramp(size: int = 64) -> np.ndarray:
    return np.tile(np.arange(size, dtype=np.uint16) * 64, (size, 1))


def test_decode_png_reports_dimensions_and_channels():
    data = _encode(Image.new("RGB", (30, 20), (10, 20, 30)))

    buffer = decode_image(data)

    assert (buffer.width, buffer.height, buffer.channels) == (30, 20, 3)
    assert buffer.pixels.dtype == np.uint8
    assert tuple(buffer.pixels[0, 0]) == (10, 20, 30)


def test_decode_drops_alpha_and_expands_greyscale():
    rgba = decode_image(_encode(Image.new("RGBA", (8, 8), (200, 100, 50, 0))))
    grey = decode_image(_encode(Image.new("L", (8, 8), 77)))

    assert rgba.channels == 3
    assert tuple(rgba.pixels[3, 3]) == (200, 100, 50)
    assert grey.channels == 3
    assert np.all(grey.pixels == 77)


def test_decode_jpeg():
    buffer = decode_image(_encode(Image.new("RGB", (16, 16), (128, 128, 128)), fmt="JPEG"))
    assert buffer.channels == 3
    assert abs(int(buffer.pixels.mean()) - 128) <= 2


def test_decoded_pixels_are_read_only():
    buffer = decode_image(_encode(Image.new("RGB", (4, 4))))
    with pytest.raises(ValueError):
        buffer.pixels[0, 0, 0] = 1


@pytest.mark.parametrize("payload", [b"", b"not an image at all", b"\x89PNG\r\n\x1a\n"])
def test_decode_rejects_garbage(payload):
    with pytest.raises(DecodeError):
        decode_image(payload)


def test_decode_rejects_truncated_png():
    rng = np.random.default_rng(7)
    noise = rng.integers(0, 256, size=(64, 64, 3), dtype=np.uint8)
    data = _encode(Image.fromarray(noise))

    with pytest.raises(DecodeError):
        decode_image(data[: len(data) // 2])


def test_decode_enforces_pixel_limit():
    data = _encode(Image.new("RGB", (100, 100)))
    with pytest.raises(DecodeError, match="limit"):
        decode_image(data, max_pixels=100 * 100 - 1)
    assert decode_image(data, max_pixels=100 * 100).width == 100


def test_decode_dicom_garbage_raises_decode_error():
    with pytest.raises(DecodeError, match="DICOM"):
        decode_image(b"definitely not dicom", content_type="application/dicom")


def test_pixel_buffer_from_greyscale_array_adds_channel_axis():
    buffer = PixelBuffer.from_array(np.zeros((3, 5), dtype=np.uint8))
    assert (buffer.width, buffer.height, buffer.channels) == (5, 3, 1)


def test_pixel_buffer_rejects_non_uint8():
    with pytest.raises(DecodeError, match="dtype"):
        PixelBuffer.from_array(np.zeros((3, 3, 3), dtype=np.float32))


@pytest.mark.parametrize("value, expected", [(1000, 4), (20000, 78), (65535, 255)])
def test_decode_16bit_png_rescales_instead_of_clipping(value, expected):
    data = _encode(Image.fromarray(np.full((32, 32), value, dtype=np.uint16)))

    buffer = decode_image(data)

    assert buffer.channels == 3
    assert np.all(buffer.pixels == expected)


def test_dark_16bit_photo_scores_as_dark():
    data = _encode(Image.fromarray(np.full((32, 32), 1000, dtype=np.uint16)))

    metrics = analyze_image(data)

    assert metrics.brightness_level == 2
    assert INCREASE_LIGHTING in metrics.recommendations


def test_decode_float_tiff_in_unit_range():
    data = _encode(Image.fromarray(np.full((8, 8), 0.5, dtype=np.float32)), fmt="TIFF")

    buffer = decode_image(data)

    assert np.all(buffer.pixels == 128)


def test_decode_dicom_normalizes_to_rgb():
    buffer = decode_image(_encode_dicom(_ramp()), content_type="application/dicom")

    assert (buffer.width, buffer.height, buffer.channels) == (64, 64, 3)
    assert buffer.pixels.dtype == np.uint8
    assert buffer.pixels.min() == 0
    assert buffer.pixels.max() == 255
    assert np.all(buffer.pixels[:, 0] == 0)
    assert np.all(buffer.pixels[:, -1] == 255)
    assert np.array_equal(buffer.pixels[..., 0], buffer.pixels[..., 2])


def test_decode_dicom_uses_first_frame():
    frames = np.stack([_ramp(), np.full((64, 64), 4000, dtype=np.uint16)])

    buffer = decode_image(_encode_dicom(frames), content_type="application/dicom")

    assert (buffer.width, buffer.height) == (64, 64)
    assert np.all(buffer.pixels[:, -1] == 255)


def test_decode_dicom_enforces_pixel_limit():
    with pytest.raises(DecodeError, match="limit"):
        decode_image(_encode_dicom(_ramp()), content_type="application/dicom", max_pixels=100)
