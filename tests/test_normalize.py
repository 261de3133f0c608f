"""Tests for upload-time image normalisation."""

from __future__ import annotations

import asyncio
from io import BytesIO

import pytest
from PIL import Image
from prometheus_client import REGISTRY

from plushie_registry.errors import ErrorCode
from plushie_registry.imgproc import (
    DecodeError,
    EncodeError,
    ImageBlob,
    ImageNormalizer,
    compute_target_size,
    normalize,
    should_normalize,
)
from plushie_registry.imgproc.normalize import MIB

EXIF_ORIENTATION = 0x0112


def _encode(image: Image.Image, fmt: str, **params: object) -> bytes:
    buffer = BytesIO()
    image.save(buffer, format=fmt, **params)
    return buffer.getvalue()


def _png(size: tuple[int, int], mode: str = "RGB", color: object = (120, 80, 200), **params: object) -> bytes:
    return _encode(Image.new(mode, size, color), "PNG", compress_level=0, **params)


def _decode(blob: ImageBlob) -> Image.Image:
    image = Image.open(BytesIO(blob.data))
    image.load()
    return image


def test_non_image_is_returned_unchanged() -> None:
    blob = ImageBlob(data=b"%PDF" + b"\0" * (3 * MIB), media_type="application/pdf", name="a.pdf")

    assert not should_normalize(blob)


@pytest.mark.asyncio
async def test_non_image_passthrough_keeps_identity() -> None:
    blob = ImageBlob(data=b"x" * (3 * MIB), media_type="text/plain", name="notes.txt")

    result = await normalize(blob)

    assert result is blob


@pytest.mark.asyncio
async def test_small_image_passthrough() -> None:
    data = _encode(Image.new("RGB", (500, 400), (10, 20, 30)), "JPEG")
    blob = ImageBlob(data=data, media_type="image/jpeg", name="small.jpg")

    result = await normalize(blob)

    assert result is blob
    assert result.data == data


def test_threshold_is_strictly_greater_than_two_mib() -> None:
    at_limit = ImageBlob(data=b"\0" * (2 * MIB), media_type="image/png", name="a.png")
    over_limit = ImageBlob(data=b"\0" * (2 * MIB + 1), media_type="image/png", name="b.png")

    assert not should_normalize(at_limit)
    assert should_normalize(over_limit)


@pytest.mark.asyncio
async def test_large_landscape_png_is_downscaled_to_jpeg() -> None:
    data = _png((4000, 3000))
    assert len(data) > 5 * MIB
    blob = ImageBlob(data=data, media_type="image/png", name="big.png")

    result = await normalize(blob)

    assert result is not blob
    assert result.media_type == "image/jpeg"
    assert result.name == "big.png"
    assert result.last_modified is not None
    assert result.size < MIB
    with _decode(result) as image:
        assert image.format == "JPEG"
        assert image.size == (1280, 960)


@pytest.mark.asyncio
async def test_portrait_image_is_bounded_by_height() -> None:
    blob = ImageBlob(data=_png((1000, 3000)), media_type="image/png", name="tall.png")

    result = await normalize(blob)

    with _decode(result) as image:
        assert image.size == (427, 1280)


@pytest.mark.asyncio
async def test_large_file_within_dimensions_is_reencoded_at_same_size() -> None:
    data = _encode(Image.new("RGB", (1000, 800), (200, 200, 10)), "BMP")
    assert len(data) > 2 * MIB
    blob = ImageBlob(data=data, media_type="image/bmp", name="scan.bmp")

    result = await normalize(blob)

    assert result is not blob
    assert result.media_type == "image/jpeg"
    with _decode(result) as image:
        assert image.size == (1000, 800)


@pytest.mark.asyncio
async def test_padded_bmp_is_reencoded_without_resizing() -> None:
    data = _encode(Image.new("RGB", (800, 600), (0, 128, 255)), "BMP")
    data += b"\0" * (3 * MIB - len(data))
    blob = ImageBlob(data=data, media_type="image/bmp", name="photo.bmp")

    result = await normalize(blob)

    assert result.media_type == "image/jpeg"
    with _decode(result) as image:
        assert image.size == (800, 600)


@pytest.mark.asyncio
async def test_transparency_is_flattened_onto_white() -> None:
    image = Image.new("RGBA", (1000, 1000), (0, 0, 0, 0))
    image.paste((255, 0, 0, 255), (500, 0, 1000, 1000))
    data = _encode(image, "PNG", compress_level=0)
    assert len(data) > 2 * MIB
    blob = ImageBlob(data=data, media_type="image/png", name="cutout.png")

    result = await normalize(blob)

    with _decode(result) as decoded:
        assert decoded.mode == "RGB"
        left = decoded.getpixel((100, 500))
        right = decoded.getpixel((900, 500))
    assert all(channel >= 245 for channel in left)
    assert right[0] >= 240 and right[1] <= 20 and right[2] <= 20


@pytest.mark.asyncio
async def test_exif_orientation_is_applied_before_measuring() -> None:
    exif = Image.Exif()
    exif[EXIF_ORIENTATION] = 6
    blob = ImageBlob(
        data=_png((1600, 1000), exif=exif),
        media_type="image/png",
        name="rotated.png",
    )

    result = await normalize(blob)

    with _decode(result) as image:
        assert image.size == (800, 1280)


@pytest.mark.asyncio
async def test_undecodable_image_raises_decode_error() -> None:
    blob = ImageBlob(data=b"definitely not pixels" * 200_000, media_type="image/png", name="bad.png")
    assert blob.size > 2 * MIB

    with pytest.raises(DecodeError) as exc_info:
        await normalize(blob)

    assert exc_info.value.code is ErrorCode.IMAGE_DECODE_FAILED


@pytest.mark.asyncio
async def test_custom_bounds_and_metrics() -> None:
    before = REGISTRY.get_sample_value(
        "image_normalizations_total", {"outcome": "reencoded"}
    ) or 0.0
    normalizer = ImageNormalizer(max_width=640, max_height=640, quality=0.5)
    blob = ImageBlob(data=_png((2000, 1000)), media_type="image/png", name="wide.png")

    result = await normalizer.normalize(blob)

    with _decode(result) as image:
        assert image.size == (640, 320)
    after = REGISTRY.get_sample_value("image_normalizations_total", {"outcome": "reencoded"})
    assert after == before + 1


@pytest.mark.asyncio
async def test_concurrent_calls_are_independent() -> None:
    wide = ImageBlob(data=_png((4000, 3000)), media_type="image/png", name="wide.png")
    tall = ImageBlob(data=_png((1000, 3000)), media_type="image/png", name="tall.png")

    wide_result, tall_result = await asyncio.gather(normalize(wide), normalize(tall))

    assert wide_result.name == "wide.png"
    assert tall_result.name == "tall.png"
    with _decode(wide_result) as image:
        assert image.size == (1280, 960)
    with _decode(tall_result) as image:
        assert image.size == (427, 1280)


@pytest.mark.asyncio
async def test_sliver_image_fails_to_encode() -> None:
    before = REGISTRY.get_sample_value(
        "image_normalizations_total", {"outcome": "encode_error"}
    ) or 0.0
    data = _encode(Image.new("RGB", (2600, 1), (0, 0, 0)), "BMP")
    blob = ImageBlob(data=data + b"\0" * (3 * MIB), media_type="image/bmp", name="sliver.bmp")

    with pytest.raises(EncodeError) as exc_info:
        await normalize(blob)

    assert exc_info.value.code is ErrorCode.IMAGE_ENCODE_FAILED
    after = REGISTRY.get_sample_value("image_normalizations_total", {"outcome": "encode_error"})
    assert after == before + 1


@pytest.mark.parametrize(
    ("size", "expected"),
    [
        ((3000, 1000), (1280, 427)),
        ((1000, 3000), (427, 1280)),
        ((2000, 2000), (1280, 1280)),
        ((1280, 1280), (1280, 1280)),
        ((800, 600), (800, 600)),
        ((2560, 1281), (1280, 641)),
    ],
)
def test_compute_target_size(size: tuple[int, int], expected: tuple[int, int]) -> None:
    assert compute_target_size(*size) == expected


def test_compute_target_size_preserves_aspect_ratio() -> None:
    width, height = compute_target_size(4321, 1234)

    assert width == 1280
    assert abs(width / height - 4321 / 1234) < 4321 / 1234 * 0.01


def test_zero_dimension_target_raises_encode_error() -> None:
    assert compute_target_size(2600, 1) == (1280, 0)

    with Image.new("RGB", (2600, 1)) as image, pytest.raises(EncodeError) as exc_info:
        ImageNormalizer()._encode(image, (1280, 0))

    assert exc_info.value.code is ErrorCode.IMAGE_ENCODE_FAILED


@pytest.mark.parametrize(
    "kwargs",
    [
        {"max_width": 0},
        {"max_height": -1},
        {"max_width": 1280.7},
        {"quality": 0},
        {"quality": 1.5},
    ],
)
def test_invalid_parameters_are_rejected(kwargs: dict[str, float]) -> None:
    with pytest.raises(ValueError):
        ImageNormalizer(**kwargs)
