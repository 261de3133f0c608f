"""Upload-time image normalisation.

Large photos are decoded, scaled down to fit a bounding box and re-encoded as
JPEG before they leave the client. Small files and non-images pass through
untouched.
"""

from __future__ import annotations

import asyncio
import logging
import math
from datetime import datetime, timezone
from io import BytesIO

from PIL import Image, ImageOps

from plushie_registry.config.settings import Settings
from plushie_registry.errors import ErrorCode, RegistryError
from plushie_registry.imgproc.blob import ImageBlob
from plushie_registry.metrics.prometheus_exporter import image_normalizations_total

logger = logging.getLogger(__name__)

MIB = 1024 * 1024
PASSTHROUGH_MAX_BYTES = 2 * MIB
SMALL_IMAGE_MAX_BYTES = 1 * MIB

DEFAULT_MAX_WIDTH = 1280
DEFAULT_MAX_HEIGHT = 1280
DEFAULT_QUALITY = 0.75

OUTPUT_MEDIA_TYPE = "image/jpeg"
OUTPUT_FORMAT = "JPEG"
FLATTEN_BACKGROUND = (255, 255, 255)


class ImageNormalizationError(RegistryError):
    """Base class for terminal normalisation failures."""


class DecodeError(ImageNormalizationError):
    """The payload could not be interpreted as an image."""

    def __init__(self, detail: str = "") -> None:
        super().__init__(ErrorCode.IMAGE_DECODE_FAILED, detail)


class EncodeError(ImageNormalizationError):
    """The resampled image could not be serialised."""

    def __init__(self, detail: str = "") -> None:
        super().__init__(ErrorCode.IMAGE_ENCODE_FAILED, detail)


def should_normalize(blob: ImageBlob) -> bool:
    """Return ``True`` when ``blob`` is a declared image larger than 2 MiB."""

    if not blob.is_image:
        return False
    if blob.size <= PASSTHROUGH_MAX_BYTES:
        return False
    return True


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def compute_target_size(
    width: int,
    height: int,
    max_width: int = DEFAULT_MAX_WIDTH,
    max_height: int = DEFAULT_MAX_HEIGHT,
) -> tuple[int, int]:
    """Fit ``width`` x ``height`` into the bounding box, preserving aspect ratio.

    The longer side decides which bound applies (width wins ties). Images
    already inside the box keep their size; nothing is ever upscaled.
    """

    if width >= height:
        if width > max_width:
            return max_width, _round_half_up(height * max_width / width)
        return width, height
    if height > max_height:
        return _round_half_up(width * max_height / height), max_height
    return width, height


def _jpeg_quality(quality: float) -> int:
    return max(1, min(100, _round_half_up(quality * 100)))


def _flatten(image: Image.Image) -> Image.Image:
    """Return an opaque RGB copy of ``image``; transparent areas become white."""

    has_alpha = image.mode in ("RGBA", "LA", "PA") or (
        image.mode == "P" and "transparency" in image.info
    )
    if not has_alpha:
        return image.convert("RGB")

    with image.convert("RGBA") as rgba:
        background = Image.new("RGB", rgba.size, FLATTEN_BACKGROUND)
        background.paste(rgba, mask=rgba.getchannel("A"))
    return background


class ImageNormalizer:
    """Bounds pixel dimensions and output format of images before upload."""

    def __init__(
        self,
        max_width: int = DEFAULT_MAX_WIDTH,
        max_height: int = DEFAULT_MAX_HEIGHT,
        quality: float = DEFAULT_QUALITY,
    ) -> None:
        for bound in (max_width, max_height):
            if isinstance(bound, bool) or not isinstance(bound, int) or bound <= 0:
                raise ValueError("max_width and max_height must be positive integers.")
        if not 0 < quality <= 1:
            raise ValueError("quality must be within (0, 1].")
        self.max_width = max_width
        self.max_height = max_height
        self.quality = float(quality)

    @classmethod
    def from_settings(cls, settings: Settings) -> "ImageNormalizer":
        return cls(
            max_width=settings.image_max_width,
            max_height=settings.image_max_height,
            quality=settings.image_quality,
        )

    async def normalize(self, blob: ImageBlob) -> ImageBlob:
        """Return ``blob`` unchanged or a downscaled JPEG copy of it.

        Decoding and encoding run in a worker thread. Raises ``DecodeError``
        or ``EncodeError``; the caller must abort the upload in that case.
        """

        if not should_normalize(blob):
            image_normalizations_total.labels(outcome="passthrough").inc()
            return blob
        return await asyncio.to_thread(self.normalize_sync, blob)

    def normalize_sync(self, blob: ImageBlob) -> ImageBlob:
        """Blocking variant of :meth:`normalize`."""

        if not should_normalize(blob):
            image_normalizations_total.labels(outcome="passthrough").inc()
            return blob
        try:
            result = self._reencode(blob)
        except DecodeError:
            image_normalizations_total.labels(outcome="decode_error").inc()
            logger.warning("Could not decode %s (%s, %d bytes)", blob.name, blob.media_type, blob.size)
            raise
        except EncodeError:
            image_normalizations_total.labels(outcome="encode_error").inc()
            logger.warning("Could not re-encode %s", blob.name)
            raise

        outcome = "passthrough" if result is blob else "reencoded"
        image_normalizations_total.labels(outcome=outcome).inc()
        return result

    def _reencode(self, blob: ImageBlob) -> ImageBlob:
        try:
            with Image.open(BytesIO(blob.data)) as source:
                source.load()
                decoded = ImageOps.exif_transpose(source)
        except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as exc:
            raise DecodeError(f"{blob.name}: {exc}") from exc

        with decoded:
            width, height = decoded.size
            if (
                width <= self.max_width
                and height <= self.max_height
                and blob.size <= SMALL_IMAGE_MAX_BYTES
            ):
                return blob

            target = compute_target_size(width, height, self.max_width, self.max_height)
            data = self._encode(decoded, target)

        logger.info(
            "Normalised %s: %dx%d -> %dx%d, %d -> %d bytes",
            blob.name,
            width,
            height,
            target[0],
            target[1],
            blob.size,
            len(data),
        )
        return ImageBlob(
            data=data,
            media_type=OUTPUT_MEDIA_TYPE,
            name=blob.name,
            last_modified=datetime.now(timezone.utc),
        )

    def _encode(self, image: Image.Image, target: tuple[int, int]) -> bytes:
        if target[0] < 1 or target[1] < 1:
            raise EncodeError(f"Target size {target[0]}x{target[1]} has a zero dimension.")

        buffer = BytesIO()
        try:
            with _flatten(image) as flat:
                if flat.size == target:
                    flat.save(buffer, format=OUTPUT_FORMAT, quality=_jpeg_quality(self.quality))
                else:
                    with flat.resize(target, Image.Resampling.LANCZOS) as resized:
                        resized.save(
                            buffer,
                            format=OUTPUT_FORMAT,
                            quality=_jpeg_quality(self.quality),
                        )
        except (OSError, ValueError) as exc:
            raise EncodeError(str(exc)) from exc
        return buffer.getvalue()


async def normalize(
    blob: ImageBlob,
    max_width: int = DEFAULT_MAX_WIDTH,
    max_height: int = DEFAULT_MAX_HEIGHT,
    quality: float = DEFAULT_QUALITY,
) -> ImageBlob:
    """Shortcut for ``ImageNormalizer(max_width, max_height, quality).normalize(blob)``."""

    return await ImageNormalizer(max_width, max_height, quality).normalize(blob)
