"""Image payloads and upload-time normalisation."""

from .blob import ImageBlob
from .normalize import (
    OUTPUT_MEDIA_TYPE,
    DecodeError,
    EncodeError,
    ImageNormalizationError,
    ImageNormalizer,
    compute_target_size,
    normalize,
    should_normalize,
)

__all__ = [
    "OUTPUT_MEDIA_TYPE",
    "DecodeError",
    "EncodeError",
    "ImageBlob",
    "ImageNormalizationError",
    "ImageNormalizer",
    "compute_target_size",
    "normalize",
    "should_normalize",
]
