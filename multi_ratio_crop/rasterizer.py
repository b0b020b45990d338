"""
Crop rasterization (Qt-free).

Copies a natural-pixel rectangle out of the source image into a new raster
of exactly that size and encodes it in the source's media type, using the
encoder settings from ``config``.
"""

import io
import logging
from dataclasses import dataclass, field

from PIL import Image

from multi_ratio_crop.config import (
    FALLBACK_MEDIA_TYPE, PNG_COMPRESS_LEVEL,
    JPEG_QUALITY, JPEG_SUBSAMPLING, JPEG_OPTIMIZE, WEBP_QUALITY,
)
from multi_ratio_crop.errors import EncodingError
from multi_ratio_crop.image_io import pillow_format
from multi_ratio_crop.models import CropRect, SourceImage, contains, pixel_box

logger = logging.getLogger(__name__)

# Image modes each restrictive encoder accepts; anything else is converted to RGB
_ENCODABLE_MODES = {
    "JPEG": {"RGB", "L", "CMYK"},
    "BMP": {"1", "L", "P", "RGB"},
}


@dataclass(frozen=True)
class RasterResult:
    """An encoded crop."""
    data: bytes = field(repr=False)
    media_type: str
    width: int
    height: int


def encode_image(img: Image.Image, fmt: str) -> bytes:
    """Encode *img* as Pillow format *fmt*."""
    allowed = _ENCODABLE_MODES.get(fmt)
    if allowed is not None and img.mode not in allowed:
        img = img.convert("RGB")

    buf = io.BytesIO()
    if fmt == "PNG":
        img.save(buf, "PNG", compress_level=PNG_COMPRESS_LEVEL)
    elif fmt == "JPEG":
        img.save(
            buf, "JPEG",
            quality=JPEG_QUALITY,
            optimize=JPEG_OPTIMIZE,
            subsampling=JPEG_SUBSAMPLING,
        )
    elif fmt == "WEBP":
        img.save(buf, "WEBP", quality=WEBP_QUALITY)
    else:
        img.save(buf, fmt)
    return buf.getvalue()


def rasterize(
    source: SourceImage,
    crop: CropRect,
    media_type: str | None = None,
    ratio_identifier: str | None = None,
) -> RasterResult:
    """
    Cut *crop* out of *source* and encode it.

    Parameters
    ----------
    source : SourceImage
        The decoded original.
    crop : CropRect
        Rectangle in natural pixels.  It is rounded to whole pixels and
        clamped to the image; no scaling happens here.
    media_type : str, optional
        Output type, defaults to the source's.  Types Pillow cannot write
        fall back to PNG.
    ratio_identifier : str, optional
        Carried on EncodingError so the caller knows which step failed.

    Raises InvalidCropError for a rectangle without area and EncodingError
    if the encoder fails.
    """
    box = pixel_box(crop, source.width, source.height)
    if not contains(crop, source.width, source.height):
        logger.debug("Crop %s exceeds %dx%d, clamped to %s", crop, source.width, source.height, box)

    media_type = media_type or source.media_type
    fmt = pillow_format(media_type)
    if fmt is None:
        logger.warning("Cannot encode %r, falling back to %s", media_type, FALLBACK_MEDIA_TYPE)
        media_type = FALLBACK_MEDIA_TYPE
        fmt = pillow_format(media_type)

    try:
        with source.image.crop(box) as region:
            data = encode_image(region, fmt)
    except (OSError, ValueError, KeyError) as exc:
        raise EncodingError(
            f"Failed to encode crop as {media_type}: {exc}", ratio_identifier,
        ) from exc

    return RasterResult(data, media_type, box[2] - box[0], box[3] - box[1])
