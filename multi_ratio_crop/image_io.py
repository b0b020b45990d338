"""
Qt-free image I/O utilities.

Decodes the selected file into a ``SourceImage``, maps media types to
Pillow formats, derives crop file names, and writes finished bundles to
disk without overwriting existing files.
"""

import io
import logging
import mimetypes
from pathlib import Path

from PIL import Image, ImageOps, UnidentifiedImageError

from multi_ratio_crop.config import MEDIA_TYPE_FORMATS
from multi_ratio_crop.errors import InvalidInputError
from multi_ratio_crop.models import CropBundle, SourceImage

logger = logging.getLogger(__name__)

# Allow very large images (Pillow's default limit is ~178MP)
Image.MAX_IMAGE_PIXELS = None


# =============================================================================
# Media types
# =============================================================================
def pillow_format(media_type: str) -> str | None:
    """Pillow format name for *media_type*, or None if crops can't be written in it."""
    return MEDIA_TYPE_FORMATS.get((media_type or "").lower())


def guess_media_type(file_name: str) -> str:
    """Media type from a file name's extension, or an empty string."""
    media_type, _ = mimetypes.guess_type(file_name)
    return media_type or ""


def extension_for(media_type: str) -> str:
    """Usual file extension (without the dot) for *media_type*, or an empty string."""
    ext = mimetypes.guess_extension(media_type or "")
    return ext.lstrip(".") if ext else ""


# =============================================================================
# File names
# =============================================================================
def split_file_name(file_name: str) -> tuple[str, str]:
    """Split on the last '.'.  'a.b.png' → ('a.b', 'png'); 'photo' → ('photo', '')"""
    base, dot, ext = file_name.rpartition(".")
    if not dot or not base:
        return file_name, ""
    return base, ext


def derived_file_name(file_name: str, ratio_identifier: str, extension: str | None = None) -> str:
    """
    File name of a crop: ``{base}_{ratio}.{ext}``.

    *extension* replaces the source's extension when the crop was encoded
    in a different type.
    """
    base, ext = split_file_name(file_name)
    if extension is not None:
        ext = extension
    if not ext:
        return f"{base}_{ratio_identifier}"
    return f"{base}_{ratio_identifier}.{ext}"


# =============================================================================
# Decoding
# =============================================================================
def load_source_image(data: bytes, media_type: str, file_name: str) -> SourceImage:
    """
    Decode selected file bytes into a SourceImage.

    EXIF orientation is applied, so the natural dimensions are those of the
    image as it is meant to be viewed.  An empty *media_type* is filled in
    from the file name, then from the detected format.

    Raises InvalidInputError if there is no data or it is not a readable image.
    """
    if not data:
        raise InvalidInputError("No file selected")

    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as exc:
        raise InvalidInputError(f"Could not read image '{file_name}': {exc}") from exc

    detected = Image.MIME.get(img.format or "", "")
    oriented = ImageOps.exif_transpose(img)
    if oriented is not img:
        img.close()

    if not media_type:
        media_type = guess_media_type(file_name) or detected
    logger.debug(
        "Decoded %s (%s, %dx%d, %d bytes)",
        file_name, media_type, oriented.width, oriented.height, len(data),
    )
    return SourceImage(
        data=bytes(data),
        media_type=media_type,
        file_name=file_name,
        width=oriented.width,
        height=oriented.height,
        image=oriented,
    )


def read_image_file(path: Path) -> tuple[bytes, str, str]:
    """Read a file from disk as ``(data, media_type, file_name)``."""
    data = path.read_bytes()
    return data, guess_media_type(path.name), path.name


# =============================================================================
# Writing
# =============================================================================
def unique_path(out_path: Path) -> Path:
    """Return a unique path by appending -01, -02, etc. if file already exists."""
    if not out_path.exists():
        return out_path
    stem = out_path.stem
    suffix = out_path.suffix
    parent = out_path.parent
    counter = 1
    while True:
        candidate = parent / f"{stem}-{counter:02d}{suffix}"
        if not candidate.exists():
            return candidate
        counter += 1


def write_bundle(bundle: CropBundle, out_dir: Path) -> list[Path]:
    """Write the original and every crop of *bundle* into *out_dir*.

    Returns the written paths, original first.
    """
    out_dir.mkdir(parents=True, exist_ok=True)
    written = []
    files = [(bundle.original.file_name, bundle.original.data)]
    files += [(crop.file_name, crop.data) for crop in bundle.crops]
    for name, data in files:
        out_path = unique_path(out_dir / name)
        out_path.write_bytes(data)
        written.append(out_path)
    logger.info("Wrote %d file(s) to %s", len(written), out_dir)
    return written
