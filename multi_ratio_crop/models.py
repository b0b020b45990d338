"""
Data models and crop-geometry utilities.

CropRect, SourceImage, CompletedCrop and WizardSession are the core data
structures shared by the wizard controller, the rasterizer and the UI.
Every CropRect is expressed in natural pixel units (the full-resolution
source image); the widget converts to and from display space with
``to_natural_pixels`` / ``to_display_pixels``.

This module is Qt-free.
"""

from dataclasses import dataclass, field

from PIL import Image

from multi_ratio_crop.config import DEFAULT_CROP_FRACTION
from multi_ratio_crop.errors import InvalidCropError


# =============================================================================
# Data classes
# =============================================================================
@dataclass
class CropRect:
    """Crop rectangle in natural pixel coordinates."""
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0

    @property
    def aspect(self) -> float:
        return self.width / self.height if self.height else 0.0

    def copy(self) -> "CropRect":
        return CropRect(self.x, self.y, self.width, self.height)


@dataclass(frozen=True)
class SourceImage:
    """The originally selected image: raw bytes plus its decoded pixels."""
    data: bytes = field(repr=False)
    media_type: str
    file_name: str
    width: int
    height: int
    image: Image.Image = field(repr=False, compare=False)

    @property
    def size(self) -> int:
        return len(self.data)

    def close(self) -> None:
        """Release the decoded image."""
        self.image.close()


@dataclass(frozen=True)
class CompletedCrop:
    """An encoded crop for one ratio."""
    ratio_identifier: str
    data: bytes = field(repr=False)
    file_name: str
    media_type: str
    width: int
    height: int
    rect: CropRect

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class OriginalFile:
    """The untouched original as handed back in a bundle."""
    file_name: str
    media_type: str
    data: bytes = field(repr=False)
    width: int
    height: int

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class CropBundle:
    """Result of a finished wizard: the original plus one crop per ratio."""
    original: OriginalFile
    crops: tuple[CompletedCrop, ...]


@dataclass
class WizardSession:
    """Tracks crop state for one selected image across all ratios."""
    source: SourceImage
    step: int = 1
    rectangles: dict = field(default_factory=dict)  # ratio identifier -> CropRect
    completed: dict = field(default_factory=dict)   # ratio identifier -> CompletedCrop

    def close(self) -> None:
        self.completed.clear()
        self.source.close()


# =============================================================================
# Crop math utilities
# =============================================================================
def default_rectangle_for(ratio: float, img_w: float, img_h: float) -> CropRect:
    """Centered crop covering 80% of the constraining dimension at *ratio*."""
    crop_w = img_w * DEFAULT_CROP_FRACTION
    crop_h = crop_w / ratio
    # Too tall: constrain by height instead
    if crop_h > img_h * DEFAULT_CROP_FRACTION:
        crop_h = img_h * DEFAULT_CROP_FRACTION
        crop_w = crop_h * ratio
    return CropRect((img_w - crop_w) / 2, (img_h - crop_h) / 2, crop_w, crop_h)


def to_natural_pixels(
    display_rect: CropRect,
    display_w: float, display_h: float,
    img_w: float, img_h: float,
) -> CropRect:
    """Scale a rectangle from on-screen pixels to natural pixels.

    X and Y are scaled independently, so an image shown at a different
    aspect than its natural one still maps correctly.
    """
    if display_w <= 0 or display_h <= 0:
        raise ValueError(f"display size must be positive, got {display_w}x{display_h}")
    scale_x = img_w / display_w
    scale_y = img_h / display_h
    return CropRect(
        display_rect.x * scale_x,
        display_rect.y * scale_y,
        display_rect.width * scale_x,
        display_rect.height * scale_y,
    )


def to_display_pixels(
    crop: CropRect,
    display_w: float, display_h: float,
    img_w: float, img_h: float,
) -> CropRect:
    """Inverse of ``to_natural_pixels``."""
    if img_w <= 0 or img_h <= 0:
        raise ValueError(f"image size must be positive, got {img_w}x{img_h}")
    return to_natural_pixels(crop, img_w, img_h, display_w, display_h)


def calculate_max_crop(img_w: int, img_h: int, ratio: float) -> tuple[float, float]:
    """Calculate the maximum crop dimensions for a given aspect ratio within an image."""
    # Try full width
    crop_w = img_w
    crop_h = crop_w / ratio
    if crop_h <= img_h:
        return crop_w, crop_h
    # Full height
    crop_h = img_h
    crop_w = crop_h * ratio
    return min(crop_w, img_w), crop_h


def center_crop(img_w: float, img_h: float, crop_w: float, crop_h: float) -> CropRect:
    """Return a centered crop rectangle."""
    return CropRect((img_w - crop_w) / 2, (img_h - crop_h) / 2, crop_w, crop_h)


def auto_center_max(img_w: int, img_h: int, ratio: float) -> CropRect:
    """Maximum crop, centered."""
    cw, ch = calculate_max_crop(img_w, img_h, ratio)
    return center_crop(img_w, img_h, cw, ch)


def clamp_crop(crop: CropRect, img_w: float, img_h: float) -> CropRect:
    """Clamp crop rectangle to image bounds, keeping its aspect ratio.

    An oversized rectangle is shrunk first, then shifted back inside.
    """
    w, h = max(crop.width, 0.0), max(crop.height, 0.0)
    if w > img_w:
        h = h * img_w / w
        w = img_w
    if h > img_h:
        w = w * img_h / h
        h = img_h
    x = max(0.0, min(crop.x, img_w - w))
    y = max(0.0, min(crop.y, img_h - h))
    return CropRect(x, y, w, h)


def contains(crop: CropRect, img_w: float, img_h: float, tolerance: float = 1e-9) -> bool:
    """True if *crop* lies inside ``[0, img_w] x [0, img_h]``."""
    return (
        crop.x >= -tolerance
        and crop.y >= -tolerance
        and crop.x + crop.width <= img_w + tolerance
        and crop.y + crop.height <= img_h + tolerance
    )


def pixel_box(crop: CropRect, img_w: int, img_h: int) -> tuple[int, int, int, int]:
    """Round *crop* to whole pixels and clamp it to the image.

    Returns a Pillow ``(left, top, right, bottom)`` box.  Overshoot past the
    image edge shifts the box back inside; a rectangle without area raises
    InvalidCropError.
    """
    if crop.width <= 0 or crop.height <= 0:
        raise InvalidCropError(f"crop must have a positive size, got {crop.width}x{crop.height}")
    w = min(max(1, int(round(crop.width))), img_w)
    h = min(max(1, int(round(crop.height))), img_h)
    x = max(0, min(int(round(crop.x)), img_w - w))
    y = max(0, min(int(round(crop.y)), img_h - h))
    return x, y, x + w, y + h
