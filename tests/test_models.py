import pytest

from multi_ratio_crop.errors import InvalidCropError
from multi_ratio_crop.models import (
    CropRect, auto_center_max, clamp_crop, contains, default_rectangle_for,
    pixel_box, to_display_pixels, to_natural_pixels,
)
from multi_ratio_crop.ratios import ASPECT_RATIOS


@pytest.mark.parametrize("size", [(1000, 1000), (4000, 1000), (600, 3000), (37, 11)])
@pytest.mark.parametrize("spec", ASPECT_RATIOS, ids=lambda s: s.identifier)
def test_default_rectangle_matches_ratio_and_fits(spec, size):
    w, h = size
    rect = default_rectangle_for(spec.ratio, w, h)
    assert rect.width / rect.height == pytest.approx(spec.ratio, abs=1e-6)
    assert contains(rect, w, h)


def test_default_rectangle_is_centered_at_80_percent():
    rect = default_rectangle_for(16 / 9, 1000, 1000)
    assert rect.width == pytest.approx(800)
    assert rect.height == pytest.approx(450)
    assert (rect.x, rect.y) == pytest.approx((100, 275))

    # Too tall at 80% width: constrained by height instead
    rect = default_rectangle_for(2 / 3, 1000, 1000)
    assert rect.height == pytest.approx(800)
    assert rect.width == pytest.approx(800 * 2 / 3)
    assert rect.y == pytest.approx(100)


def test_to_natural_pixels_scales_axes_independently():
    # Displayed squashed: 500x200 on screen for a 1000x800 image
    natural = to_natural_pixels(CropRect(50, 20, 100, 40), 500, 200, 1000, 800)
    assert (natural.x, natural.y, natural.width, natural.height) == pytest.approx((100, 80, 200, 160))


def test_display_mapping_round_trip():
    original = CropRect(12.5, 33.0, 250.0, 140.625)
    display = to_display_pixels(original, 640, 300, 1920, 1080)
    back = to_natural_pixels(display, 640, 300, 1920, 1080)
    assert (back.x, back.y, back.width, back.height) == pytest.approx(
        (original.x, original.y, original.width, original.height)
    )


def test_to_natural_pixels_rejects_empty_display():
    with pytest.raises(ValueError):
        to_natural_pixels(CropRect(0, 0, 10, 10), 0, 100, 1000, 1000)


def test_clamp_crop_shifts_and_shrinks_keeping_ratio():
    shifted = clamp_crop(CropRect(950.4, -3, 100, 100), 1000, 1000)
    assert (shifted.x, shifted.y, shifted.width, shifted.height) == pytest.approx((900, 0, 100, 100))

    shrunk = clamp_crop(CropRect(0, 0, 1600, 900), 800, 800)
    assert shrunk.width == pytest.approx(800)
    assert shrunk.aspect == pytest.approx(16 / 9)
    assert contains(shrunk, 800, 800)


def test_auto_center_max_uses_full_constraining_side():
    rect = auto_center_max(1000, 500, 1.0)
    assert (rect.x, rect.y, rect.width, rect.height) == pytest.approx((250, 0, 500, 500))


def test_pixel_box_rounds_and_clamps_overshoot():
    assert pixel_box(CropRect(10.4, 20.6, 99.6, 50.2), 200, 200) == (10, 21, 110, 71)
    # Floating-point overshoot past the right/bottom edge is pulled back in
    assert pixel_box(CropRect(100.6, 150.7, 100.0, 50.0), 200, 200) == (100, 150, 200, 200)
    assert pixel_box(CropRect(-0.2, -1.0, 300.0, 300.0), 200, 200) == (0, 0, 200, 200)


@pytest.mark.parametrize("rect", [CropRect(0, 0, 0, 10), CropRect(0, 0, 10, -1)])
def test_pixel_box_rejects_empty_rectangles(rect):
    with pytest.raises(InvalidCropError):
        pixel_box(rect, 100, 100)
