import io

import pytest
from PIL import Image

from multi_ratio_crop.errors import InvalidInputError
from multi_ratio_crop.image_io import (
    derived_file_name, extension_for, guess_media_type, load_source_image, pillow_format,
    split_file_name, unique_path, write_bundle,
)
from multi_ratio_crop.models import CompletedCrop, CropBundle, CropRect, OriginalFile


@pytest.mark.parametrize("name, expected", [
    ("photo.jpg", "photo_portrait.jpg"),
    ("my.holiday.png", "my.holiday_portrait.png"),
    ("README", "README_portrait"),
])
def test_derived_file_name_splits_on_last_dot(name, expected):
    assert derived_file_name(name, "portrait") == expected


def test_derived_file_name_with_replacement_extension():
    assert derived_file_name("fav.ico", "square", "png") == "fav_square.png"
    assert derived_file_name("README", "square", "png") == "README_square.png"
    assert extension_for("image/png") == "png"
    assert extension_for("application/x-unknown-thing") == ""


def test_split_file_name():
    assert split_file_name("a.b.webp") == ("a.b", "webp")
    assert split_file_name("noext") == ("noext", "")


def test_media_type_helpers():
    assert guess_media_type("x.JPG") == "image/jpeg"
    assert guess_media_type("x.png") == "image/png"
    assert pillow_format("image/jpeg") == "JPEG"
    assert pillow_format("IMAGE/PNG") == "PNG"
    assert pillow_format("image/svg+xml") is None
    assert pillow_format("") is None


def test_load_source_image_keeps_bytes_and_dimensions(make_image):
    data = make_image(120, 80)
    source = load_source_image(data, "image/png", "pic.png")
    try:
        assert (source.width, source.height) == (120, 80)
        assert source.data == data
        assert source.size == len(data)
        assert source.media_type == "image/png"
    finally:
        source.close()


def test_load_source_image_fills_in_missing_media_type(make_image):
    data = make_image(10, 10, fmt="JPEG")
    assert load_source_image(data, "", "shot.jpg").media_type == "image/jpeg"
    # Nothing to go on but the bytes
    assert load_source_image(data, "", "upload").media_type == "image/jpeg"


def test_load_source_image_applies_exif_orientation():
    img = Image.new("RGB", (40, 20), "red")
    exif = Image.Exif()
    exif[0x0112] = 6  # rotate 90° clockwise for display
    buf = io.BytesIO()
    img.save(buf, "JPEG", exif=exif.tobytes())

    source = load_source_image(buf.getvalue(), "image/jpeg", "rotated.jpg")
    assert (source.width, source.height) == (20, 40)


@pytest.mark.parametrize("data", [b"", b"definitely not an image"])
def test_load_source_image_rejects_bad_input(data):
    with pytest.raises(InvalidInputError):
        load_source_image(data, "image/png", "broken.png")


def test_unique_path(tmp_path):
    target = tmp_path / "a_square.png"
    assert unique_path(target) == target
    target.write_bytes(b"x")
    assert unique_path(target) == tmp_path / "a_square-01.png"


def test_write_bundle_never_overwrites(tmp_path):
    crop = CompletedCrop("square", b"crop", "a_square.png", "image/png", 1, 1, CropRect(0, 0, 1, 1))
    bundle = CropBundle(OriginalFile("a.png", "image/png", b"orig", 2, 2), (crop,))
    (tmp_path / "a.png").write_bytes(b"existing")

    written = write_bundle(bundle, tmp_path)

    assert [p.name for p in written] == ["a-01.png", "a_square.png"]
    assert (tmp_path / "a.png").read_bytes() == b"existing"
    assert written[0].read_bytes() == b"orig"
    assert written[1].read_bytes() == b"crop"
