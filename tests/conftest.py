"""Pytest configuration.

Widget tests use PyQt6.  A single ``QApplication`` is created for the whole
session as early as possible (on the offscreen platform, so no display is
needed) and shut down cleanly at the end.  Image fixtures are built in
memory with Pillow.
"""

from __future__ import annotations

import io
import os
from typing import Any

import pytest
from PIL import Image

_APP: Any | None = None


def pytest_configure(config) -> None:  # noqa: ARG001
    """Ensure a QApplication exists before collecting/running tests."""
    os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

    try:
        from PyQt6.QtWidgets import QApplication
    except ImportError:
        return

    global _APP

    app = QApplication.instance()
    if app is None:
        # Keep a strong ref so it isn't GC'd mid-session.
        _APP = QApplication([])
    else:
        _APP = app


def pytest_sessionfinish(session, exitstatus) -> None:  # noqa: ARG001
    """Attempt a clean Qt shutdown to avoid lingering threads at interpreter exit."""
    try:
        from PyQt6.QtWidgets import QApplication
    except ImportError:
        return

    app = QApplication.instance()
    if app is None:
        return
    app.quit()
    app.processEvents()


def encode(img: Image.Image, fmt: str = "PNG") -> bytes:
    buf = io.BytesIO()
    img.save(buf, fmt)
    return buf.getvalue()


def make_image_bytes(w: int, h: int, fmt: str = "PNG", mode: str = "RGB") -> bytes:
    """Encoded test image with a horizontal gradient so crops differ by position."""
    img = Image.new(mode, (w, h))
    if mode in ("RGB", "RGBA"):
        for x in range(w):
            shade = x * 255 // max(1, w - 1)
            fill = (shade, 255 - shade, 128) if mode == "RGB" else (shade, 255 - shade, 128, 200)
            img.paste(fill, (x, 0, x + 1, h))
    return encode(img, fmt)


@pytest.fixture
def png_bytes() -> bytes:
    return make_image_bytes(1000, 1000)


@pytest.fixture
def wide_png_bytes() -> bytes:
    return make_image_bytes(640, 360)


@pytest.fixture
def make_image():
    """Factory fixture: ``make_image(w, h, fmt="PNG", mode="RGB") -> bytes``."""
    return make_image_bytes
