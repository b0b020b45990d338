"""
Interactive crop-overlay widget and Qt image helpers.

``ImageCropWidget`` shows the source image scaled to fit and lets the user
move and resize an aspect-locked rectangle.  The rectangle is kept in
natural pixels; the widget converts from display space with
``to_natural_pixels`` and reports every change through ``crop_changed``
and the end of every drag or nudge through ``crop_committed``.
"""

from PIL import Image
from PyQt6.QtWidgets import QWidget, QSizePolicy
from PyQt6.QtCore import Qt, QRectF, QPointF, pyqtSignal
from PyQt6.QtGui import (
    QPainter, QPixmap, QColor, QPen, QBrush, QImage,
    QKeyEvent, QMouseEvent, QPaintEvent, QResizeEvent,
)

from multi_ratio_crop.config import (
    HANDLE_SIZE, MIN_CROP_SIZE, NUDGE_SMALL, NUDGE_LARGE,
    EDITOR_MIN_WIDTH, EDITOR_MIN_HEIGHT,
)
from multi_ratio_crop.models import CropRect, clamp_crop, to_display_pixels, to_natural_pixels


# =============================================================================
# Qt ↔ PIL helpers
# =============================================================================

def pil_to_qpixmap(pil_img: Image.Image) -> QPixmap:
    """Convert a PIL Image to QPixmap."""
    img_rgba = pil_img.convert("RGBA")
    data = img_rgba.tobytes("raw", "RGBA")
    qimg = QImage(data, img_rgba.width, img_rgba.height, QImage.Format.Format_RGBA8888)
    # QImage does not own *data*; copy before it goes out of scope
    return QPixmap.fromImage(qimg.copy())


def pixmap_from_bytes(data: bytes) -> QPixmap:
    """Decode encoded image bytes (a finished crop) into a QPixmap."""
    pixmap = QPixmap()
    pixmap.loadFromData(data)
    return pixmap


# =============================================================================
# Image Crop Widget — interactive crop overlay on image
# =============================================================================

class ImageCropWidget(QWidget):
    """Widget that displays an image with an interactive, aspect-locked crop overlay."""

    crop_changed = pyqtSignal(object)    # CropRect, while dragging
    crop_committed = pyqtSignal(object)  # CropRect, drag or nudge finished

    HANDLE_NONE = 0
    HANDLE_TL = 1
    HANDLE_TR = 2
    HANDLE_BL = 3
    HANDLE_BR = 4
    MODE_NONE = 0
    MODE_MOVE = 1
    MODE_RESIZE = 2

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setMinimumSize(EDITOR_MIN_WIDTH, EDITOR_MIN_HEIGHT)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)

        self._pixmap: QPixmap | None = None
        self._img_w = 0
        self._img_h = 0
        self._crop = CropRect()
        self._aspect_ratio = 1.0  # locked aspect ratio

        # Display mapping: where the image sits inside the widget
        self._disp_x = 0.0
        self._disp_y = 0.0
        self._disp_w = 0.0
        self._disp_h = 0.0

        # Interaction state
        self._mode = self.MODE_NONE
        self._active_handle = self.HANDLE_NONE
        self._drag_start = QPointF()
        self._crop_start = CropRect()

    def set_image(self, pixmap: QPixmap, img_w: int, img_h: int):
        """Set the image to display; *img_w*/*img_h* are its natural dimensions."""
        self._pixmap = pixmap
        self._img_w = img_w
        self._img_h = img_h
        self._update_display_mapping()
        self.update()

    def set_crop(self, crop: CropRect, aspect_ratio: float):
        """Set the crop rectangle (natural pixels) and locked aspect ratio."""
        self._aspect_ratio = aspect_ratio
        self._crop = crop.copy()
        self.update()

    def get_crop(self) -> CropRect:
        return self._crop.copy()

    def has_image(self) -> bool:
        """Return True if an image is loaded and ready for crop operations."""
        return self._pixmap is not None

    def display_rect(self) -> QRectF:
        """Where the image is drawn, in widget coordinates."""
        return QRectF(self._disp_x, self._disp_y, self._disp_w, self._disp_h)

    def clear(self):
        self._pixmap = None
        self._img_w = 0
        self._img_h = 0
        self._crop = CropRect()
        self._mode = self.MODE_NONE
        self.update()

    # --- Coordinate mapping ---

    def _update_display_mapping(self):
        """Calculate the letterboxed rectangle the image is drawn into."""
        if not self._pixmap or self._img_w == 0 or self._img_h == 0:
            return
        ww, wh = self.width(), self.height()
        scale = min(ww / self._img_w, wh / self._img_h)
        self._disp_w = self._img_w * scale
        self._disp_h = self._img_h * scale
        self._disp_x = (ww - self._disp_w) / 2
        self._disp_y = (wh - self._disp_h) / 2

    def _display_to_img(self, pos: QPointF) -> QPointF:
        """Map a widget position to natural pixels."""
        if self._disp_w == 0 or self._disp_h == 0:
            return QPointF(0, 0)
        point = to_natural_pixels(
            CropRect(pos.x() - self._disp_x, pos.y() - self._disp_y),
            self._disp_w, self._disp_h, self._img_w, self._img_h,
        )
        return QPointF(point.x, point.y)

    def _crop_display_rect(self) -> QRectF:
        if self._img_w == 0 or self._img_h == 0:
            return QRectF()
        r = to_display_pixels(self._crop, self._disp_w, self._disp_h, self._img_w, self._img_h)
        return QRectF(r.x + self._disp_x, r.y + self._disp_y, r.width, r.height)

    # --- Handle hit testing ---

    def _handle_rects(self) -> dict[int, QRectF]:
        """Return screen-coordinate rectangles for the 4 corner handles."""
        r = self._crop_display_rect()
        hs = HANDLE_SIZE
        return {
            self.HANDLE_TL: QRectF(r.left() - hs, r.top() - hs, hs * 2, hs * 2),
            self.HANDLE_TR: QRectF(r.right() - hs, r.top() - hs, hs * 2, hs * 2),
            self.HANDLE_BL: QRectF(r.left() - hs, r.bottom() - hs, hs * 2, hs * 2),
            self.HANDLE_BR: QRectF(r.right() - hs, r.bottom() - hs, hs * 2, hs * 2),
        }

    def _hit_test(self, pos: QPointF) -> tuple[int, int]:
        """Returns (mode, handle) for a screen position."""
        for handle_id, rect in self._handle_rects().items():
            if rect.contains(pos):
                return self.MODE_RESIZE, handle_id
        if self._crop_display_rect().contains(pos):
            return self.MODE_MOVE, self.HANDLE_NONE
        return self.MODE_NONE, self.HANDLE_NONE

    # --- Painting ---

    def paintEvent(self, event: QPaintEvent):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)
        painter.fillRect(self.rect(), QColor(30, 30, 30))

        if not self._pixmap:
            painter.setPen(QColor(128, 128, 128))
            painter.drawText(self.rect(), Qt.AlignmentFlag.AlignCenter, "No image loaded")
            painter.end()
            return

        dest = self.display_rect()
        painter.drawPixmap(dest.toRect(), self._pixmap)

        # Dim area outside crop
        crop_rect = self._crop_display_rect()
        dim = QColor(0, 0, 0, 140)
        painter.fillRect(QRectF(dest.left(), dest.top(), dest.width(), crop_rect.top() - dest.top()), dim)
        painter.fillRect(QRectF(dest.left(), crop_rect.bottom(), dest.width(), dest.bottom() - crop_rect.bottom()), dim)
        painter.fillRect(QRectF(dest.left(), crop_rect.top(), crop_rect.left() - dest.left(), crop_rect.height()), dim)
        painter.fillRect(QRectF(crop_rect.right(), crop_rect.top(), dest.right() - crop_rect.right(), crop_rect.height()), dim)

        painter.setPen(QPen(QColor(255, 255, 255), 2))
        painter.drawRect(crop_rect)

        # Rule-of-thirds lines
        painter.setPen(QPen(QColor(255, 255, 255, 80), 1, Qt.PenStyle.DashLine))
        for i in range(1, 3):
            x = crop_rect.left() + crop_rect.width() * i / 3
            painter.drawLine(QPointF(x, crop_rect.top()), QPointF(x, crop_rect.bottom()))
            y = crop_rect.top() + crop_rect.height() * i / 3
            painter.drawLine(QPointF(crop_rect.left(), y), QPointF(crop_rect.right(), y))

        painter.setPen(QPen(QColor(0, 0, 0), 1))
        painter.setBrush(QBrush(QColor(255, 255, 255)))
        for rect in self._handle_rects().values():
            painter.drawRect(rect)

        # Crop size label, in output pixels
        painter.setPen(QColor(255, 255, 255))
        label = f"{round(self._crop.width)} × {round(self._crop.height)}"
        painter.drawText(
            crop_rect.adjusted(0, -20, 0, 0).toRect(),
            Qt.AlignmentFlag.AlignHCenter | Qt.AlignmentFlag.AlignBottom,
            label,
        )

        painter.end()

    def resizeEvent(self, event: QResizeEvent):
        self._update_display_mapping()
        super().resizeEvent(event)

    # --- Mouse interaction ---

    def mousePressEvent(self, event: QMouseEvent):
        if event.button() != Qt.MouseButton.LeftButton or not self._pixmap:
            return
        pos = event.position()
        self._mode, self._active_handle = self._hit_test(pos)
        if self._mode != self.MODE_NONE:
            self._drag_start = pos
            self._crop_start = self._crop.copy()

    def mouseMoveEvent(self, event: QMouseEvent):
        if not self._pixmap:
            return

        pos = event.position()

        if self._mode == self.MODE_NONE:
            mode, handle = self._hit_test(pos)
            if mode == self.MODE_RESIZE:
                if handle in (self.HANDLE_TL, self.HANDLE_BR):
                    self.setCursor(Qt.CursorShape.SizeFDiagCursor)
                else:
                    self.setCursor(Qt.CursorShape.SizeBDiagCursor)
            elif mode == self.MODE_MOVE:
                self.setCursor(Qt.CursorShape.SizeAllCursor)
            else:
                self.setCursor(Qt.CursorShape.ArrowCursor)
            return

        if self._mode == self.MODE_MOVE:
            delta = self._display_to_img(pos) - self._display_to_img(self._drag_start)
            self._crop.x = max(0.0, min(self._crop_start.x + delta.x(), self._img_w - self._crop.width))
            self._crop.y = max(0.0, min(self._crop_start.y + delta.y(), self._img_h - self._crop.height))
        else:
            self._resize_from_handle(pos)
        self.crop_changed.emit(self.get_crop())
        self.update()

    def mouseReleaseEvent(self, event: QMouseEvent):
        if event.button() != Qt.MouseButton.LeftButton:
            return
        was_dragging = self._mode != self.MODE_NONE
        self._mode = self.MODE_NONE
        self._active_handle = self.HANDLE_NONE
        if was_dragging:
            self.crop_committed.emit(self.get_crop())

    def _resize_from_handle(self, mouse_pos: QPointF):
        """Resize crop from a corner handle, maintaining aspect ratio."""
        img_pos = self._display_to_img(mouse_pos)
        mx = max(0.0, min(img_pos.x(), self._img_w))
        my = max(0.0, min(img_pos.y(), self._img_h))

        cs = self._crop_start
        ar = self._aspect_ratio

        if self._active_handle == self.HANDLE_BR:
            anchor_x, anchor_y = cs.x, cs.y
            dw, dh = mx - anchor_x, my - anchor_y
        elif self._active_handle == self.HANDLE_BL:
            anchor_x, anchor_y = cs.x + cs.width, cs.y
            dw, dh = anchor_x - mx, my - anchor_y
        elif self._active_handle == self.HANDLE_TR:
            anchor_x, anchor_y = cs.x, cs.y + cs.height
            dw, dh = mx - anchor_x, anchor_y - my
        elif self._active_handle == self.HANDLE_TL:
            anchor_x, anchor_y = cs.x + cs.width, cs.y + cs.height
            dw, dh = anchor_x - mx, anchor_y - my
        else:
            return

        # Minimum size never exceeds the image itself
        min_w = min(MIN_CROP_SIZE, self._img_w, self._img_h * ar)
        min_h = min_w / ar
        dw = max(dw, min_w)
        dh = max(dh, min_h)

        # Size from the limiting dimension
        if dw / dh > ar:
            new_w, new_h = dh * ar, dh
        else:
            new_w, new_h = dw, dw / ar

        # Clamp to image bounds from anchor
        if self._active_handle in (self.HANDLE_BR, self.HANDLE_TR):
            max_w = self._img_w - anchor_x
        else:
            max_w = anchor_x
        if self._active_handle in (self.HANDLE_BR, self.HANDLE_BL):
            max_h = self._img_h - anchor_y
        else:
            max_h = anchor_y

        if new_w > max_w:
            new_w = max_w
            new_h = new_w / ar
        if new_h > max_h:
            new_h = max_h
            new_w = new_h * ar

        new_x = anchor_x if self._active_handle in (self.HANDLE_BR, self.HANDLE_TR) else anchor_x - new_w
        new_y = anchor_y if self._active_handle in (self.HANDLE_BR, self.HANDLE_BL) else anchor_y - new_h

        self._crop = clamp_crop(CropRect(new_x, new_y, new_w, new_h), self._img_w, self._img_h)

    # --- Keyboard nudge ---

    def keyPressEvent(self, event: QKeyEvent):
        if not self._pixmap:
            return
        amount = NUDGE_LARGE if event.modifiers() & Qt.KeyboardModifier.ShiftModifier else NUDGE_SMALL
        moved = True
        if event.key() == Qt.Key.Key_Left:
            self._crop.x = max(0.0, self._crop.x - amount)
        elif event.key() == Qt.Key.Key_Right:
            self._crop.x = min(self._img_w - self._crop.width, self._crop.x + amount)
        elif event.key() == Qt.Key.Key_Up:
            self._crop.y = max(0.0, self._crop.y - amount)
        elif event.key() == Qt.Key.Key_Down:
            self._crop.y = min(self._img_h - self._crop.height, self._crop.y + amount)
        else:
            moved = False

        if moved:
            self.crop_changed.emit(self.get_crop())
            self.crop_committed.emit(self.get_crop())
            self.update()
        else:
            super().keyPressEvent(event)
