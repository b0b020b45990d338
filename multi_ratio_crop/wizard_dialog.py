"""
Modal crop wizard dialog.

One page per aspect ratio with the interactive crop editor, then a review
page showing every finished crop.  All state lives in the
``WizardController``; the dialog only forwards user actions to it and
redraws from it afterwards.
"""

import logging

from PyQt6.QtWidgets import (
    QDialog, QWidget, QVBoxLayout, QHBoxLayout, QGridLayout,
    QPushButton, QLabel, QMessageBox, QStackedWidget,
)
from PyQt6.QtCore import Qt

from multi_ratio_crop.config import THUMBNAIL_SIZE
from multi_ratio_crop.crop_widget import ImageCropWidget, pil_to_qpixmap, pixmap_from_bytes
from multi_ratio_crop.errors import CropWizardError, IncompleteCropsError
from multi_ratio_crop.models import CropRect
from multi_ratio_crop.ratios import ASPECT_RATIOS
from multi_ratio_crop.wizard import IDLE_STEP, WizardController

logger = logging.getLogger(__name__)

_PAGE_EDIT = 0
_PAGE_REVIEW = 1


class CropWizardDialog(QDialog):
    """Walks the controller's current image through every ratio, then review and save."""

    def __init__(self, controller: WizardController, parent: QWidget | None = None):
        super().__init__(parent)
        if not controller.is_active:
            raise ValueError("CropWizardDialog needs a controller with a selected image")
        self._controller = controller
        self.setWindowTitle("Crop Your Image")
        self.setModal(True)
        self.setMinimumSize(760, 560)

        layout = QVBoxLayout(self)

        self._title_label = QLabel()
        self._title_label.setStyleSheet("font-size: 13pt; font-weight: bold;")
        layout.addWidget(self._title_label)

        self._progress_label = QLabel()
        self._progress_label.setStyleSheet("color: #aaa; font-size: 9pt;")
        layout.addWidget(self._progress_label)

        self._pages = QStackedWidget()
        self._pages.addWidget(self._build_edit_page())
        self._pages.addWidget(self._build_review_page())
        layout.addWidget(self._pages, stretch=1)

        layout.addLayout(self._build_button_row())

        source = controller.source
        self._crop_widget.set_image(pil_to_qpixmap(source.image), source.width, source.height)
        self._refresh()

    # =========================================================================
    # UI construction
    # =========================================================================

    def _build_edit_page(self) -> QWidget:
        page = QWidget()
        page_layout = QVBoxLayout(page)
        page_layout.setContentsMargins(0, 0, 0, 0)

        self._step_label = QLabel()
        self._step_label.setAlignment(Qt.AlignmentFlag.AlignHCenter)
        page_layout.addWidget(self._step_label)

        self._crop_widget = ImageCropWidget()
        self._crop_widget.crop_changed.connect(self._on_crop_changed)
        self._crop_widget.crop_committed.connect(self._on_crop_committed)
        page_layout.addWidget(self._crop_widget, stretch=1)

        tools_row = QHBoxLayout()
        btn_default = QPushButton("🎯 Reset Crop")
        btn_default.setToolTip("Centered crop covering 80% of the image")
        btn_default.clicked.connect(lambda: self._reset_crop(maximize=False))
        tools_row.addWidget(btn_default)

        btn_max = QPushButton("⤢ Maximize")
        btn_max.setToolTip("Largest crop of this ratio, centered")
        btn_max.clicked.connect(lambda: self._reset_crop(maximize=True))
        tools_row.addWidget(btn_max)

        tools_row.addStretch()
        self._crop_info_label = QLabel()
        self._crop_info_label.setStyleSheet("color: #aaa; font-size: 9pt;")
        tools_row.addWidget(self._crop_info_label)
        page_layout.addLayout(tools_row)

        return page

    def _build_review_page(self) -> QWidget:
        page = QWidget()
        page_layout = QVBoxLayout(page)
        hint = QLabel(
            "Please review your cropped images below. "
            "If you're satisfied, click \"Save\" to proceed."
        )
        hint.setAlignment(Qt.AlignmentFlag.AlignHCenter)
        hint.setWordWrap(True)
        page_layout.addWidget(hint)

        self._review_grid = QGridLayout()
        page_layout.addLayout(self._review_grid)
        page_layout.addStretch()
        return page

    def _build_button_row(self) -> QHBoxLayout:
        row = QHBoxLayout()
        self._btn_cancel = QPushButton("Cancel")
        self._btn_cancel.clicked.connect(self.reject)
        row.addWidget(self._btn_cancel)
        row.addStretch()

        self._btn_prev = QPushButton("Previous")
        self._btn_prev.clicked.connect(self._on_previous)
        row.addWidget(self._btn_prev)

        self._btn_next = QPushButton("Next")
        self._btn_next.setDefault(True)
        self._btn_next.clicked.connect(self._on_next)
        row.addWidget(self._btn_next)
        return row

    # =========================================================================
    # Refresh
    # =========================================================================

    def _refresh(self):
        """Redraw every part of the dialog from the controller's state."""
        ctrl = self._controller
        step = ctrl.step
        n = len(ASPECT_RATIOS)
        completed = ctrl.completed_crops

        self._progress_label.setText("  ·  ".join(
            f"{'✅' if r.identifier in completed else '⬜'} {r.label}" for r in ASPECT_RATIOS
        ))
        self._btn_prev.setVisible(step > 1)

        if ctrl.is_editing:
            ratio = ctrl.active_ratio
            self._title_label.setText(f"Crop Your Image ({step}/{n})")
            self._step_label.setText(f"Step {step}: Crop for {ratio.label}")
            self._btn_next.setText("Next" if step < n else "Review")
            self._crop_widget.set_crop(ctrl.active_rectangle, ratio.ratio)
            self._update_crop_info()
            self._pages.setCurrentIndex(_PAGE_EDIT)
            self._crop_widget.setFocus()
        else:
            self._title_label.setText("Confirm Your Crops")
            self._btn_next.setText("Save")
            self._rebuild_review_grid()
            self._pages.setCurrentIndex(_PAGE_REVIEW)

    def _update_crop_info(self):
        crop = self._crop_widget.get_crop()
        ratio = self._controller.active_ratio
        self._crop_info_label.setText(
            f"{ratio.aspect_key}  ·  {round(crop.width)}×{round(crop.height)}"
            f" at ({round(crop.x)}, {round(crop.y)})"
        )

    def _rebuild_review_grid(self):
        while self._review_grid.count():
            item = self._review_grid.takeAt(0)
            if item.widget():
                item.widget().deleteLater()

        for col, (identifier, crop) in enumerate(self._controller.completed_crops.items()):
            title = QLabel(identifier.capitalize())
            title.setStyleSheet("font-weight: bold;")
            self._review_grid.addWidget(title, 0, col)

            preview = QLabel()
            preview.setAlignment(Qt.AlignmentFlag.AlignCenter)
            preview.setPixmap(pixmap_from_bytes(crop.data).scaled(
                THUMBNAIL_SIZE, THUMBNAIL_SIZE,
                Qt.AspectRatioMode.KeepAspectRatio,
                Qt.TransformationMode.SmoothTransformation,
            ))
            self._review_grid.addWidget(preview, 1, col)

            info = QLabel(f"{crop.width}×{crop.height} · {max(1, round(crop.size / 1024))} KB")
            info.setStyleSheet("color: #aaa; font-size: 8pt;")
            self._review_grid.addWidget(info, 2, col)

            btn_edit = QPushButton("Edit")
            btn_edit.clicked.connect(lambda checked, ident=identifier: self._jump_to(ident))
            self._review_grid.addWidget(btn_edit, 3, col)

    # =========================================================================
    # Crop editing
    # =========================================================================

    def _on_crop_changed(self, crop: CropRect):
        self._controller.update_active_rectangle(crop)
        self._update_crop_info()

    def _on_crop_committed(self, crop: CropRect):
        try:
            self._controller.commit_active_rectangle(crop)
        except CropWizardError as exc:
            logger.warning("Crop commit failed: %s", exc)
            QMessageBox.warning(self, "Crop Failed", f"Could not create this crop:\n{exc}")
        self._refresh()

    def _reset_crop(self, maximize: bool):
        self._controller.reset_active_rectangle(maximize=maximize)
        self._on_crop_committed(self._controller.active_rectangle)

    # =========================================================================
    # Navigation
    # =========================================================================

    def _on_next(self):
        try:
            step = self._controller.advance()
        except IncompleteCropsError as exc:
            QMessageBox.warning(self, "Incomplete Crops", str(exc))
            self._jump_to(exc.missing[0])
            return
        except CropWizardError as exc:
            logger.warning("Could not advance: %s", exc)
            QMessageBox.warning(self, "Crop Failed", f"Could not create this crop:\n{exc}")
            self._refresh()
            return
        except Exception as exc:
            # Raised by the save callback; the controller has already ended the session
            logger.exception("Saving crops failed")
            QMessageBox.warning(self, "Save Failed", f"Could not save the crops:\n{exc}")
            self.reject()
            return

        if step == IDLE_STEP:
            self.accept()
            return
        self._refresh()

    def _on_previous(self):
        self._controller.retreat()
        self._refresh()

    def _jump_to(self, identifier: str):
        self._controller.jump_to(identifier)
        self._refresh()

    def reject(self):
        """Cancel, Escape and the window close button all abandon the session."""
        self._controller.cancel()
        super().reject()
