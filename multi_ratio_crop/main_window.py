"""
Main application window.

Hosts the drop zone that starts a crop session, opens the wizard dialog,
and shows the saved bundle (original plus one crop per ratio) with
download buttons.
"""

import logging
from pathlib import Path

from PyQt6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QGridLayout,
    QPushButton, QLabel, QFileDialog, QMessageBox, QStatusBar,
    QToolBar, QFrame, QScrollArea, QApplication,
)
from PyQt6.QtCore import Qt, pyqtSignal
from PyQt6.QtGui import QAction, QDragEnterEvent, QDropEvent, QKeySequence, QMouseEvent

from multi_ratio_crop.config import APP_TITLE, IMAGE_EXTENSIONS, THUMBNAIL_SIZE
from multi_ratio_crop.crop_widget import pixmap_from_bytes
from multi_ratio_crop.errors import InvalidInputError
from multi_ratio_crop.image_io import read_image_file, write_bundle
from multi_ratio_crop.models import CropBundle
from multi_ratio_crop.wizard import WizardController
from multi_ratio_crop.wizard_dialog import CropWizardDialog

logger = logging.getLogger(__name__)


def _dropped_image_path(event) -> Path | None:
    """First local image file carried by a drag event, if any."""
    mime = event.mimeData()
    if not mime.hasUrls():
        return None
    for url in mime.urls():
        if url.isLocalFile():
            path = Path(url.toLocalFile())
            if path.suffix.lower() in IMAGE_EXTENSIONS:
                return path
    return None


# =============================================================================
# Drop zone
# =============================================================================

class DropZone(QFrame):
    """Dashed area that accepts a dropped image file or opens a file dialog on click."""

    file_dropped = pyqtSignal(object)  # Path
    clicked = pyqtSignal()

    _STYLE = "DropZone {{ border: 2px dashed #666; border-radius: 8px; background: {bg}; }}"

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setAcceptDrops(True)
        self.setMinimumHeight(160)
        self.setCursor(Qt.CursorShape.PointingHandCursor)
        self.setStyleSheet(self._STYLE.format(bg="#2b2b2b"))

        layout = QVBoxLayout(self)
        label = QLabel("⬆\nDrag and drop an image, or click to select")
        label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        label.setStyleSheet("color: #aaa; background: transparent;")
        layout.addWidget(label)

    def mousePressEvent(self, event: QMouseEvent):
        if event.button() == Qt.MouseButton.LeftButton:
            self.clicked.emit()

    def dragEnterEvent(self, event: QDragEnterEvent):
        if _dropped_image_path(event) is not None:
            self.setStyleSheet(self._STYLE.format(bg="#333"))
            event.acceptProposedAction()
        else:
            event.ignore()

    def dragLeaveEvent(self, event):
        self.setStyleSheet(self._STYLE.format(bg="#2b2b2b"))

    def dropEvent(self, event: QDropEvent):
        self.setStyleSheet(self._STYLE.format(bg="#2b2b2b"))
        path = _dropped_image_path(event)
        if path is None:
            event.ignore()
            return
        event.acceptProposedAction()
        self.file_dropped.emit(path)


# =============================================================================
# Main window
# =============================================================================

class MainWindow(QMainWindow):
    def __init__(self):
        super().__init__()
        self.setWindowTitle(APP_TITLE)
        self.setMinimumSize(800, 600)

        # Screen-aware startup size, clamped to 80% of screen
        preferred_w, preferred_h = 1200, 900
        screen = QApplication.primaryScreen()
        if screen is not None:
            avail = screen.availableGeometry()
            preferred_w = min(preferred_w, int(avail.width() * 0.8))
            preferred_h = min(preferred_h, int(avail.height() * 0.8))
        self.resize(preferred_w, preferred_h)

        self._controller = WizardController(on_save=self._on_bundle_saved)
        self._bundle: CropBundle | None = None
        self._last_dir: Path | None = None

        self._build_ui()
        self._update_button_states()

    @property
    def controller(self) -> WizardController:
        return self._controller

    @property
    def bundle(self) -> CropBundle | None:
        return self._bundle

    # =========================================================================
    # UI construction
    # =========================================================================

    def _build_ui(self):
        self._build_toolbar()

        central = QWidget()
        self.setCentralWidget(central)
        main_layout = QVBoxLayout(central)

        heading = QLabel("Select an Image to Crop")
        heading.setStyleSheet("font-size: 12pt; font-weight: bold;")
        main_layout.addWidget(heading)

        self._drop_zone = DropZone()
        self._drop_zone.clicked.connect(self._select_image)
        self._drop_zone.file_dropped.connect(self.open_image)
        main_layout.addWidget(self._drop_zone)

        self._results_heading = QLabel("Cropped Images")
        self._results_heading.setStyleSheet("font-size: 12pt; font-weight: bold;")
        self._results_heading.setVisible(False)
        main_layout.addWidget(self._results_heading)

        results = QWidget()
        self._results_layout = QGridLayout(results)
        self._results_layout.setAlignment(Qt.AlignmentFlag.AlignTop | Qt.AlignmentFlag.AlignLeft)
        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setWidget(results)
        scroll.setFrameShape(scroll.Shape.NoFrame)
        main_layout.addWidget(scroll, stretch=1)

        self._status = QStatusBar()
        self.setStatusBar(self._status)
        self._status.showMessage("Select an image to begin.")

    def _build_toolbar(self):
        toolbar = QToolBar("Main")
        toolbar.setMovable(False)
        self.addToolBar(toolbar)

        act_open = QAction("📂 Open Image…", self)
        act_open.setShortcut(QKeySequence("Ctrl+O"))
        act_open.triggered.connect(self._select_image)
        toolbar.addAction(act_open)

        act_save_all = QAction("💾 Save All…", self)
        act_save_all.setToolTip("Write the original and every crop into a folder")
        act_save_all.triggered.connect(self._save_all)
        toolbar.addAction(act_save_all)
        self._act_save_all = act_save_all

    def _update_button_states(self):
        self._act_save_all.setEnabled(self._bundle is not None)

    # =========================================================================
    # Image selection
    # =========================================================================

    def _select_image(self):
        patterns = " ".join(f"*{ext}" for ext in sorted(IMAGE_EXTENSIONS))
        path, _ = QFileDialog.getOpenFileName(
            self, "Select Image", str(self._last_dir or Path.home()),
            f"Images ({patterns});;All files (*)",
        )
        if path:
            self.open_image(Path(path))

    def open_image(self, path: Path, run_wizard: bool = True) -> bool:
        """Start a crop session for *path*; returns False if it couldn't be opened."""
        try:
            data, media_type, name = read_image_file(path)
            self._controller.select_file(data, media_type, name)
        except (InvalidInputError, OSError) as exc:
            logger.warning("Failed to open %s: %s", path, exc)
            QMessageBox.warning(self, "Invalid Image", f"Could not open {path.name}:\n{exc}")
            self._status.showMessage(f"Failed to open {path.name}")
            return False

        self._last_dir = path.parent
        self._status.showMessage(f"Cropping {name}…")
        if run_wizard:
            self.run_wizard()
        return True

    def run_wizard(self) -> int:
        """Show the crop wizard for the current session."""
        dlg = CropWizardDialog(self._controller, parent=self)
        result = dlg.exec()
        if result != CropWizardDialog.DialogCode.Accepted:
            self._status.showMessage("Cropping cancelled.")
        return result

    # =========================================================================
    # Results
    # =========================================================================

    def _on_bundle_saved(self, bundle: CropBundle):
        self._bundle = bundle
        self._show_bundle(bundle)
        self._update_button_states()
        self._status.showMessage(f"Saved {len(bundle.crops)} crops of {bundle.original.file_name}")

    def _show_bundle(self, bundle: CropBundle):
        while self._results_layout.count():
            item = self._results_layout.takeAt(0)
            if item.widget():
                item.widget().deleteLater()

        original = bundle.original
        self._results_layout.addWidget(
            self._build_result_card("Original", original.file_name, original.media_type, original.data), 0, 0,
        )
        for col, crop in enumerate(bundle.crops):
            self._results_layout.addWidget(
                self._build_result_card(crop.ratio_identifier.capitalize(), crop.file_name,
                                        crop.media_type, crop.data),
                1, col,
            )
        self._results_heading.setVisible(True)

    def _build_result_card(self, title: str, file_name: str, media_type: str, data: bytes) -> QFrame:
        card = QFrame()
        card.setStyleSheet("QFrame { border: 1px solid #444; border-radius: 6px; }")
        layout = QVBoxLayout(card)

        title_label = QLabel(title)
        title_label.setStyleSheet("font-weight: bold; border: none;")
        layout.addWidget(title_label)

        preview = QLabel()
        preview.setStyleSheet("border: none;")
        preview.setPixmap(pixmap_from_bytes(data).scaled(
            THUMBNAIL_SIZE, THUMBNAIL_SIZE,
            Qt.AspectRatioMode.KeepAspectRatio,
            Qt.TransformationMode.SmoothTransformation,
        ))
        layout.addWidget(preview)

        row = QHBoxLayout()
        info = QLabel(f"{file_name}\n{media_type} • {round(len(data) / 1024)} KB")
        info.setStyleSheet("color: #aaa; font-size: 8pt; border: none;")
        row.addWidget(info, stretch=1)
        btn = QPushButton("Download")
        btn.clicked.connect(lambda checked, n=file_name, d=data: self._download(n, d))
        row.addWidget(btn)
        layout.addLayout(row)
        return card

    def _download(self, file_name: str, data: bytes):
        start = (self._last_dir or Path.home()) / file_name
        path, _ = QFileDialog.getSaveFileName(self, "Save Image", str(start))
        if not path:
            return
        try:
            Path(path).write_bytes(data)
        except OSError as exc:
            QMessageBox.warning(self, "Save Failed", f"Could not write {path}:\n{exc}")
            return
        self._status.showMessage(f"Saved {path}")

    def _save_all(self):
        if self._bundle is None:
            return
        folder = QFileDialog.getExistingDirectory(
            self, "Select Output Folder", str(self._last_dir or Path.home()),
        )
        if not folder:
            return
        try:
            written = write_bundle(self._bundle, Path(folder))
        except OSError as exc:
            QMessageBox.warning(self, "Save Failed", f"Could not write files:\n{exc}")
            return
        self._status.showMessage(f"Wrote {len(written)} files to {folder}")

    def closeEvent(self, event):
        """Release any unfinished session before closing."""
        self._controller.cancel()
        super().closeEvent(event)
